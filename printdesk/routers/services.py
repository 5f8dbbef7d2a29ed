from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session
from typing import List
from .. import models, schemas
from ..config import settings
from ..database import get_db

router = APIRouter(prefix="/pricing/services", tags=["services"])

# Default services, digital press shop, SRA3 sheet-fed
DEFAULT_SERVICES = {
    "Digital color print SRA3": {"unit": "click", "base_rate": 1.20},
    "Lamination SRA3": {"unit": "sheet", "base_rate": 0.90},
    "Guillotine cutting": {"unit": "sheet", "base_rate": 0.10},
    "Prepress check": {"unit": "item", "base_rate": 5.00},
}

# Quantity breaks per service: (min_quantity, rate)
DEFAULT_TIERS = {
    "Digital color print SRA3": [(50, 1.05), (200, 0.90), (500, 0.75)],
    "Lamination SRA3": [(100, 0.75)],
}


def seed_services(db: Session) -> int:
    """Insert default services and their tiers. Skips services that already exist."""
    seeded = 0
    for name, data in DEFAULT_SERVICES.items():
        existing = db.query(models.Service).filter(models.Service.name == name).first()
        if existing:
            continue
        service = models.Service(name=name, currency=settings.WORKING_CURRENCY, **data)
        for min_quantity, rate in DEFAULT_TIERS.get(name, []):
            service.volume_tiers.append(models.ServiceVolumeTier(min_quantity=min_quantity, rate=rate))
        db.add(service)
        seeded += 1
    db.commit()
    return seeded


def _get_service(service_id: int, db: Session) -> models.Service:
    service = db.query(models.Service).filter(models.Service.id == service_id).first()
    if not service:
        raise HTTPException(status_code=404, detail="Service not found")
    return service


def _check_unit(unit: str):
    if unit not in models.SERVICE_UNITS:
        raise HTTPException(
            status_code=400,
            detail=f"Unknown unit '{unit}'. Available: {models.SERVICE_UNITS}",
        )


@router.get("/seed")
def seed_default_services(db: Session = Depends(get_db)):
    """Seed default services. Safe to run multiple times, skips existing."""
    return {"ok": True, "seeded": seed_services(db)}


@router.get("/", response_model=List[schemas.Service])
def list_services(db: Session = Depends(get_db)):
    return db.query(models.Service).order_by(models.Service.id).all()


@router.post("/", response_model=schemas.Service)
def create_service(payload: schemas.ServiceCreate, db: Session = Depends(get_db)):
    _check_unit(payload.unit)
    if db.query(models.Service).filter(models.Service.name == payload.name).first():
        raise HTTPException(status_code=400, detail="Service with this name already exists")
    service = models.Service(**payload.model_dump())
    db.add(service)
    db.commit()
    db.refresh(service)
    return service


@router.patch("/{service_id}", response_model=schemas.Service)
def update_service(service_id: int, update: schemas.ServiceUpdate, db: Session = Depends(get_db)):
    service = _get_service(service_id, db)
    changes = update.model_dump(exclude_unset=True)
    if "unit" in changes:
        _check_unit(changes["unit"])
    for field, value in changes.items():
        setattr(service, field, value)
    db.commit()
    db.refresh(service)
    return service


@router.delete("/{service_id}")
def delete_service(service_id: int, db: Session = Depends(get_db)):
    """Delete a service and its tiers. Refused while operation norms still use it."""
    service = _get_service(service_id, db)
    in_use = db.query(models.OperationNorm).filter(models.OperationNorm.service_id == service_id).count()
    if in_use:
        raise HTTPException(
            status_code=400,
            detail=f"Service is used by {in_use} operation norm(s); delete or reassign them first",
        )
    db.delete(service)
    db.commit()
    return {"ok": True}


@router.get("/{service_id}/tiers", response_model=List[schemas.VolumeTier])
def list_tiers(service_id: int, db: Session = Depends(get_db)):
    _get_service(service_id, db)
    return (
        db.query(models.ServiceVolumeTier)
        .filter(models.ServiceVolumeTier.service_id == service_id)
        .order_by(models.ServiceVolumeTier.min_quantity, models.ServiceVolumeTier.id)
        .all()
    )


@router.post("/{service_id}/tiers", response_model=schemas.VolumeTier)
def create_tier(service_id: int, payload: schemas.VolumeTierCreate, db: Session = Depends(get_db)):
    _get_service(service_id, db)
    tier = models.ServiceVolumeTier(service_id=service_id, **payload.model_dump())
    db.add(tier)
    db.commit()
    db.refresh(tier)
    return tier
