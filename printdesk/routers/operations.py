from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session
from typing import List, Optional
from .. import models, schemas
from ..database import get_db
from ..pricing.errors import InvalidFormula
from ..pricing.formula import compile_formula

router = APIRouter(prefix="/pricing/operations", tags=["operations"])

# Default norms: (product_type, operation) -> service name + formula.
# Context variables: quantity, sheets, sides, waste, up + numeric spec fields.
DEFAULT_NORMS = {
    ("flyers", "digital_print"): {"service": "Digital color print SRA3", "formula": "sheets * sides"},
    ("flyers", "cutting"): {"service": "Guillotine cutting", "formula": "sheets"},
    ("flyers", "prepress"): {"service": "Prepress check", "formula": "1"},
    ("business_cards", "digital_print"): {"service": "Digital color print SRA3", "formula": "sheets * sides"},
    ("business_cards", "cutting"): {"service": "Guillotine cutting", "formula": "sheets"},
    ("business_cards", "prepress"): {"service": "Prepress check", "formula": "1"},
    ("posters", "digital_print"): {"service": "Digital color print SRA3", "formula": "sheets * sides"},
    ("posters", "lamination"): {"service": "Lamination SRA3", "formula": "sheets"},
}


def seed_operation_norms(db: Session) -> int:
    """Insert default norms whose service exists. Skips (product_type, operation) pairs already present."""
    seeded = 0
    for (product_type, operation), data in DEFAULT_NORMS.items():
        existing = db.query(models.OperationNorm).filter(
            models.OperationNorm.product_type == product_type,
            models.OperationNorm.operation == operation,
        ).first()
        if existing:
            continue
        service = db.query(models.Service).filter(models.Service.name == data["service"]).first()
        if not service:
            continue
        db.add(models.OperationNorm(
            product_type=product_type,
            operation=operation,
            service_id=service.id,
            formula=data["formula"],
        ))
        seeded += 1
    db.commit()
    return seeded


def _validate_formula(formula: str):
    """Reject formulas that won't parse, at save time, not at quote time."""
    try:
        compiled = compile_formula(formula)
    except InvalidFormula as e:
        raise HTTPException(
            status_code=400,
            detail={"error": "Invalid formula", "position": e.position, "reason": e.reason},
        )
    return compiled


def _check_service(service_id: int, db: Session):
    if not db.query(models.Service).filter(models.Service.id == service_id).first():
        raise HTTPException(status_code=400, detail=f"Service {service_id} does not exist")


@router.get("/seed")
def seed_default_norms(db: Session = Depends(get_db)):
    """Seed default operation norms. Run services seed first."""
    return {"ok": True, "seeded": seed_operation_norms(db)}


@router.get("/", response_model=List[schemas.OperationNorm])
def list_operation_norms(product_type: Optional[str] = None, db: Session = Depends(get_db)):
    query = db.query(models.OperationNorm)
    if product_type:
        query = query.filter(models.OperationNorm.product_type == product_type)
    return query.order_by(models.OperationNorm.product_type, models.OperationNorm.operation).all()


@router.post("/", response_model=schemas.OperationNorm)
def create_operation_norm(payload: schemas.OperationNormCreate, db: Session = Depends(get_db)):
    _validate_formula(payload.formula)
    _check_service(payload.service_id, db)
    existing = db.query(models.OperationNorm).filter(
        models.OperationNorm.product_type == payload.product_type,
        models.OperationNorm.operation == payload.operation,
    ).first()
    if existing:
        raise HTTPException(status_code=400, detail="Norm for this product type and operation already exists")
    norm = models.OperationNorm(**payload.model_dump())
    db.add(norm)
    db.commit()
    db.refresh(norm)
    return norm


@router.patch("/{norm_id}", response_model=schemas.OperationNorm)
def update_operation_norm(norm_id: int, update: schemas.OperationNormUpdate, db: Session = Depends(get_db)):
    norm = db.query(models.OperationNorm).filter(models.OperationNorm.id == norm_id).first()
    if not norm:
        raise HTTPException(status_code=404, detail="Operation norm not found")
    changes = update.model_dump(exclude_unset=True)
    if changes.get("formula") is not None:
        _validate_formula(changes["formula"])
    if changes.get("service_id") is not None:
        _check_service(changes["service_id"], db)
    for field, value in changes.items():
        setattr(norm, field, value)
    db.commit()
    db.refresh(norm)
    return norm


@router.delete("/{norm_id}")
def delete_operation_norm(norm_id: int, db: Session = Depends(get_db)):
    norm = db.query(models.OperationNorm).filter(models.OperationNorm.id == norm_id).first()
    if not norm:
        raise HTTPException(status_code=404, detail="Operation norm not found")
    db.delete(norm)
    db.commit()
    return {"ok": True}
