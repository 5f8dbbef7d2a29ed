from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from typing import List, Optional
from .. import models, schemas
from ..config import settings
from ..database import get_db

router = APIRouter(prefix="/pricing/papers", tags=["papers"])

# Default paper stock, SRA3 press sheets, price per sheet
DEFAULT_PAPERS = {
    ("semi-matte", 130): {"name": "Semi-matte coated 130 g/m2 SRA3", "price_per_sheet": 0.40},
    ("semi-matte", 150): {"name": "Semi-matte coated 150 g/m2 SRA3", "price_per_sheet": 0.50},
    ("semi-matte", 300): {"name": "Semi-matte coated 300 g/m2 SRA3", "price_per_sheet": 0.95},
    ("glossy", 150): {"name": "Glossy coated 150 g/m2 SRA3", "price_per_sheet": 0.52},
    ("glossy", 200): {"name": "Glossy coated 200 g/m2 SRA3", "price_per_sheet": 0.68},
    ("offset", 80): {"name": "Offset 80 g/m2 SRA3", "price_per_sheet": 0.15},
    ("designer", 300): {"name": "Designer 300 g/m2 SRA3", "price_per_sheet": 2.10},
}

# Layout per product type. up_by_format pins pieces-per-sheet where the shop's
# imposition differs from the computed one.
DEFAULT_MATERIAL_RULES = {
    "flyers": {"waste_ratio": 0.02, "up_by_format": {"A6": 8, "A5": 4, "A4": 2}},
    "business_cards": {"waste_ratio": 0.03, "bleed_mm": 2.0},
    "posters": {"waste_ratio": 0.05, "bleed_mm": 0.0},
}


def seed_papers(db: Session) -> int:
    """Insert default paper stock and material rules. Skips existing rows."""
    seeded = 0
    for (paper_type, density), data in DEFAULT_PAPERS.items():
        existing = db.query(models.PaperStock).filter(
            models.PaperStock.paper_type == paper_type,
            models.PaperStock.density == density,
        ).first()
        if not existing:
            db.add(models.PaperStock(paper_type=paper_type, density=density,
                                     currency=settings.WORKING_CURRENCY, **data))
            seeded += 1
    for product_type, data in DEFAULT_MATERIAL_RULES.items():
        existing = db.query(models.MaterialRule).filter(
            models.MaterialRule.product_type == product_type
        ).first()
        if not existing:
            db.add(models.MaterialRule(product_type=product_type, **data))
            seeded += 1
    db.commit()
    return seeded


@router.get("/seed")
def seed_default_papers(db: Session = Depends(get_db)):
    """Seed default paper stock and layout rules."""
    return {"ok": True, "seeded": seed_papers(db)}


@router.get("/", response_model=List[schemas.PaperStock])
def list_papers(paper_type: Optional[str] = None, db: Session = Depends(get_db)):
    query = db.query(models.PaperStock)
    if paper_type:
        query = query.filter(models.PaperStock.paper_type == paper_type)
    return query.order_by(models.PaperStock.paper_type, models.PaperStock.density).all()
