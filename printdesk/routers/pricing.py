import logging

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from .. import schemas
from ..database import get_db
from ..pricing import CalculateRequest, PricingEngine
from ..pricing.errors import ConfigurationError, MissingSpecification, PricingInputError
from ..pricing.loader import load_catalog
from .operations import seed_operation_norms
from .papers import seed_papers
from .services import seed_services

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/pricing", tags=["pricing"])

CONFIGURATION_ERROR_DETAIL = "Pricing temporarily unavailable for this configuration"


def seed_defaults(db: Session) -> dict:
    """Seed services, paper stock and norms, in dependency order. Idempotent."""
    return {
        "services": seed_services(db),
        "papers": seed_papers(db),
        "operations": seed_operation_norms(db),
    }


@router.get("/seed")
def seed_pricing_defaults(db: Session = Depends(get_db)):
    """Seed the whole default pricing catalog. Safe to run multiple times."""
    return {"ok": True, "seeded": seed_defaults(db)}


@router.post("/calculate", response_model=schemas.CalculateResponse)
def calculate(payload: schemas.CalculateRequest, db: Session = Depends(get_db)):
    """
    Price one product.

    400: the request can't be priced as sent (missing spec field, bad quantity).
    500: the pricing configuration is broken; details go to the log, not the caller.
    """
    engine = PricingEngine(load_catalog(db))
    request = CalculateRequest(
        product_type=payload.productType,
        quantity=payload.quantity,
        channel=payload.channel,
        customer_type=payload.customerType,
        specifications=payload.specifications,
    )
    try:
        result = engine.calculate(request)
    except MissingSpecification as e:
        raise HTTPException(status_code=400, detail={"error": str(e), "field": e.field})
    except PricingInputError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except ConfigurationError:
        logger.exception("Pricing configuration error for %s", payload.productType)
        raise HTTPException(status_code=500, detail=CONFIGURATION_ERROR_DETAIL)
    return result.to_dict()
