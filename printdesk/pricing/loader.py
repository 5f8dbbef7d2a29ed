"""
Data-access shim: database rows -> CatalogSnapshot.

Called once per request by the HTTP layer. The engine itself never
touches the database.
"""

import logging
from datetime import datetime

from sqlalchemy.orm import Session

from .. import models
from ..config import settings
from .catalog import CatalogSnapshot, MaterialRule, OperationNorm, PaperStock, Service, VolumeTier

logger = logging.getLogger(__name__)


def load_catalog(db: Session) -> CatalogSnapshot:
    """Read the whole pricing configuration into an immutable snapshot."""
    services = [
        Service(
            id=row.id,
            name=row.name,
            unit=row.unit,
            base_rate=row.base_rate or 0.0,
            currency=row.currency,
            is_active=bool(row.is_active),
        )
        for row in db.query(models.Service).order_by(models.Service.id).all()
    ]
    tiers = [
        VolumeTier(
            id=row.id,
            service_id=row.service_id,
            min_quantity=row.min_quantity,
            rate=row.rate,
            is_active=bool(row.is_active),
            created_at=row.created_at,
        )
        for row in db.query(models.ServiceVolumeTier).order_by(models.ServiceVolumeTier.id).all()
    ]
    norms = [
        OperationNorm(
            id=row.id,
            product_type=row.product_type,
            operation=row.operation,
            service_id=row.service_id,
            formula=row.formula,
            is_active=bool(row.is_active),
        )
        for row in db.query(models.OperationNorm).order_by(models.OperationNorm.id).all()
    ]
    papers = [
        PaperStock(
            id=row.id,
            paper_type=row.paper_type,
            density=row.density,
            name=row.name,
            price_per_sheet=row.price_per_sheet,
            unit=row.unit or "sheet",
            currency=row.currency,
            is_active=bool(row.is_active),
        )
        for row in db.query(models.PaperStock).order_by(models.PaperStock.id).all()
    ]
    rules = [
        MaterialRule(
            product_type=row.product_type,
            requires_paper=bool(row.requires_paper),
            press_sheet=row.press_sheet or "SRA3",
            sheet_width_mm=row.sheet_width_mm,
            sheet_height_mm=row.sheet_height_mm,
            bleed_mm=row.bleed_mm or 0.0,
            waste_ratio=(settings.DEFAULT_WASTE_RATIO if row.waste_ratio is None else row.waste_ratio),
            up_by_format=tuple(sorted(
                (str(name).upper(), int(up)) for name, up in (row.up_by_format or {}).items()
            )),
        )
        for row in db.query(models.MaterialRule).order_by(models.MaterialRule.id).all()
    ]

    logger.debug("Loaded catalog: %d services, %d tiers, %d norms, %d papers, %d rules",
                 len(services), len(tiers), len(norms), len(papers), len(rules))
    return CatalogSnapshot(
        services=services,
        volume_tiers=tiers,
        operation_norms=norms,
        paper_stocks=papers,
        material_rules=rules,
        loaded_at=datetime.utcnow(),
    )
