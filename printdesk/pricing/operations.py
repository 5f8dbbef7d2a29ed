"""
Operation norm resolver.

A norm says "for product X, operation Y consumes <formula> units of
service Z". The formula result is the consumed quantity; the unit rate
comes from the service's volume tiers.

Tier basis is fixed per deployment (settings.TIER_BASIS, overridable per
product type): CONSUMED looks tiers up by the consumed quantity, ORDER by
the order quantity in the context.
"""

import logging
import math
from typing import Mapping, Optional

from .base import SERVICE, BreakdownLine, make_line
from .catalog import CatalogSnapshot, NotConfigured
from .errors import (
    CurrencyMismatch, InvalidQuantity, InvalidTierBasis, OperationNotConfigured, ServiceUnavailable,
)
from .formula import evaluate
from .tiers import VolumeTierResolver

logger = logging.getLogger(__name__)

CONSUMED = "consumed"
ORDER = "order"
TIER_BASES = (CONSUMED, ORDER)


class OperationNormResolver:

    def __init__(self, catalog: CatalogSnapshot, tier_basis: str = CONSUMED,
                 tier_basis_by_product: Optional[Mapping[str, str]] = None,
                 currency: Optional[str] = None):
        if tier_basis not in TIER_BASES:
            raise InvalidTierBasis(tier_basis)
        self.catalog = catalog
        self.tier_basis = tier_basis
        self.tier_basis_by_product = dict(tier_basis_by_product or {})
        self.currency = currency
        self.tiers = VolumeTierResolver(catalog)

    def basis_for(self, product_type: str) -> str:
        basis = self.tier_basis_by_product.get(product_type, self.tier_basis)
        if basis not in TIER_BASES:
            raise InvalidTierBasis(basis, product_type)
        return basis

    def resolve(self, product_type: str, operation: str,
                context: Mapping[str, float]) -> BreakdownLine:
        norm = self.catalog.find_norm(product_type, operation)
        if isinstance(norm, NotConfigured):
            raise OperationNotConfigured(product_type, operation)
        norm = norm.value

        service = self.catalog.find_service(norm.service_id)
        if isinstance(service, NotConfigured):
            raise ServiceUnavailable(norm.service_id)
        service = service.value
        if self.currency and service.currency != self.currency:
            raise CurrencyMismatch(service.name, service.currency, self.currency)

        consumed = evaluate(norm.formula, context)
        if not math.isfinite(consumed) or consumed < 0:
            raise InvalidQuantity(consumed, f"norm {product_type}/{operation}")

        if consumed == 0:
            # Nothing consumed, keep the line visible at the base rate
            rate = service.base_rate
        else:
            if self.basis_for(product_type) == ORDER:
                lookup_qty = context.get("quantity", 0)
            else:
                lookup_qty = consumed
            rate = self.tiers.resolve_rate(service.id, lookup_qty).rate

        line = make_line(SERVICE, service.name, service.unit, consumed, rate)
        logger.debug("%s/%s: %s %s x %s = %s", product_type, operation,
                     consumed, service.unit, rate, line.total)
        return line
