"""
Pricing Engine: the aggregator.

Materials + operation norms -> itemized breakdown -> subtotal -> markup -> final.
Pure math over an immutable catalog snapshot. No I/O, no partial results:
if any line fails to resolve, the whole calculation fails.

Input: CalculateRequest + CatalogSnapshot
Output: CalculateResponse
"""

import logging
import math
from dataclasses import dataclass, field
from typing import Any, Mapping, Optional

from ..config import settings
from .base import BreakdownLine, money, parse_number
from .catalog import CatalogSnapshot
from .errors import InvalidQuantity, InvalidRequest
from .markup import MarkupPolicy
from .materials import Layout, MaterialResolver, spec_value
from .operations import OperationNormResolver

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CalculateRequest:
    product_type: str
    quantity: float
    channel: Optional[str] = None
    customer_type: Optional[str] = None
    specifications: Mapping[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class CalculateResponse:
    materials: tuple
    services: tuple
    subtotal: float
    markup: float
    final: float
    meta: dict = field(default_factory=dict, compare=False)

    def to_dict(self) -> dict:
        return {
            "materials": [line.to_dict() for line in self.materials],
            "services": [line.to_dict() for line in self.services],
            "subtotal": self.subtotal,
            "markup": self.markup,
            "final": self.final,
            "meta": dict(self.meta),
        }


class PricingEngine:
    """
    Assembles a CalculateResponse from the material resolver, the
    operation norm resolver and the markup policy.
    """

    def __init__(self, catalog: CatalogSnapshot, markup_policy: MarkupPolicy = None,
                 tier_basis: str = None, tier_basis_by_product: Mapping[str, str] = None,
                 currency: str = None):
        self.catalog = catalog
        self.currency = currency or settings.WORKING_CURRENCY
        self.markup_policy = markup_policy or MarkupPolicy.from_settings(settings)
        self.materials = MaterialResolver(catalog, currency=self.currency)
        self.operations = OperationNormResolver(
            catalog,
            tier_basis=tier_basis or settings.TIER_BASIS,
            tier_basis_by_product=(settings.TIER_BASIS_BY_PRODUCT
                                   if tier_basis_by_product is None else tier_basis_by_product),
            currency=self.currency,
        )

    def calculate(self, request: CalculateRequest) -> CalculateResponse:
        product_type, quantity = self._validate(request)
        specifications = dict(request.specifications or {})

        # --- Layout + evaluation context ---
        layout = self.materials.layout(product_type, specifications, quantity)
        context = self._build_context(specifications, quantity, layout)

        # --- Lines ---
        materials = self.materials.resolve(product_type, specifications, quantity, layout=layout)
        services = [
            self.operations.resolve(product_type, norm.operation, context)
            for norm in self.catalog.list_active_operation_norms(product_type)
        ]

        # --- Totals ---
        material_subtotal = self._calculate_subtotal(materials)
        service_subtotal = self._calculate_subtotal(services)
        subtotal = money(material_subtotal + service_subtotal)

        markup = self.markup_policy.evaluate(subtotal, request.channel, request.customer_type)
        markup_amount = money(markup.amount)
        final = money(subtotal + markup_amount)
        if not all(math.isfinite(v) for v in (subtotal, markup_amount, final)):
            raise InvalidQuantity(quantity, "order total is out of range")

        logger.info("Priced %s x %s: subtotal %s, markup %s (%s/%s), final %s",
                    quantity, product_type, subtotal, markup_amount,
                    markup.channel, markup.customer_type, final)

        return CalculateResponse(
            materials=tuple(materials),
            services=tuple(services),
            subtotal=subtotal,
            markup=markup_amount,
            final=final,
            meta={
                "productType": product_type,
                "quantity": quantity,
                "layout": layout.to_dict(),
                "channel": markup.channel,
                "customerType": markup.customer_type,
                "markupFactor": markup.factor,
                "tierBasis": self.operations.basis_for(product_type),
                "currency": self.currency,
                "materialSubtotal": material_subtotal,
                "serviceSubtotal": service_subtotal,
            },
        )

    def _validate(self, request: CalculateRequest):
        product_type = request.product_type.strip() if isinstance(request.product_type, str) else ""
        if not product_type:
            raise InvalidRequest("productType is required")
        quantity = parse_number(request.quantity)
        if quantity is None or quantity <= 0:
            raise InvalidRequest(f"quantity must be a positive number, got {request.quantity!r}")
        return product_type, quantity

    def _build_context(self, specifications: Mapping, quantity: float, layout: Layout) -> dict:
        """Numeric spec fields + derived fields. Derived fields win on name clashes."""
        context = {}
        for key, value in specifications.items():
            if isinstance(value, bool):
                context[key] = 1.0 if value else 0.0
                continue
            number = parse_number(value) if isinstance(value, (int, float)) else None
            if number is None and isinstance(value, str):
                number = _plain_number(value)
            if number is not None:
                context[key] = number

        sides = _sides(specifications)

        context.update({
            "quantity": quantity,
            "sheets": float(layout.sheets),
            "sides": float(sides),
            "waste": float(layout.waste_sheets),
            "up": float(layout.up),
        })
        return context

    def _calculate_subtotal(self, lines: list[BreakdownLine]) -> float:
        """Sum of line totals."""
        return money(sum(line.total for line in lines))


def _sides(specifications: Mapping) -> int:
    """Printed sides. 1 when absent; anything else must be a whole number >= 1."""
    raw = spec_value(specifications, "sides")
    if raw is None:
        return 1
    if isinstance(raw, bool):
        number = None
    elif isinstance(raw, (int, float)):
        number = parse_number(raw)
    else:
        number = _plain_number(str(raw))
    if number is None or number < 1 or number != int(number):
        raise InvalidRequest(f"sides must be a whole number of at least 1, got {raw!r}")
    return int(number)


def _plain_number(value: str) -> Optional[float]:
    """Numeric strings only ('150', '2.5'), not '150g' or 'A6'."""
    try:
        number = float(value.strip())
    except ValueError:
        return None
    return number if math.isfinite(number) else None
