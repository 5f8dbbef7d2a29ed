"""
Catalog snapshot: the read-only configuration a calculation runs against.

Loaded once per request (see loader.py) and never mutated afterwards, so
concurrent calculations can't observe a half-applied admin edit.
Lookups return explicit outcomes (Found / Fallback / NotConfigured)
instead of None so callers have to handle the "nothing configured" case.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Generic, Optional, TypeVar, Union

T = TypeVar("T")


# --- Configuration records ---

@dataclass(frozen=True)
class Service:
    id: int
    name: str
    unit: str
    base_rate: float
    currency: str = "BYN"
    is_active: bool = True


@dataclass(frozen=True)
class VolumeTier:
    id: int
    service_id: int
    min_quantity: float
    rate: float
    is_active: bool = True
    created_at: Optional[datetime] = None


@dataclass(frozen=True)
class OperationNorm:
    id: int
    product_type: str
    operation: str
    service_id: int
    formula: str
    is_active: bool = True


@dataclass(frozen=True)
class PaperStock:
    id: int
    paper_type: str
    density: int
    name: str
    price_per_sheet: float
    unit: str = "sheet"
    currency: str = "BYN"
    is_active: bool = True


@dataclass(frozen=True)
class MaterialRule:
    """Layout rules for one product type."""
    product_type: str
    requires_paper: bool = True
    press_sheet: str = "SRA3"
    sheet_width_mm: float = 320.0
    sheet_height_mm: float = 450.0
    bleed_mm: float = 2.0
    waste_ratio: float = 0.02
    # Explicit pieces-per-sheet by format name; wins over computed imposition
    up_by_format: tuple = ()

    def up_for(self, format_name: str) -> Optional[int]:
        for name, up in self.up_by_format:
            if name == format_name:
                return up
        return None


# --- Lookup outcomes ---

@dataclass(frozen=True)
class Found(Generic[T]):
    value: T


@dataclass(frozen=True)
class Fallback(Generic[T]):
    value: T


@dataclass(frozen=True)
class NotConfigured:
    reason: str


Lookup = Union[Found, Fallback, NotConfigured]


@dataclass(frozen=True)
class CatalogSnapshot:
    services: tuple = ()
    volume_tiers: tuple = ()
    operation_norms: tuple = ()
    paper_stocks: tuple = ()
    material_rules: tuple = ()
    loaded_at: Optional[datetime] = None
    _services_by_id: Any = field(default=None, init=False, repr=False, compare=False)

    def __post_init__(self):
        # A snapshot can't be appended to after load
        for name in ("services", "volume_tiers", "operation_norms", "paper_stocks", "material_rules"):
            object.__setattr__(self, name, tuple(getattr(self, name)))
        object.__setattr__(self, "_services_by_id", {s.id: s for s in self.services})

    # --- Configuration reads ---

    def list_active_services(self) -> list[Service]:
        return [s for s in self.services if s.is_active]

    def list_active_volume_tiers(self, service_id: int) -> list[VolumeTier]:
        return sorted(
            (t for t in self.volume_tiers if t.service_id == service_id and t.is_active),
            key=_tier_order,
        )

    def list_active_operation_norms(self, product_type: str) -> list[OperationNorm]:
        return sorted(
            (n for n in self.operation_norms if n.product_type == product_type and n.is_active),
            key=lambda n: (n.operation, n.id),
        )

    def resolve_material_rules(self, product_type: str) -> Optional[MaterialRule]:
        for rule in self.material_rules:
            if rule.product_type == product_type:
                return rule
        return None

    # --- Lookups with explicit outcomes ---

    def find_service(self, service_id: int) -> Lookup:
        service = self._services_by_id.get(service_id)
        if service is None:
            return NotConfigured(f"service {service_id} does not exist")
        if not service.is_active:
            return NotConfigured(f"service {service_id} is inactive")
        return Found(service)

    def find_norm(self, product_type: str, operation: str) -> Lookup:
        matches = [
            n for n in self.operation_norms
            if n.product_type == product_type and n.operation == operation
        ]
        if not matches:
            return NotConfigured(f"no norm for {product_type}/{operation}")
        active = [n for n in matches if n.is_active]
        if not active:
            return NotConfigured(f"norm for {product_type}/{operation} is inactive")
        # (product_type, operation) is unique in the store; pick deterministically anyway
        return Found(max(active, key=lambda n: n.id))

    def find_paper(self, paper_type: str, density: int) -> Lookup:
        for paper in self.paper_stocks:
            if paper.is_active and paper.paper_type == paper_type and paper.density == density:
                return Found(paper)
        return NotConfigured(f"no active paper {paper_type} {density}")


def _tier_order(tier: VolumeTier):
    """Ascending by min_quantity; among equal breaks, older first, newest last."""
    created = tier.created_at or datetime.min
    return (tier.min_quantity, created, tier.id)
