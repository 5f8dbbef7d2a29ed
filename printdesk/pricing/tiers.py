"""
Volume tier resolver: picks a service's unit rate for a quantity.

The applicable tier is the active one with the largest min_quantity that
is still <= quantity. Duplicate breaks (an admin data problem) resolve to
the most recently created tier. No qualifying tier -> service base rate.
"""

import logging
from dataclasses import dataclass
from typing import Optional

from .catalog import CatalogSnapshot, Fallback, Found, Lookup, NotConfigured
from .errors import InvalidQuantity, ServiceUnavailable

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RateResolution:
    rate: float
    tier_id: Optional[int]  # None when the base rate applied


class VolumeTierResolver:

    def __init__(self, catalog: CatalogSnapshot):
        self.catalog = catalog

    def lookup(self, service_id: int, quantity: float) -> Lookup:
        """Found(tier), Fallback(base_rate) or NotConfigured(reason)."""
        service = self.catalog.find_service(service_id)
        if isinstance(service, NotConfigured):
            return service

        qualifying = [
            t for t in self.catalog.list_active_volume_tiers(service_id)
            if t.min_quantity <= quantity
        ]
        if not qualifying:
            return Fallback(service.value.base_rate)
        # list is ordered by (min_quantity, created_at, id), last one wins
        return Found(qualifying[-1])

    def resolve_rate(self, service_id: int, quantity: float) -> RateResolution:
        if quantity is None or quantity <= 0:
            raise InvalidQuantity(quantity, f"tier lookup for service {service_id}")

        outcome = self.lookup(service_id, quantity)
        if isinstance(outcome, NotConfigured):
            raise ServiceUnavailable(service_id)
        if isinstance(outcome, Found):
            tier = outcome.value
            logger.debug("Service %s qty %s -> tier %s @ %s", service_id, quantity, tier.id, tier.rate)
            return RateResolution(rate=tier.rate, tier_id=tier.id)
        return RateResolution(rate=outcome.value, tier_id=None)
