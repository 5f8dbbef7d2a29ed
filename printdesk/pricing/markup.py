"""
Markup / channel policy.

Channel and customer-type factors multiply (promo x0.9 and wholesale x0.95
give x0.855, not x0.85). A channel may also carry a fixed surcharge.
Unknown tags fall back to the defaults instead of failing, the one
fail-open decision in the engine.
"""

import logging
from dataclasses import dataclass
from typing import Mapping, Optional

logger = logging.getLogger(__name__)

CHANNEL_ALIASES = {
    "urgent": "rush",
    "default": "manager",
}


@dataclass(frozen=True)
class MarkupResult:
    amount: float
    channel: str
    customer_type: str
    factor: float


class MarkupPolicy:

    def __init__(self, channel_multipliers: Mapping[str, float],
                 customer_multipliers: Mapping[str, float],
                 channel_surcharges: Optional[Mapping[str, float]] = None,
                 default_channel: str = "manager",
                 default_customer_type: str = "regular"):
        self.channel_multipliers = dict(channel_multipliers)
        self.customer_multipliers = dict(customer_multipliers)
        self.channel_surcharges = dict(channel_surcharges or {})
        self.default_channel = default_channel
        self.default_customer_type = default_customer_type

    @classmethod
    def from_settings(cls, settings) -> "MarkupPolicy":
        return cls(
            channel_multipliers=settings.CHANNEL_MULTIPLIERS,
            customer_multipliers=settings.CUSTOMER_MULTIPLIERS,
            channel_surcharges=settings.CHANNEL_SURCHARGES,
            default_channel=settings.DEFAULT_CHANNEL,
            default_customer_type=settings.DEFAULT_CUSTOMER_TYPE,
        )

    def resolve_channel(self, channel: Optional[str]) -> str:
        if not channel:
            return self.default_channel
        key = str(channel).strip().lower()
        key = CHANNEL_ALIASES.get(key, key)
        if key not in self.channel_multipliers:
            logger.warning("Unknown channel %r; using %s policy", channel, self.default_channel)
            return self.default_channel
        return key

    def resolve_customer_type(self, customer_type: Optional[str]) -> str:
        if not customer_type:
            return self.default_customer_type
        key = str(customer_type).strip().lower()
        if key not in self.customer_multipliers:
            logger.warning("Unknown customer type %r; using %s policy",
                           customer_type, self.default_customer_type)
            return self.default_customer_type
        return key

    def evaluate(self, subtotal: float, channel: Optional[str] = None,
                 customer_type: Optional[str] = None) -> MarkupResult:
        channel_key = self.resolve_channel(channel)
        customer_key = self.resolve_customer_type(customer_type)
        factor = (self.channel_multipliers.get(channel_key, 1.0)
                  * self.customer_multipliers.get(customer_key, 1.0))
        surcharge = self.channel_surcharges.get(channel_key, 0.0)
        amount = subtotal * factor + surcharge - subtotal
        return MarkupResult(amount=amount, channel=channel_key,
                            customer_type=customer_key, factor=factor)

    def apply(self, subtotal: float, channel: Optional[str] = None,
              customer_type: Optional[str] = None) -> float:
        """Signed markup amount to add to the subtotal (negative = discount)."""
        return self.evaluate(subtotal, channel, customer_type).amount
