"""
Markup / channel policy tests.

Tests:
1. Channel and customer factors compose by multiplication
2. Defaults and the signed amount (discounts are negative)
3. Aliases and case-insensitive tags
4. Unknown tags fall back to the default policy with a warning
5. Fixed channel surcharges
6. Policy built from settings
"""

import logging

import pytest

from printdesk.config import Settings
from printdesk.pricing.markup import MarkupPolicy


def _policy(**kwargs):
    return MarkupPolicy(
        channel_multipliers={"manager": 1.0, "online": 0.95, "rush": 1.5, "promo": 0.9},
        customer_multipliers={"regular": 1.0, "vip": 0.9, "wholesale": 0.95},
        **kwargs,
    )


# ============================================================
# Composition
# ============================================================

def test_promo_wholesale_composes_multiplicatively():
    amount = _policy().apply(1000, "promo", "wholesale")
    assert amount == pytest.approx(1000 * 0.9 * 0.95 - 1000)
    assert amount == pytest.approx(-145.0)


def test_defaults_give_zero_markup():
    result = _policy().evaluate(250.0)
    assert result.amount == 0
    assert result.channel == "manager"
    assert result.customer_type == "regular"
    assert result.factor == 1.0


def test_rush_is_positive():
    assert _policy().apply(100, "rush") == pytest.approx(50.0)


def test_vip_is_discount():
    assert _policy().apply(100, None, "vip") == pytest.approx(-10.0)


# ============================================================
# Tag normalisation
# ============================================================

def test_urgent_aliases_rush():
    result = _policy().evaluate(100, "urgent")
    assert result.channel == "rush"
    assert result.amount == pytest.approx(50.0)


def test_tags_are_case_insensitive():
    result = _policy().evaluate(100, " Online ", "VIP")
    assert result.channel == "online"
    assert result.customer_type == "vip"


# ============================================================
# Fail-open
# ============================================================

def test_unknown_channel_falls_back(caplog):
    with caplog.at_level(logging.WARNING, logger="printdesk.pricing.markup"):
        result = _policy().evaluate(100, "telepathy", "wholesale")
    assert result.channel == "manager"
    assert result.amount == pytest.approx(-5.0)
    assert "telepathy" in caplog.text


def test_unknown_customer_type_falls_back(caplog):
    with caplog.at_level(logging.WARNING, logger="printdesk.pricing.markup"):
        result = _policy().evaluate(100, "promo", "reseller")
    assert result.customer_type == "regular"
    assert result.amount == pytest.approx(-10.0)
    assert "reseller" in caplog.text


# ============================================================
# Surcharges and settings
# ============================================================

def test_channel_surcharge_is_added_after_factors():
    policy = _policy(channel_surcharges={"rush": 10.0})
    assert policy.apply(100, "rush", "vip") == pytest.approx(100 * 1.5 * 0.9 + 10 - 100)


def test_surcharge_only_for_its_channel():
    policy = _policy(channel_surcharges={"rush": 10.0})
    assert policy.apply(100, "online") == pytest.approx(-5.0)


def test_policy_from_settings():
    settings = Settings(CHANNEL_SURCHARGES={"rush": 5.0}, DEFAULT_CHANNEL="online")
    policy = MarkupPolicy.from_settings(settings)
    assert policy.evaluate(100).channel == "online"
    assert policy.apply(100, "rush") == pytest.approx(55.0)
