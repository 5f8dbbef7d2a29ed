"""
Pricing Resolution Engine.

Pure Python math over an immutable catalog snapshot. No database, no HTTP.
Given a product type, quantity, specification and sales channel, produce an
itemized breakdown (materials + services), subtotal, markup and final price.
"""

from .catalog import CatalogSnapshot, MaterialRule, OperationNorm, PaperStock, Service, VolumeTier
from .engine import CalculateRequest, CalculateResponse, PricingEngine
from .formula import compile_formula, evaluate

__all__ = [
    "CalculateRequest",
    "CalculateResponse",
    "CatalogSnapshot",
    "MaterialRule",
    "OperationNorm",
    "PaperStock",
    "PricingEngine",
    "Service",
    "VolumeTier",
    "compile_formula",
    "evaluate",
]
