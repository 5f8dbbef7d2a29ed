"""
Material resolver: paper consumption from the product specification.

Pieces-per-sheet ("up") is the better of the two orientations of the trim
size (plus bleed on every edge) on the press sheet, unless the product's
material rule pins it per format. Sheets = ceil(quantity / up * (1 + waste)).

Trim sizes are in millimetres.
"""

import logging
import math
from dataclasses import dataclass
from typing import Mapping, Optional

from .base import MATERIAL, BreakdownLine, apply_waste, make_line, parse_int, parse_number
from .catalog import CatalogSnapshot, NotConfigured
from .errors import CurrencyMismatch, InvalidRequest, MaterialUnavailable, MissingSpecification

logger = logging.getLogger(__name__)

# ISO 216 and common shop formats, portrait (width, height)
FORMATS_MM = {
    "A3": (297.0, 420.0),
    "A4": (210.0, 297.0),
    "A5": (148.0, 210.0),
    "A6": (105.0, 148.0),
    "A7": (74.0, 105.0),
    "DL": (99.0, 210.0),
    "EURO": (85.0, 55.0),
    "BUSINESS_CARD": (90.0, 50.0),
}


@dataclass(frozen=True)
class Layout:
    up: int
    sheets: int
    waste_sheets: int
    press_sheet: Optional[str] = None

    def to_dict(self) -> dict:
        return {
            "up": self.up,
            "sheets": self.sheets,
            "wasteSheets": self.waste_sheets,
            "pressSheet": self.press_sheet,
        }


def spec_value(specifications: Mapping, *keys):
    """First non-empty value among alternative spellings (camelCase / snake_case)."""
    for key in keys:
        value = specifications.get(key)
        if value is not None and value != "":
            return value
    return None


def pieces_per_sheet(trim_w: float, trim_h: float, sheet_w: float, sheet_h: float,
                     bleed: float = 0.0) -> int:
    """Best straight-grid imposition of one trim size on one sheet."""
    w = trim_w + 2 * bleed
    h = trim_h + 2 * bleed
    if w <= 0 or h <= 0:
        return 0
    upright = math.floor(sheet_w / w) * math.floor(sheet_h / h)
    rotated = math.floor(sheet_w / h) * math.floor(sheet_h / w)
    return max(upright, rotated)


class MaterialResolver:

    def __init__(self, catalog: CatalogSnapshot, currency: Optional[str] = None):
        self.catalog = catalog
        self.currency = currency

    def layout(self, product_type: str, specifications: Mapping, quantity: float) -> Layout:
        rule = self.catalog.resolve_material_rules(product_type)
        if rule is None:
            # No sheet-fed layout for this product, one unit per item
            sheets = math.ceil(quantity)
            return Layout(up=1, sheets=sheets, waste_sheets=0)

        up = None
        if not self._has_custom_size(specifications):
            format_value = spec_value(specifications, "format")
            if format_value is not None:
                up = rule.up_for(str(format_value).strip().upper())
        if up is None:
            trim = self._trim_size(specifications)
            up = pieces_per_sheet(trim[0], trim[1], rule.sheet_width_mm,
                                  rule.sheet_height_mm, rule.bleed_mm)
            if up <= 0:
                raise InvalidRequest(
                    f"Trim size {trim[0]:g}x{trim[1]:g}mm does not fit on {rule.press_sheet}"
                )

        net_sheets = math.ceil(quantity / up)
        sheets = apply_waste(quantity / up, rule.waste_ratio)
        return Layout(up=up, sheets=sheets, waste_sheets=sheets - net_sheets,
                      press_sheet=rule.press_sheet)

    def resolve(self, product_type: str, specifications: Mapping, quantity: float,
                layout: Optional[Layout] = None) -> list[BreakdownLine]:
        rule = self.catalog.resolve_material_rules(product_type)
        if rule is None or not rule.requires_paper:
            return []

        paper_type = spec_value(specifications, "paperType", "paper_type")
        if paper_type is None:
            raise MissingSpecification("paperType")
        density = parse_int(spec_value(specifications, "paperDensity", "paper_density"))
        if density is None:
            raise MissingSpecification("paperDensity")

        paper = self.catalog.find_paper(str(paper_type), density)
        if isinstance(paper, NotConfigured):
            raise MaterialUnavailable(str(paper_type), density)
        paper = paper.value
        if self.currency and paper.currency != self.currency:
            raise CurrencyMismatch(paper.name, paper.currency, self.currency)

        if layout is None:
            layout = self.layout(product_type, specifications, quantity)

        logger.debug("%s: %s x %s up on %s -> %s sheets of %s",
                     product_type, quantity, layout.up, layout.press_sheet,
                     layout.sheets, paper.name)
        return [make_line(MATERIAL, paper.name, paper.unit, layout.sheets, paper.price_per_sheet)]

    def _custom_size(self, specifications: Mapping):
        width = parse_number(spec_value(specifications, "width", "widthMm", "width_mm"))
        height = parse_number(spec_value(specifications, "height", "heightMm", "height_mm"))
        return width, height

    def _has_custom_size(self, specifications: Mapping) -> bool:
        width, height = self._custom_size(specifications)
        return bool(width and height and width > 0 and height > 0)

    def _trim_size(self, specifications: Mapping) -> tuple:
        """(width_mm, height_mm) from explicit size or a known format name."""
        if self._has_custom_size(specifications):
            return self._custom_size(specifications)
        format_value = spec_value(specifications, "format")
        if format_value is None:
            raise MissingSpecification("format")
        format_name = str(format_value).strip().upper()
        if format_name not in FORMATS_MM:
            # Unrecognised name with no explicit size, can't lay it out
            raise MissingSpecification("format")
        return FORMATS_MM[format_name]
