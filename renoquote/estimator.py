"""
Estimator: turns (work category, room type, surface, quality tier) into an
itemized cost breakdown.

Pure math, no I/O. Rounding is deliberately asymmetric:
- quantities and labor hours always round UP (never under-provision)
- money rounds to 2 decimals
"""

import math
from dataclasses import asdict, dataclass, field
from typing import List, Optional

from .catalog import DEFAULT_QUALITY_TIER, PricingCatalog, default_catalog
from .errors import UnknownWorkCategory, ValidationError

# Units priced by covered area / length, scaled straight from the surface
SQM_COVERAGE = 1.1     # 10% waste margin
METER_COVERAGE = 0.5   # linear meters per m² of surface (heuristic)
HOURS_PER_DAY = 8


def round_money(amount: float) -> float:
    return round(amount, 2)


def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


@dataclass
class EstimateParams:
    """
    Inputs to ``Estimator.compute_estimate``.

    work_category is mandatory. room_type falls back to "other" when absent
    or unknown; surface_area falls back to the room template's average
    surface; quality_tier falls back to "standard".
    """
    work_category: str
    room_type: Optional[str] = None
    surface_area: Optional[float] = None
    quality_tier: str = DEFAULT_QUALITY_TIER

    def __post_init__(self):
        if not self.work_category:
            raise ValidationError("work_category is required")
        if self.surface_area is not None and self.surface_area <= 0:
            raise ValidationError(
                "surface_area must be positive",
                {"surface_area": self.surface_area},
            )


@dataclass
class MaterialLine:
    name: str
    unit: str
    quantity: int
    unit_price: float
    total_price: float


@dataclass
class Estimate:
    work_category: str
    work_name: str
    room_type: str
    surface_area: float
    quality_tier: str
    labor_hours: int
    labor_rate: int
    labor_cost: float
    materials_cost: float
    total_cost: float
    estimated_days: int
    description: str = ""
    material_lines: List[MaterialLine] = field(default_factory=list)

    def to_dict(self) -> dict:
        return asdict(self)


class Estimator:
    """Deterministic pricing rules over an injected catalog."""

    def __init__(self, catalog: PricingCatalog = None):
        self.catalog = catalog or default_catalog()

    def compute_estimate(self, params: EstimateParams) -> Estimate:
        """
        Itemized estimate for one work category.

        Raises UnknownWorkCategory if the category is not in the catalog.
        """
        profile = self.catalog.lookup_work_category(params.work_category)
        room = self.catalog.lookup_room_template(params.room_type)
        quality = self.catalog.lookup_quality_tier(params.quality_tier)
        surface = params.surface_area if params.surface_area is not None else room.average_surface_area

        lines = []
        for spec in profile.materials:
            if spec.unit in ("sqm", "meter"):
                coverage = SQM_COVERAGE if spec.unit == "sqm" else METER_COVERAGE
                quantity = math.ceil(surface * coverage)
            else:
                quantity = math.ceil(spec.default_quantity * surface / room.average_surface_area)

            unit_price = round_money(spec.unit_price * quality.materials_multiplier)
            lines.append(MaterialLine(
                name=spec.name,
                unit=spec.unit,
                quantity=quantity,
                unit_price=unit_price,
                total_price=round_money(quantity * unit_price),
            ))

        materials_cost = round_money(sum(line.total_price for line in lines))

        labor_hours = math.ceil(
            surface * profile.hours_per_square_meter * room.complexity_factor * quality.labor_multiplier
        )
        labor_rate = _round_half_up(profile.labor_rate_per_hour * quality.labor_multiplier)
        labor_cost = float(labor_hours * labor_rate)

        return Estimate(
            work_category=profile.id,
            work_name=profile.display_name,
            room_type=room.id,
            surface_area=surface,
            quality_tier=quality.id,
            labor_hours=labor_hours,
            labor_rate=labor_rate,
            labor_cost=labor_cost,
            materials_cost=materials_cost,
            total_cost=round_money(materials_cost + labor_cost),
            estimated_days=math.ceil(labor_hours / HOURS_PER_DAY),
            description=profile.description or f"{profile.display_name} work",
            material_lines=lines,
        )

    def estimate_room(
        self,
        room_type: Optional[str],
        surface_area: Optional[float] = None,
        quality_tier: str = DEFAULT_QUALITY_TIER,
    ) -> List[Estimate]:
        """Estimate every typical category of a room template, skipping unknown ones."""
        room = self.catalog.lookup_room_template(room_type)
        estimates = []
        for work_category in room.typical_categories:
            try:
                estimates.append(self.compute_estimate(EstimateParams(
                    work_category=work_category,
                    room_type=room.id,
                    surface_area=surface_area,
                    quality_tier=quality_tier,
                )))
            except UnknownWorkCategory:
                continue
        return estimates

    def suggest_materials(self, params: EstimateParams) -> List[dict]:
        """
        Material lines for a category with the same material priced in the
        other quality tiers, so a homeowner can trade up or down.
        """
        estimate = self.compute_estimate(params)
        profile = self.catalog.lookup_work_category(params.work_category)
        base_prices = {spec.name: spec.unit_price for spec in profile.materials}

        suggestions = []
        for line in estimate.material_lines:
            alternatives = []
            for tier_id in self.catalog.quality_tiers:
                if tier_id == estimate.quality_tier:
                    continue
                tier = self.catalog.lookup_quality_tier(tier_id)
                alternatives.append({
                    "quality_tier": tier.id,
                    "quality_name": tier.display_name,
                    "unit_price": round_money(base_prices[line.name] * tier.materials_multiplier),
                })
            suggestion = asdict(line)
            suggestion["alternatives"] = alternatives
            suggestions.append(suggestion)
        return suggestions
