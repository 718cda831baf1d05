"""
Pricing catalog: static reference data for renovation estimates.

Three tables:
1. Pricing profiles per work category (labor rate, hours per m², material list)
2. Room templates (average surface, complexity factor, typical categories)
3. Quality tiers (materials / labor multipliers)

The catalog is an immutable object passed into the Estimator and
Consolidator. Tests build their own with ``PricingCatalog(...)``.
"""

from dataclasses import dataclass
from types import MappingProxyType
from typing import Dict, Iterable, List, Optional, Tuple

from .errors import UnknownWorkCategory

DEFAULT_ROOM_TYPE = "other"
DEFAULT_QUALITY_TIER = "standard"


@dataclass(frozen=True)
class MaterialSpec:
    name: str
    unit: str
    unit_price: float
    default_quantity: float


@dataclass(frozen=True)
class PricingProfile:
    id: str
    display_name: str
    labor_rate_per_hour: float
    hours_per_square_meter: float
    materials: Tuple[MaterialSpec, ...]
    description: str = ""


@dataclass(frozen=True)
class RoomTemplate:
    id: str
    display_name: str
    typical_categories: Tuple[str, ...]
    average_surface_area: float
    complexity_factor: float


@dataclass(frozen=True)
class QualityTier:
    id: str
    display_name: str
    materials_multiplier: float
    labor_multiplier: float


class PricingCatalog:
    """Read-only lookup over the three reference tables."""

    def __init__(
        self,
        work_categories: Iterable[PricingProfile],
        room_templates: Iterable[RoomTemplate],
        quality_tiers: Iterable[QualityTier],
    ):
        self._work_categories = MappingProxyType({p.id: p for p in work_categories})
        self._room_templates = MappingProxyType({r.id: r for r in room_templates})
        self._quality_tiers = MappingProxyType({q.id: q for q in quality_tiers})

        if DEFAULT_ROOM_TYPE not in self._room_templates:
            raise ValueError(f"Catalog must define a '{DEFAULT_ROOM_TYPE}' room template")
        if DEFAULT_QUALITY_TIER not in self._quality_tiers:
            raise ValueError(f"Catalog must define a '{DEFAULT_QUALITY_TIER}' quality tier")

    @property
    def work_categories(self) -> List[str]:
        return list(self._work_categories)

    @property
    def room_types(self) -> List[str]:
        return list(self._room_templates)

    @property
    def quality_tiers(self) -> List[str]:
        return list(self._quality_tiers)

    def lookup_work_category(self, work_category: str) -> PricingProfile:
        """Raises UnknownWorkCategory: callers must detect and skip."""
        profile = self._work_categories.get(work_category)
        if profile is None:
            raise UnknownWorkCategory(work_category)
        return profile

    def lookup_room_template(self, room_type: Optional[str]) -> RoomTemplate:
        """Total: unknown or missing room types fall back to 'other'."""
        return self._room_templates.get(room_type or DEFAULT_ROOM_TYPE, self._room_templates[DEFAULT_ROOM_TYPE])

    def lookup_quality_tier(self, quality_tier: Optional[str]) -> QualityTier:
        """Total: unknown or missing tiers fall back to 'standard'."""
        return self._quality_tiers.get(
            quality_tier or DEFAULT_QUALITY_TIER, self._quality_tiers[DEFAULT_QUALITY_TIER]
        )

    def pricing_reference(self, work_category: Optional[str] = None) -> Dict[str, dict]:
        """
        Labor rate and material list for one category, or a one-line
        summary of every category when none is given.
        """
        if work_category:
            profile = self.lookup_work_category(work_category)
            return {
                profile.id: {
                    "name": profile.display_name,
                    "labor_rate": profile.labor_rate_per_hour,
                    "hours_per_sqm": profile.hours_per_square_meter,
                    "materials": [
                        {
                            "name": m.name,
                            "unit": m.unit,
                            "unit_price": m.unit_price,
                            "default_quantity": m.default_quantity,
                        }
                        for m in profile.materials
                    ],
                }
            }
        return {
            p.id: {
                "name": p.display_name,
                "labor_rate": p.labor_rate_per_hour,
                "materials_count": len(p.materials),
            }
            for p in self._work_categories.values()
        }

    def materials_catalog(self, work_category: Optional[str] = None, search: Optional[str] = None) -> List[dict]:
        """Flat material list with the unit price in every quality tier."""
        needle = (search or "").lower()
        catalog = []
        for profile in self._work_categories.values():
            if work_category and profile.id != work_category:
                continue
            for mat in profile.materials:
                if needle and needle not in mat.name.lower():
                    continue
                entry = {
                    "work_category": profile.id,
                    "work_name": profile.display_name,
                    "name": mat.name,
                    "unit": mat.unit,
                }
                for tier in self._quality_tiers.values():
                    entry[f"price_{tier.id}"] = round(mat.unit_price * tier.materials_multiplier, 2)
                catalog.append(entry)
        return catalog


# --- Default reference data ---

WORK_CATEGORIES = [
    PricingProfile(
        id="demolition",
        display_name="Demolition",
        labor_rate_per_hour=45,
        hours_per_square_meter=0.5,
        description="Demolition and removal of existing fixtures and finishes",
        materials=(
            MaterialSpec("Rubble bags", "piece", 3, 20),
            MaterialSpec("Dumpster rental", "day", 150, 2),
            MaterialSpec("Protective tarps", "piece", 15, 5),
        ),
    ),
    PricingProfile(
        id="plumbing",
        display_name="Plumbing",
        labor_rate_per_hour=65,
        hours_per_square_meter=1.2,
        description="Supply and drain runs, fixture installation and connection",
        materials=(
            MaterialSpec("PEX pipe 16mm", "meter", 3.5, 15),
            MaterialSpec("PEX pipe 20mm", "meter", 4.5, 10),
            MaterialSpec("Fittings", "piece", 5, 20),
            MaterialSpec("Shut-off valves", "piece", 25, 4),
            MaterialSpec("Seals", "box", 12, 2),
        ),
    ),
    PricingProfile(
        id="electrical",
        display_name="Electrical",
        labor_rate_per_hour=70,
        hours_per_square_meter=0.8,
        description="Code upgrade, outlets, switches and light points",
        materials=(
            MaterialSpec("Cable 2.5mm²", "meter", 2.5, 50),
            MaterialSpec("Cable 1.5mm²", "meter", 1.8, 30),
            MaterialSpec("Outlets", "piece", 18, 8),
            MaterialSpec("Switches", "piece", 15, 4),
            MaterialSpec("LED spots", "piece", 25, 6),
            MaterialSpec("Breaker panel", "piece", 250, 1),
        ),
    ),
    PricingProfile(
        id="tiling",
        display_name="Tiling",
        labor_rate_per_hour=55,
        hours_per_square_meter=1.5,
        description="Surface preparation, floor and wall tiling with grout finish",
        materials=(
            MaterialSpec("Floor tiles", "sqm", 45, 1),
            MaterialSpec("Wall tiles", "sqm", 35, 1),
            MaterialSpec("Tile adhesive", "kg", 1.2, 5),
            MaterialSpec("Grout", "kg", 3, 2),
            MaterialSpec("Tile spacers", "box", 8, 2),
            MaterialSpec("Bonding primer", "liter", 15, 2),
        ),
    ),
    PricingProfile(
        id="painting",
        display_name="Painting",
        labor_rate_per_hour=50,
        hours_per_square_meter=0.4,
        description="Surface preparation, primer and finish coats",
        materials=(
            MaterialSpec("Acrylic paint", "liter", 35, 10),
            MaterialSpec("Primer", "liter", 25, 5),
            MaterialSpec("Filler", "kg", 8, 5),
            MaterialSpec("Joint tape", "roll", 12, 2),
            MaterialSpec("Sandpaper", "box", 15, 2),
        ),
    ),
    PricingProfile(
        id="carpentry",
        display_name="Carpentry",
        labor_rate_per_hour=60,
        hours_per_square_meter=0.8,
        description="Joinery work, fitting and installation of wooden elements",
        materials=(
            MaterialSpec("MDF panels", "sqm", 25, 5),
            MaterialSpec("Battens", "meter", 3, 20),
            MaterialSpec("Hardware kit", "box", 45, 1),
            MaterialSpec("Varnish / stain", "liter", 28, 2),
            MaterialSpec("Stainless screws", "box", 15, 2),
        ),
    ),
    PricingProfile(
        id="insulation",
        display_name="Insulation",
        labor_rate_per_hour=48,
        hours_per_square_meter=0.6,
        description="Thermal and acoustic insulation with finishing boards",
        materials=(
            MaterialSpec("Rock wool 100mm", "sqm", 18, 1),
            MaterialSpec("Vapor barrier", "sqm", 5, 1),
            MaterialSpec("Metal rails", "meter", 4, 10),
            MaterialSpec("Studs", "piece", 6, 15),
            MaterialSpec("Plasterboard", "sqm", 8, 1),
        ),
    ),
    PricingProfile(
        id="masonry",
        display_name="Masonry",
        labor_rate_per_hour=55,
        hours_per_square_meter=1.0,
        description="Building or altering partition and load walls",
        materials=(
            MaterialSpec("Concrete blocks", "piece", 2.5, 50),
            MaterialSpec("Mortar", "bag", 8, 10),
            MaterialSpec("Cement", "bag", 12, 5),
            MaterialSpec("Sand", "bag", 5, 10),
        ),
    ),
    PricingProfile(
        id="roofing",
        display_name="Roofing",
        labor_rate_per_hour=65,
        hours_per_square_meter=0.8,
        description="Roof covering and waterproofing",
        materials=(
            MaterialSpec("Roof tiles", "piece", 1.5, 15),
            MaterialSpec("Underlayment", "sqm", 8, 1),
            MaterialSpec("Roof battens", "meter", 2, 10),
            MaterialSpec("Ridge cap", "meter", 25, 1),
        ),
    ),
    PricingProfile(
        id="flooring",
        display_name="Flooring",
        labor_rate_per_hour=50,
        hours_per_square_meter=0.3,
        description="Floor covering installation and trim",
        materials=(
            MaterialSpec("Laminate flooring", "sqm", 25, 1),
            MaterialSpec("Underlay", "sqm", 3, 1),
            MaterialSpec("Baseboards", "meter", 8, 1),
            MaterialSpec("Threshold strips", "piece", 15, 2),
        ),
    ),
]

ROOM_TEMPLATES = [
    RoomTemplate("bathroom", "Bathroom", ("demolition", "plumbing", "electrical", "tiling", "painting"), 8, 1.3),
    RoomTemplate("kitchen", "Kitchen", ("demolition", "plumbing", "electrical", "tiling", "carpentry"), 12, 1.4),
    RoomTemplate("bedroom", "Bedroom", ("electrical", "painting", "flooring", "insulation"), 14, 0.9),
    RoomTemplate("living_room", "Living room", ("electrical", "painting", "flooring"), 25, 1.0),
    RoomTemplate("office", "Office", ("electrical", "painting", "flooring"), 12, 0.9),
    RoomTemplate("garage", "Garage", ("electrical", "painting", "insulation", "flooring"), 20, 0.8),
    RoomTemplate("exterior", "Exterior", ("masonry", "painting", "roofing"), 30, 1.2),
    RoomTemplate(
        "whole_house",
        "Whole house",
        ("demolition", "plumbing", "electrical", "tiling", "painting", "carpentry", "insulation", "flooring"),
        100,
        1.5,
    ),
    RoomTemplate("other", "Other", ("painting", "electrical"), 15, 1.0),
]

QUALITY_TIERS = [
    QualityTier("economy", "Economy", materials_multiplier=0.7, labor_multiplier=0.9),
    QualityTier("standard", "Standard", materials_multiplier=1.0, labor_multiplier=1.0),
    QualityTier("premium", "Premium", materials_multiplier=1.5, labor_multiplier=1.2),
    QualityTier("luxury", "Luxury", materials_multiplier=2.5, labor_multiplier=1.5),
]


def default_catalog() -> PricingCatalog:
    return PricingCatalog(WORK_CATEGORIES, ROOM_TEMPLATES, QUALITY_TIERS)
