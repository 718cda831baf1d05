"""
Pricing catalog + estimator tests.

Tests:
1-4.   Catalog lookups and defaults
5-11.  Estimate math (labor, materials, rounding)
12-14. Tier multipliers
15-17. Room estimates, suggestions, reference data

No database: the estimator is pure math over an injected catalog.
"""

import math

import pytest

from renoquote.catalog import (
    MaterialSpec,
    PricingCatalog,
    PricingProfile,
    QualityTier,
    RoomTemplate,
    default_catalog,
)
from renoquote.errors import UnknownWorkCategory, ValidationError
from renoquote.estimator import EstimateParams, Estimator, SQM_COVERAGE, METER_COVERAGE


# ============================================================
# 1-4. Catalog
# ============================================================

def test_default_catalog_has_all_tables():
    """Ten work categories, nine room templates, four quality tiers."""
    catalog = default_catalog()
    assert len(catalog.work_categories) == 10
    assert "other" in catalog.room_types
    assert catalog.quality_tiers == ["economy", "standard", "premium", "luxury"]


def test_unknown_work_category_raises():
    """Work category lookups never default silently."""
    catalog = default_catalog()
    with pytest.raises(UnknownWorkCategory) as exc:
        catalog.lookup_work_category("jacuzzi")
    assert exc.value.code == "UNKNOWN_WORK_CATEGORY"
    assert exc.value.details == {"work_category": "jacuzzi"}


def test_room_and_tier_lookups_fall_back():
    """Unknown room → 'other', unknown tier → 'standard'."""
    catalog = default_catalog()
    assert catalog.lookup_room_template("spaceship").id == "other"
    assert catalog.lookup_room_template(None).id == "other"
    assert catalog.lookup_quality_tier("gold-plated").id == "standard"
    assert catalog.lookup_quality_tier(None).id == "standard"


def test_catalog_requires_defaults():
    """A catalog without the fallback room or tier is rejected at construction."""
    profile = PricingProfile("painting", "Painting", 50, 0.4, ())
    tier = QualityTier("standard", "Standard", 1.0, 1.0)
    with pytest.raises(ValueError):
        PricingCatalog([profile], [RoomTemplate("kitchen", "Kitchen", (), 12, 1.4)], [tier])
    with pytest.raises(ValueError):
        PricingCatalog([profile], [RoomTemplate("other", "Other", (), 15, 1.0)], [])


# ============================================================
# 5-11. Estimate math
# ============================================================

def test_painting_living_room_standard():
    """25 m² living room, standard: 10 h at 50/h = 500 labor."""
    estimate = Estimator().compute_estimate(EstimateParams(
        work_category="painting",
        room_type="living_room",
        surface_area=25,
        quality_tier="standard",
    ))
    assert estimate.labor_hours == 10
    assert estimate.labor_rate == 50
    assert estimate.labor_cost == 500
    # 10 L paint, 5 L primer, 5 kg filler, 2 rolls tape, 2 boxes sandpaper
    assert estimate.materials_cost == 350 + 125 + 40 + 24 + 30
    assert estimate.total_cost == 1069
    assert estimate.estimated_days == 2


def test_estimate_defaults_surface_from_room(small_catalog):
    """No surface → the room template's average surface."""
    estimate = Estimator(small_catalog).compute_estimate(EstimateParams(work_category="painting"))
    assert estimate.room_type == "other"
    assert estimate.surface_area == 20
    assert estimate.quality_tier == "standard"
    assert estimate.labor_hours == 8
    assert estimate.labor_cost == 400


def test_count_materials_scale_with_surface(small_catalog):
    """Count-based quantities scale with surface / average surface."""
    estimate = Estimator(small_catalog).compute_estimate(
        EstimateParams(work_category="painting", room_type="other", surface_area=30)
    )
    paint = next(line for line in estimate.material_lines if line.name == "Paint")
    assert paint.quantity == 6  # ceil(4 * 30 / 20)
    assert paint.total_price == 60


def test_meter_materials_use_linear_coverage(small_catalog):
    """Linear units are priced at half a meter per m² of surface."""
    estimate = Estimator(small_catalog).compute_estimate(
        EstimateParams(work_category="plumbing", room_type="bathroom", surface_area=10)
    )
    pipe = estimate.material_lines[0]
    assert pipe.unit == "meter"
    assert pipe.quantity == 5
    assert estimate.materials_cost == 20
    assert estimate.labor_hours == 15  # ceil(10 * 1.0 * 1.5 * 1.0)


def test_quantities_and_hours_never_under_provision():
    """Every rounded quantity and hour count covers the unrounded demand."""
    catalog = default_catalog()
    estimator = Estimator(catalog)
    for work_category in catalog.work_categories:
        profile = catalog.lookup_work_category(work_category)
        for surface in (3.3, 7, 12.75, 41):
            room = catalog.lookup_room_template("kitchen")
            estimate = estimator.compute_estimate(
                EstimateParams(work_category=work_category, room_type="kitchen", surface_area=surface)
            )
            assert estimate.labor_hours >= surface * profile.hours_per_square_meter * room.complexity_factor
            for spec, line in zip(profile.materials, estimate.material_lines):
                if spec.unit == "sqm":
                    demand = surface * SQM_COVERAGE
                elif spec.unit == "meter":
                    demand = surface * METER_COVERAGE
                else:
                    demand = spec.default_quantity * surface / room.average_surface_area
                assert line.quantity >= demand
                assert line.quantity == math.ceil(line.quantity)


def test_invalid_params_rejected():
    """Missing work category or non-positive surface fails fast."""
    with pytest.raises(ValidationError):
        EstimateParams(work_category="")
    with pytest.raises(ValidationError):
        EstimateParams(work_category="painting", surface_area=0)
    with pytest.raises(ValidationError):
        EstimateParams(work_category="painting", surface_area=-4)


def test_compute_estimate_unknown_category():
    """The estimator propagates catalog misses."""
    with pytest.raises(UnknownWorkCategory):
        Estimator().compute_estimate(EstimateParams(work_category="jacuzzi"))


# ============================================================
# 12-14. Quality tiers
# ============================================================

def test_luxury_tier_multiplies_prices_and_labor():
    """Luxury: materials x2.5, labor hours and rate x1.5."""
    estimate = Estimator().compute_estimate(EstimateParams(
        work_category="painting", room_type="living_room", surface_area=25, quality_tier="luxury",
    ))
    assert estimate.labor_hours == 15
    assert estimate.labor_rate == 75
    paint = estimate.material_lines[0]
    assert paint.unit_price == 87.5


def test_labor_rate_rounds_half_up(small_catalog):
    """50 x 1.25 = 62.5 → 63, not banker's 62."""
    estimate = Estimator(small_catalog).compute_estimate(
        EstimateParams(work_category="painting", quality_tier="premium")
    )
    assert estimate.labor_rate == 63


def test_economy_plumbing_rate():
    """65 x 0.9 = 58.5 → 59."""
    estimate = Estimator().compute_estimate(
        EstimateParams(work_category="plumbing", room_type="bathroom", quality_tier="economy")
    )
    assert estimate.labor_rate == 59
    assert estimate.labor_cost == estimate.labor_hours * 59


# ============================================================
# 15-17. Room estimates, suggestions, reference data
# ============================================================

def test_estimate_room_skips_unknown_categories(small_catalog):
    """A room listing a category the catalog lacks still estimates the rest."""
    estimates = Estimator(small_catalog).estimate_room("bathroom")
    assert [e.work_category for e in estimates] == ["plumbing", "painting"]
    assert all(e.surface_area == 10 for e in estimates)


def test_suggest_materials_lists_other_tiers(small_catalog):
    """Each material line carries its price in every other tier."""
    suggestions = Estimator(small_catalog).suggest_materials(EstimateParams(work_category="painting"))
    paint = suggestions[0]
    assert paint["name"] == "Paint"
    assert paint["unit_price"] == 10
    assert paint["alternatives"] == [
        {"quality_tier": "premium", "quality_name": "Premium", "unit_price": 15.0},
    ]


def test_reference_data(small_catalog):
    """Pricing summary and flat materials list with per-tier prices."""
    summary = small_catalog.pricing_reference()
    assert summary["plumbing"] == {"name": "Plumbing", "labor_rate": 65, "materials_count": 1}

    detail = small_catalog.pricing_reference("painting")
    assert [m["name"] for m in detail["painting"]["materials"]] == ["Paint", "Drop cloth"]

    materials = small_catalog.materials_catalog()
    assert len(materials) == 3
    pipe = small_catalog.materials_catalog(search="PIPE")
    assert pipe == [{
        "work_category": "plumbing",
        "work_name": "Plumbing",
        "name": "Pipe",
        "unit": "meter",
        "price_standard": 4.0,
        "price_premium": 6.0,
    }]
    assert small_catalog.materials_catalog(work_category="painting")[1]["name"] == "Drop cloth"

    with pytest.raises(UnknownWorkCategory):
        small_catalog.pricing_reference("roofing")
