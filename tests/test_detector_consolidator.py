"""
Work-type detection + multi-photo consolidation tests.

Tests:
1-5.   Keyword detector
6-10.  Consolidator (merge order, partial failure, totals)
11-13. Recommendation rules
14-16. Cost and time optimizations
"""

import pytest

from renoquote.consolidator import Consolidator, generate_recommendations, suggest_optimizations
from renoquote.detector import WorkTypeDetector
from renoquote.errors import ValidationError
from renoquote.estimator import Estimator


# ============================================================
# 1-5. Detector
# ============================================================

def test_detects_plumbing_from_description():
    detector = WorkTypeDetector()
    assert detector.detect("Replace the leaking shower faucet") == {"plumbing"}


def test_explicit_categories_override_keywords():
    """Explicit categories are returned unchanged, keywords ignored."""
    detector = WorkTypeDetector()
    assert detector.detect("paint the walls", ["roofing"]) == {"roofing"}
    assert detector.detect("paint the walls", ["not_a_category"]) == {"not_a_category"}


def test_empty_or_unmatched_description():
    """Never raises; nothing matched → empty set."""
    detector = WorkTypeDetector()
    assert detector.detect(None) == set()
    assert detector.detect("") == set()
    assert detector.detect("just looking around") == set()


def test_substring_and_negation_limitations():
    """Substring matching and no negation are known, stable behaviors."""
    detector = WorkTypeDetector()
    assert detector.detect("new wallpaper please") >= {"painting", "masonry"}
    assert "plumbing" in detector.detect("no plumbing needed")


def test_matched_keywords_and_custom_table():
    """Explains a detection; keyword table can be swapped."""
    detector = WorkTypeDetector({"pool": ["pool", "swim"]})
    assert detector.detect("fix the swimming pool") == {"pool"}
    assert detector.matched_keywords("fix the swimming pool") == {"pool": ["pool", "swim"]}


# ============================================================
# 6-10. Consolidator
# ============================================================

def test_merge_orders_by_catalog_then_alphabetical():
    """Union of all photos, catalog order first, unknown categories last."""
    consolidator = Consolidator()
    merged = consolidator.merge_categories([
        {"detected_categories": ["plumbing", "zen_garden"]},
        {"detected_categories": ["demolition", "plumbing", "aquarium"]},
    ])
    assert merged == ["demolition", "plumbing", "aquarium", "zen_garden"]


def test_merge_is_independent_of_photo_order():
    consolidator = Consolidator()
    analyses = [
        {"detected_categories": ["painting"]},
        {"detected_categories": ["electrical", "tiling"]},
        {"detected_categories": []},
    ]
    forward = consolidator.consolidate(analyses, room_type="bathroom")
    backward = consolidator.consolidate(list(reversed(analyses)), room_type="bathroom")
    assert forward.to_dict() == backward.to_dict()


def test_unknown_category_skipped_not_fatal():
    """One bad category doesn't take down the rest."""
    result = Consolidator().consolidate(
        [{"detected_categories": ["painting", "jacuzzi"]}],
        room_type="living_room",
        surface_area=25,
    )
    assert [e.work_category for e in result.estimates] == ["painting"]
    assert result.skipped == [{
        "work_category": "jacuzzi",
        "code": "UNKNOWN_WORK_CATEGORY",
        "reason": "Unknown work category 'jacuzzi'",
    }]
    assert result.total_estimate == 1069
    # Still listed as detected
    assert result.work_categories == ["painting", "jacuzzi"]


def test_consolidate_uses_room_defaults(small_catalog):
    """Missing surface → room average; unknown room → 'other'."""
    result = Consolidator(Estimator(small_catalog)).consolidate(
        [{"detected_categories": ["painting"]}],
        room_type="ballroom",
    )
    assert result.room_type == "other"
    assert result.room_name == "Other"
    assert result.surface_area == 20
    assert result.quality_tier == "standard"


def test_total_is_sum_of_estimates():
    result = Consolidator().consolidate(
        [{"detected_categories": ["demolition"]}, {"detected_categories": ["plumbing"]}],
        room_type="bathroom",
        surface_area=8,
        quality_tier="premium",
    )
    assert len(result.estimates) == 2
    assert result.total_estimate == pytest.approx(sum(e.total_cost for e in result.estimates))
    payload = result.to_dict()
    assert payload["estimates"][0]["material_lines"][0]["name"] == "Rubble bags"


# ============================================================
# 11-13. Recommendations
# ============================================================

def test_budget_rule_always_applies():
    recs = generate_recommendations([])
    assert [r["type"] for r in recs] == ["budget"]


def test_all_matching_rules_are_appended():
    """Union semantics: every rule that matches contributes."""
    recs = generate_recommendations(["demolition", "electrical", "plumbing", "painting"])
    titles = [r["title"] for r in recs]
    assert titles == ["Work sequencing", "Demolition safety", "Paint last", "Safety margin"]


def test_paint_last_needs_more_than_two_categories():
    titles = [r["title"] for r in generate_recommendations(["painting", "electrical"])]
    assert "Paint last" not in titles
    titles = [r["title"] for r in generate_recommendations(["painting", "electrical", "flooring"])]
    assert "Paint last" in titles


# ============================================================
# 14-16. Optimizations
# ============================================================

def test_cost_optimizations():
    ideas = suggest_optimizations("cost", ["plumbing", "tiling"], "standard")
    assert [i["type"] for i in ideas] == ["quality", "timing"]
    assert ideas[0]["estimated_savings"] == "20-30%"


def test_optimizations_follow_the_quote():
    """No tier downgrade for economy quotes, no grouping for a single trade."""
    assert suggest_optimizations("cost", ["painting"], "economy") == []
    assert [i["type"] for i in suggest_optimizations("time", ["painting", "flooring"])] == ["parallel"]
    assert suggest_optimizations("time", ["painting"]) == []


def test_unknown_optimization_goal():
    with pytest.raises(ValidationError) as exc:
        suggest_optimizations("quality")
    assert exc.value.details["goals"] == ["cost", "time"]
