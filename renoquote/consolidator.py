"""
Multi-source consolidator: merges several detections (one per photo) into
one category set, one estimate per category, and advisory recommendations.
Also suggests cost or time optimizations for a set of work categories.

A category the catalog doesn't know is skipped and reported, never fatal:
the remaining categories are still estimated.
"""

import logging
from dataclasses import dataclass, field
from typing import Iterable, List, Optional

from .catalog import DEFAULT_QUALITY_TIER
from .errors import UnknownWorkCategory, ValidationError
from .estimator import Estimate, EstimateParams, Estimator, round_money

logger = logging.getLogger(__name__)


# Each rule: (type, title, description, predicate over the category set).
# Every matching rule is appended; there is no priority between rules.
RECOMMENDATION_RULES = [
    (
        "order",
        "Work sequencing",
        "Run the electrical work before the plumbing so conduits can be routed freely.",
        lambda cats: "electrical" in cats and "plumbing" in cats,
    ),
    (
        "safety",
        "Demolition safety",
        "Plan protective equipment and check for asbestos before demolition starts.",
        lambda cats: "demolition" in cats,
    ),
    (
        "order",
        "Paint last",
        "Painting should happen after every other structural and finishing trade is done.",
        lambda cats: "painting" in cats and len(cats) > 2,
    ),
    (
        "budget",
        "Safety margin",
        "Keep a 10-15% budget margin for unforeseen work.",
        lambda cats: True,
    ),
]


def generate_recommendations(work_categories: Iterable[str]) -> List[dict]:
    categories = set(work_categories)
    return [
        {"type": rule_type, "title": title, "description": description}
        for rule_type, title, description, applies in RECOMMENDATION_RULES
        if applies(categories)
    ]


# Goal -> rules of (type, title, description, expected gain, predicate over
# the category set and the quality tier).
OPTIMIZATION_RULES = {
    "cost": [
        (
            "quality",
            "Economy finishes",
            "Use economy-tier materials where the finish is hidden or easily replaced.",
            {"estimated_savings": "20-30%"},
            lambda cats, tier: tier != "economy",
        ),
        (
            "timing",
            "Group the work",
            "Book related trades in a single visit to share call-out and setup costs.",
            {"estimated_savings": "5-10%"},
            lambda cats, tier: len(cats) != 1,
        ),
    ],
    "time": [
        (
            "parallel",
            "Parallel trades",
            "Run trades that do not depend on each other at the same time.",
            {"estimated_time_saved": "20-30%"},
            lambda cats, tier: len(cats) != 1,
        ),
    ],
}


def suggest_optimizations(
    goal: str = "cost",
    work_categories: Iterable[str] = (),
    quality_tier: Optional[str] = None,
) -> List[dict]:
    """Ways to bring a quote's cost or duration down. An empty category set means unknown."""
    rules = OPTIMIZATION_RULES.get(goal)
    if rules is None:
        raise ValidationError(
            f"Unknown optimization goal '{goal}'",
            {"goal": goal, "goals": sorted(OPTIMIZATION_RULES)},
        )
    categories = set(work_categories)
    return [
        {"type": rule_type, "title": title, "description": description, **gain}
        for rule_type, title, description, gain, applies in rules
        if applies(categories, quality_tier)
    ]


@dataclass
class ConsolidatedEstimate:
    work_categories: List[str]
    room_type: str
    room_name: str
    surface_area: float
    quality_tier: str
    estimates: List[Estimate] = field(default_factory=list)
    total_estimate: float = 0.0
    skipped: List[dict] = field(default_factory=list)
    recommendations: List[dict] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "work_categories": list(self.work_categories),
            "room_type": self.room_type,
            "room_name": self.room_name,
            "surface_area": self.surface_area,
            "quality_tier": self.quality_tier,
            "estimates": [e.to_dict() for e in self.estimates],
            "total_estimate": self.total_estimate,
            "skipped": list(self.skipped),
            "recommendations": list(self.recommendations),
        }


class Consolidator:

    def __init__(self, estimator: Estimator = None):
        self.estimator = estimator or Estimator()
        self.catalog = self.estimator.catalog

    def merge_categories(self, analyses: Iterable[dict]) -> List[str]:
        """
        Union of every analysis' detected categories.

        Order depends only on the set, not on which photo saw what: known
        categories in catalog order, then unknown ones alphabetically.
        """
        merged = set()
        for analysis in analyses:
            merged.update(analysis.get("detected_categories") or [])

        known = [c for c in self.catalog.work_categories if c in merged]
        unknown = sorted(merged.difference(known))
        return known + unknown

    def consolidate(
        self,
        analyses: Iterable[dict],
        room_type: Optional[str] = None,
        surface_area: Optional[float] = None,
        quality_tier: str = DEFAULT_QUALITY_TIER,
    ) -> ConsolidatedEstimate:
        work_categories = self.merge_categories(analyses)
        room = self.catalog.lookup_room_template(room_type)
        quality = self.catalog.lookup_quality_tier(quality_tier)
        surface = surface_area if surface_area is not None else room.average_surface_area

        estimates = []
        skipped = []
        for work_category in work_categories:
            try:
                estimates.append(self.estimator.compute_estimate(EstimateParams(
                    work_category=work_category,
                    room_type=room.id,
                    surface_area=surface,
                    quality_tier=quality.id,
                )))
            except UnknownWorkCategory as e:
                logger.warning(f"Skipping work category '{work_category}': {e.message}")
                skipped.append({
                    "work_category": work_category,
                    "code": e.code,
                    "reason": e.message,
                })

        return ConsolidatedEstimate(
            work_categories=work_categories,
            room_type=room.id,
            room_name=room.display_name,
            surface_area=surface,
            quality_tier=quality.id,
            estimates=estimates,
            total_estimate=round_money(sum(e.total_cost for e in estimates)),
            skipped=skipped,
            recommendations=generate_recommendations(work_categories),
        )
