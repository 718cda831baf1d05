"""
Work-type detector: classifies free text into renovation work categories.

Keyword matching only: a category is detected when any of its keywords
occurs as a substring of the lowercased description. Known limitations,
kept on purpose so results stay predictable:
- substring matches give false positives ("wall" also matches "wallpaper")
- no negation handling ("no plumbing needed" still detects plumbing)
- one keyword may feed several categories ("floor" → tiling and flooring)
"""

from typing import Iterable, Optional, Set

WORK_TYPE_KEYWORDS = {
    "demolition": ["demolish", "demolition", "tear out", "tear down", "remove", "rip out", "knock down", "strip out", "old "],
    "plumbing": ["plumbing", "pipe", "faucet", "tap", "shower", "bathtub", "toilet", "sink", "leak", "water", "drain"],
    "electrical": ["electric", "outlet", "socket", "switch", "light", "lighting", "wiring", "cable", "breaker", "spot"],
    "tiling": ["tile", "tiling", "floor", "slab", "ceramic", "mosaic", "backsplash"],
    "painting": ["paint", "wall", "ceiling", "colour", "color", "refresh", "plaster", "primer"],
    "carpentry": ["wood", "carpentry", "door", "window", "cupboard", "cabinet", "shelf", "shelves", "closet", "wardrobe"],
    "insulation": ["insulation", "insulate", "thermal", "draft", "draught", "cold", "soundproof", "acoustic", "wool"],
    "masonry": ["wall", "partition", "block", "brick", "concrete", "masonry", "mortar"],
    "roofing": ["roof", "shingle", "gutter", "rafter", "attic"],
    "flooring": ["parquet", "floor", "laminate", "vinyl", "hardwood", "carpet", "linoleum"],
}


class WorkTypeDetector:

    def __init__(self, keywords: dict = None):
        self.keywords = keywords or WORK_TYPE_KEYWORDS

    def detect(self, description: Optional[str], explicit_categories: Optional[Iterable[str]] = None) -> Set[str]:
        """
        Work categories for a description.

        Explicit categories always win and are returned unchanged.
        Never raises; returns an empty set when nothing matches.
        """
        explicit = set(explicit_categories or [])
        if explicit:
            return explicit

        text = (description or "").lower()
        return {
            category
            for category, words in self.keywords.items()
            if any(word in text for word in words)
        }

    def matched_keywords(self, description: Optional[str]) -> dict:
        """Category → keywords that matched. Handy for explaining a detection."""
        text = (description or "").lower()
        matches = {}
        for category, words in self.keywords.items():
            hits = [word.strip() for word in words if word in text]
            if hits:
                matches[category] = hits
        return matches
