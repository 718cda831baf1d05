"""
Photo analysis orchestration: the only async layer around the engine.

"Analysis" is the keyword detector applied to each photo's description (or
its explicit categories), with a fixed simulated latency per photo. Photos
are processed one after another and a progress percentage is reported after
each. There is no mid-run cancellation: a run completes or fails as a whole,
and the quote always leaves 'analyzing' for 'pending'.
"""

import asyncio
import logging
from datetime import datetime
from typing import Awaitable, Callable, List, Optional, Union

from sqlalchemy.orm import Session

from .aggregator import QuoteAggregator, photo_to_dict
from .config import settings
from .consolidator import Consolidator
from .detector import WorkTypeDetector
from .errors import ValidationError

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[int], Union[None, Awaitable[None]]]


class PhotoAnalyzer:

    def __init__(self, detector: WorkTypeDetector = None, delay_seconds: Optional[float] = None):
        self.detector = detector or WorkTypeDetector()
        self.delay_seconds = settings.ANALYSIS_DELAY_SECONDS if delay_seconds is None else delay_seconds

    async def analyze_photo(self, photo: dict) -> dict:
        """photo: {"url", "description"?, "explicit_categories"?}"""
        if self.delay_seconds > 0:
            await asyncio.sleep(self.delay_seconds)

        explicit = list(photo.get("explicit_categories") or [])
        detected = self.detector.detect(photo.get("description"), explicit)
        return {
            "photo_url": photo.get("url"),
            "description": photo.get("description"),
            "detected_categories": sorted(detected),
            "confidence": self._confidence(len(detected), bool(explicit)),
            "analyzed_at": datetime.utcnow().isoformat(),
        }

    @staticmethod
    def _confidence(match_count: int, explicit: bool) -> float:
        if explicit:
            return 1.0
        if match_count == 0:
            return 0.0
        return round(min(0.6 + 0.1 * match_count, 0.95), 2)

    async def analyze_photos(self, photos: List[dict], on_progress: ProgressCallback = None) -> List[dict]:
        """Sequential; reports an integer percentage after every photo."""
        results = []
        total = len(photos)
        for index, photo in enumerate(photos, start=1):
            results.append(await self.analyze_photo(photo))
            if on_progress is not None:
                outcome = on_progress(int(index * 100 / total))
                if asyncio.iscoroutine(outcome):
                    await outcome
        return results


class AnalysisService:
    """
    Drives one analysis run for a quote:
    photos → detections → consolidation → stored on the quote
    (→ optionally bulk-generated sub-quotes).
    """

    def __init__(
        self,
        db: Session,
        aggregator: QuoteAggregator = None,
        analyzer: PhotoAnalyzer = None,
        consolidator: Consolidator = None,
    ):
        self.aggregator = aggregator or QuoteAggregator(db)
        self.analyzer = analyzer or PhotoAnalyzer()
        self.consolidator = consolidator or Consolidator()

    async def run(self, quote_id: str, generate: bool = False, on_progress: ProgressCallback = None) -> dict:
        photos = [photo_to_dict(p) for p in self.aggregator.list_photos(quote_id)]
        if not photos:
            raise ValidationError("No photos to analyze", {"quote_id": quote_id, "reason": "NO_PHOTOS"})

        quote = self.aggregator.begin_analysis(quote_id)
        logger.info(f"Analyzing {len(photos)} photo(s) for quote {quote_id}")
        try:
            analyses = await self.analyzer.analyze_photos(photos, on_progress)
            consolidated = self.consolidator.consolidate(
                analyses,
                room_type=quote.room_type,
                surface_area=quote.surface_area,
                quality_tier=quote.quality_tier,
            )
        except Exception:
            logger.exception(f"Analysis failed for quote {quote_id}")
            self.aggregator.finish_analysis(quote_id)
            raise

        result = {"photos": analyses, **consolidated.to_dict()}
        self.aggregator.finish_analysis(quote_id, result)
        logger.info(
            f"Analysis done for quote {quote_id}: {len(consolidated.estimates)} categories, "
            f"{len(consolidated.skipped)} skipped, total {consolidated.total_estimate:.2f}"
        )

        if generate:
            self.aggregator.generate_from_consolidated(quote_id, consolidated)
        return result
