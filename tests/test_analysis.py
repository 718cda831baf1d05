"""
Photo analysis tests: per-photo detection, progress, and the analysis run.

Tests:
1-3.  PhotoAnalyzer (detection, confidence, progress)
4-8.  AnalysisService (status flow, generation, failures)

Delay is 0 (ANALYSIS_DELAY_SECONDS set in conftest), runs via asyncio.run.
"""

import asyncio

import pytest

from renoquote.analysis import AnalysisService, PhotoAnalyzer
from renoquote.errors import ValidationError
from renoquote.models import QuoteStatus


class ExplodingAnalyzer(PhotoAnalyzer):
    async def analyze_photos(self, photos, on_progress=None):
        raise RuntimeError("vision backend unavailable")


# ============================================================
# 1-3. PhotoAnalyzer
# ============================================================

def test_analyze_photo_detects_and_scores():
    analyzer = PhotoAnalyzer(delay_seconds=0)
    result = asyncio.run(analyzer.analyze_photo({
        "url": "https://img.example/1.jpg",
        "description": "Leaking shower",
    }))
    assert result["photo_url"] == "https://img.example/1.jpg"
    assert result["detected_categories"] == ["plumbing"]
    assert result["confidence"] == 0.7
    assert result["analyzed_at"]


def test_confidence_rules():
    """Explicit → 1.0, nothing → 0.0, keyword matches capped at 0.95."""
    analyzer = PhotoAnalyzer(delay_seconds=0)
    explicit = asyncio.run(analyzer.analyze_photo({"url": "a", "explicit_categories": ["roofing"]}))
    assert explicit["detected_categories"] == ["roofing"]
    assert explicit["confidence"] == 1.0

    nothing = asyncio.run(analyzer.analyze_photo({"url": "b", "description": "a nice view"}))
    assert nothing["detected_categories"] == []
    assert nothing["confidence"] == 0.0

    busy = asyncio.run(analyzer.analyze_photo({
        "url": "c",
        "description": "old tiles, leaking pipe, broken light switch, peeling paint, rotten wood door",
    }))
    assert len(busy["detected_categories"]) >= 4
    assert busy["confidence"] == 0.95


def test_progress_reported_after_each_photo():
    """Sync and async callbacks both work."""
    analyzer = PhotoAnalyzer(delay_seconds=0)
    photos = [{"url": f"https://img.example/{i}.jpg", "description": "paint"} for i in range(3)]

    seen = []
    results = asyncio.run(analyzer.analyze_photos(photos, seen.append))
    assert len(results) == 3
    assert seen == [33, 66, 100]

    seen_async = []

    async def report(percent):
        seen_async.append(percent)

    asyncio.run(analyzer.analyze_photos(photos[:2], report))
    assert seen_async == [50, 100]


# ============================================================
# 4-8. AnalysisService
# ============================================================

def test_run_stores_analysis_and_moves_to_pending(agg, db):
    quote = agg.create_quote("Bathroom", room_type="bathroom", surface_area=8)
    agg.add_photos(quote.id, [
        {"url": "https://img.example/1.jpg", "description": "Leaking shower"},
        {"url": "https://img.example/2.jpg", "description": "cracked tile floor"},
    ])
    progress = []

    service = AnalysisService(db, aggregator=agg)
    result = asyncio.run(service.run(quote.id, on_progress=progress.append))

    assert progress == [50, 100]
    assert len(result["photos"]) == 2
    assert result["work_categories"][:2] == ["plumbing", "tiling"]
    assert result["room_type"] == "bathroom"
    assert result["surface_area"] == 8

    quote = agg.get_quote(quote.id)
    assert quote.status == QuoteStatus.PENDING
    assert quote.analysis_json["total_estimate"] == result["total_estimate"]
    assert agg.list_sub_quotes(quote.id) == []


def test_run_with_generate_creates_sub_quotes(agg, db):
    quote = agg.create_quote("Living room", room_type="living_room", surface_area=25)
    agg.add_photos(quote.id, [{"url": "https://img.example/1.jpg", "explicit_categories": ["painting"]}])

    result = asyncio.run(AnalysisService(db, aggregator=agg).run(quote.id, generate=True))

    subs = agg.list_sub_quotes(quote.id)
    assert [s.work_category for s in subs] == ["painting"]
    assert agg.get_quote(quote.id).total_amount == result["total_estimate"] == 1069


def test_run_without_photos_fails_fast(agg, db):
    quote = agg.create_quote("Garage")
    with pytest.raises(ValidationError) as exc:
        asyncio.run(AnalysisService(db, aggregator=agg).run(quote.id))
    assert exc.value.details["reason"] == "NO_PHOTOS"
    assert agg.get_quote(quote.id).status == QuoteStatus.DRAFT


def test_failed_run_still_leaves_analyzing(agg, db):
    """The quote never stays stuck in 'analyzing'."""
    quote = agg.create_quote("Kitchen")
    agg.add_photos(quote.id, [{"url": "https://img.example/1.jpg"}])

    service = AnalysisService(db, aggregator=agg, analyzer=ExplodingAnalyzer(delay_seconds=0))
    with pytest.raises(RuntimeError):
        asyncio.run(service.run(quote.id))

    quote = agg.get_quote(quote.id)
    assert quote.status == QuoteStatus.PENDING
    assert quote.analysis_json is None


def test_unknown_explicit_category_is_skipped(agg, db):
    quote = agg.create_quote("Exterior", room_type="exterior")
    agg.add_photos(quote.id, [
        {"url": "https://img.example/1.jpg", "explicit_categories": ["roofing", "pool_house"]},
    ])
    result = asyncio.run(AnalysisService(db, aggregator=agg).run(quote.id, generate=True))
    assert [s["work_category"] for s in result["skipped"]] == ["pool_house"]
    assert [s.work_category for s in agg.list_sub_quotes(quote.id)] == ["roofing"]
