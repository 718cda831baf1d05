from typing import Optional

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from .. import models, schemas
from ..aggregator import (
    QuoteAggregator,
    material_to_dict,
    photo_to_dict,
    quote_to_dict,
    sub_quote_to_dict,
)
from ..analysis import AnalysisService
from ..auth import get_current_user, require_quote_access
from ..consolidator import suggest_optimizations
from ..database import get_db
from ..errors import NotFound, ValidationError
from ..notifications import notifier

router = APIRouter(prefix="/quotes", tags=["quotes"])


def get_aggregator(db: Session = Depends(get_db)) -> QuoteAggregator:
    return QuoteAggregator(db, listeners=[notifier])


def _owned_quote(agg: QuoteAggregator, quote_id: str, user: models.User) -> models.Quote:
    return require_quote_access(user, agg.get_quote(quote_id))


def _sub_quote_of(agg: QuoteAggregator, quote_id: str, sub_quote_id: str) -> models.SubQuote:
    sub = agg.get_sub_quote(sub_quote_id)
    if sub.quote_id != quote_id:
        raise NotFound("SubQuote", sub_quote_id)
    return sub


# --- Quotes ---

@router.post("/")
def create_quote(
    request: schemas.QuoteCreate,
    agg: QuoteAggregator = Depends(get_aggregator),
    current_user: models.User = Depends(get_current_user),
):
    quote = agg.create_quote(
        title=request.title,
        owner_id=current_user.id,
        room_type=request.room_type,
        surface_area=request.surface_area,
        description=request.description,
        quality_tier=request.quality_tier,
    )
    return quote_to_dict(quote)


@router.get("/")
def list_quotes(
    status: Optional[str] = None,
    agg: QuoteAggregator = Depends(get_aggregator),
    current_user: models.User = Depends(get_current_user),
):
    return [quote_to_dict(q) for q in agg.list_quotes(owner_id=current_user.id, status=status)]


@router.post("/compare")
def compare_quotes(
    request: schemas.CompareRequest,
    agg: QuoteAggregator = Depends(get_aggregator),
    current_user: models.User = Depends(get_current_user),
):
    for quote_id in request.quote_ids:
        _owned_quote(agg, quote_id, current_user)
    return agg.compare_quotes(request.quote_ids)


@router.get("/{quote_id}")
def get_quote(
    quote_id: str,
    agg: QuoteAggregator = Depends(get_aggregator),
    current_user: models.User = Depends(get_current_user),
):
    _owned_quote(agg, quote_id, current_user)
    return agg.quote_summary(quote_id)


@router.patch("/{quote_id}")
def update_quote(
    quote_id: str,
    update: schemas.QuoteUpdate,
    agg: QuoteAggregator = Depends(get_aggregator),
    current_user: models.User = Depends(get_current_user),
):
    _owned_quote(agg, quote_id, current_user)
    quote = agg.update_quote(quote_id, update.model_dump(exclude_unset=True))
    return quote_to_dict(quote)


@router.delete("/{quote_id}")
def delete_quote(
    quote_id: str,
    agg: QuoteAggregator = Depends(get_aggregator),
    current_user: models.User = Depends(get_current_user),
):
    _owned_quote(agg, quote_id, current_user)
    agg.delete_quote(quote_id)
    return {"ok": True}


@router.post("/{quote_id}/status")
def change_status(
    quote_id: str,
    request: schemas.StatusChange,
    agg: QuoteAggregator = Depends(get_aggregator),
    current_user: models.User = Depends(get_current_user),
):
    _owned_quote(agg, quote_id, current_user)
    quote = agg.transition(quote_id, request.status, reason=request.reason)
    return quote_to_dict(quote)


@router.post("/{quote_id}/duplicate")
def duplicate_quote(
    quote_id: str,
    agg: QuoteAggregator = Depends(get_aggregator),
    current_user: models.User = Depends(get_current_user),
):
    _owned_quote(agg, quote_id, current_user)
    copy = agg.duplicate_quote(quote_id, owner_id=current_user.id)
    return agg.quote_summary(copy.id)


@router.post("/{quote_id}/recompute")
def recompute_totals(
    quote_id: str,
    agg: QuoteAggregator = Depends(get_aggregator),
    current_user: models.User = Depends(get_current_user),
):
    _owned_quote(agg, quote_id, current_user)
    return quote_to_dict(agg.recompute_quote_totals(quote_id))


# --- Sub-quotes ---

@router.get("/{quote_id}/sub-quotes")
def list_sub_quotes(
    quote_id: str,
    agg: QuoteAggregator = Depends(get_aggregator),
    current_user: models.User = Depends(get_current_user),
):
    _owned_quote(agg, quote_id, current_user)
    return [sub_quote_to_dict(s) for s in agg.list_sub_quotes(quote_id)]


@router.post("/{quote_id}/sub-quotes")
def add_sub_quote(
    quote_id: str,
    request: schemas.SubQuoteCreate,
    agg: QuoteAggregator = Depends(get_aggregator),
    current_user: models.User = Depends(get_current_user),
):
    _owned_quote(agg, quote_id, current_user)
    sub = agg.add_sub_quote(
        quote_id,
        work_category=request.work_category,
        title=request.title,
        labor_hours=request.labor_hours,
        labor_rate=request.labor_rate,
        materials_cost=request.materials_cost,
        priority=request.priority,
        description=request.description,
    )
    return sub_quote_to_dict(sub)


@router.put("/{quote_id}/sub-quotes/reorder")
def reorder_sub_quotes(
    quote_id: str,
    request: schemas.ReorderRequest,
    agg: QuoteAggregator = Depends(get_aggregator),
    current_user: models.User = Depends(get_current_user),
):
    _owned_quote(agg, quote_id, current_user)
    subs = agg.reorder_sub_quotes(quote_id, [item.model_dump() for item in request.order])
    return [sub_quote_to_dict(s) for s in subs]


@router.get("/{quote_id}/sub-quotes/{sub_quote_id}")
def get_sub_quote(
    quote_id: str,
    sub_quote_id: str,
    agg: QuoteAggregator = Depends(get_aggregator),
    current_user: models.User = Depends(get_current_user),
):
    _owned_quote(agg, quote_id, current_user)
    sub = _sub_quote_of(agg, quote_id, sub_quote_id)
    return {
        **sub_quote_to_dict(sub),
        "materials": [material_to_dict(m) for m in agg.list_materials(sub.id)],
    }


@router.patch("/{quote_id}/sub-quotes/{sub_quote_id}")
def update_sub_quote(
    quote_id: str,
    sub_quote_id: str,
    update: schemas.SubQuoteUpdate,
    agg: QuoteAggregator = Depends(get_aggregator),
    current_user: models.User = Depends(get_current_user),
):
    _owned_quote(agg, quote_id, current_user)
    _sub_quote_of(agg, quote_id, sub_quote_id)
    sub = agg.update_sub_quote(sub_quote_id, update.model_dump(exclude_unset=True))
    return sub_quote_to_dict(sub)


@router.delete("/{quote_id}/sub-quotes/{sub_quote_id}")
def delete_sub_quote(
    quote_id: str,
    sub_quote_id: str,
    agg: QuoteAggregator = Depends(get_aggregator),
    current_user: models.User = Depends(get_current_user),
):
    _owned_quote(agg, quote_id, current_user)
    _sub_quote_of(agg, quote_id, sub_quote_id)
    agg.delete_sub_quote(sub_quote_id)
    return {"ok": True}


# --- Materials ---

@router.get("/{quote_id}/sub-quotes/{sub_quote_id}/materials")
def list_materials(
    quote_id: str,
    sub_quote_id: str,
    agg: QuoteAggregator = Depends(get_aggregator),
    current_user: models.User = Depends(get_current_user),
):
    _owned_quote(agg, quote_id, current_user)
    _sub_quote_of(agg, quote_id, sub_quote_id)
    return [material_to_dict(m) for m in agg.list_materials(sub_quote_id)]


@router.post("/{quote_id}/sub-quotes/{sub_quote_id}/materials")
def add_material(
    quote_id: str,
    sub_quote_id: str,
    request: schemas.MaterialCreate,
    agg: QuoteAggregator = Depends(get_aggregator),
    current_user: models.User = Depends(get_current_user),
):
    _owned_quote(agg, quote_id, current_user)
    _sub_quote_of(agg, quote_id, sub_quote_id)
    material = agg.add_material(
        sub_quote_id,
        name=request.name,
        quantity=request.quantity,
        unit_price=request.unit_price,
        unit=request.unit,
        brand=request.brand,
        reference=request.reference,
    )
    return material_to_dict(material)


@router.patch("/{quote_id}/sub-quotes/{sub_quote_id}/materials/{material_id}")
def update_material(
    quote_id: str,
    sub_quote_id: str,
    material_id: str,
    update: schemas.MaterialUpdate,
    agg: QuoteAggregator = Depends(get_aggregator),
    current_user: models.User = Depends(get_current_user),
):
    _owned_quote(agg, quote_id, current_user)
    _sub_quote_of(agg, quote_id, sub_quote_id)
    material = agg.update_material(sub_quote_id, material_id, update.model_dump(exclude_unset=True))
    return material_to_dict(material)


@router.delete("/{quote_id}/sub-quotes/{sub_quote_id}/materials/{material_id}")
def delete_material(
    quote_id: str,
    sub_quote_id: str,
    material_id: str,
    agg: QuoteAggregator = Depends(get_aggregator),
    current_user: models.User = Depends(get_current_user),
):
    _owned_quote(agg, quote_id, current_user)
    _sub_quote_of(agg, quote_id, sub_quote_id)
    agg.delete_material(sub_quote_id, material_id)
    return {"ok": True}


# --- Photos & analysis ---

@router.get("/{quote_id}/photos")
def list_photos(
    quote_id: str,
    agg: QuoteAggregator = Depends(get_aggregator),
    current_user: models.User = Depends(get_current_user),
):
    _owned_quote(agg, quote_id, current_user)
    return [photo_to_dict(p) for p in agg.list_photos(quote_id)]


@router.post("/{quote_id}/photos")
def add_photos(
    quote_id: str,
    request: schemas.PhotosCreate,
    agg: QuoteAggregator = Depends(get_aggregator),
    current_user: models.User = Depends(get_current_user),
):
    _owned_quote(agg, quote_id, current_user)
    photos = agg.add_photos(quote_id, [p.model_dump() for p in request.photos])
    return [photo_to_dict(p) for p in photos]


@router.delete("/{quote_id}/photos/{photo_id}")
def delete_photo(
    quote_id: str,
    photo_id: str,
    agg: QuoteAggregator = Depends(get_aggregator),
    current_user: models.User = Depends(get_current_user),
):
    _owned_quote(agg, quote_id, current_user)
    agg.delete_photo(quote_id, photo_id)
    return {"ok": True}


@router.post("/{quote_id}/analyze")
async def analyze_quote(
    quote_id: str,
    request: Optional[schemas.AnalyzeRequest] = None,
    db: Session = Depends(get_db),
    current_user: models.User = Depends(get_current_user),
):
    """Run photo analysis + consolidation; optionally generate sub-quotes from it."""
    agg = QuoteAggregator(db, listeners=[notifier])
    _owned_quote(agg, quote_id, current_user)
    service = AnalysisService(db, aggregator=agg)
    analysis = await service.run(quote_id, generate=bool(request and request.generate))
    return {"analysis": analysis, "quote": agg.quote_summary(quote_id)}


@router.get("/{quote_id}/analysis")
def get_analysis(
    quote_id: str,
    agg: QuoteAggregator = Depends(get_aggregator),
    current_user: models.User = Depends(get_current_user),
):
    quote = _owned_quote(agg, quote_id, current_user)
    return {
        "analysis": quote.analysis_json,
        "analyzed_at": quote.analyzed_at.isoformat() if quote.analyzed_at else None,
    }


@router.post("/{quote_id}/generate")
def generate_from_analysis(
    quote_id: str,
    agg: QuoteAggregator = Depends(get_aggregator),
    current_user: models.User = Depends(get_current_user),
):
    """Bulk-create sub-quotes from the stored analysis."""
    quote = _owned_quote(agg, quote_id, current_user)
    if not quote.analysis_json:
        raise ValidationError("No analysis available", {"quote_id": quote_id, "reason": "NO_ANALYSIS"})
    agg.generate_from_consolidated(quote_id, quote.analysis_json)
    return agg.quote_summary(quote_id)


@router.get("/{quote_id}/optimizations")
def quote_optimizations(
    quote_id: str,
    goal: str = "cost",
    agg: QuoteAggregator = Depends(get_aggregator),
    current_user: models.User = Depends(get_current_user),
):
    """Savings ideas for the work categories currently on the quote."""
    quote = _owned_quote(agg, quote_id, current_user)
    categories = [s.work_category for s in agg.list_sub_quotes(quote_id)]
    return {
        "goal": goal,
        "optimizations": suggest_optimizations(goal, categories, quote.quality_tier),
    }
