"""
Estimation endpoints: stateless, no quote involved.

POST /api/estimates/                : one category estimate
POST /api/estimates/room            : every typical category of a room
POST /api/estimates/detect          : keyword detection
POST /api/estimates/consolidate     : merge detections into one estimate
POST /api/estimates/recommendations : advisory rules for a category set
POST /api/estimates/optimizations   : cost or time savings for a category set
POST /api/estimates/suggestions     : materials with tier alternatives
GET  /api/estimates/pricing         : catalog reference
GET  /api/estimates/materials       : flat materials catalog
"""

from typing import Optional

from fastapi import APIRouter

from .. import schemas
from ..consolidator import Consolidator, generate_recommendations, suggest_optimizations
from ..detector import WorkTypeDetector
from ..estimator import EstimateParams, Estimator

router = APIRouter(prefix="/estimates", tags=["estimates"])

estimator = Estimator()
consolidator = Consolidator(estimator)
detector = WorkTypeDetector()


@router.post("/")
def compute_estimate(request: schemas.EstimateRequest):
    params = EstimateParams(**request.model_dump())
    return estimator.compute_estimate(params).to_dict()


@router.post("/room")
def estimate_room(request: schemas.RoomEstimateRequest):
    estimates = estimator.estimate_room(request.room_type, request.surface_area, request.quality_tier)
    return {
        "estimates": [e.to_dict() for e in estimates],
        "total_estimate": round(sum(e.total_cost for e in estimates), 2),
    }


@router.post("/detect")
def detect_work_types(request: schemas.DetectRequest):
    categories = detector.detect(request.description, request.explicit_categories)
    return {
        "work_categories": sorted(categories),
        "matches": {} if request.explicit_categories else detector.matched_keywords(request.description),
    }


@router.post("/consolidate")
def consolidate(request: schemas.ConsolidateRequest):
    result = consolidator.consolidate(
        [a.model_dump() for a in request.analyses],
        room_type=request.room_type,
        surface_area=request.surface_area,
        quality_tier=request.quality_tier,
    )
    return result.to_dict()


@router.post("/recommendations")
def recommendations(request: schemas.RecommendationsRequest):
    return {"recommendations": generate_recommendations(request.work_categories)}


@router.post("/optimizations")
def optimizations(request: schemas.OptimizationRequest):
    return {
        "goal": request.goal,
        "optimizations": suggest_optimizations(request.goal, request.work_categories, request.quality_tier),
    }


@router.post("/suggestions")
def suggest_materials(request: schemas.EstimateRequest):
    params = EstimateParams(**request.model_dump())
    return {"materials": estimator.suggest_materials(params)}


@router.get("/pricing")
def pricing_reference(work_category: Optional[str] = None):
    return estimator.catalog.pricing_reference(work_category)


@router.get("/materials")
def materials_catalog(work_category: Optional[str] = None, search: Optional[str] = None):
    return estimator.catalog.materials_catalog(work_category, search)
