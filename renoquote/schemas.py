from typing import List, Optional

from pydantic import BaseModel, Field


# --- Quotes ---

class QuoteCreate(BaseModel):
    title: str
    description: Optional[str] = None
    room_type: Optional[str] = None
    surface_area: Optional[float] = None
    quality_tier: str = "standard"


class QuoteUpdate(BaseModel):
    title: Optional[str] = None
    description: Optional[str] = None
    room_type: Optional[str] = None
    surface_area: Optional[float] = None
    quality_tier: Optional[str] = None
    notes: Optional[str] = None
    valid_days: Optional[int] = None


class StatusChange(BaseModel):
    status: str
    reason: Optional[str] = None


class CompareRequest(BaseModel):
    quote_ids: List[str]


# --- Sub-quotes ---

class SubQuoteCreate(BaseModel):
    work_category: str
    title: str
    description: Optional[str] = None
    labor_hours: float = 0.0
    labor_rate: Optional[float] = None
    materials_cost: float = 0.0
    priority: Optional[int] = None


class SubQuoteUpdate(BaseModel):
    work_category: Optional[str] = None
    title: Optional[str] = None
    description: Optional[str] = None
    labor_hours: Optional[float] = None
    labor_rate: Optional[float] = None
    materials_cost: Optional[float] = None
    priority: Optional[int] = None


class ReorderItem(BaseModel):
    id: str
    priority: int


class ReorderRequest(BaseModel):
    order: List[ReorderItem]


# --- Materials ---

class MaterialCreate(BaseModel):
    name: str
    quantity: float
    unit: str = "piece"
    unit_price: float
    brand: Optional[str] = None
    reference: Optional[str] = None


class MaterialUpdate(BaseModel):
    name: Optional[str] = None
    quantity: Optional[float] = None
    unit: Optional[str] = None
    unit_price: Optional[float] = None
    brand: Optional[str] = None
    reference: Optional[str] = None


# --- Photos & analysis ---

class PhotoIn(BaseModel):
    url: str
    description: Optional[str] = None
    explicit_categories: List[str] = Field(default_factory=list)


class PhotosCreate(BaseModel):
    photos: List[PhotoIn]


class AnalyzeRequest(BaseModel):
    generate: bool = False


# --- Estimates ---

class EstimateRequest(BaseModel):
    work_category: str
    room_type: Optional[str] = None
    surface_area: Optional[float] = None
    quality_tier: str = "standard"


class RoomEstimateRequest(BaseModel):
    room_type: Optional[str] = None
    surface_area: Optional[float] = None
    quality_tier: str = "standard"


class DetectRequest(BaseModel):
    description: Optional[str] = None
    explicit_categories: List[str] = Field(default_factory=list)


class AnalysisIn(BaseModel):
    detected_categories: List[str] = Field(default_factory=list)


class ConsolidateRequest(BaseModel):
    analyses: List[AnalysisIn]
    room_type: Optional[str] = None
    surface_area: Optional[float] = None
    quality_tier: str = "standard"


class RecommendationsRequest(BaseModel):
    work_categories: List[str]


class OptimizationRequest(BaseModel):
    goal: str = "cost"
    work_categories: List[str] = Field(default_factory=list)
    quality_tier: Optional[str] = None
