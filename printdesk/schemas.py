from pydantic import AliasChoices, BaseModel, Field
from typing import Optional, List, Dict, Any
from datetime import datetime


# --- Services ---

class ServiceBase(BaseModel):
    name: str
    unit: str = "item"
    base_rate: float = Field(0.0, ge=0)
    currency: str = "BYN"
    is_active: bool = True

class ServiceCreate(ServiceBase):
    pass

class ServiceUpdate(BaseModel):
    name: Optional[str] = None
    unit: Optional[str] = None
    base_rate: Optional[float] = Field(None, ge=0)
    currency: Optional[str] = None
    is_active: Optional[bool] = None

class Service(ServiceBase):
    id: int
    updated_at: Optional[datetime] = None
    class Config:
        from_attributes = True


# --- Volume tiers ---

class VolumeTierBase(BaseModel):
    min_quantity: float = Field(..., gt=0)
    rate: float = Field(..., ge=0)
    is_active: bool = True

class VolumeTierCreate(VolumeTierBase):
    pass

class VolumeTier(VolumeTierBase):
    id: int
    service_id: int
    created_at: Optional[datetime] = None
    class Config:
        from_attributes = True


# --- Operation norms ---

class OperationNormBase(BaseModel):
    product_type: str
    operation: str
    service_id: int
    formula: str
    is_active: bool = True

class OperationNormCreate(OperationNormBase):
    pass

class OperationNormUpdate(BaseModel):
    service_id: Optional[int] = None
    formula: Optional[str] = None
    is_active: Optional[bool] = None

class OperationNorm(OperationNormBase):
    id: int
    updated_at: Optional[datetime] = None
    class Config:
        from_attributes = True


# --- Paper stock ---

class PaperStock(BaseModel):
    id: int
    paper_type: str
    density: int
    name: str
    unit: str
    price_per_sheet: float
    currency: str
    is_active: bool
    class Config:
        from_attributes = True


# --- Calculation ---

class CalculateRequest(BaseModel):
    productType: str
    quantity: float
    # Older clients send the channel as priceType
    channel: Optional[str] = Field(None, validation_alias=AliasChoices("channel", "priceType"))
    customerType: Optional[str] = None
    specifications: Dict[str, Any] = {}

class BreakdownLine(BaseModel):
    kind: str
    name: str
    unit: str
    quantity: float
    rate: float
    total: float

class CalculateResponse(BaseModel):
    materials: List[BreakdownLine] = []
    services: List[BreakdownLine] = []
    subtotal: float
    markup: float
    final: float
    meta: Optional[Dict[str, Any]] = None
