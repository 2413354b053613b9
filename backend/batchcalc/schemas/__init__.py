"""Pydantic schemas consolidating backend API contracts."""

# purpose: aggregate request and response schemas for the catalog and production surfaces
# status: active

from datetime import datetime
from typing import Annotated, Optional, List, Literal
from pydantic import AfterValidator, BaseModel, ConfigDict, Field, StrictBool, model_validator
from uuid import UUID

from .production import (
    BatchActualLine,
    BatchActualsUpdate,
    BatchCreate,
    BatchDeleteResponse,
    BatchLineOut,
    BatchOut,
    BatchSummary,
    ScaledIngredientOut,
    ScalePreviewOut,
)

FormulationStatus = Literal["testing", "finalized", "freeze", "archived", "discontinued"]


def _required_name(value: str) -> str:
    value = value.strip()
    if not value:
        raise ValueError("Name is required")
    return value


RequiredName = Annotated[str, Field(max_length=255), AfterValidator(_required_name)]


class IngredientBase(BaseModel):
    name: RequiredName
    inci_name: Optional[str] = Field(default=None, max_length=255)
    origin: Optional[str] = Field(default=None, max_length=255)
    ingredient_type: Optional[str] = Field(default=None, max_length=100)
    is_humectant: Optional[StrictBool] = None
    is_emollient: Optional[StrictBool] = None
    is_occlusive: Optional[StrictBool] = None
    is_moisturizing: Optional[StrictBool] = None
    is_anhydrous: Optional[StrictBool] = None
    ph_min: Optional[float] = Field(default=None, ge=0, le=14)
    ph_max: Optional[float] = Field(default=None, ge=0, le=14)
    solubility: Optional[str] = Field(default=None, max_length=50)
    max_usage_rate: Optional[float] = Field(default=None, gt=0, le=100)
    notes: Optional[str] = None

    @model_validator(mode="after")
    def _check_ph_range(self):
        if self.ph_min is not None and self.ph_max is not None and self.ph_max < self.ph_min:
            raise ValueError("pH maximum must be greater than or equal to pH minimum")
        return self


class IngredientCreate(IngredientBase):
    pass


class IngredientUpdate(IngredientBase):
    pass


class IngredientOut(BaseModel):
    id: UUID
    name: str
    inci_name: Optional[str] = None
    origin: Optional[str] = None
    ingredient_type: Optional[str] = None
    is_humectant: bool = False
    is_emollient: bool = False
    is_occlusive: bool = False
    is_moisturizing: bool = False
    is_anhydrous: bool = False
    ph_min: Optional[float] = None
    ph_max: Optional[float] = None
    solubility: Optional[str] = None
    max_usage_rate: Optional[float] = None
    notes: Optional[str] = None
    created_at: datetime
    updated_at: datetime
    model_config = ConfigDict(from_attributes=True)


class IngredientDeleteResponse(BaseModel):
    message: str
    deleted: IngredientOut


class FormulationLineCreate(BaseModel):
    ingredient_id: UUID
    percentage: float = Field(gt=0, le=100)
    phase: Optional[str] = Field(default=None, max_length=50)
    sort_order: Optional[int] = Field(default=None, ge=0)
    notes: Optional[str] = None


class FormulationLineLink(BaseModel):
    id: UUID
    formulation_id: UUID
    ingredient_id: UUID
    percentage: float
    phase: Optional[str] = None
    sort_order: int = 0
    notes: Optional[str] = None
    model_config = ConfigDict(from_attributes=True)


class FormulationLineOut(BaseModel):
    formulation_ingredient_id: UUID
    percentage: float
    phase: Optional[str] = None
    sort_order: int = 0
    ingredient_notes: Optional[str] = None
    ingredient_id: UUID
    ingredient_name: str
    inci_name: Optional[str] = None
    ingredient_type: Optional[str] = None
    is_humectant: bool = False
    is_emollient: bool = False
    is_occlusive: bool = False
    is_moisturizing: bool = False
    is_anhydrous: bool = False


class FormulationBase(BaseModel):
    name: RequiredName
    description: Optional[str] = None
    base_batch_size: float = Field(gt=0)
    unit: Optional[str] = Field(default=None, max_length=10)
    status: Optional[FormulationStatus] = None
    phases: Optional[str] = None
    instructions: Optional[str] = None
    notes: Optional[str] = None


class FormulationCreate(FormulationBase):
    version_number: Optional[int] = Field(default=None, ge=1)
    parent_formulation_id: Optional[UUID] = None
    ingredients: List[FormulationLineCreate] = Field(min_length=1)


class FormulationUpdate(FormulationBase):
    pass


class FormulationSummary(BaseModel):
    id: UUID
    name: str
    description: Optional[str] = None
    base_batch_size: float
    unit: str
    status: str
    version_number: int
    parent_formulation_id: Optional[UUID] = None
    phases: Optional[str] = None
    instructions: Optional[str] = None
    notes: Optional[str] = None
    created_at: datetime
    updated_at: datetime
    model_config = ConfigDict(from_attributes=True)


class FormulationOut(FormulationSummary):
    ingredients: List[FormulationLineOut] = Field(default_factory=list)


class FormulationDeleteResponse(BaseModel):
    message: str
    deleted: FormulationSummary


class FormulationLineRemoveResponse(BaseModel):
    message: str
    removed: FormulationLineLink
