"""Schemas for scaling previews, production batches and recorded actuals."""

from __future__ import annotations

from datetime import datetime
from typing import Any
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, StrictFloat


class ScaledIngredientOut(BaseModel):
    ingredient_id: UUID
    ingredient_name: str | None = None
    inci_name: str | None = None
    percentage: float
    original_amount: float
    planned_amount: float
    unit: str
    phase: str | None = None

    model_config = ConfigDict(from_attributes=True)


class ScalePreviewOut(BaseModel):
    formulation_id: UUID
    formulation_name: str
    original_batch_size: float
    target_batch_size: float
    scale_factor: float
    unit: str
    ingredients: list[ScaledIngredientOut] = Field(default_factory=list)


class BatchCreate(BaseModel):
    formulation_id: UUID
    # taken raw; the scaling engine owns every size check, booleans included
    target_amount: Any = None
    batch_name: str | None = Field(default=None, max_length=255)
    notes: str | None = None


class BatchActualLine(BaseModel):
    batch_ingredient_id: UUID
    actual_amount: StrictFloat = Field(ge=0)
    notes: str | None = None


class BatchActualsUpdate(BaseModel):
    actual_total: StrictFloat | None = Field(default=None, ge=0)
    ingredients: list[BatchActualLine] | None = None
    notes: str | None = None


class BatchLineOut(BaseModel):
    batch_ingredient_id: UUID
    ingredient_id: UUID
    ingredient_name: str | None = None
    inci_name: str | None = None
    planned_amount: float
    actual_amount: float | None = None
    unit: str
    ingredient_notes: str | None = None
    variance: float | None = None
    variance_percent: float | None = None


class BatchSummary(BaseModel):
    id: UUID
    formulation_id: UUID
    formulation_name: str | None = None
    formulation_status: str | None = None
    batch_name: str | None = None
    target_amount: float
    actual_amount: float | None = None
    unit: str
    production_date: datetime
    notes: str | None = None
    created_at: datetime


class BatchOut(BaseModel):
    id: UUID
    formulation_id: UUID
    formulation_name: str | None = None
    formulation_base_size: float | None = None
    batch_name: str | None = None
    target_amount: float
    actual_amount: float | None = None
    unit: str
    production_date: datetime
    notes: str | None = None
    created_at: datetime
    ingredients: list[BatchLineOut] = Field(default_factory=list)


class BatchDeleteResponse(BaseModel):
    message: str
    deleted: BatchSummary
