"""Production batch API routes."""

from __future__ import annotations

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from .. import schemas
from ..database import get_db
from ..errors import BatchCalcError
from ..services import batches
from .common import http_error, parse_uuid

# purpose: create gated batches from formulations and record measured actuals
# status: active
# depends_on: services.batches

router = APIRouter(prefix="/api/batches", tags=["batches", "production"])


@router.get("", response_model=list[schemas.BatchSummary])
def list_batches(db: Session = Depends(get_db)):
    return batches.list_batches(db)


@router.get("/{batch_id}", response_model=schemas.BatchOut)
def get_batch(batch_id: str, db: Session = Depends(get_db)):
    try:
        return batches.get_batch(db, parse_uuid(batch_id))
    except BatchCalcError as exc:
        raise http_error(db, exc) from exc


@router.post("", response_model=schemas.BatchOut, status_code=status.HTTP_201_CREATED)
def create_batch(payload: schemas.BatchCreate, db: Session = Depends(get_db)):
    try:
        return batches.create_batch(
            db,
            payload.formulation_id,
            payload.target_amount,
            batch_name=payload.batch_name,
            notes=payload.notes,
        )
    except BatchCalcError as exc:
        raise http_error(db, exc) from exc


@router.put("/{batch_id}/actuals", response_model=schemas.BatchOut)
def record_actuals(
    batch_id: str,
    payload: schemas.BatchActualsUpdate,
    db: Session = Depends(get_db),
):
    batch_uuid = parse_uuid(batch_id)
    try:
        return batches.record_actuals(
            db,
            batch_uuid,
            lines=payload.ingredients,
            actual_total=payload.actual_total,
            notes=payload.notes,
        )
    except BatchCalcError as exc:
        raise http_error(db, exc) from exc


@router.delete("/{batch_id}", response_model=schemas.BatchDeleteResponse)
def delete_batch(batch_id: str, db: Session = Depends(get_db)):
    try:
        return batches.delete_batch(db, parse_uuid(batch_id))
    except BatchCalcError as exc:
        raise http_error(db, exc) from exc
