"""Production batch orchestration: creation, actuals recording, reads."""

from __future__ import annotations

import logging
from typing import Sequence
from uuid import UUID

from prometheus_client import Counter
from sqlalchemy.orm import Session, joinedload

from .. import models, schemas
from ..database import commit_or_rollback
from ..errors import NotFound, ValidationError
from . import catalog, production_gate, scaling
from .variance import compute_variance

# purpose: snapshot scaled formulations onto immutable batches and reconcile measured actuals
# inputs: formulation ids, target amounts, per-line actual measurements
# outputs: BatchOut payloads with read-time variance
# status: active
# depends_on: services.scaling, services.production_gate, services.variance

logger = logging.getLogger(__name__)

BATCHES_CREATED = Counter("batches_created_total", "Production batches created")


def _batch_query(db: Session):
    return db.query(models.ProductionBatch).options(
        joinedload(models.ProductionBatch.formulation),
        joinedload(models.ProductionBatch.lines).joinedload(models.BatchIngredient.ingredient),
    )


def _serialize_line(line: models.BatchIngredient) -> schemas.BatchLineOut:
    derived = compute_variance(line.planned_amount, line.actual_amount)
    return schemas.BatchLineOut(
        batch_ingredient_id=line.id,
        ingredient_id=line.ingredient_id,
        ingredient_name=line.ingredient.name if line.ingredient is not None else None,
        inci_name=line.ingredient.inci_name if line.ingredient is not None else None,
        planned_amount=line.planned_amount,
        actual_amount=line.actual_amount,
        unit=line.unit,
        ingredient_notes=line.notes,
        variance=derived.variance,
        variance_percent=derived.variance_percent,
    )


def serialize_batch(batch: models.ProductionBatch) -> schemas.BatchOut:
    lines = sorted(
        batch.lines,
        key=lambda line: line.ingredient.name if line.ingredient is not None else "",
    )
    return schemas.BatchOut(
        id=batch.id,
        formulation_id=batch.formulation_id,
        formulation_name=batch.formulation.name if batch.formulation else None,
        formulation_base_size=batch.formulation.base_batch_size if batch.formulation else None,
        batch_name=batch.batch_name,
        target_amount=batch.target_amount,
        actual_amount=batch.actual_amount,
        unit=batch.unit,
        production_date=batch.production_date,
        notes=batch.notes,
        created_at=batch.created_at,
        ingredients=[_serialize_line(line) for line in lines],
    )


def _summarize(batch: models.ProductionBatch) -> schemas.BatchSummary:
    return schemas.BatchSummary(
        id=batch.id,
        formulation_id=batch.formulation_id,
        formulation_name=batch.formulation.name if batch.formulation else None,
        formulation_status=batch.formulation.status if batch.formulation else None,
        batch_name=batch.batch_name,
        target_amount=batch.target_amount,
        actual_amount=batch.actual_amount,
        unit=batch.unit,
        production_date=batch.production_date,
        notes=batch.notes,
        created_at=batch.created_at,
    )


def get_batch(db: Session, batch_id: UUID) -> schemas.BatchOut:
    """Return a batch with its lines; variance is recomputed on every read."""

    batch = _batch_query(db).filter(models.ProductionBatch.id == batch_id).first()
    if not batch:
        raise NotFound("Batch not found")
    return serialize_batch(batch)


def list_batches(db: Session) -> list[schemas.BatchSummary]:
    batches = (
        db.query(models.ProductionBatch)
        .options(joinedload(models.ProductionBatch.formulation))
        .order_by(
            models.ProductionBatch.production_date.desc(),
            models.ProductionBatch.created_at.desc(),
        )
        .all()
    )
    return [_summarize(batch) for batch in batches]


def preview_scale(db: Session, formulation_id: UUID, batch_size) -> schemas.ScalePreviewOut:
    """Scale a formulation for display without persisting anything."""

    # size is checked before the store is touched
    scaling.parse_target_size(batch_size, field="batch_size")
    formulation = catalog.get_formulation(db, formulation_id)
    result = scaling.scale(formulation, batch_size, field="batch_size")
    return schemas.ScalePreviewOut(
        formulation_id=formulation.id,
        formulation_name=formulation.name,
        original_batch_size=result.base_batch_size,
        target_batch_size=result.target_size,
        scale_factor=result.scale_factor,
        unit=result.unit,
        ingredients=[schemas.ScaledIngredientOut.model_validate(line) for line in result.lines],
    )


def create_batch(
    db: Session,
    formulation_id: UUID,
    target_amount,
    *,
    batch_name: str | None = None,
    notes: str | None = None,
) -> schemas.BatchOut:
    """Gate, scale and persist a batch header with all of its lines atomically.

    The header and every line are staged in the same unit of work and flushed
    by a single commit; any failure rolls the whole batch back so no partial
    batch is ever visible.
    """

    formulation = catalog.get_formulation(db, formulation_id)
    production_gate.ensure_production_allowed(formulation)
    result = scaling.scale(formulation, target_amount, field="target_amount")

    batch = models.ProductionBatch(
        formulation_id=formulation.id,
        batch_name=batch_name or None,
        target_amount=result.target_size,
        unit=result.unit,
        notes=notes or None,
    )
    batch.lines = [
        models.BatchIngredient(
            ingredient_id=line.ingredient_id,
            planned_amount=line.planned_amount,
            actual_amount=None,
            unit=line.unit,
        )
        for line in result.lines
    ]
    db.add(batch)
    commit_or_rollback(db)
    BATCHES_CREATED.inc()
    logger.info(
        "Created batch %s from formulation %s at %s %s (%d lines)",
        batch.id,
        formulation_id,
        result.target_size,
        result.unit,
        len(result.lines),
    )
    return get_batch(db, batch.id)


def record_actuals(
    db: Session,
    batch_id: UUID,
    *,
    lines: Sequence[schemas.BatchActualLine] | None,
    actual_total: float | None = None,
    notes: str | None = None,
) -> schemas.BatchOut:
    """Apply measured quantities to a batch and its lines in one transaction.

    Overwrite semantics: every mentioned line takes the new actual amount and
    notes, unmentioned lines keep what they had, and the header total/notes
    change only when supplied.
    """

    if lines is None or not isinstance(lines, (list, tuple)):
        raise ValidationError("ingredients array is required")

    batch = db.get(models.ProductionBatch, batch_id)
    if not batch:
        raise NotFound("Batch not found")

    if actual_total is not None:
        batch.actual_amount = actual_total
    if notes is not None:
        batch.notes = notes

    owned = {
        line.id: line
        for line in db.query(models.BatchIngredient)
        .filter(models.BatchIngredient.batch_id == batch_id)
        .all()
    }
    for update in lines:
        line = owned.get(update.batch_ingredient_id)
        if line is None:
            db.rollback()
            raise NotFound(f"Batch ingredient {update.batch_ingredient_id} not found in this batch")
        line.actual_amount = update.actual_amount
        line.notes = update.notes or None

    commit_or_rollback(db)
    logger.info("Recorded actuals for batch %s (%d lines)", batch_id, len(lines))
    return get_batch(db, batch_id)


def delete_batch(db: Session, batch_id: UUID) -> schemas.BatchDeleteResponse:
    batch = (
        db.query(models.ProductionBatch)
        .options(joinedload(models.ProductionBatch.formulation))
        .filter(models.ProductionBatch.id == batch_id)
        .first()
    )
    if not batch:
        raise NotFound("Batch not found")
    snapshot = _summarize(batch)
    db.delete(batch)
    commit_or_rollback(db)
    logger.info("Deleted batch %s", batch_id)
    return schemas.BatchDeleteResponse(message="Batch deleted successfully", deleted=snapshot)
