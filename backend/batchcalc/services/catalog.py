"""Ingredient and formulation catalog storage helpers."""

from __future__ import annotations

import logging
from typing import Iterable
from uuid import UUID

import sqlalchemy as sa
from sqlalchemy.orm import Session, joinedload

from .. import models, schemas
from ..database import commit_or_rollback
from ..errors import ConflictError, NotFound, ValidationError

# purpose: plain CRUD over ingredients and formulations feeding the production core
# inputs: validated pydantic payloads from the catalog routes
# outputs: ORM rows and serialized formulation snapshots
# status: active

logger = logging.getLogger(__name__)

_INGREDIENT_FLAGS = (
    "is_humectant",
    "is_emollient",
    "is_occlusive",
    "is_moisturizing",
    "is_anhydrous",
)


def list_ingredients(db: Session) -> list[models.Ingredient]:
    return db.query(models.Ingredient).order_by(models.Ingredient.name.asc()).all()


def get_ingredient(db: Session, ingredient_id: UUID) -> models.Ingredient:
    ingredient = db.get(models.Ingredient, ingredient_id)
    if not ingredient:
        raise NotFound("Ingredient not found")
    return ingredient


def ingredient_exists(db: Session, ingredient_id: UUID) -> bool:
    return (
        db.query(models.Ingredient.id)
        .filter(models.Ingredient.id == ingredient_id)
        .first()
        is not None
    )


def _apply_ingredient_fields(
    ingredient: models.Ingredient,
    payload: schemas.IngredientBase,
) -> None:
    data = payload.model_dump()
    for flag in _INGREDIENT_FLAGS:
        data[flag] = bool(data[flag])
    for key, value in data.items():
        setattr(ingredient, key, value)


def create_ingredient(db: Session, payload: schemas.IngredientCreate) -> models.Ingredient:
    ingredient = models.Ingredient()
    _apply_ingredient_fields(ingredient, payload)
    db.add(ingredient)
    commit_or_rollback(db)
    db.refresh(ingredient)
    return ingredient


def update_ingredient(
    db: Session,
    ingredient_id: UUID,
    payload: schemas.IngredientUpdate,
) -> models.Ingredient:
    ingredient = get_ingredient(db, ingredient_id)
    _apply_ingredient_fields(ingredient, payload)
    commit_or_rollback(db)
    db.refresh(ingredient)
    return ingredient


def delete_ingredient(db: Session, ingredient_id: UUID) -> schemas.IngredientOut:
    """Delete an ingredient that no formulation or batch refers to."""

    ingredient = get_ingredient(db, ingredient_id)
    in_formulation = (
        db.query(models.FormulationIngredient.id)
        .filter(models.FormulationIngredient.ingredient_id == ingredient_id)
        .first()
    )
    in_batch = (
        db.query(models.BatchIngredient.id)
        .filter(models.BatchIngredient.ingredient_id == ingredient_id)
        .first()
    )
    if in_formulation or in_batch:
        raise ConflictError(
            "Ingredient is used in formulations or batches and cannot be deleted"
        )
    snapshot = schemas.IngredientOut.model_validate(ingredient)
    db.delete(ingredient)
    commit_or_rollback(db)
    logger.info("Deleted ingredient %s", ingredient_id)
    return snapshot


def _formulation_query(db: Session):
    return db.query(models.Formulation).options(
        joinedload(models.Formulation.lines).joinedload(models.FormulationIngredient.ingredient)
    )


def get_formulation(db: Session, formulation_id: UUID) -> models.Formulation:
    """Fetch a formulation with its lines and their ingredients joined."""

    formulation = (
        _formulation_query(db).filter(models.Formulation.id == formulation_id).first()
    )
    if not formulation:
        raise NotFound("Formulation not found")
    return formulation


def serialize_formulation(formulation: models.Formulation) -> schemas.FormulationOut:
    summary = schemas.FormulationSummary.model_validate(formulation)
    return schemas.FormulationOut(
        **summary.model_dump(),
        ingredients=[
            schemas.FormulationLineOut(
                formulation_ingredient_id=line.id,
                percentage=line.percentage,
                phase=line.phase,
                sort_order=line.sort_order or 0,
                ingredient_notes=line.notes,
                ingredient_id=line.ingredient_id,
                ingredient_name=line.ingredient.name,
                inci_name=line.ingredient.inci_name,
                ingredient_type=line.ingredient.ingredient_type,
                is_humectant=bool(line.ingredient.is_humectant),
                is_emollient=bool(line.ingredient.is_emollient),
                is_occlusive=bool(line.ingredient.is_occlusive),
                is_moisturizing=bool(line.ingredient.is_moisturizing),
                is_anhydrous=bool(line.ingredient.is_anhydrous),
            )
            for line in formulation.ordered_lines
        ],
    )


def list_formulations(
    db: Session,
    *,
    ingredient_ids: Iterable[UUID] = (),
) -> list[models.Formulation]:
    """Return formulations newest first, keeping those that contain every given ingredient."""

    query = db.query(models.Formulation)
    for ingredient_id in ingredient_ids:
        query = query.filter(
            sa.exists().where(
                models.FormulationIngredient.formulation_id == models.Formulation.id,
                models.FormulationIngredient.ingredient_id == ingredient_id,
            )
        )
    return query.order_by(models.Formulation.created_at.desc()).all()


def _ensure_ingredients_exist(db: Session, ingredient_ids: Iterable[UUID]) -> None:
    wanted = set(ingredient_ids)
    if not wanted:
        return
    found = {
        row[0]
        for row in db.query(models.Ingredient.id).filter(models.Ingredient.id.in_(wanted)).all()
    }
    missing = wanted - found
    if missing:
        raise ValidationError(
            "Ingredient not found: " + ", ".join(sorted(str(item) for item in missing))
        )


def _build_line(payload: schemas.FormulationLineCreate) -> models.FormulationIngredient:
    return models.FormulationIngredient(
        ingredient_id=payload.ingredient_id,
        percentage=payload.percentage,
        phase=payload.phase or None,
        sort_order=payload.sort_order or 0,
        notes=payload.notes or None,
    )


def create_formulation(db: Session, payload: schemas.FormulationCreate) -> models.Formulation:
    """Insert the formulation header and all of its lines in one transaction."""

    _ensure_ingredients_exist(db, (line.ingredient_id for line in payload.ingredients))
    if payload.parent_formulation_id and not db.get(
        models.Formulation, payload.parent_formulation_id
    ):
        raise ValidationError("Parent formulation not found")

    formulation = models.Formulation(
        name=payload.name,
        description=payload.description or None,
        base_batch_size=payload.base_batch_size,
        unit=payload.unit or "g",
        status=payload.status or "testing",
        version_number=payload.version_number or 1,
        parent_formulation_id=payload.parent_formulation_id,
        phases=payload.phases or None,
        instructions=payload.instructions or None,
        notes=payload.notes or None,
    )
    formulation.lines = [_build_line(line) for line in payload.ingredients]
    db.add(formulation)
    commit_or_rollback(db)
    logger.info("Created formulation %s with %d lines", formulation.id, len(payload.ingredients))
    return get_formulation(db, formulation.id)


def update_formulation(
    db: Session,
    formulation_id: UUID,
    payload: schemas.FormulationUpdate,
) -> models.Formulation:
    """Update formulation metadata; lines are managed separately."""

    formulation = get_formulation(db, formulation_id)
    formulation.name = payload.name
    formulation.description = payload.description or None
    formulation.base_batch_size = payload.base_batch_size
    formulation.unit = payload.unit or "g"
    if payload.status:
        formulation.status = payload.status
    formulation.phases = payload.phases or None
    formulation.instructions = payload.instructions or None
    formulation.notes = payload.notes or None
    commit_or_rollback(db)
    return get_formulation(db, formulation_id)


def delete_formulation(db: Session, formulation_id: UUID) -> schemas.FormulationSummary:
    formulation = get_formulation(db, formulation_id)
    has_batches = (
        db.query(models.ProductionBatch.id)
        .filter(models.ProductionBatch.formulation_id == formulation_id)
        .first()
    )
    if has_batches:
        raise ConflictError(
            "Formulation has production batches and cannot be deleted"
        )
    snapshot = schemas.FormulationSummary.model_validate(formulation)
    db.delete(formulation)
    commit_or_rollback(db)
    logger.info("Deleted formulation %s", formulation_id)
    return snapshot


def add_formulation_line(
    db: Session,
    formulation_id: UUID,
    payload: schemas.FormulationLineCreate,
) -> models.FormulationIngredient:
    formulation = db.get(models.Formulation, formulation_id)
    if not formulation:
        raise NotFound("Formulation not found")
    _ensure_ingredients_exist(db, [payload.ingredient_id])
    line = _build_line(payload)
    line.formulation_id = formulation_id
    db.add(line)
    commit_or_rollback(db)
    db.refresh(line)
    return line


def remove_formulation_line(
    db: Session,
    formulation_id: UUID,
    ingredient_id: UUID,
) -> schemas.FormulationLineLink:
    lines = (
        db.query(models.FormulationIngredient)
        .filter(
            models.FormulationIngredient.formulation_id == formulation_id,
            models.FormulationIngredient.ingredient_id == ingredient_id,
        )
        .all()
    )
    if not lines:
        raise NotFound("Ingredient not found in this formulation")
    removed = schemas.FormulationLineLink.model_validate(lines[0])
    for line in lines:
        db.delete(line)
    commit_or_rollback(db)
    return removed
