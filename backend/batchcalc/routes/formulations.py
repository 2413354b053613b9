from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from .. import schemas
from ..database import get_db
from ..errors import BatchCalcError
from ..services import batches, catalog
from .common import http_error, parse_uuid

# purpose: formulation catalog endpoints plus the read-only scaling preview
# status: active
# depends_on: services.catalog, services.batches

router = APIRouter(prefix="/api/formulations", tags=["formulations"])


@router.get("", response_model=list[schemas.FormulationSummary])
def list_formulations(
    ingredient_id: str | None = None,
    ingredient_ids: str | None = None,
    db: Session = Depends(get_db),
):
    wanted = []
    if ingredient_ids:
        wanted = [
            parse_uuid(raw.strip(), label="ingredient ID")
            for raw in ingredient_ids.split(",")
            if raw.strip()
        ]
    elif ingredient_id:
        wanted = [parse_uuid(ingredient_id, label="ingredient ID")]
    return catalog.list_formulations(db, ingredient_ids=wanted)


@router.get("/{formulation_id}", response_model=schemas.FormulationOut)
def get_formulation(formulation_id: str, db: Session = Depends(get_db)):
    try:
        formulation = catalog.get_formulation(db, parse_uuid(formulation_id))
    except BatchCalcError as exc:
        raise http_error(db, exc) from exc
    return catalog.serialize_formulation(formulation)


@router.get("/{formulation_id}/calculate", response_model=schemas.ScalePreviewOut)
def calculate(
    formulation_id: str,
    batch_size: str | None = None,
    db: Session = Depends(get_db),
):
    try:
        return batches.preview_scale(db, parse_uuid(formulation_id), batch_size)
    except BatchCalcError as exc:
        raise http_error(db, exc) from exc


@router.post("", response_model=schemas.FormulationOut, status_code=status.HTTP_201_CREATED)
def create_formulation(payload: schemas.FormulationCreate, db: Session = Depends(get_db)):
    try:
        formulation = catalog.create_formulation(db, payload)
    except BatchCalcError as exc:
        raise http_error(db, exc) from exc
    return catalog.serialize_formulation(formulation)


@router.put("/{formulation_id}", response_model=schemas.FormulationOut)
def update_formulation(
    formulation_id: str,
    payload: schemas.FormulationUpdate,
    db: Session = Depends(get_db),
):
    try:
        formulation = catalog.update_formulation(db, parse_uuid(formulation_id), payload)
    except BatchCalcError as exc:
        raise http_error(db, exc) from exc
    return catalog.serialize_formulation(formulation)


@router.delete("/{formulation_id}", response_model=schemas.FormulationDeleteResponse)
def delete_formulation(formulation_id: str, db: Session = Depends(get_db)):
    try:
        deleted = catalog.delete_formulation(db, parse_uuid(formulation_id))
    except BatchCalcError as exc:
        raise http_error(db, exc) from exc
    return {"message": "Formulation deleted successfully", "deleted": deleted}


@router.post(
    "/{formulation_id}/ingredients",
    response_model=schemas.FormulationLineLink,
    status_code=status.HTTP_201_CREATED,
)
def add_line(
    formulation_id: str,
    payload: schemas.FormulationLineCreate,
    db: Session = Depends(get_db),
):
    try:
        return catalog.add_formulation_line(db, parse_uuid(formulation_id), payload)
    except BatchCalcError as exc:
        raise http_error(db, exc) from exc


@router.delete(
    "/{formulation_id}/ingredients/{ingredient_id}",
    response_model=schemas.FormulationLineRemoveResponse,
)
def remove_line(formulation_id: str, ingredient_id: str, db: Session = Depends(get_db)):
    formulation_uuid = parse_uuid(formulation_id)
    ingredient_uuid = parse_uuid(ingredient_id, label="ingredient ID")
    try:
        removed = catalog.remove_formulation_line(db, formulation_uuid, ingredient_uuid)
    except BatchCalcError as exc:
        raise http_error(db, exc) from exc
    return {"message": "Ingredient removed from formulation", "removed": removed}
