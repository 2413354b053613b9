from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from .. import schemas
from ..database import get_db
from ..errors import BatchCalcError
from ..services import catalog
from .common import http_error, parse_uuid

router = APIRouter(prefix="/api/ingredients", tags=["ingredients"])


@router.get("", response_model=list[schemas.IngredientOut])
def list_ingredients(db: Session = Depends(get_db)):
    return catalog.list_ingredients(db)


@router.get("/{ingredient_id}", response_model=schemas.IngredientOut)
def get_ingredient(ingredient_id: str, db: Session = Depends(get_db)):
    try:
        return catalog.get_ingredient(db, parse_uuid(ingredient_id))
    except BatchCalcError as exc:
        raise http_error(db, exc) from exc


@router.post("", response_model=schemas.IngredientOut, status_code=status.HTTP_201_CREATED)
def create_ingredient(payload: schemas.IngredientCreate, db: Session = Depends(get_db)):
    try:
        return catalog.create_ingredient(db, payload)
    except BatchCalcError as exc:
        raise http_error(db, exc) from exc


@router.put("/{ingredient_id}", response_model=schemas.IngredientOut)
def update_ingredient(
    ingredient_id: str,
    payload: schemas.IngredientUpdate,
    db: Session = Depends(get_db),
):
    try:
        return catalog.update_ingredient(db, parse_uuid(ingredient_id), payload)
    except BatchCalcError as exc:
        raise http_error(db, exc) from exc


@router.delete("/{ingredient_id}", response_model=schemas.IngredientDeleteResponse)
def delete_ingredient(ingredient_id: str, db: Session = Depends(get_db)):
    try:
        deleted = catalog.delete_ingredient(db, parse_uuid(ingredient_id))
    except BatchCalcError as exc:
        raise http_error(db, exc) from exc
    return {"message": "Ingredient deleted successfully", "deleted": deleted}
