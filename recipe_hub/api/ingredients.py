# api/ingredients.py
# Ingredient reference data: public reads, admin-managed writes.

import logging
from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query, Response, status
from sqlalchemy.orm import Session

from recipe_hub import crud, models, schemas
from recipe_hub.api.auth import get_current_admin
from recipe_hub.db.session import get_db

router = APIRouter()

logger = logging.getLogger(__name__)


@router.get("/", response_model=schemas.ApiResponse[schemas.Page[schemas.Ingredient]])
def read_ingredients(
    response: Response,
    page: int = Query(1, ge=1),
    limit: int = Query(50, ge=1, le=200),
    search: Optional[str] = None,
    category: Optional[models.IngredientCategory] = None,
    db: Session = Depends(get_db),
):
    ingredients, total = crud.list_ingredients(db, page=page, limit=limit, search=search, category=category)
    response.headers["X-Total-Count"] = str(total)
    return {"data": crud.build_page(ingredients, total, page, limit)}


@router.get("/{ingredient_id}", response_model=schemas.ApiResponse[schemas.Ingredient])
def read_ingredient(ingredient_id: UUID, db: Session = Depends(get_db)):
    return {"data": crud.get_ingredient_or_404(db, ingredient_id)}


@router.post("/", response_model=schemas.ApiResponse[schemas.Ingredient], status_code=status.HTTP_201_CREATED)
def create_ingredient(
    ingredient: schemas.IngredientCreate,
    db: Session = Depends(get_db),
    current_user: models.User = Depends(get_current_admin),
):
    db_ingredient = crud.create_ingredient(db, ingredient)
    logger.info(f"Ingredient '{db_ingredient.name}' created by {current_user.email}")
    return {"message": "Ingredient created successfully", "data": db_ingredient}


@router.patch("/{ingredient_id}", response_model=schemas.ApiResponse[schemas.Ingredient])
def update_ingredient(
    ingredient_id: UUID,
    ingredient: schemas.IngredientUpdate,
    db: Session = Depends(get_db),
    current_user: models.User = Depends(get_current_admin),
):
    db_ingredient = crud.get_ingredient_or_404(db, ingredient_id)
    return {
        "message": "Ingredient updated successfully",
        "data": crud.update_ingredient(db, db_ingredient, ingredient),
    }


@router.delete("/{ingredient_id}", response_model=schemas.ApiResponse[None])
def delete_ingredient(
    ingredient_id: UUID,
    db: Session = Depends(get_db),
    current_user: models.User = Depends(get_current_admin),
):
    """
    Delete an ingredient. Refused with 409 while any recipe still uses it.
    """
    db_ingredient = crud.get_ingredient_or_404(db, ingredient_id)
    crud.delete_ingredient(db, db_ingredient)
    return {"message": "Ingredient deleted successfully"}
