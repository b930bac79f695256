# api/categories.py
# Recipe categories: public reads, admin-managed writes.

import logging
from typing import List
from uuid import UUID

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from recipe_hub import crud, models, schemas
from recipe_hub.api.auth import get_current_admin
from recipe_hub.db.session import get_db
from recipe_hub.errors import NotFoundError

router = APIRouter()

logger = logging.getLogger(__name__)


@router.get("/", response_model=schemas.ApiResponse[List[schemas.Category]])
def read_categories(db: Session = Depends(get_db)):
    return {"data": crud.list_categories(db)}


@router.get("/slug/{slug}", response_model=schemas.ApiResponse[schemas.Category])
def read_category_by_slug(slug: str, db: Session = Depends(get_db)):
    db_category = crud.get_category_by_slug(db, slug)
    if db_category is None:
        raise NotFoundError.for_resource("Category", slug)
    return {"data": db_category}


@router.get("/{category_id}", response_model=schemas.ApiResponse[schemas.Category])
def read_category(category_id: UUID, db: Session = Depends(get_db)):
    return {"data": crud.get_category_or_404(db, category_id)}


@router.post("/", response_model=schemas.ApiResponse[schemas.Category], status_code=status.HTTP_201_CREATED)
def create_category(
    category: schemas.CategoryCreate,
    db: Session = Depends(get_db),
    current_user: models.User = Depends(get_current_admin),
):
    db_category = crud.create_category(db, category)
    logger.info(f"Category '{db_category.name}' created by {current_user.email}")
    return {"message": "Category created successfully", "data": db_category}


@router.patch("/{category_id}", response_model=schemas.ApiResponse[schemas.Category])
def update_category(
    category_id: UUID,
    category: schemas.CategoryUpdate,
    db: Session = Depends(get_db),
    current_user: models.User = Depends(get_current_admin),
):
    db_category = crud.get_category_or_404(db, category_id)
    return {"message": "Category updated successfully", "data": crud.update_category(db, db_category, category)}


@router.delete("/{category_id}", response_model=schemas.ApiResponse[None])
def delete_category(
    category_id: UUID,
    db: Session = Depends(get_db),
    current_user: models.User = Depends(get_current_admin),
):
    """
    Delete a category. Refused with 409 while any recipe still uses it.
    """
    db_category = crud.get_category_or_404(db, category_id)
    crud.delete_category(db, db_category)
    logger.info(f"Category {category_id} deleted by {current_user.email}")
    return {"message": "Category deleted successfully"}
