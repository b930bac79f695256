# api/users.py
# User administration and self-service profile endpoints.

import logging
from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query, Response, status
from sqlalchemy.orm import Session

from recipe_hub import crud, models, policy, schemas
from recipe_hub.api.auth import get_current_active_user, get_current_admin
from recipe_hub.db.session import get_db

router = APIRouter()

logger = logging.getLogger(__name__)


@router.get("/", response_model=schemas.ApiResponse[schemas.Page[schemas.User]])
def list_users(
    response: Response,
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    search: Optional[str] = None,
    role: Optional[models.UserRole] = None,
    db: Session = Depends(get_db),
    current_user: models.User = Depends(get_current_admin),
):
    """
    List users. Admin only.
    """
    users, total = crud.list_users(db, page=page, limit=limit, search=search, role=role)
    response.headers["X-Total-Count"] = str(total)
    return {"data": crud.build_page(users, total, page, limit)}


@router.post("/", response_model=schemas.ApiResponse[schemas.User], status_code=status.HTTP_201_CREATED)
def create_user(
    user_in: schemas.AdminUserCreate,
    db: Session = Depends(get_db),
    current_user: models.User = Depends(get_current_admin),
):
    user = crud.admin_create_user(db, user_in)
    logger.info(f"Admin {current_user.email} created user {user.email}")
    return {"message": "User created successfully", "data": user}


@router.get("/stats", response_model=schemas.ApiResponse[schemas.UserStats])
def read_user_stats(db: Session = Depends(get_db), current_user: models.User = Depends(get_current_admin)):
    return {"data": crud.user_stats(db)}


@router.get("/profile", response_model=schemas.ApiResponse[schemas.User])
def read_profile(current_user: models.User = Depends(get_current_active_user)):
    return {"data": current_user}


@router.patch("/profile", response_model=schemas.ApiResponse[schemas.User])
def update_profile(
    profile: schemas.ProfileUpdate,
    db: Session = Depends(get_db),
    current_user: models.User = Depends(get_current_active_user),
):
    """
    Update the caller's own avatar and bio. Name and email cannot be changed.
    """
    user = crud.update_profile(db, current_user, profile)
    return {"message": "Profile updated successfully", "data": user}


# --- Favorites ---

@router.get("/favorites", response_model=schemas.ApiResponse[schemas.Page[schemas.Favorite]])
def list_favorites(
    response: Response,
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    db: Session = Depends(get_db),
    current_user: models.User = Depends(get_current_active_user),
):
    favorites, total = crud.list_favorites(db, current_user, page=page, limit=limit)
    response.headers["X-Total-Count"] = str(total)
    return {"data": crud.build_page(favorites, total, page, limit)}


@router.post(
    "/favorites", response_model=schemas.ApiResponse[schemas.Favorite], status_code=status.HTTP_201_CREATED
)
def add_favorite(
    favorite: schemas.FavoriteCreate,
    db: Session = Depends(get_db),
    current_user: models.User = Depends(get_current_active_user),
):
    db_favorite = crud.add_favorite(db, current_user, favorite.recipe_id)
    return {"message": "Recipe added to favorites", "data": db_favorite}


@router.get("/favorites/recipe-ids", response_model=schemas.ApiResponse[schemas.FavoriteRecipeIds])
def read_favorite_recipe_ids(
    db: Session = Depends(get_db),
    current_user: models.User = Depends(get_current_active_user),
):
    return {"data": {"recipe_ids": crud.favorite_recipe_ids(db, current_user)}}


@router.get("/favorites/{recipe_id}/check", response_model=schemas.ApiResponse[schemas.FavoriteStatus])
def check_favorite(
    recipe_id: UUID,
    db: Session = Depends(get_db),
    current_user: models.User = Depends(get_current_active_user),
):
    return {"data": {"is_favorite": crud.get_favorite(db, current_user.id, recipe_id) is not None}}


@router.delete("/favorites/{recipe_id}", response_model=schemas.ApiResponse[None])
def remove_favorite(
    recipe_id: UUID,
    db: Session = Depends(get_db),
    current_user: models.User = Depends(get_current_active_user),
):
    crud.remove_favorite(db, current_user, recipe_id)
    return {"message": "Recipe removed from favorites"}


@router.get("/{user_id}", response_model=schemas.ApiResponse[schemas.User])
def read_user(
    user_id: UUID,
    db: Session = Depends(get_db),
    current_user: models.User = Depends(get_current_active_user),
):
    db_user = crud.get_user_or_404(db, user_id)
    policy.enforce(current_user, policy.Action.UPDATE_USER, db_user, message="You can only view your own account")
    return {"data": db_user}


@router.patch("/{user_id}", response_model=schemas.ApiResponse[schemas.User])
def update_user(
    user_id: UUID,
    user_update: schemas.AdminUserUpdate,
    db: Session = Depends(get_db),
    current_user: models.User = Depends(get_current_admin),
):
    """
    Admin update of role, active flag, avatar or bio. Admins cannot change their own role.
    """
    db_user = crud.get_user_or_404(db, user_id)
    user = crud.admin_update_user(db, db_user, user_update, acting_user=current_user)
    return {"message": "User updated successfully", "data": user}


@router.delete("/{user_id}", response_model=schemas.ApiResponse[None])
def delete_user(
    user_id: UUID,
    db: Session = Depends(get_db),
    current_user: models.User = Depends(get_current_admin),
):
    db_user = crud.get_user_or_404(db, user_id)
    policy.enforce(current_user, policy.Action.DELETE_USER, db_user)
    crud.delete_user(db, db_user)
    logger.info(f"Admin {current_user.email} deleted user {user_id}")
    return {"message": "User deleted successfully"}
