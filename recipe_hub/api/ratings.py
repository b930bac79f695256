# api/ratings.py
# Star ratings and comments on recipes.

import logging
from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query, Response, status
from sqlalchemy.orm import Session

from recipe_hub import constants as c
from recipe_hub import crud, models, policy, schemas
from recipe_hub.api.auth import get_current_active_user, get_optional_user
from recipe_hub.db.session import get_db

router = APIRouter()

logger = logging.getLogger(__name__)

RatingEnvelope = schemas.ApiResponse[schemas.Rating]


@router.get("/", response_model=schemas.ApiResponse[schemas.Page[schemas.Rating]])
def read_ratings(
    response: Response,
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    recipe_id: Optional[UUID] = Query(None, alias="recipeId"),
    user_id: Optional[UUID] = Query(None, alias="userId"),
    min_rating: Optional[int] = Query(None, alias="minRating", ge=c.RATING_MIN, le=c.RATING_MAX),
    max_rating: Optional[int] = Query(None, alias="maxRating", ge=c.RATING_MIN, le=c.RATING_MAX),
    with_comments: Optional[bool] = Query(None, alias="withComments"),
    sort: Optional[str] = Query(None, description="newest, oldest, highest or lowest"),
    db: Session = Depends(get_db),
):
    """
    List ratings on published recipes.
    """
    ratings, total = crud.list_ratings(
        db,
        page=page,
        limit=limit,
        recipe_id=recipe_id,
        user_id=user_id,
        min_rating=min_rating,
        max_rating=max_rating,
        with_comments=with_comments,
        sort=sort,
    )
    response.headers["X-Total-Count"] = str(total)
    return {"data": crud.build_page(ratings, total, page, limit)}


@router.post("/", response_model=RatingEnvelope, status_code=status.HTTP_201_CREATED)
def create_rating(
    rating: schemas.RatingCreate,
    db: Session = Depends(get_db),
    current_user: models.User = Depends(get_current_active_user),
):
    """
    Rate a recipe from 1 to 5 stars. Each user rates a recipe once; authors
    cannot rate their own recipes.
    """
    db_rating = crud.create_rating(db, rating, current_user)
    return {"message": "Rating created successfully", "data": db_rating}


@router.get("/my", response_model=schemas.ApiResponse[schemas.UserRatings])
def read_my_ratings(db: Session = Depends(get_db), current_user: models.User = Depends(get_current_active_user)):
    return {"data": crud.user_ratings(db, current_user.id, published_only=False)}


@router.get("/user/{user_id}", response_model=schemas.ApiResponse[schemas.UserRatings])
def read_user_ratings(user_id: UUID, db: Session = Depends(get_db)):
    crud.get_user_or_404(db, user_id)
    return {"data": crud.user_ratings(db, user_id)}


@router.get("/recipe/{recipe_id}/summary", response_model=schemas.ApiResponse[schemas.RatingSummary])
def read_recipe_rating_summary(
    recipe_id: UUID,
    db: Session = Depends(get_db),
    current_user: Optional[models.User] = Depends(get_optional_user),
):
    """
    Average, count, star distribution and the most recent ratings of a recipe.
    """
    db_recipe = crud.get_recipe_or_404(db, recipe_id)
    policy.enforce(current_user, policy.Action.READ_RECIPE, db_recipe)
    return {"data": crud.rating_summary(db, db_recipe)}


@router.get("/recipe/{recipe_id}/mine", response_model=schemas.ApiResponse[Optional[schemas.Rating]])
def read_my_recipe_rating(
    recipe_id: UUID,
    db: Session = Depends(get_db),
    current_user: models.User = Depends(get_current_active_user),
):
    # data is null when the caller has not rated the recipe yet
    crud.get_recipe_or_404(db, recipe_id)
    return {"data": crud.get_user_rating(db, current_user.id, recipe_id)}


@router.get("/{rating_id}", response_model=RatingEnvelope)
def read_rating(
    rating_id: UUID,
    db: Session = Depends(get_db),
    current_user: Optional[models.User] = Depends(get_optional_user),
):
    db_rating = crud.get_rating_or_404(db, rating_id)
    policy.enforce(current_user, policy.Action.READ_RECIPE, db_rating.recipe)
    return {"data": db_rating}


@router.patch("/{rating_id}", response_model=RatingEnvelope)
def update_rating(
    rating_id: UUID,
    rating: schemas.RatingUpdate,
    db: Session = Depends(get_db),
    current_user: models.User = Depends(get_current_active_user),
):
    db_rating = crud.get_rating_or_404(db, rating_id)
    db_rating = crud.update_rating(db, db_rating, rating, acting_user=current_user)
    return {"message": "Rating updated successfully", "data": db_rating}


@router.delete("/{rating_id}", response_model=schemas.ApiResponse[None])
def delete_rating(
    rating_id: UUID,
    db: Session = Depends(get_db),
    current_user: models.User = Depends(get_current_active_user),
):
    db_rating = crud.get_rating_or_404(db, rating_id)
    crud.delete_rating(db, db_rating, acting_user=current_user)
    return {"message": "Rating deleted successfully"}
