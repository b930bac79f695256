# api/recipes.py
# Handles all API endpoints related to recipes.

import logging
from typing import List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query, Response, status
from sqlalchemy.orm import Session

# Import local modules
from recipe_hub import crud, models, policy, schemas
from recipe_hub.api.auth import get_current_active_user, get_current_admin, get_optional_user
from recipe_hub.db.session import get_db

# Create an API router
router = APIRouter()

# Get a logger instance
logger = logging.getLogger(__name__)

RecipePage = schemas.ApiResponse[schemas.Page[schemas.RecipeSummary]]
RecipeEnvelope = schemas.ApiResponse[schemas.Recipe]


class RecipeListParams:
    """Query parameters shared by the recipe list endpoints."""

    def __init__(
        self,
        page: int = Query(1, ge=1),
        limit: int = Query(10, ge=1, le=100),
        category_id: Optional[UUID] = Query(None, alias="categoryId"),
        difficulty: Optional[models.DifficultyLevel] = None,
        search: Optional[str] = None,
        tags: Optional[str] = Query(None, description="Comma-separated; matches recipes with any of the tags"),
        author_id: Optional[UUID] = Query(None, alias="authorId"),
        max_prep_time: Optional[int] = Query(None, alias="maxPrepTime", ge=0),
        max_cook_time: Optional[int] = Query(None, alias="maxCookTime", ge=0),
        min_servings: Optional[int] = Query(None, alias="minServings", ge=0),
        max_servings: Optional[int] = Query(None, alias="maxServings", ge=0),
        is_featured: Optional[bool] = Query(None, alias="isFeatured"),
        sort: Optional[str] = Query(None, description="e.g. 'title,-createdAt'"),
    ):
        self.page = page
        self.limit = limit
        self.sort = sort
        self.filters = {
            "category_id": category_id,
            "difficulty": difficulty,
            "search": search,
            "tags": tags,
            "author_id": author_id,
            "max_prep_time": max_prep_time,
            "max_cook_time": max_cook_time,
            "min_servings": min_servings,
            "max_servings": max_servings,
            "is_featured": is_featured,
        }


def _page_response(response: Response, params: RecipeListParams, recipes, total) -> dict:
    response.headers["X-Total-Count"] = str(total)
    return {"data": crud.build_page(recipes, total, params.page, params.limit)}


@router.get("/", response_model=RecipePage)
def read_recipes(
    response: Response,
    params: RecipeListParams = Depends(),
    status_filter: Optional[models.RecipeStatus] = Query(None, alias="status"),
    db: Session = Depends(get_db),
    current_user: Optional[models.User] = Depends(get_optional_user),
):
    """
    Retrieve published recipes. Admins see every status and may filter by it.
    """
    is_admin = policy.is_allowed(current_user, policy.Action.VIEW_ADMIN)
    filter_args = dict(params.filters)
    if is_admin:
        filter_args["status"] = status_filter
    recipes, total = crud.list_recipes(
        db, page=params.page, limit=params.limit, sort=params.sort, published_only=not is_admin, **filter_args
    )
    return _page_response(response, params, recipes, total)


@router.get("/my/recipes", response_model=RecipePage)
def read_my_recipes(
    response: Response,
    params: RecipeListParams = Depends(),
    status_filter: Optional[models.RecipeStatus] = Query(None, alias="status"),
    db: Session = Depends(get_db),
    current_user: models.User = Depends(get_current_active_user),
):
    """
    The caller's own recipes in every status.
    """
    filter_args = dict(params.filters, author_id=current_user.id, status=status_filter)
    recipes, total = crud.list_recipes(
        db, page=params.page, limit=params.limit, sort=params.sort, published_only=False, **filter_args
    )
    return _page_response(response, params, recipes, total)


@router.get("/author/{user_id}", response_model=RecipePage)
def read_author_recipes(
    user_id: UUID,
    response: Response,
    params: RecipeListParams = Depends(),
    db: Session = Depends(get_db),
):
    crud.get_user_or_404(db, user_id)
    filter_args = dict(params.filters, author_id=user_id)
    recipes, total = crud.list_recipes(
        db, page=params.page, limit=params.limit, sort=params.sort, published_only=True, **filter_args
    )
    return _page_response(response, params, recipes, total)


@router.get("/admin/stats", response_model=schemas.ApiResponse[schemas.RecipeStats])
def read_recipe_stats(db: Session = Depends(get_db), current_user: models.User = Depends(get_current_admin)):
    return {"data": crud.recipe_stats(db)}


@router.get("/featured", response_model=schemas.ApiResponse[List[schemas.RecipeSummary]])
def read_featured_recipes(limit: int = Query(6, ge=1, le=50), db: Session = Depends(get_db)):
    """
    Published recipes picked by an admin, most liked first.
    """
    return {"data": crud.list_featured_recipes(db, limit=limit)}


@router.post("/", response_model=RecipeEnvelope, status_code=status.HTTP_201_CREATED)
def create_recipe(
    recipe: schemas.RecipeCreate,
    db: Session = Depends(get_db),
    current_user: models.User = Depends(get_current_active_user),
):
    """
    Create a new recipe for the currently authenticated user.
    """
    logger.debug(f"User {current_user.email} is creating a new recipe.")
    db_recipe = crud.create_recipe(db=db, recipe=recipe, author=current_user)
    return {"message": "Recipe created successfully", "data": db_recipe}


@router.get("/{recipe_id}", response_model=RecipeEnvelope)
def read_recipe(
    recipe_id: UUID,
    db: Session = Depends(get_db),
    current_user: Optional[models.User] = Depends(get_optional_user),
):
    """
    Retrieve a single recipe. Drafts and archived recipes are visible only to
    their author and admins. Reading a published recipe counts as a view.
    """
    logger.debug(f"Fetching recipe with ID: {recipe_id}")
    db_recipe = crud.get_recipe_or_404(db, recipe_id)
    policy.enforce(current_user, policy.Action.READ_RECIPE, db_recipe)
    if db_recipe.status == models.RecipeStatus.PUBLISHED:
        db_recipe = crud.increment_views(db, db_recipe)
    return {"data": db_recipe}


@router.patch("/{recipe_id}", response_model=RecipeEnvelope)
def update_recipe(
    recipe_id: UUID,
    recipe: schemas.RecipeUpdate,
    db: Session = Depends(get_db),
    current_user: models.User = Depends(get_current_active_user),
):
    """
    Update a recipe. Only the author or an admin can perform this action.
    """
    logger.debug(f"User {current_user.email} is updating recipe with ID: {recipe_id}")
    db_recipe = crud.get_recipe_or_404(db, recipe_id)
    policy.enforce(current_user, policy.Action.UPDATE_RECIPE, db_recipe)
    db_recipe = crud.update_recipe(db=db, db_recipe=db_recipe, recipe_update=recipe)
    return {"message": "Recipe updated successfully", "data": db_recipe}


@router.delete("/{recipe_id}", response_model=schemas.ApiResponse[None])
def delete_recipe(
    recipe_id: UUID,
    db: Session = Depends(get_db),
    current_user: models.User = Depends(get_current_active_user),
):
    """
    Delete a recipe. Only the author or an admin can perform this action.
    """
    logger.debug(f"User {current_user.email} is deleting recipe with ID: {recipe_id}")
    db_recipe = crud.get_recipe_or_404(db, recipe_id)
    policy.enforce(current_user, policy.Action.DELETE_RECIPE, db_recipe)
    crud.delete_recipe(db=db, db_recipe=db_recipe)
    return {"message": "Recipe deleted successfully"}


# --- Lifecycle Endpoints ---

def _change_status(
    db: Session,
    recipe_id: UUID,
    target: models.RecipeStatus,
    current_user: models.User,
    source: Optional[models.RecipeStatus] = None,
):
    db_recipe = crud.get_recipe_or_404(db, recipe_id)
    return crud.change_recipe_status(db, db_recipe, target, current_user, source)


@router.post("/{recipe_id}/publish", response_model=RecipeEnvelope)
def publish_recipe(
    recipe_id: UUID,
    db: Session = Depends(get_db),
    current_user: models.User = Depends(get_current_active_user),
):
    db_recipe = _change_status(db, recipe_id, models.RecipeStatus.PUBLISHED, current_user)
    return {"message": "Recipe published successfully", "data": db_recipe}


@router.post("/{recipe_id}/unpublish", response_model=RecipeEnvelope)
def unpublish_recipe(
    recipe_id: UUID,
    db: Session = Depends(get_db),
    current_user: models.User = Depends(get_current_active_user),
):
    db_recipe = _change_status(
        db, recipe_id, models.RecipeStatus.DRAFT, current_user, source=models.RecipeStatus.PUBLISHED
    )
    return {"message": "Recipe unpublished successfully", "data": db_recipe}


@router.post("/{recipe_id}/archive", response_model=RecipeEnvelope)
def archive_recipe(
    recipe_id: UUID,
    db: Session = Depends(get_db),
    current_user: models.User = Depends(get_current_active_user),
):
    db_recipe = _change_status(db, recipe_id, models.RecipeStatus.ARCHIVED, current_user)
    return {"message": "Recipe archived successfully", "data": db_recipe}


@router.post("/{recipe_id}/restore", response_model=RecipeEnvelope)
def restore_recipe(
    recipe_id: UUID,
    db: Session = Depends(get_db),
    current_user: models.User = Depends(get_current_active_user),
):
    """
    Bring an archived recipe back as a draft. Admin only.
    """
    db_recipe = _change_status(
        db, recipe_id, models.RecipeStatus.DRAFT, current_user, source=models.RecipeStatus.ARCHIVED
    )
    return {"message": "Recipe restored successfully", "data": db_recipe}


@router.delete("/{recipe_id}/steps/{step_number}", response_model=RecipeEnvelope)
def remove_step(
    recipe_id: UUID,
    step_number: int,
    db: Session = Depends(get_db),
    current_user: models.User = Depends(get_current_active_user),
):
    """
    Remove one step; the remaining steps are renumbered from 1.
    """
    db_recipe = crud.get_recipe_or_404(db, recipe_id)
    policy.enforce(current_user, policy.Action.UPDATE_RECIPE, db_recipe)
    db_recipe = crud.remove_recipe_step(db, db_recipe, step_number)
    return {"message": "Step removed successfully", "data": db_recipe}


# --- Likes ---

@router.post("/{recipe_id}/like", response_model=RecipeEnvelope)
def like_recipe(
    recipe_id: UUID,
    db: Session = Depends(get_db),
    current_user: models.User = Depends(get_current_active_user),
):
    db_recipe = crud.get_recipe_or_404(db, recipe_id)
    policy.enforce(current_user, policy.Action.READ_RECIPE, db_recipe)
    return {"message": "Recipe liked", "data": crud.like_recipe(db, db_recipe)}


@router.delete("/{recipe_id}/like", response_model=RecipeEnvelope)
def unlike_recipe(
    recipe_id: UUID,
    db: Session = Depends(get_db),
    current_user: models.User = Depends(get_current_active_user),
):
    db_recipe = crud.get_recipe_or_404(db, recipe_id)
    policy.enforce(current_user, policy.Action.READ_RECIPE, db_recipe)
    return {"message": "Recipe unliked", "data": crud.unlike_recipe(db, db_recipe)}


# --- Featured ---

@router.patch("/{recipe_id}/toggle-featured", response_model=RecipeEnvelope)
def toggle_featured(
    recipe_id: UUID,
    db: Session = Depends(get_db),
    current_user: models.User = Depends(get_current_admin),
):
    """
    Flip the featured flag of a recipe. Admin only.
    """
    db_recipe = crud.get_recipe_or_404(db, recipe_id)
    db_recipe = crud.toggle_featured(db, db_recipe)
    message = "Recipe featured" if db_recipe.is_featured else "Recipe unfeatured"
    return {"message": message, "data": db_recipe}
