# crud.py
# Contains the functions for Create, Read, Update, Delete (CRUD) operations.

import logging
import math
import re
from datetime import datetime, timezone
from decimal import Decimal
from typing import List, Optional, Tuple
from uuid import UUID

from passlib.context import CryptContext
from sqlalchemy import func, or_
from sqlalchemy.orm import Query, Session, joinedload, selectinload

from recipe_hub import constants as c
from recipe_hub import filters, lifecycle, models, policy, schemas
from recipe_hub.core.config import settings
from recipe_hub.db.session import atomic
from recipe_hub.errors import ConflictError, NotFoundError, ValidationFailed
from recipe_hub.validation import (
    FieldError,
    ensure_valid,
    field_path,
    validate_category,
    validate_ingredient,
    validate_profile,
    validate_rating,
    validate_recipe,
    validate_registration,
)

pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto", bcrypt__rounds=settings.BCRYPT_ROUNDS)

# Get a logger instance
logger = logging.getLogger(__name__)


def verify_password(plain_password, hashed_password):
    return pwd_context.verify(plain_password, hashed_password)


def get_password_hash(password):
    return pwd_context.hash(password)


def paginate(query: Query, page: int, limit: int) -> Tuple[list, int]:
    total = query.order_by(None).count()
    items = query.offset((page - 1) * limit).limit(limit).all()
    return items, total


def build_page(items: list, total: int, page: int, limit: int) -> dict:
    total_pages = math.ceil(total / limit) if limit else 0
    return {
        "data": items,
        "total": total,
        "page": page,
        "limit": limit,
        "total_pages": total_pages,
        "has_next": page < total_pages,
        "has_prev": page > 1,
    }


WHOLE_NUMBER_FIELDS = ("prep_time_minutes", "cook_time_minutes", "servings")


def _as_int(value):
    # Validated numbers may arrive as whole floats such as 30.0
    return None if value is None else int(value)


# --- User CRUD Functions ---

def get_user(db: Session, user_id: UUID):
    return db.query(models.User).filter(models.User.id == user_id).first()


def get_user_or_404(db: Session, user_id: UUID) -> models.User:
    db_user = get_user(db, user_id)
    if db_user is None:
        raise NotFoundError.for_resource("User", user_id)
    return db_user


def get_user_by_email(db: Session, email: str):
    return db.query(models.User).filter(models.User.email == email.lower()).first()


def list_users(
    db: Session,
    page: int = 1,
    limit: int = 10,
    search: Optional[str] = None,
    role: Optional[models.UserRole] = None,
):
    query = db.query(models.User)
    if search:
        pattern = f"%{search}%"
        query = query.filter(
            models.User.email.ilike(pattern)
            | models.User.first_name.ilike(pattern)
            | models.User.last_name.ilike(pattern)
        )
    if role is not None:
        query = query.filter(models.User.role == role)
    return paginate(query.order_by(models.User.created_at.desc(), models.User.id), page, limit)


def create_user(
    db: Session,
    email: str,
    password: str,
    first_name: str,
    last_name: str,
    role: models.UserRole = models.UserRole.USER,
    avatar: Optional[str] = None,
    bio: Optional[str] = None,
) -> models.User:
    email = email.lower()
    if get_user_by_email(db, email):
        logger.warning(f"Attempt to create duplicate user {email}")
        raise ConflictError("User with this email already exists", {"field": "email"})

    db_user = models.User(
        email=email,
        hashed_password=get_password_hash(password),
        first_name=first_name,
        last_name=last_name,
        role=role,
        avatar=avatar,
        bio=bio,
    )
    db.add(db_user)
    db.commit()
    db.refresh(db_user)
    logger.info(f"Created user {db_user.id} with role {role.value}")
    return db_user


def register_user(db: Session, data: schemas.RegisterRequest) -> models.User:
    ensure_valid(validate_registration(data.model_dump()))
    return create_user(
        db,
        email=data.email,
        password=data.password,
        first_name=data.first_name,
        last_name=data.last_name,
        avatar=data.avatar,
        bio=data.bio,
    )


def admin_create_user(db: Session, data: schemas.AdminUserCreate) -> models.User:
    ensure_valid(validate_registration(data.model_dump()))
    return create_user(
        db,
        email=data.email,
        password=data.password,
        first_name=data.first_name,
        last_name=data.last_name,
        role=data.role,
        avatar=data.avatar,
        bio=data.bio,
    )


def authenticate_user(db: Session, email: str, password: str) -> Optional[models.User]:
    db_user = get_user_by_email(db, email)
    if not db_user or not verify_password(password, db_user.hashed_password):
        return None
    return db_user


def record_login(db: Session, db_user: models.User) -> models.User:
    db_user.last_login_at = datetime.now(timezone.utc)
    db.commit()
    db.refresh(db_user)
    return db_user


def update_profile(db: Session, db_user: models.User, profile: schemas.ProfileUpdate) -> models.User:
    update_data = profile.model_dump(exclude_unset=True, include={"avatar", "bio"})
    ensure_valid(validate_profile(update_data))
    for key, value in update_data.items():
        setattr(db_user, key, value)
    db.commit()
    db.refresh(db_user)
    return db_user


def admin_update_user(
    db: Session, db_user: models.User, user_update: schemas.AdminUserUpdate, acting_user: models.User
) -> models.User:
    update_data = user_update.model_dump(exclude_unset=True)
    if "role" in update_data and update_data["role"] != db_user.role:
        policy.enforce(acting_user, policy.Action.CHANGE_ROLE, db_user)
    ensure_valid(validate_profile(update_data))

    for key, value in update_data.items():
        if key in ("role", "is_active") and value is None:
            continue
        setattr(db_user, key, value)
    db.commit()
    db.refresh(db_user)
    logger.info(f"User {db_user.id} updated by {acting_user.email}: {sorted(update_data)}")
    return db_user


def change_password(db: Session, db_user: models.User, new_password: str) -> models.User:
    db_user.hashed_password = get_password_hash(new_password)
    db.commit()
    db.refresh(db_user)
    return db_user


def delete_user(db: Session, db_user: models.User) -> None:
    recipe_count = db.query(models.Recipe).filter(models.Recipe.author_id == db_user.id).count()
    if recipe_count:
        raise ConflictError(
            f"Cannot delete user. User has {recipe_count} associated recipe(s). "
            "Please delete the recipes first or deactivate the user instead."
        )
    rated_recipe_ids = [r.recipe_id for r in db_user.ratings]
    with atomic(db):
        db.delete(db_user)
        for recipe_id in rated_recipe_ids:
            _refresh_rating_stats(db, recipe_id)
    logger.info(f"Deleted user {db_user.id}")


def user_stats(db: Session) -> dict:
    total = db.query(models.User).count()
    active = db.query(models.User).filter(models.User.is_active.is_(True)).count()
    admins = db.query(models.User).filter(models.User.role == models.UserRole.ADMIN).count()
    return {
        "total_users": total,
        "active_users": active,
        "inactive_users": total - active,
        "admin_users": admins,
        "regular_users": total - admins,
    }


# --- Category CRUD Functions ---

def slugify(name: str) -> str:
    slug = re.sub(r"[^a-z0-9]+", "-", name.lower()).strip("-")
    return slug or "category"


def get_category(db: Session, category_id: UUID):
    return db.query(models.Category).filter(models.Category.id == category_id).first()


def get_category_or_404(db: Session, category_id: UUID) -> models.Category:
    db_category = get_category(db, category_id)
    if db_category is None:
        raise NotFoundError.for_resource("Category", category_id)
    return db_category


def get_category_by_slug(db: Session, slug: str):
    return db.query(models.Category).filter(models.Category.slug == slug).first()


def list_categories(db: Session):
    return db.query(models.Category).order_by(models.Category.sort_order, models.Category.name).all()


def _check_category_unique(db: Session, name: str, slug: str, exclude_id: Optional[UUID] = None) -> None:
    query = db.query(models.Category).filter(
        (func.lower(models.Category.name) == name.lower()) | (models.Category.slug == slug)
    )
    if exclude_id is not None:
        query = query.filter(models.Category.id != exclude_id)
    if query.first():
        raise ConflictError("Category with this name already exists", {"field": "name"})


def create_category(db: Session, category: schemas.CategoryCreate) -> models.Category:
    data = category.model_dump()
    ensure_valid(validate_category(data))
    slug = slugify(data["name"])
    _check_category_unique(db, data["name"], slug)

    db_category = models.Category(
        name=data["name"],
        slug=slug,
        description=data["description"],
        icon=data.get("icon"),
        sort_order=_as_int(data.get("sort_order")) or 0,
    )
    db.add(db_category)
    db.commit()
    db.refresh(db_category)
    return db_category


def update_category(db: Session, db_category: models.Category, category_update: schemas.CategoryUpdate):
    update_data = category_update.model_dump(exclude_unset=True)
    ensure_valid(validate_category(update_data, partial=True))
    if update_data.get("name") and update_data["name"] != db_category.name:
        slug = slugify(update_data["name"])
        _check_category_unique(db, update_data["name"], slug, exclude_id=db_category.id)
        db_category.slug = slug

    if update_data.get("sort_order") is not None:
        update_data["sort_order"] = _as_int(update_data["sort_order"])
    for key, value in update_data.items():
        if value is not None:
            setattr(db_category, key, value)
    db.commit()
    db.refresh(db_category)
    return db_category


def delete_category(db: Session, db_category: models.Category) -> None:
    in_use = db.query(models.Recipe).filter(models.Recipe.category_id == db_category.id).count()
    if in_use:
        raise ConflictError(
            f"Cannot delete category. It is used by {in_use} recipe(s).",
            {"recipes": in_use},
        )
    db.delete(db_category)
    db.commit()


# --- Ingredient CRUD Functions ---

def get_ingredient(db: Session, ingredient_id: UUID):
    return db.query(models.Ingredient).filter(models.Ingredient.id == ingredient_id).first()


def get_ingredient_or_404(db: Session, ingredient_id: UUID) -> models.Ingredient:
    db_ingredient = get_ingredient(db, ingredient_id)
    if db_ingredient is None:
        raise NotFoundError.for_resource("Ingredient", ingredient_id)
    return db_ingredient


def get_ingredient_by_name(db: Session, name: str):
    return (
        db.query(models.Ingredient)
        .filter(func.lower(models.Ingredient.name) == name.strip().lower())
        .first()
    )


def list_ingredients(
    db: Session,
    page: int = 1,
    limit: int = 50,
    search: Optional[str] = None,
    category: Optional[models.IngredientCategory] = None,
):
    query = db.query(models.Ingredient)
    if search:
        query = query.filter(models.Ingredient.name.ilike(f"%{search}%"))
    if category is not None:
        query = query.filter(models.Ingredient.category == category)
    return paginate(query.order_by(models.Ingredient.name, models.Ingredient.id), page, limit)


def create_ingredient(db: Session, ingredient: schemas.IngredientCreate) -> models.Ingredient:
    data = ingredient.model_dump()
    ensure_valid(validate_ingredient(data))
    if get_ingredient_by_name(db, data["name"]):
        raise ConflictError("Ingredient with this name already exists", {"field": "name"})

    db_ingredient = models.Ingredient(**{k: v for k, v in data.items() if v is not None})
    db.add(db_ingredient)
    db.commit()
    db.refresh(db_ingredient)
    return db_ingredient


def update_ingredient(db: Session, db_ingredient: models.Ingredient, ingredient_update: schemas.IngredientUpdate):
    update_data = ingredient_update.model_dump(exclude_unset=True)
    ensure_valid(validate_ingredient(update_data, partial=True))
    if update_data.get("name"):
        existing = get_ingredient_by_name(db, update_data["name"])
        if existing and existing.id != db_ingredient.id:
            raise ConflictError("Ingredient with this name already exists", {"field": "name"})

    for key, value in update_data.items():
        if value is None and key in ("name", "category", "default_unit", "description"):
            continue
        setattr(db_ingredient, key, value)
    db.commit()
    db.refresh(db_ingredient)
    return db_ingredient


def delete_ingredient(db: Session, db_ingredient: models.Ingredient) -> None:
    in_use = (
        db.query(models.RecipeIngredient)
        .filter(models.RecipeIngredient.ingredient_id == db_ingredient.id)
        .count()
    )
    if in_use:
        raise ConflictError(
            f"Cannot delete ingredient. It is used by {in_use} recipe(s).",
            {"recipes": in_use},
        )
    db.delete(db_ingredient)
    db.commit()


def get_or_create_ingredient(db: Session, name: str) -> models.Ingredient:
    """
    Find an ingredient by name (case-insensitive) or create it with defaults.
    Flushes so a second lookup in the same unit of work sees the new row.
    """
    name = name.strip()
    db_ingredient = get_ingredient_by_name(db, name)
    if db_ingredient is None:
        logger.debug(f"Creating ingredient '{name}' on the fly")
        db_ingredient = models.Ingredient(name=name)
        db.add(db_ingredient)
        db.flush()
    return db_ingredient


# --- Recipe CRUD Functions ---

def _recipe_query(db: Session) -> Query:
    return db.query(models.Recipe).options(
        joinedload(models.Recipe.author),
        joinedload(models.Recipe.category),
        selectinload(models.Recipe.ingredients).joinedload(models.RecipeIngredient.ingredient),
        selectinload(models.Recipe.steps),
    )


def get_recipe(db: Session, recipe_id: UUID):
    """
    Retrieve a single recipe with its author, category, ingredients and steps.
    """
    logger.debug(f"Retrieving recipe with id {recipe_id}")
    return _recipe_query(db).filter(models.Recipe.id == recipe_id).first()


def get_recipe_or_404(db: Session, recipe_id: UUID) -> models.Recipe:
    db_recipe = get_recipe(db, recipe_id)
    if db_recipe is None:
        logger.warning(f"Recipe with ID {recipe_id} not found.")
        raise NotFoundError.for_resource("Recipe", recipe_id)
    return db_recipe


def list_recipes(
    db: Session,
    page: int = 1,
    limit: int = 10,
    sort: Optional[str] = None,
    published_only: bool = True,
    **filter_args,
):
    """
    Retrieve a page of recipes plus the total count.
    ``filter_args`` are passed to ``filters.apply_filters``.
    """
    logger.debug(f"Listing recipes page={page} limit={limit} filters={filter_args}")
    query = _recipe_query(db)
    if published_only:
        query = query.filter(models.Recipe.status == models.RecipeStatus.PUBLISHED)
    query = filters.apply_filters(query, **filter_args)
    query = filters.apply_sorting(query, sort)
    return paginate(query, page, limit)


def _reference_errors(db: Session, data: dict) -> List[FieldError]:
    """Check that referenced category and ingredient ids exist."""
    errors = []
    if data.get("category_id") is not None and get_category(db, data["category_id"]) is None:
        errors.append(FieldError(field_path("category_id"), "Category not found"))
    for index, item in enumerate(data.get("ingredients") or []):
        ingredient_id = item.get("ingredient_id")
        if ingredient_id is not None and get_ingredient(db, ingredient_id) is None:
            errors.append(FieldError(field_path("ingredients", index, "ingredient_id"), "Ingredient not found"))
    return errors


def _build_ingredients(db: Session, items: List[schemas.RecipeIngredientCreate]) -> List[models.RecipeIngredient]:
    rows = []
    for position, item in enumerate(items, start=1):
        if item.ingredient_id is not None:
            ingredient = get_ingredient(db, item.ingredient_id)
        else:
            ingredient = get_or_create_ingredient(db, item.ingredient_name)
        rows.append(models.RecipeIngredient(
            ingredient=ingredient,
            quantity=Decimal(str(item.quantity)),
            unit=item.unit,
            preparation=item.preparation,
            is_optional=item.is_optional,
            position=position,
        ))
    return rows


def _build_steps(items: List[schemas.RecipeStepCreate]) -> List[models.RecipeStep]:
    # Validation guarantees numbers are either all absent or exactly 1..N
    numbered = all(item.step_number is not None for item in items)
    rows = [
        models.RecipeStep(
            step_number=int(item.step_number) if numbered else index,
            title=item.title,
            instructions=item.instructions,
            time_minutes=_as_int(item.time_minutes),
            temperature=item.temperature,
            tips=item.tips,
            equipment=list(item.equipment or []),
            image_url=item.image_url,
        )
        for index, item in enumerate(items, start=1)
    ]
    return sorted(rows, key=lambda step: step.step_number)


def create_recipe(db: Session, recipe: schemas.RecipeCreate, author: models.User) -> models.Recipe:
    """
    Create a recipe with its ingredients and steps in one transaction.
    New recipes start as draft unless ``published`` is requested explicitly.
    """
    logger.debug(f"User {author.email} creating recipe '{recipe.title}'")
    data = recipe.model_dump()
    errors = validate_recipe(data)
    if recipe.status == models.RecipeStatus.ARCHIVED:
        errors.append(FieldError("status", "New recipes can only be draft or published"))
    errors.extend(_reference_errors(db, data))
    ensure_valid(errors)

    with atomic(db):
        db_recipe = models.Recipe(
            title=recipe.title,
            description=recipe.description,
            instructions=recipe.instructions,
            prep_time_minutes=int(recipe.prep_time_minutes),
            cook_time_minutes=int(recipe.cook_time_minutes),
            servings=int(recipe.servings),
            difficulty=recipe.difficulty,
            status=models.RecipeStatus.DRAFT,
            category_id=recipe.category_id,
            image_url=recipe.image_url,
            tags=list(recipe.tags or []),
            nutritional_info=data["nutritional_info"],
            notes=recipe.notes,
            author_id=author.id,
            views_count=0,
            likes_count=0,
        )
        db_recipe.ingredients = _build_ingredients(db, recipe.ingredients)
        db_recipe.steps = _build_steps(recipe.steps)
        db.add(db_recipe)
        if recipe.status == models.RecipeStatus.PUBLISHED:
            lifecycle.transition(db_recipe, models.RecipeStatus.PUBLISHED)

    logger.info(f"Created recipe {db_recipe.id} by {author.email}")
    return get_recipe(db, db_recipe.id)


def update_recipe(db: Session, db_recipe: models.Recipe, recipe_update: schemas.RecipeUpdate) -> models.Recipe:
    """
    Apply a partial update. Sent ingredient/step lists replace the stored ones.
    """
    update_data = recipe_update.model_dump(exclude_unset=True)
    errors = validate_recipe(update_data, partial=True)
    errors.extend(_reference_errors(db, update_data))
    ensure_valid(errors)

    with atomic(db):
        for key, value in update_data.items():
            if key in ("ingredients", "steps"):
                continue
            if value is None and key in ("title", "description", "instructions", "difficulty", "category_id"):
                continue
            if key in WHOLE_NUMBER_FIELDS:
                value = _as_int(value)
            setattr(db_recipe, key, value)
        if recipe_update.ingredients is not None:
            db_recipe.ingredients = _build_ingredients(db, recipe_update.ingredients)
        if recipe_update.steps is not None:
            db_recipe.steps = _build_steps(recipe_update.steps)

    logger.info(f"Updated recipe {db_recipe.id}: {sorted(update_data)}")
    db.expire_all()
    return get_recipe(db, db_recipe.id)


def delete_recipe(db: Session, db_recipe: models.Recipe) -> None:
    with atomic(db):
        db.delete(db_recipe)
    logger.info(f"Deleted recipe {db_recipe.id}")


def change_recipe_status(
    db: Session,
    db_recipe: models.Recipe,
    target: models.RecipeStatus,
    acting_user: models.User,
    source: Optional[models.RecipeStatus] = None,
) -> models.Recipe:
    policy.enforce(acting_user, policy.Action.CHANGE_RECIPE_STATUS, db_recipe, target_status=target)
    with atomic(db):
        changed = lifecycle.transition(db_recipe, target, source)
    if not changed:
        logger.debug(f"Recipe {db_recipe.id} already {target.value}")
    return get_recipe(db, db_recipe.id)


def remove_recipe_step(db: Session, db_recipe: models.Recipe, step_number: int) -> models.Recipe:
    """Delete step ``step_number`` and renumber the remaining steps 1..N-1."""
    step = next((s for s in db_recipe.steps if s.step_number == step_number), None)
    if step is None:
        raise NotFoundError(f"Step {step_number} not found", {"resource": "RecipeStep", "id": str(step_number)})
    if len(db_recipe.steps) == 1:
        raise ValidationFailed(
            [FieldError("steps", "Recipe must have at least one step")],
            "Cannot remove the last step of a recipe",
        )

    with atomic(db):
        db_recipe.steps.remove(step)
        for number, remaining in enumerate(sorted(db_recipe.steps, key=lambda s: s.step_number), start=1):
            remaining.step_number = number

    db.expire_all()
    return get_recipe(db, db_recipe.id)


def _bump_counter(db: Session, recipe_id: UUID, column, delta: int) -> None:
    query = db.query(models.Recipe).filter(models.Recipe.id == recipe_id)
    if delta < 0:
        query = query.filter(column > 0)
    query.update({column: column + delta}, synchronize_session=False)
    db.commit()


def increment_views(db: Session, db_recipe: models.Recipe) -> models.Recipe:
    _bump_counter(db, db_recipe.id, models.Recipe.views_count, 1)
    db.refresh(db_recipe)
    return db_recipe


def like_recipe(db: Session, db_recipe: models.Recipe) -> models.Recipe:
    _bump_counter(db, db_recipe.id, models.Recipe.likes_count, 1)
    db.refresh(db_recipe)
    return db_recipe


def unlike_recipe(db: Session, db_recipe: models.Recipe) -> models.Recipe:
    _bump_counter(db, db_recipe.id, models.Recipe.likes_count, -1)
    db.refresh(db_recipe)
    return db_recipe


def recipe_stats(db: Session) -> dict:
    by_status = dict(
        db.query(models.Recipe.status, func.count(models.Recipe.id)).group_by(models.Recipe.status).all()
    )
    by_difficulty = dict(
        db.query(models.Recipe.difficulty, func.count(models.Recipe.id)).group_by(models.Recipe.difficulty).all()
    )
    avg_prep, avg_cook = db.query(
        func.avg(models.Recipe.prep_time_minutes), func.avg(models.Recipe.cook_time_minutes)
    ).one()
    return {
        "total_recipes": sum(by_status.values()),
        "published_recipes": by_status.get(models.RecipeStatus.PUBLISHED, 0),
        "draft_recipes": by_status.get(models.RecipeStatus.DRAFT, 0),
        "archived_recipes": by_status.get(models.RecipeStatus.ARCHIVED, 0),
        "featured_recipes": db.query(models.Recipe).filter(models.Recipe.is_featured.is_(True)).count(),
        "average_prep_time": round(float(avg_prep or 0), 1),
        "average_cook_time": round(float(avg_cook or 0), 1),
        "by_difficulty": {level.value: by_difficulty.get(level, 0) for level in models.DifficultyLevel},
    }


# --- Featured Recipes ---

def list_featured_recipes(db: Session, limit: int = 6) -> List[models.Recipe]:
    """Published recipes flagged as featured, most liked first."""
    return (
        _recipe_query(db)
        .filter(models.Recipe.status == models.RecipeStatus.PUBLISHED, models.Recipe.is_featured.is_(True))
        .order_by(models.Recipe.likes_count.desc(), models.Recipe.created_at.desc(), models.Recipe.id)
        .limit(limit)
        .all()
    )


def toggle_featured(db: Session, db_recipe: models.Recipe) -> models.Recipe:
    with atomic(db):
        db_recipe.is_featured = not db_recipe.is_featured
    logger.info(f"Recipe {db_recipe.id} featured={db_recipe.is_featured}")
    return get_recipe(db, db_recipe.id)


# --- Rating CRUD Functions ---

RATING_SORTS = {
    "newest": (models.Rating.created_at.desc(),),
    "oldest": (models.Rating.created_at.asc(),),
    "highest": (models.Rating.rating.desc(), models.Rating.created_at.desc()),
    "lowest": (models.Rating.rating.asc(), models.Rating.created_at.desc()),
}


def _rating_query(db: Session) -> Query:
    return db.query(models.Rating).options(joinedload(models.Rating.user))


def _published_ratings(query: Query) -> Query:
    return query.join(models.Rating.recipe).filter(models.Recipe.status == models.RecipeStatus.PUBLISHED)


def get_rating_or_404(db: Session, rating_id: UUID) -> models.Rating:
    db_rating = _rating_query(db).filter(models.Rating.id == rating_id).first()
    if db_rating is None:
        raise NotFoundError.for_resource("Rating", rating_id)
    return db_rating


def get_user_rating(db: Session, user_id: UUID, recipe_id: UUID) -> Optional[models.Rating]:
    return (
        _rating_query(db)
        .filter(models.Rating.user_id == user_id, models.Rating.recipe_id == recipe_id)
        .first()
    )


def list_ratings(
    db: Session,
    page: int = 1,
    limit: int = 10,
    recipe_id: Optional[UUID] = None,
    user_id: Optional[UUID] = None,
    min_rating: Optional[int] = None,
    max_rating: Optional[int] = None,
    with_comments: Optional[bool] = None,
    sort: Optional[str] = None,
):
    """
    Page through ratings of published recipes. Unknown ``sort`` values fall
    back to newest first.
    """
    query = _published_ratings(_rating_query(db))
    if recipe_id is not None:
        query = query.filter(models.Rating.recipe_id == recipe_id)
    if user_id is not None:
        query = query.filter(models.Rating.user_id == user_id)
    if min_rating is not None:
        query = query.filter(models.Rating.rating >= min_rating)
    if max_rating is not None:
        query = query.filter(models.Rating.rating <= max_rating)
    if with_comments is True:
        query = query.filter(models.Rating.comment.isnot(None), models.Rating.comment != "")
    elif with_comments is False:
        query = query.filter(or_(models.Rating.comment.is_(None), models.Rating.comment == ""))
    order = RATING_SORTS.get(sort or "newest", RATING_SORTS["newest"])
    return paginate(query.order_by(*order, models.Rating.id), page, limit)


def _refresh_rating_stats(db: Session, recipe_id: UUID) -> None:
    """Recompute a recipe's average rating and count from the ratings table."""
    db.flush()
    count, average = (
        db.query(func.count(models.Rating.id), func.avg(models.Rating.rating))
        .filter(models.Rating.recipe_id == recipe_id)
        .one()
    )
    db.query(models.Recipe).filter(models.Recipe.id == recipe_id).update(
        {
            models.Recipe.ratings_count: count,
            models.Recipe.average_rating: round(float(average or 0), 2),
        },
        synchronize_session=False,
    )


def create_rating(db: Session, rating_in: schemas.RatingCreate, user: models.User) -> models.Rating:
    data = rating_in.model_dump()
    ensure_valid(validate_rating(data))
    db_recipe = get_recipe_or_404(db, rating_in.recipe_id)
    policy.enforce(user, policy.Action.READ_RECIPE, db_recipe)
    if db_recipe.author_id == user.id:
        message = "You cannot rate your own recipe"
        raise ValidationFailed([FieldError("recipeId", message)], message)
    if get_user_rating(db, user.id, db_recipe.id) is not None:
        raise ConflictError("You have already rated this recipe. Use update instead.", {"field": "recipeId"})

    with atomic(db):
        db_rating = models.Rating(
            user_id=user.id,
            recipe_id=db_recipe.id,
            rating=int(data["rating"]),
            comment=data.get("comment"),
        )
        db.add(db_rating)
        _refresh_rating_stats(db, db_recipe.id)

    logger.info(f"User {user.email} rated recipe {db_recipe.id} with {db_rating.rating}")
    return get_rating_or_404(db, db_rating.id)


def update_rating(
    db: Session, db_rating: models.Rating, rating_update: schemas.RatingUpdate, acting_user: models.User
) -> models.Rating:
    policy.enforce(acting_user, policy.Action.MANAGE_RATING, db_rating)
    update_data = rating_update.model_dump(exclude_unset=True)
    ensure_valid(validate_rating(update_data, partial=True))

    with atomic(db):
        if "rating" in update_data:
            db_rating.rating = int(update_data["rating"])
        if "comment" in update_data:
            db_rating.comment = update_data["comment"]
        _refresh_rating_stats(db, db_rating.recipe_id)

    db.expire_all()
    return get_rating_or_404(db, db_rating.id)


def delete_rating(db: Session, db_rating: models.Rating, acting_user: models.User) -> None:
    policy.enforce(acting_user, policy.Action.MANAGE_RATING, db_rating)
    rating_id, recipe_id = db_rating.id, db_rating.recipe_id
    with atomic(db):
        db.delete(db_rating)
        _refresh_rating_stats(db, recipe_id)
    logger.info(f"Deleted rating {rating_id} on recipe {recipe_id}")


def rating_summary(db: Session, db_recipe: models.Recipe) -> dict:
    counts = dict(
        db.query(models.Rating.rating, func.count(models.Rating.id))
        .filter(models.Rating.recipe_id == db_recipe.id)
        .group_by(models.Rating.rating)
        .all()
    )
    total = sum(counts.values())
    average = round(sum(stars * n for stars, n in counts.items()) / total, 2) if total else 0
    recent = (
        _rating_query(db)
        .filter(models.Rating.recipe_id == db_recipe.id)
        .order_by(models.Rating.created_at.desc(), models.Rating.id)
        .limit(c.RECENT_RATINGS_COUNT)
        .all()
    )
    return {
        "recipe_id": db_recipe.id,
        "average_rating": average,
        "ratings_count": total,
        "distribution": {str(stars): counts.get(stars, 0) for stars in range(c.RATING_MIN, c.RATING_MAX + 1)},
        "recent_ratings": recent,
    }


def user_ratings(db: Session, user_id: UUID, published_only: bool = True) -> dict:
    query = _rating_query(db).filter(models.Rating.user_id == user_id)
    if published_only:
        query = _published_ratings(query)
    ratings = query.order_by(models.Rating.created_at.desc(), models.Rating.id).all()
    total = len(ratings)
    return {
        "total_ratings": total,
        "average_rating_given": round(sum(r.rating for r in ratings) / total, 2) if total else 0,
        "ratings": ratings,
    }


# --- Favorite CRUD Functions ---

def _favorite_query(db: Session) -> Query:
    return db.query(models.Favorite).options(
        joinedload(models.Favorite.recipe).joinedload(models.Recipe.author),
        joinedload(models.Favorite.recipe).joinedload(models.Recipe.category),
    )


def get_favorite(db: Session, user_id: UUID, recipe_id: UUID) -> Optional[models.Favorite]:
    return (
        db.query(models.Favorite)
        .filter(models.Favorite.user_id == user_id, models.Favorite.recipe_id == recipe_id)
        .first()
    )


def add_favorite(db: Session, user: models.User, recipe_id: UUID) -> models.Favorite:
    db_recipe = get_recipe_or_404(db, recipe_id)
    policy.enforce(user, policy.Action.READ_RECIPE, db_recipe)
    if get_favorite(db, user.id, recipe_id) is not None:
        raise ConflictError("Recipe is already in favorites", {"field": "recipeId"})

    db_favorite = models.Favorite(user_id=user.id, recipe_id=db_recipe.id)
    db.add(db_favorite)
    db.commit()
    logger.debug(f"User {user.email} added recipe {recipe_id} to favorites")
    return _favorite_query(db).filter(models.Favorite.id == db_favorite.id).one()


def remove_favorite(db: Session, user: models.User, recipe_id: UUID) -> None:
    db_favorite = get_favorite(db, user.id, recipe_id)
    if db_favorite is None:
        raise NotFoundError("Favorite not found", {"resource": "Favorite", "id": str(recipe_id)})
    db.delete(db_favorite)
    db.commit()


def list_favorites(db: Session, user: models.User, page: int = 1, limit: int = 10):
    """
    The user's favorites, newest first. Recipes that have since left
    published status are only listed for their author or an admin.
    """
    query = _favorite_query(db).filter(models.Favorite.user_id == user.id)
    if not user.is_admin:
        query = query.join(models.Favorite.recipe).filter(or_(
            models.Recipe.status == models.RecipeStatus.PUBLISHED,
            models.Recipe.author_id == user.id,
        ))
    return paginate(query.order_by(models.Favorite.created_at.desc(), models.Favorite.id), page, limit)


def favorite_recipe_ids(db: Session, user: models.User) -> List[UUID]:
    rows = (
        db.query(models.Favorite.recipe_id)
        .filter(models.Favorite.user_id == user.id)
        .order_by(models.Favorite.created_at.desc(), models.Favorite.id)
        .all()
    )
    return [row.recipe_id for row in rows]
