# schemas.py
# Defines the Pydantic models (schemas) for data validation and serialization.
#
# Request schemas are loose. Pydantic only enforces enums, ids and list shapes;
# the field rules in validation.py check types, bounds and formats so every
# failing field can be reported together.

from datetime import datetime
from decimal import Decimal
from typing import Any, Dict, Generic, List, Optional, TypeVar, Union
from uuid import UUID

from pydantic import BaseModel, ConfigDict, EmailStr, model_validator
from pydantic.alias_generators import to_camel

from recipe_hub.models import DifficultyLevel, IngredientCategory, RecipeStatus, UserRole

T = TypeVar("T")

# Strings and numbers are both accepted; validation.py rejects the wrong kind.
LooseText = Union[str, int, float, None]
LooseNumber = Union[int, float, str, None]


class CamelModel(BaseModel):
    """Base for everything on the wire: snake_case in Python, camelCase in JSON."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, from_attributes=True)


# --- Envelope ---

class ApiResponse(CamelModel, Generic[T]):
    success: bool = True
    message: str = ""
    data: Optional[T] = None


class Page(CamelModel, Generic[T]):
    data: List[T]
    total: int
    page: int
    limit: int
    total_pages: int
    has_next: bool
    has_prev: bool


class FieldErrorOut(BaseModel):
    field: str
    message: str


class ErrorResponse(BaseModel):
    success: bool = False
    message: str
    error: str
    errors: Optional[List[FieldErrorOut]] = None


# --- User Schemas ---

class UserSummary(CamelModel):
    id: UUID
    first_name: str
    last_name: str
    avatar: Optional[str] = None


class User(UserSummary):
    email: EmailStr
    bio: Optional[str] = None
    role: UserRole
    is_active: bool
    last_login_at: Optional[datetime] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class RegisterRequest(CamelModel):
    first_name: LooseText = None
    last_name: LooseText = None
    email: EmailStr
    password: LooseText = None
    confirm_password: LooseText = None
    avatar: LooseText = None
    bio: LooseText = None


class AdminUserCreate(CamelModel):
    first_name: LooseText = None
    last_name: LooseText = None
    email: EmailStr
    password: LooseText = None
    role: UserRole = UserRole.USER
    avatar: LooseText = None
    bio: LooseText = None


class ProfileUpdate(CamelModel):
    # Only these two fields are self-editable; anything else sent is ignored.
    avatar: LooseText = None
    bio: LooseText = None


class AdminUserUpdate(ProfileUpdate):
    role: Optional[UserRole] = None
    is_active: Optional[bool] = None


class UserStats(CamelModel):
    total_users: int
    active_users: int
    inactive_users: int
    admin_users: int
    regular_users: int


# --- Auth Schemas ---

class LoginRequest(CamelModel):
    email: EmailStr
    password: str


class RefreshRequest(CamelModel):
    refresh_token: str


class ChangePasswordRequest(CamelModel):
    current_password: str
    new_password: LooseText = None


class TokenPair(CamelModel):
    access_token: str
    refresh_token: str
    expires_in: int
    token_type: str = "bearer"


class AuthResult(CamelModel):
    user: User
    tokens: TokenPair


class Token(BaseModel):
    # OAuth2 form login response; keeps the snake_case names the standard expects
    access_token: str
    token_type: str


class TokenData(BaseModel):
    sub: Optional[str] = None
    type: Optional[str] = None


# --- Category Schemas ---

class CategoryCreate(CamelModel):
    name: LooseText = None
    description: LooseText = None
    icon: LooseText = None
    sort_order: LooseNumber = 0


class CategoryUpdate(CamelModel):
    name: LooseText = None
    description: LooseText = None
    icon: LooseText = None
    sort_order: LooseNumber = None


class CategorySummary(CamelModel):
    id: UUID
    name: str
    slug: str
    icon: Optional[str] = None


class Category(CategorySummary):
    description: str
    sort_order: int
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


# --- Ingredient Schemas ---

class IngredientCreate(CamelModel):
    name: LooseText = None
    description: LooseText = ""
    category: IngredientCategory = IngredientCategory.OTHER
    default_unit: LooseText = "grams"
    calories_per_unit: LooseNumber = None
    allergen_info: LooseText = None


class IngredientUpdate(CamelModel):
    name: LooseText = None
    description: LooseText = None
    category: Optional[IngredientCategory] = None
    default_unit: LooseText = None
    calories_per_unit: LooseNumber = None
    allergen_info: LooseText = None


class Ingredient(CamelModel):
    id: UUID
    name: str
    description: str
    category: IngredientCategory
    default_unit: str
    calories_per_unit: Optional[float] = None
    allergen_info: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


# --- Recipe children ---

class RecipeIngredientCreate(CamelModel):
    ingredient_id: Optional[UUID] = None
    ingredient_name: LooseText = None
    quantity: LooseNumber = None
    unit: LooseText = None
    preparation: LooseText = None
    is_optional: bool = False


class RecipeIngredient(CamelModel):
    id: UUID
    ingredient_id: UUID
    ingredient_name: str
    quantity: float
    unit: str
    preparation: Optional[str] = None
    is_optional: bool
    position: int

    @model_validator(mode='before')
    @classmethod
    def map_ingredient_name(cls, data: Any) -> Any:
        if hasattr(data, "ingredient"):
            return {
                "id": data.id,
                "ingredient_id": data.ingredient_id,
                "ingredient_name": data.ingredient.name,
                "quantity": float(data.quantity) if isinstance(data.quantity, Decimal) else data.quantity,
                "unit": data.unit,
                "preparation": data.preparation,
                "is_optional": data.is_optional,
                "position": data.position,
            }
        return data


class RecipeStepCreate(CamelModel):
    step_number: LooseNumber = None
    title: LooseText = None
    instructions: LooseText = None
    time_minutes: LooseNumber = None
    temperature: LooseText = None
    tips: LooseText = None
    equipment: List[LooseText] = []
    image_url: LooseText = None


class RecipeStep(CamelModel):
    id: UUID
    step_number: int
    title: str
    instructions: str
    time_minutes: Optional[int] = None
    temperature: Optional[str] = None
    tips: Optional[str] = None
    equipment: List[str] = []
    image_url: Optional[str] = None


class NutritionalInfo(CamelModel):
    calories: Optional[float] = None
    protein: Optional[float] = None
    carbs: Optional[float] = None
    fat: Optional[float] = None
    fiber: Optional[float] = None


class NutritionalInfoCreate(CamelModel):
    calories: LooseNumber = None
    protein: LooseNumber = None
    carbs: LooseNumber = None
    fat: LooseNumber = None
    fiber: LooseNumber = None


# --- Main Recipe Schemas ---

class RecipeCreate(CamelModel):
    title: LooseText = None
    description: LooseText = None
    instructions: LooseText = None
    prep_time_minutes: LooseNumber = None
    cook_time_minutes: LooseNumber = None
    servings: LooseNumber = None
    difficulty: DifficultyLevel = DifficultyLevel.EASY
    status: Optional[RecipeStatus] = None
    category_id: Optional[UUID] = None
    image_url: LooseText = None
    tags: Optional[List[LooseText]] = None
    nutritional_info: Optional[NutritionalInfoCreate] = None
    notes: LooseText = None
    ingredients: List[RecipeIngredientCreate] = []
    steps: List[RecipeStepCreate] = []


class RecipeUpdate(CamelModel):
    """
    Partial update. Status is not editable here; use the lifecycle endpoints.
    When ``ingredients`` or ``steps`` are sent they replace the stored lists.
    """
    title: LooseText = None
    description: LooseText = None
    instructions: LooseText = None
    prep_time_minutes: LooseNumber = None
    cook_time_minutes: LooseNumber = None
    servings: LooseNumber = None
    difficulty: Optional[DifficultyLevel] = None
    category_id: Optional[UUID] = None
    image_url: LooseText = None
    tags: Optional[List[LooseText]] = None
    nutritional_info: Optional[NutritionalInfoCreate] = None
    notes: LooseText = None
    ingredients: Optional[List[RecipeIngredientCreate]] = None
    steps: Optional[List[RecipeStepCreate]] = None


class RecipeSummary(CamelModel):
    id: UUID
    title: str
    description: str
    prep_time_minutes: int
    cook_time_minutes: int
    total_time_minutes: int
    servings: int
    difficulty: DifficultyLevel
    status: RecipeStatus
    image_url: Optional[str] = None
    tags: List[str] = []
    views_count: int
    likes_count: int
    ratings_count: int = 0
    average_rating: float = 0
    is_featured: bool = False
    author: UserSummary
    category: CategorySummary
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class Recipe(RecipeSummary):
    instructions: str
    nutritional_info: Optional[NutritionalInfo] = None
    notes: Optional[str] = None
    ingredients: List[RecipeIngredient] = []
    steps: List[RecipeStep] = []


class RecipeStats(CamelModel):
    total_recipes: int
    published_recipes: int
    draft_recipes: int
    archived_recipes: int
    featured_recipes: int
    average_prep_time: float
    average_cook_time: float
    by_difficulty: Dict[str, int]


# --- Rating Schemas ---

class RatingCreate(CamelModel):
    recipe_id: UUID
    rating: LooseNumber = None
    comment: LooseText = None


class RatingUpdate(CamelModel):
    rating: LooseNumber = None
    comment: LooseText = None


class Rating(CamelModel):
    id: UUID
    recipe_id: UUID
    rating: int
    comment: Optional[str] = None
    user: UserSummary
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class RatingSummary(CamelModel):
    recipe_id: UUID
    average_rating: float
    ratings_count: int
    # Star value ("1".."5") -> number of ratings
    distribution: Dict[str, int]
    recent_ratings: List[Rating]


class UserRatings(CamelModel):
    total_ratings: int
    average_rating_given: float
    ratings: List[Rating]


# --- Favorite Schemas ---

class FavoriteCreate(CamelModel):
    recipe_id: UUID


class Favorite(CamelModel):
    id: UUID
    recipe_id: UUID
    recipe: RecipeSummary
    created_at: Optional[datetime] = None


class FavoriteStatus(CamelModel):
    is_favorite: bool


class FavoriteRecipeIds(CamelModel):
    recipe_ids: List[UUID]
