# models.py
# Defines the SQLAlchemy ORM models for the database tables.

import uuid
from sqlalchemy import (
    Boolean, Column, ForeignKey, Integer, String, Text, Numeric, Enum, DateTime, func, Float, JSON,
    UniqueConstraint,
)
from sqlalchemy.orm import relationship
from sqlalchemy.types import Uuid
from recipe_hub.db.session import Base
import enum


class UserRole(str, enum.Enum):
    USER = "user"
    ADMIN = "admin"


class DifficultyLevel(str, enum.Enum):
    EASY = "easy"
    MEDIUM = "medium"
    HARD = "hard"


class RecipeStatus(str, enum.Enum):
    DRAFT = "draft"
    PUBLISHED = "published"
    ARCHIVED = "archived"


class IngredientCategory(str, enum.Enum):
    PROTEIN = "protein"
    VEGETABLE = "vegetable"
    FRUIT = "fruit"
    GRAIN = "grain"
    DAIRY = "dairy"
    SPICE = "spice"
    HERB = "herb"
    CONDIMENT = "condiment"
    BEVERAGE = "beverage"
    OTHER = "other"


class User(Base):
    """
    User model for the 'users' table.
    """
    __tablename__ = "users"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4, index=True)
    email = Column(String(254), unique=True, index=True, nullable=False)
    hashed_password = Column(String, nullable=False)
    is_active = Column(Boolean, default=True, index=True)

    first_name = Column(String(50), nullable=False)
    last_name = Column(String(50), nullable=False)
    role = Column(Enum(UserRole), default=UserRole.USER, nullable=False)
    avatar = Column(String, nullable=True)
    bio = Column(Text, nullable=True)

    last_login_at = Column(DateTime, nullable=True)
    created_at = Column(DateTime, default=func.now())
    updated_at = Column(DateTime, default=func.now(), onupdate=func.now())

    recipes = relationship("Recipe", back_populates="author")
    ratings = relationship("Rating", back_populates="user", cascade="all, delete-orphan")
    favorites = relationship("Favorite", back_populates="user", cascade="all, delete-orphan")

    @property
    def is_admin(self) -> bool:
        return self.role == UserRole.ADMIN

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()


class Category(Base):
    """
    Recipe category reference data (e.g. "Italian Cuisine").
    """
    __tablename__ = "categories"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4, index=True)
    name = Column(String(100), unique=True, index=True, nullable=False)
    slug = Column(String(120), unique=True, index=True, nullable=False)
    description = Column(Text, nullable=False, default="")
    icon = Column(String(10), nullable=True)
    sort_order = Column(Integer, default=0)

    created_at = Column(DateTime, default=func.now())
    updated_at = Column(DateTime, default=func.now(), onupdate=func.now())

    recipes = relationship("Recipe", back_populates="category")


class Ingredient(Base):
    """
    Master list of ingredients.
    """
    __tablename__ = "ingredients"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4, index=True)
    name = Column(String(100), unique=True, index=True, nullable=False)
    description = Column(Text, nullable=False, default="")
    category = Column(Enum(IngredientCategory), default=IngredientCategory.OTHER, nullable=False)
    default_unit = Column(String(20), default="grams", nullable=False)
    calories_per_unit = Column(Float, nullable=True)
    allergen_info = Column(String(255), nullable=True)

    created_at = Column(DateTime, default=func.now())
    updated_at = Column(DateTime, default=func.now(), onupdate=func.now())


class Recipe(Base):
    """
    Recipe model for the 'recipes' table.
    """
    __tablename__ = "recipes"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4, index=True)

    # Core fields
    title = Column(String(200), index=True, nullable=False)
    description = Column(Text, nullable=False)
    instructions = Column(Text, nullable=False)
    difficulty = Column(Enum(DifficultyLevel), default=DifficultyLevel.EASY, nullable=False, index=True)
    status = Column(Enum(RecipeStatus), default=RecipeStatus.DRAFT, nullable=False, index=True)
    image_url = Column(String, nullable=True)
    tags = Column(JSON, default=list)
    nutritional_info = Column(JSON, nullable=True)
    notes = Column(Text, nullable=True)

    # Times
    prep_time_minutes = Column(Integer, nullable=False)
    cook_time_minutes = Column(Integer, nullable=False)
    servings = Column(Integer, nullable=False)

    # Counters
    views_count = Column(Integer, default=0, nullable=False)
    likes_count = Column(Integer, default=0, nullable=False)
    ratings_count = Column(Integer, default=0, nullable=False)
    # Kept in step with the ratings table on every rating write
    average_rating = Column(Float, default=0, nullable=False)
    is_featured = Column(Boolean, default=False, nullable=False, index=True)

    author_id = Column(Uuid(as_uuid=True), ForeignKey("users.id"), nullable=False, index=True)
    category_id = Column(Uuid(as_uuid=True), ForeignKey("categories.id"), nullable=False, index=True)

    # Audit
    created_at = Column(DateTime, default=func.now())
    updated_at = Column(DateTime, default=func.now(), onupdate=func.now())

    # Relationships
    author = relationship("User", back_populates="recipes")
    category = relationship("Category", back_populates="recipes")

    ingredients = relationship(
        "RecipeIngredient",
        back_populates="recipe",
        cascade="all, delete-orphan",
        order_by="RecipeIngredient.position",
    )

    steps = relationship(
        "RecipeStep",
        back_populates="recipe",
        cascade="all, delete-orphan",
        order_by="RecipeStep.step_number",
    )

    ratings = relationship("Rating", back_populates="recipe", cascade="all, delete-orphan")
    favorites = relationship("Favorite", back_populates="recipe", cascade="all, delete-orphan")

    @property
    def total_time_minutes(self) -> int:
        return (self.prep_time_minutes or 0) + (self.cook_time_minutes or 0)

    def __str__(self):
        return f"{self.id}: {self.title} [{self.status.value}]"


class RecipeIngredient(Base):
    """
    Association object between Recipe and Ingredient.
    """
    __tablename__ = "recipe_ingredients"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4, index=True)

    recipe_id = Column(Uuid(as_uuid=True), ForeignKey("recipes.id"), nullable=False, index=True)
    ingredient_id = Column(Uuid(as_uuid=True), ForeignKey("ingredients.id"), nullable=False, index=True)

    quantity = Column(Numeric(12, 4), nullable=False)
    unit = Column(String(50), nullable=False)
    preparation = Column(Text, nullable=True)
    is_optional = Column(Boolean, default=False, nullable=False)
    # Insertion order within the recipe
    position = Column(Integer, nullable=False, default=1)

    recipe = relationship("Recipe", back_populates="ingredients")
    ingredient = relationship("Ingredient")


class RecipeStep(Base):
    """
    An instruction step for a recipe.
    """
    __tablename__ = "recipe_steps"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4, index=True)
    recipe_id = Column(Uuid(as_uuid=True), ForeignKey("recipes.id"), nullable=False, index=True)

    step_number = Column(Integer, nullable=False)
    title = Column(String(200), nullable=False)
    instructions = Column(Text, nullable=False)
    time_minutes = Column(Integer, nullable=True)
    temperature = Column(String(20), nullable=True)
    tips = Column(Text, nullable=True)
    equipment = Column(JSON, default=list)
    image_url = Column(String, nullable=True)

    recipe = relationship("Recipe", back_populates="steps")


class Rating(Base):
    """
    A user's 1-5 star rating of a recipe, with an optional comment.
    One rating per user and recipe.
    """
    __tablename__ = "ratings"
    __table_args__ = (UniqueConstraint("user_id", "recipe_id", name="uq_ratings_user_recipe"),)

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4, index=True)
    user_id = Column(Uuid(as_uuid=True), ForeignKey("users.id"), nullable=False, index=True)
    recipe_id = Column(Uuid(as_uuid=True), ForeignKey("recipes.id"), nullable=False, index=True)

    rating = Column(Integer, nullable=False)
    comment = Column(Text, nullable=True)

    created_at = Column(DateTime, default=func.now())
    updated_at = Column(DateTime, default=func.now(), onupdate=func.now())

    user = relationship("User", back_populates="ratings")
    recipe = relationship("Recipe", back_populates="ratings")


class Favorite(Base):
    """
    A recipe bookmarked by a user.
    """
    __tablename__ = "favorites"
    __table_args__ = (UniqueConstraint("user_id", "recipe_id", name="uq_favorites_user_recipe"),)

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4, index=True)
    user_id = Column(Uuid(as_uuid=True), ForeignKey("users.id"), nullable=False, index=True)
    recipe_id = Column(Uuid(as_uuid=True), ForeignKey("recipes.id"), nullable=False, index=True)

    created_at = Column(DateTime, default=func.now())

    user = relationship("User", back_populates="favorites")
    recipe = relationship("Recipe", back_populates="favorites")
