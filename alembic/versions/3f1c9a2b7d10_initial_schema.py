"""Initial schema

Revision ID: 3f1c9a2b7d10
Revises:
Create Date: 2026-10-19 09:00:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '3f1c9a2b7d10'
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

user_role = sa.Enum('USER', 'ADMIN', name='userrole')
difficulty_level = sa.Enum('EASY', 'MEDIUM', 'HARD', name='difficultylevel')
recipe_status = sa.Enum('DRAFT', 'PUBLISHED', 'ARCHIVED', name='recipestatus')
ingredient_category = sa.Enum(
    'PROTEIN', 'VEGETABLE', 'FRUIT', 'GRAIN', 'DAIRY', 'SPICE', 'HERB', 'CONDIMENT', 'BEVERAGE', 'OTHER',
    name='ingredientcategory',
)


def upgrade() -> None:
    op.create_table(
        'users',
        sa.Column('id', sa.Uuid(), primary_key=True, nullable=False),
        sa.Column('email', sa.String(length=254), nullable=False),
        sa.Column('hashed_password', sa.String(), nullable=False),
        sa.Column('is_active', sa.Boolean(), nullable=True),
        sa.Column('first_name', sa.String(length=50), nullable=False),
        sa.Column('last_name', sa.String(length=50), nullable=False),
        sa.Column('role', user_role, nullable=False),
        sa.Column('avatar', sa.String(), nullable=True),
        sa.Column('bio', sa.Text(), nullable=True),
        sa.Column('last_login_at', sa.DateTime(), nullable=True),
        sa.Column('created_at', sa.DateTime(), server_default=sa.func.now(), nullable=True),
        sa.Column('updated_at', sa.DateTime(), server_default=sa.func.now(), nullable=True),
    )
    op.create_index('ix_users_id', 'users', ['id'])
    op.create_index('ix_users_email', 'users', ['email'], unique=True)
    op.create_index('ix_users_is_active', 'users', ['is_active'])

    op.create_table(
        'categories',
        sa.Column('id', sa.Uuid(), primary_key=True, nullable=False),
        sa.Column('name', sa.String(length=100), nullable=False),
        sa.Column('slug', sa.String(length=120), nullable=False),
        sa.Column('description', sa.Text(), nullable=False),
        sa.Column('icon', sa.String(length=10), nullable=True),
        sa.Column('sort_order', sa.Integer(), nullable=True),
        sa.Column('created_at', sa.DateTime(), server_default=sa.func.now(), nullable=True),
        sa.Column('updated_at', sa.DateTime(), server_default=sa.func.now(), nullable=True),
    )
    op.create_index('ix_categories_id', 'categories', ['id'])
    op.create_index('ix_categories_name', 'categories', ['name'], unique=True)
    op.create_index('ix_categories_slug', 'categories', ['slug'], unique=True)

    op.create_table(
        'ingredients',
        sa.Column('id', sa.Uuid(), primary_key=True, nullable=False),
        sa.Column('name', sa.String(length=100), nullable=False),
        sa.Column('description', sa.Text(), nullable=False),
        sa.Column('category', ingredient_category, nullable=False),
        sa.Column('default_unit', sa.String(length=20), nullable=False),
        sa.Column('calories_per_unit', sa.Float(), nullable=True),
        sa.Column('allergen_info', sa.String(length=255), nullable=True),
        sa.Column('created_at', sa.DateTime(), server_default=sa.func.now(), nullable=True),
        sa.Column('updated_at', sa.DateTime(), server_default=sa.func.now(), nullable=True),
    )
    op.create_index('ix_ingredients_id', 'ingredients', ['id'])
    op.create_index('ix_ingredients_name', 'ingredients', ['name'], unique=True)

    op.create_table(
        'recipes',
        sa.Column('id', sa.Uuid(), primary_key=True, nullable=False),
        sa.Column('title', sa.String(length=200), nullable=False),
        sa.Column('description', sa.Text(), nullable=False),
        sa.Column('instructions', sa.Text(), nullable=False),
        sa.Column('difficulty', difficulty_level, nullable=False),
        sa.Column('status', recipe_status, nullable=False),
        sa.Column('image_url', sa.String(), nullable=True),
        sa.Column('tags', sa.JSON(), nullable=True),
        sa.Column('nutritional_info', sa.JSON(), nullable=True),
        sa.Column('notes', sa.Text(), nullable=True),
        sa.Column('prep_time_minutes', sa.Integer(), nullable=False),
        sa.Column('cook_time_minutes', sa.Integer(), nullable=False),
        sa.Column('servings', sa.Integer(), nullable=False),
        sa.Column('views_count', sa.Integer(), nullable=False),
        sa.Column('likes_count', sa.Integer(), nullable=False),
        sa.Column('ratings_count', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('average_rating', sa.Float(), nullable=False, server_default='0'),
        sa.Column('is_featured', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('author_id', sa.Uuid(), sa.ForeignKey('users.id'), nullable=False),
        sa.Column('category_id', sa.Uuid(), sa.ForeignKey('categories.id'), nullable=False),
        sa.Column('created_at', sa.DateTime(), server_default=sa.func.now(), nullable=True),
        sa.Column('updated_at', sa.DateTime(), server_default=sa.func.now(), nullable=True),
    )
    op.create_index('ix_recipes_id', 'recipes', ['id'])
    op.create_index('ix_recipes_title', 'recipes', ['title'])
    op.create_index('ix_recipes_difficulty', 'recipes', ['difficulty'])
    op.create_index('ix_recipes_status', 'recipes', ['status'])
    op.create_index('ix_recipes_author_id', 'recipes', ['author_id'])
    op.create_index('ix_recipes_category_id', 'recipes', ['category_id'])
    op.create_index('ix_recipes_is_featured', 'recipes', ['is_featured'])

    op.create_table(
        'recipe_ingredients',
        sa.Column('id', sa.Uuid(), primary_key=True, nullable=False),
        sa.Column('recipe_id', sa.Uuid(), sa.ForeignKey('recipes.id'), nullable=False),
        sa.Column('ingredient_id', sa.Uuid(), sa.ForeignKey('ingredients.id'), nullable=False),
        sa.Column('quantity', sa.Numeric(12, 4), nullable=False),
        sa.Column('unit', sa.String(length=50), nullable=False),
        sa.Column('preparation', sa.Text(), nullable=True),
        sa.Column('is_optional', sa.Boolean(), nullable=False),
        sa.Column('position', sa.Integer(), nullable=False),
    )
    op.create_index('ix_recipe_ingredients_id', 'recipe_ingredients', ['id'])
    op.create_index('ix_recipe_ingredients_recipe_id', 'recipe_ingredients', ['recipe_id'])
    op.create_index('ix_recipe_ingredients_ingredient_id', 'recipe_ingredients', ['ingredient_id'])

    op.create_table(
        'recipe_steps',
        sa.Column('id', sa.Uuid(), primary_key=True, nullable=False),
        sa.Column('recipe_id', sa.Uuid(), sa.ForeignKey('recipes.id'), nullable=False),
        sa.Column('step_number', sa.Integer(), nullable=False),
        sa.Column('title', sa.String(length=200), nullable=False),
        sa.Column('instructions', sa.Text(), nullable=False),
        sa.Column('time_minutes', sa.Integer(), nullable=True),
        sa.Column('temperature', sa.String(length=20), nullable=True),
        sa.Column('tips', sa.Text(), nullable=True),
        sa.Column('equipment', sa.JSON(), nullable=True),
        sa.Column('image_url', sa.String(), nullable=True),
    )
    op.create_index('ix_recipe_steps_id', 'recipe_steps', ['id'])
    op.create_index('ix_recipe_steps_recipe_id', 'recipe_steps', ['recipe_id'])

    op.create_table(
        'ratings',
        sa.Column('id', sa.Uuid(), primary_key=True, nullable=False),
        sa.Column('user_id', sa.Uuid(), sa.ForeignKey('users.id'), nullable=False),
        sa.Column('recipe_id', sa.Uuid(), sa.ForeignKey('recipes.id'), nullable=False),
        sa.Column('rating', sa.Integer(), nullable=False),
        sa.Column('comment', sa.Text(), nullable=True),
        sa.Column('created_at', sa.DateTime(), server_default=sa.func.now(), nullable=True),
        sa.Column('updated_at', sa.DateTime(), server_default=sa.func.now(), nullable=True),
        sa.UniqueConstraint('user_id', 'recipe_id', name='uq_ratings_user_recipe'),
    )
    op.create_index('ix_ratings_id', 'ratings', ['id'])
    op.create_index('ix_ratings_user_id', 'ratings', ['user_id'])
    op.create_index('ix_ratings_recipe_id', 'ratings', ['recipe_id'])

    op.create_table(
        'favorites',
        sa.Column('id', sa.Uuid(), primary_key=True, nullable=False),
        sa.Column('user_id', sa.Uuid(), sa.ForeignKey('users.id'), nullable=False),
        sa.Column('recipe_id', sa.Uuid(), sa.ForeignKey('recipes.id'), nullable=False),
        sa.Column('created_at', sa.DateTime(), server_default=sa.func.now(), nullable=True),
        sa.UniqueConstraint('user_id', 'recipe_id', name='uq_favorites_user_recipe'),
    )
    op.create_index('ix_favorites_id', 'favorites', ['id'])
    op.create_index('ix_favorites_user_id', 'favorites', ['user_id'])
    op.create_index('ix_favorites_recipe_id', 'favorites', ['recipe_id'])


def downgrade() -> None:
    op.drop_table('favorites')
    op.drop_table('ratings')
    op.drop_table('recipe_steps')
    op.drop_table('recipe_ingredients')
    op.drop_table('recipes')
    op.drop_table('ingredients')
    op.drop_table('categories')
    op.drop_table('users')
    for enum_type in (ingredient_category, recipe_status, difficulty_level, user_role):
        enum_type.drop(op.get_bind(), checkfirst=True)
