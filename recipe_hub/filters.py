# recipe_hub/filters.py
from typing import List, Optional
from uuid import UUID

from sqlalchemy import String, asc, cast, desc, or_
from sqlalchemy.orm import Query

from recipe_hub import models

SORT_FIELDS = {
    'created_at': models.Recipe.created_at,
    'updated_at': models.Recipe.updated_at,
    'title': models.Recipe.title,
    'prep_time_minutes': models.Recipe.prep_time_minutes,
    'cook_time_minutes': models.Recipe.cook_time_minutes,
    'servings': models.Recipe.servings,
    'difficulty': models.Recipe.difficulty,
    'views_count': models.Recipe.views_count,
    'likes_count': models.Recipe.likes_count,
    'ratings_count': models.Recipe.ratings_count,
    'average_rating': models.Recipe.average_rating,
}

# Wire names are camelCase; accept those too in ?sort=
SORT_ALIASES = {
    'createdAt': 'created_at',
    'updatedAt': 'updated_at',
    'prepTimeMinutes': 'prep_time_minutes',
    'cookTimeMinutes': 'cook_time_minutes',
    'viewsCount': 'views_count',
    'likesCount': 'likes_count',
    'ratingsCount': 'ratings_count',
    'averageRating': 'average_rating',
}


def split_csv(value: Optional[str]) -> List[str]:
    if not value:
        return []
    return [part.strip() for part in value.split(',') if part.strip()]


def apply_filters(
    query: Query,
    category_id: Optional[UUID] = None,
    difficulty: Optional[models.DifficultyLevel] = None,
    search: Optional[str] = None,
    tags: Optional[str] = None,
    author_id: Optional[UUID] = None,
    max_prep_time: Optional[int] = None,
    max_cook_time: Optional[int] = None,
    min_servings: Optional[int] = None,
    max_servings: Optional[int] = None,
    is_featured: Optional[bool] = None,
    status: Optional[models.RecipeStatus] = None,
) -> Query:
    if category_id is not None:
        query = query.filter(models.Recipe.category_id == category_id)
    if difficulty is not None:
        query = query.filter(models.Recipe.difficulty == difficulty)
    if author_id is not None:
        query = query.filter(models.Recipe.author_id == author_id)
    if status is not None:
        query = query.filter(models.Recipe.status == status)
    if is_featured is not None:
        query = query.filter(models.Recipe.is_featured.is_(is_featured))
    if search:
        pattern = f"%{search}%"
        query = query.filter(or_(
            models.Recipe.title.ilike(pattern),
            models.Recipe.description.ilike(pattern),
        ))

    # tags=vegan,quick -> recipe carries at least one of them.
    # Tags live in a JSON list, matched on its serialized text form.
    tag_list = split_csv(tags)
    if tag_list:
        tags_text = cast(models.Recipe.tags, String)
        query = query.filter(or_(*[tags_text.ilike(f'%"{tag}"%') for tag in tag_list]))

    if max_prep_time is not None:
        query = query.filter(models.Recipe.prep_time_minutes <= max_prep_time)
    if max_cook_time is not None:
        query = query.filter(models.Recipe.cook_time_minutes <= max_cook_time)
    if min_servings is not None:
        query = query.filter(models.Recipe.servings >= min_servings)
    if max_servings is not None:
        query = query.filter(models.Recipe.servings <= max_servings)
    return query


def apply_sorting(query: Query, sort_param: Optional[str]) -> Query:
    """
    Apply ``sort=field,-other`` ordering. Unknown fields are ignored.
    Defaults to newest first; id is always the final tie-breaker so pages are stable.
    """
    applied = False
    for field in split_csv(sort_param):
        direction = asc
        if field.startswith('-'):
            direction = desc
            field = field[1:]
        field = SORT_ALIASES.get(field, field)

        model_attr = SORT_FIELDS.get(field)
        if model_attr is not None:
            query = query.order_by(direction(model_attr))
            applied = True

    if not applied:
        query = query.order_by(desc(models.Recipe.created_at))
    return query.order_by(models.Recipe.id)
