# validation.py
# Field-level rules applied to incoming data before it reaches the database.
#
# Each rule is a pure function returning a RuleResult; rules never raise.
# The per-entity validators below compose them and collect *every* failing
# field, so a single 400 response can list all problems at once.

import math
from dataclasses import dataclass
from decimal import Decimal
from typing import Any, Iterable, List, Mapping, Optional

from pydantic.alias_generators import to_camel

from recipe_hub import constants as c
from recipe_hub.errors import ValidationFailed


@dataclass(frozen=True)
class RuleResult:
    ok: bool
    message: str = ""

    def __bool__(self) -> bool:
        return self.ok


@dataclass(frozen=True)
class FieldError:
    field: str
    message: str

    def to_dict(self) -> dict:
        return {"field": self.field, "message": self.message}


PASS = RuleResult(True)


def _fail(message: str) -> RuleResult:
    return RuleResult(False, message)


def _is_number(value: Any) -> bool:
    # bool is an int subclass but never a valid quantity
    return isinstance(value, (int, float, Decimal)) and not isinstance(value, bool)


def _is_finite_number(value: Any) -> bool:
    if not _is_number(value):
        return False
    return isinstance(value, int) or math.isfinite(value)


def _is_whole_number(value: Any) -> bool:
    if not _is_finite_number(value):
        return False
    return isinstance(value, int) or float(value).is_integer()


# --- Rules ---

def is_valid_image_url(value: Any) -> RuleResult:
    message = "Please provide a valid image URL (jpg, jpeg, png, webp)"
    if not value:
        return PASS
    if isinstance(value, str) and c.IMAGE_URL_PATTERN.search(value):
        return PASS
    return _fail(message)


def is_valid_title(value: Any) -> RuleResult:
    message = (
        f"Recipe title must be {c.TITLE_MIN_LENGTH}-{c.TITLE_MAX_LENGTH} characters and contain "
        "only letters, numbers, spaces, and common punctuation"
    )
    if not isinstance(value, str) or not value:
        return _fail(message)
    if not c.TITLE_MIN_LENGTH <= len(value) <= c.TITLE_MAX_LENGTH:
        return _fail(message)
    if not c.TITLE_PATTERN.match(value):
        return _fail(message)
    return PASS


def is_valid_ingredient_name(value: Any) -> RuleResult:
    message = (
        f"Ingredient name must be {c.INGREDIENT_NAME_MIN_LENGTH}-{c.INGREDIENT_NAME_MAX_LENGTH} "
        "characters and contain only letters, numbers, spaces, and basic punctuation"
    )
    if not isinstance(value, str) or not value:
        return _fail(message)
    if not c.INGREDIENT_NAME_MIN_LENGTH <= len(value) <= c.INGREDIENT_NAME_MAX_LENGTH:
        return _fail(message)
    if not c.INGREDIENT_NAME_PATTERN.match(value):
        return _fail(message)
    return PASS


def is_valid_cooking_time(
    value: Any,
    minimum: int = c.COOK_TIME_MIN,
    maximum: int = c.COOK_TIME_MAX,
    label: str = "Cooking time",
) -> RuleResult:
    message = f"{label} must be between {minimum} and {maximum} minutes ({maximum // 60} hours max)"
    if not _is_whole_number(value):
        return _fail(message)
    if not minimum <= value <= maximum:
        return _fail(message)
    return PASS


def is_valid_servings(value: Any) -> RuleResult:
    message = f"Servings must be a whole number between {c.SERVINGS_MIN} and {c.SERVINGS_MAX}"
    if not _is_whole_number(value):
        return _fail(message)
    if not c.SERVINGS_MIN <= value <= c.SERVINGS_MAX:
        return _fail(message)
    return PASS


def is_valid_quantity(value: Any) -> RuleResult:
    message = f"Ingredient quantity must be a positive number (max {c.QUANTITY_MAX:,} units)"
    if not _is_finite_number(value):
        return _fail(message)
    if not 0 < value <= c.QUANTITY_MAX:
        return _fail(message)
    return PASS


def is_valid_nutritional_value(value: Any, maximum: float, field_name: str, unit: str = "g") -> RuleResult:
    if value is None:
        return PASS
    message = f"{field_name} must be a non-negative number (max {maximum}{unit})"
    if not _is_finite_number(value):
        return _fail(message)
    if not 0 <= value <= maximum:
        return _fail(message)
    return PASS


def is_valid_rating(value: Any) -> RuleResult:
    message = f"Rating must be a whole number between {c.RATING_MIN} and {c.RATING_MAX}"
    if not _is_whole_number(value):
        return _fail(message)
    if not c.RATING_MIN <= value <= c.RATING_MAX:
        return _fail(message)
    return PASS


def is_valid_tags(value: Any) -> RuleResult:
    message = (
        f"Tags must be an array of {c.TAG_MIN_LENGTH}-{c.TAG_MAX_LENGTH} character strings "
        f"(max {c.TAGS_MAX_COUNT} tags)"
    )
    if not value:
        return PASS
    if not isinstance(value, (list, tuple)) or len(value) > c.TAGS_MAX_COUNT:
        return _fail(message)
    for tag in value:
        if not isinstance(tag, str):
            return _fail(message)
        if not c.TAG_MIN_LENGTH <= len(tag) <= c.TAG_MAX_LENGTH:
            return _fail(message)
        if not c.TAG_PATTERN.match(tag.strip()):
            return _fail(message)
    return PASS


def is_valid_password(value: Any) -> RuleResult:
    message = (
        f"Password must be at least {c.PASSWORD_MIN_LENGTH} characters and contain at least "
        "one letter, one number and one special character"
    )
    if not isinstance(value, str) or len(value) < c.PASSWORD_MIN_LENGTH:
        return _fail(message)
    if not c.PASSWORD_PATTERN.match(value):
        return _fail(message)
    return PASS


def has_max_length(value: Any, maximum: int, label: str, minimum: int = 0) -> RuleResult:
    if value is None and minimum == 0:
        return PASS
    if not isinstance(value, str) or not minimum <= len(value) <= maximum:
        if minimum:
            return _fail(f"{label} must be {minimum}-{maximum} characters")
        return _fail(f"{label} must be at most {maximum} characters")
    return PASS


def is_required_text(value: Any, maximum: int, label: str) -> RuleResult:
    if not isinstance(value, str) or not value.strip():
        return _fail(f"{label} is required")
    return has_max_length(value, maximum, label)


# --- Composition helpers ---

def field_path(*parts) -> str:
    """Build a wire-format field path, e.g. ("steps", 0, "time_minutes") -> "steps.0.timeMinutes"."""
    return ".".join(str(p) if isinstance(p, int) else to_camel(p) for p in parts)


class _Collector:
    def __init__(self):
        self.errors: List[FieldError] = []

    def check(self, result: RuleResult, *path) -> None:
        if not result:
            self.errors.append(FieldError(field_path(*path), result.message))

    def add(self, message: str, *path) -> None:
        self.errors.append(FieldError(field_path(*path), message))


def _wants(data: Mapping, key: str, partial: bool) -> bool:
    return not partial or key in data


def _validate_recipe_ingredient(out: _Collector, index: int, item: Mapping) -> None:
    ingredient_id = item.get("ingredient_id")
    ingredient_name = item.get("ingredient_name")
    if ingredient_id is None and not ingredient_name:
        out.add("Ingredient ID or name is required", "ingredients", index, "ingredient_id")
    elif ingredient_id is None:
        out.check(is_valid_ingredient_name(ingredient_name), "ingredients", index, "ingredient_name")

    out.check(is_valid_quantity(item.get("quantity")), "ingredients", index, "quantity")
    out.check(
        has_max_length(item.get("unit"), c.UNIT_MAX_LENGTH, "Unit", minimum=1),
        "ingredients", index, "unit",
    )
    out.check(
        has_max_length(item.get("preparation"), c.PREPARATION_MAX_LENGTH, "Preparation"),
        "ingredients", index, "preparation",
    )


def _validate_recipe_step(out: _Collector, index: int, step: Mapping) -> None:
    out.check(is_required_text(step.get("title"), c.STEP_TITLE_MAX_LENGTH, "Step title"), "steps", index, "title")
    out.check(
        is_required_text(step.get("instructions"), c.STEP_INSTRUCTIONS_MAX_LENGTH, "Step instructions"),
        "steps", index, "instructions",
    )
    if step.get("time_minutes") is not None:
        out.check(
            is_valid_cooking_time(step["time_minutes"], c.STEP_TIME_MIN, c.STEP_TIME_MAX, "Step time"),
            "steps", index, "time_minutes",
        )
    out.check(
        has_max_length(step.get("temperature"), c.STEP_TEMPERATURE_MAX_LENGTH, "Temperature"),
        "steps", index, "temperature",
    )
    out.check(has_max_length(step.get("tips"), c.STEP_TIPS_MAX_LENGTH, "Tips"), "steps", index, "tips")
    for item in step.get("equipment") or []:
        result = has_max_length(item, c.EQUIPMENT_ITEM_MAX_LENGTH, "Equipment item", minimum=1)
        if not result:
            out.check(result, "steps", index, "equipment")
            break
    out.check(is_valid_image_url(step.get("image_url")), "steps", index, "image_url")


def step_numbers_are_contiguous(steps: Iterable[Mapping]) -> bool:
    """
    Supplied step numbers must be exactly 1..N in some order.
    Steps without numbers are numbered by position, so a list with no
    numbers at all is always fine; a partly numbered list is not.
    """
    numbers = [s.get("step_number") for s in steps]
    if all(n is None for n in numbers):
        return True
    if any(n is None for n in numbers):
        return False
    if not all(_is_whole_number(n) for n in numbers):
        return False
    return sorted(numbers) == list(range(1, len(numbers) + 1))


def validate_recipe(data: Mapping, partial: bool = False) -> List[FieldError]:
    """
    Validate a recipe payload (snake_case keys, as produced by ``model_dump``).

    With ``partial=True`` only the keys present in ``data`` are checked, which
    is what PATCH needs. Ingredient and step lists, when present, are always
    validated as a whole since they replace the stored lists.
    """
    out = _Collector()

    if _wants(data, "title", partial):
        out.check(is_valid_title(data.get("title")), "title")
    if _wants(data, "description", partial):
        out.check(is_required_text(data.get("description"), c.DESCRIPTION_MAX_LENGTH, "Description"), "description")
    if _wants(data, "instructions", partial):
        out.check(
            is_required_text(data.get("instructions"), c.INSTRUCTIONS_MAX_LENGTH, "Instructions"),
            "instructions",
        )
    if _wants(data, "prep_time_minutes", partial):
        out.check(
            is_valid_cooking_time(data.get("prep_time_minutes"), c.PREP_TIME_MIN, c.PREP_TIME_MAX, "Preparation time"),
            "prep_time_minutes",
        )
    if _wants(data, "cook_time_minutes", partial):
        out.check(is_valid_cooking_time(data.get("cook_time_minutes")), "cook_time_minutes")
    if _wants(data, "servings", partial):
        out.check(is_valid_servings(data.get("servings")), "servings")
    if _wants(data, "category_id", partial) and data.get("category_id") is None:
        out.add("Category is required", "category_id")
    if "image_url" in data:
        out.check(is_valid_image_url(data.get("image_url")), "image_url")
    if "tags" in data:
        out.check(is_valid_tags(data.get("tags")), "tags")
    if "notes" in data:
        out.check(has_max_length(data.get("notes"), c.NOTES_MAX_LENGTH, "Notes"), "notes")

    nutrition = data.get("nutritional_info") or {}
    for nutrient, maximum in c.NUTRIENT_LIMITS.items():
        out.check(
            is_valid_nutritional_value(
                nutrition.get(nutrient), maximum, nutrient.capitalize(), " kcal" if nutrient == "calories" else "g"
            ),
            "nutritional_info", nutrient,
        )

    if _wants(data, "ingredients", partial):
        ingredients = data.get("ingredients") or []
        if not ingredients:
            out.add("Recipe must have at least one ingredient", "ingredients")
        for index, item in enumerate(ingredients):
            _validate_recipe_ingredient(out, index, item)

    if _wants(data, "steps", partial):
        steps = data.get("steps") or []
        if not steps:
            out.add("Recipe must have at least one step", "steps")
        elif not step_numbers_are_contiguous(steps):
            out.add("Step numbers must be consecutive starting from 1", "steps")
        for index, step in enumerate(steps):
            _validate_recipe_step(out, index, step)

    return out.errors


def validate_ingredient(data: Mapping, partial: bool = False) -> List[FieldError]:
    out = _Collector()
    if _wants(data, "name", partial):
        out.check(is_valid_ingredient_name(data.get("name")), "name")
    if "description" in data:
        out.check(has_max_length(data.get("description"), 500, "Description"), "description")
    if "default_unit" in data:
        out.check(has_max_length(data.get("default_unit"), 20, "Default unit", minimum=1), "default_unit")
    if data.get("calories_per_unit") is not None:
        out.check(
            is_valid_nutritional_value(
                data["calories_per_unit"], c.CALORIES_PER_UNIT_MAX, "Calories per unit", " kcal"
            ),
            "calories_per_unit",
        )
    if "allergen_info" in data:
        out.check(has_max_length(data.get("allergen_info"), 255, "Allergen info"), "allergen_info")
    return out.errors


def validate_category(data: Mapping, partial: bool = False) -> List[FieldError]:
    out = _Collector()
    if _wants(data, "name", partial):
        out.check(has_max_length(data.get("name"), 100, "Category name", minimum=2), "name")
    if _wants(data, "description", partial):
        out.check(is_required_text(data.get("description"), 500, "Description"), "description")
    if "icon" in data:
        out.check(has_max_length(data.get("icon"), 10, "Icon"), "icon")
    sort_order = data.get("sort_order")
    if sort_order is not None and (not _is_whole_number(sort_order) or sort_order < 0):
        out.add("Sort order must be a non-negative whole number", "sort_order")
    return out.errors


def validate_rating(data: Mapping, partial: bool = False) -> List[FieldError]:
    out = _Collector()
    if _wants(data, "rating", partial):
        out.check(is_valid_rating(data.get("rating")), "rating")
    if "comment" in data:
        out.check(has_max_length(data.get("comment"), c.RATING_COMMENT_MAX_LENGTH, "Comment"), "comment")
    return out.errors


def validate_profile(data: Mapping) -> List[FieldError]:
    out = _Collector()
    if "avatar" in data:
        out.check(is_valid_image_url(data.get("avatar")), "avatar")
    if "bio" in data:
        out.check(has_max_length(data.get("bio"), c.BIO_MAX_LENGTH, "Bio"), "bio")
    return out.errors


def validate_registration(data: Mapping) -> List[FieldError]:
    out = _Collector()
    for key, label in (("first_name", "First name"), ("last_name", "Last name")):
        out.check(
            has_max_length(data.get(key), c.NAME_MAX_LENGTH, label, minimum=c.NAME_MIN_LENGTH),
            key,
        )
    out.check(is_valid_password(data.get("password")), "password")
    if "confirm_password" in data:
        if not data.get("confirm_password"):
            out.add("Password confirmation is required", "confirm_password")
        elif data["confirm_password"] != data.get("password"):
            out.add("Passwords do not match", "confirm_password")
    out.errors.extend(validate_profile(data))
    return out.errors


def ensure_valid(errors: List[FieldError], message: Optional[str] = None) -> None:
    """Raise ValidationFailed if any rule failed."""
    if errors:
        raise ValidationFailed(errors, message or "Validation failed")
