# lifecycle.py
# Recipe status state machine: draft -> published -> archived and back.

import logging
from typing import List, Optional

from recipe_hub import models
from recipe_hub.errors import ValidationFailed
from recipe_hub.validation import FieldError

logger = logging.getLogger(__name__)

Status = models.RecipeStatus

# Exhaustive table of legal moves. Anything not listed is rejected.
ALLOWED_TRANSITIONS = {
    Status.DRAFT: {Status.PUBLISHED, Status.ARCHIVED},
    Status.PUBLISHED: {Status.DRAFT, Status.ARCHIVED},
    Status.ARCHIVED: {Status.DRAFT},
}

# Restoring from the archive is reserved for administrators.
ADMIN_ONLY_TRANSITIONS = {(Status.ARCHIVED, Status.DRAFT)}


def is_legal_transition(current: Status, target: Status) -> bool:
    return target in ALLOWED_TRANSITIONS.get(current, set())


def requires_admin(current: Status, target: Status) -> bool:
    return (current, target) in ADMIN_ONLY_TRANSITIONS


def completeness_errors(recipe) -> List[FieldError]:
    """A recipe may only leave draft once it has at least one ingredient and one step."""
    errors = []
    if not recipe.ingredients:
        errors.append(FieldError("ingredients", "Recipe must have at least one ingredient"))
    if not recipe.steps:
        errors.append(FieldError("steps", "Recipe must have at least one step"))
    return errors


def transition(recipe: models.Recipe, target: Status, source: Optional[Status] = None) -> bool:
    """
    Move a recipe to ``target``.

    Returns False when the recipe is already in that status (no-op), True when
    the status changed. Raises ValidationFailed for an illegal move or when an
    incomplete recipe tries to leave draft. Who may ask is checked by
    ``policy`` before this is called.

    When ``source`` is given the recipe must currently be in that status, so
    unpublish only applies to published recipes and restore to archived ones.
    """
    current = recipe.status
    if current == target:
        return False

    if (source is not None and current != source) or not is_legal_transition(current, target):
        message = f"Invalid status transition from '{current.value}' to '{target.value}'"
        raise ValidationFailed([FieldError("status", message)], message)

    if current == Status.DRAFT and target != Status.ARCHIVED:
        errors = completeness_errors(recipe)
        if errors:
            raise ValidationFailed(errors, "Recipe is incomplete and cannot leave draft")

    logger.info(f"Recipe {recipe.id} status {current.value} -> {target.value}")
    recipe.status = target
    return True
