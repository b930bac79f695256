# policy.py
# Central authorization rules: who may do what to which resource.

import enum
import logging
from typing import Optional

from recipe_hub import lifecycle, models
from recipe_hub.errors import AuthorizationError

logger = logging.getLogger(__name__)


class Action(str, enum.Enum):
    READ_RECIPE = "read_recipe"
    UPDATE_RECIPE = "update_recipe"
    DELETE_RECIPE = "delete_recipe"
    CHANGE_RECIPE_STATUS = "change_recipe_status"
    MANAGE_RATING = "manage_rating"
    UPDATE_USER = "update_user"
    CHANGE_ROLE = "change_role"
    DELETE_USER = "delete_user"
    MANAGE_REFERENCE_DATA = "manage_reference_data"
    VIEW_ADMIN = "view_admin"


DEFAULT_MESSAGES = {
    Action.READ_RECIPE: "You do not have access to this recipe",
    Action.UPDATE_RECIPE: "You can only update your own recipes",
    Action.DELETE_RECIPE: "You can only delete your own recipes",
    Action.CHANGE_RECIPE_STATUS: "You can only change the status of your own recipes",
    Action.MANAGE_RATING: "You can only edit your own ratings",
    Action.UPDATE_USER: "You can only update your own account",
    Action.CHANGE_ROLE: "You cannot change your own role",
    Action.DELETE_USER: "You cannot delete your own account",
    Action.MANAGE_REFERENCE_DATA: "Admin access required",
    Action.VIEW_ADMIN: "Admin access required",
}


def _is_admin(principal: Optional[models.User]) -> bool:
    return principal is not None and principal.is_admin


def _is_author(principal: Optional[models.User], recipe: models.Recipe) -> bool:
    return principal is not None and recipe.author_id == principal.id


def is_allowed(
    principal: Optional[models.User],
    action: Action,
    resource=None,
    target_status: Optional[models.RecipeStatus] = None,
) -> bool:
    """
    Decide whether ``principal`` (None for anonymous) may perform ``action``.

    ``resource`` is the recipe, rating or user acted on. For CHANGE_RECIPE_STATUS,
    ``target_status`` selects the row of the lifecycle table to check.
    """
    if action == Action.READ_RECIPE:
        if resource.status == models.RecipeStatus.PUBLISHED:
            return True
        return _is_admin(principal) or _is_author(principal, resource)

    if action in (Action.UPDATE_RECIPE, Action.DELETE_RECIPE):
        return _is_admin(principal) or _is_author(principal, resource)

    if action == Action.CHANGE_RECIPE_STATUS:
        if not (_is_admin(principal) or _is_author(principal, resource)):
            return False
        if target_status is not None and lifecycle.requires_admin(resource.status, target_status):
            return _is_admin(principal)
        return True

    if action == Action.MANAGE_RATING:
        return _is_admin(principal) or (principal is not None and resource.user_id == principal.id)

    if action == Action.UPDATE_USER:
        return _is_admin(principal) or (principal is not None and principal.id == resource.id)

    if action in (Action.CHANGE_ROLE, Action.DELETE_USER):
        return _is_admin(principal) and principal.id != resource.id

    if action in (Action.MANAGE_REFERENCE_DATA, Action.VIEW_ADMIN):
        return _is_admin(principal)

    return False


def enforce(
    principal: Optional[models.User],
    action: Action,
    resource=None,
    target_status: Optional[models.RecipeStatus] = None,
    message: Optional[str] = None,
) -> None:
    """Raise AuthorizationError unless ``is_allowed`` agrees."""
    if is_allowed(principal, action, resource, target_status):
        return
    who = principal.email if principal is not None else "anonymous"
    logger.warning(f"Denied {action.value} for {who}")
    if message is None:
        if (
            action == Action.CHANGE_RECIPE_STATUS
            and target_status is not None
            and lifecycle.requires_admin(resource.status, target_status)
            and _is_author(principal, resource)
        ):
            message = "Only administrators can restore archived recipes"
        elif action in (Action.CHANGE_ROLE, Action.DELETE_USER) and not _is_admin(principal):
            message = "Admin access required"
        else:
            message = DEFAULT_MESSAGES[action]
    raise AuthorizationError(message)
