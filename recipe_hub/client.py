# client.py
# Thin HTTP client for the Recipe Hub API.
#
# Payloads are checked locally with the same rules the server uses before
# anything is sent. Server-side field errors come back as ApiError.errors.

import logging
from typing import Any, Dict, List, Optional

import requests
from pydantic import ValidationError

from recipe_hub import schemas
from recipe_hub.validation import (
    FieldError,
    validate_profile,
    validate_rating,
    validate_recipe,
    validate_registration,
)

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 10


class ApiError(Exception):
    """An error response from the API (or a payload rejected locally)."""

    retryable = False

    def __init__(self, message: str, status_code: Optional[int] = None, error: Optional[str] = None,
                 errors: Optional[List[FieldError]] = None):
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        self.error = error
        self.errors = errors or []

    def field_messages(self) -> Dict[str, str]:
        return {e.field: e.message for e in self.errors}


class LocalValidationError(ApiError):
    """The payload failed the shared rules; no request was sent."""

    def __init__(self, errors: List[FieldError]):
        super().__init__("Validation failed", status_code=None, error="VALIDATION_FAILED", errors=errors)


class ApiUnavailableError(ApiError):
    """Network failure, timeout or 5xx. Safe to retry later."""

    retryable = True


def _pydantic_errors(exc: ValidationError) -> List[FieldError]:
    return [
        FieldError(".".join(str(part) for part in error["loc"]), error["msg"])
        for error in exc.errors()
    ]


def _parse(model, payload: Dict[str, Any]):
    try:
        return model.model_validate(payload)
    except ValidationError as exc:
        raise LocalValidationError(_pydantic_errors(exc))


class RecipeHubClient:
    """
    Usage::

        client = RecipeHubClient("http://localhost:8000")
        client.login("cook@example.com", "Secret123!")
        page = client.list_recipes(search="pasta")

    ``session`` may be any object with a requests-style ``request`` method;
    it defaults to a ``requests.Session``.
    """

    def __init__(self, base_url: str = "http://localhost:8000", api_prefix: str = "/api/v1",
                 session=None, timeout: float = DEFAULT_TIMEOUT):
        self.base_url = base_url.rstrip("/") + api_prefix
        self.session = session or requests.Session()
        self.timeout = timeout
        self.access_token: Optional[str] = None
        self.refresh_token: Optional[str] = None

    # --- Transport ---

    def _headers(self) -> Dict[str, str]:
        headers = {"Accept": "application/json"}
        if self.access_token:
            headers["Authorization"] = f"Bearer {self.access_token}"
        return headers

    def _request(self, method: str, path: str, json: Any = None, params: Optional[dict] = None) -> Any:
        url = f"{self.base_url}{path}"
        logger.debug(f"{method} {url}")
        try:
            response = self.session.request(
                method, url, json=json, params=params, headers=self._headers(), timeout=self.timeout
            )
        except (requests.Timeout, requests.ConnectionError) as exc:
            logger.warning(f"{method} {url} failed: {exc}")
            raise ApiUnavailableError(f"Recipe Hub API is unavailable: {exc}") from exc

        try:
            body = response.json()
        except ValueError:
            body = {}

        if response.status_code >= 500:
            raise ApiUnavailableError(body.get("message", "Server error"), response.status_code,
                                      body.get("error"))
        if response.status_code >= 400:
            errors = [FieldError(e["field"], e["message"]) for e in body.get("errors") or []]
            raise ApiError(body.get("message", "Request failed"), response.status_code, body.get("error"), errors)
        return body.get("data")

    def _store_tokens(self, tokens: Dict[str, Any]) -> None:
        self.access_token = tokens["accessToken"]
        self.refresh_token = tokens["refreshToken"]

    # --- Auth ---

    def register(self, first_name: str, last_name: str, email: str, password: str,
                 confirm_password: Optional[str] = None, **extra) -> dict:
        request = _parse(schemas.RegisterRequest, dict(
            first_name=first_name, last_name=last_name, email=email, password=password,
            confirm_password=password if confirm_password is None else confirm_password, **extra,
        ))
        errors = validate_registration(request.model_dump())
        if errors:
            raise LocalValidationError(errors)
        data = self._request("POST", "/auth/register", json=request.model_dump(mode="json", by_alias=True))
        self._store_tokens(data["tokens"])
        return data["user"]

    def login(self, email: str, password: str) -> dict:
        data = self._request("POST", "/auth/login", json={"email": email, "password": password})
        self._store_tokens(data["tokens"])
        return data["user"]

    def refresh(self) -> None:
        data = self._request("POST", "/auth/refresh", json={"refreshToken": self.refresh_token})
        self._store_tokens(data)

    def logout(self) -> None:
        self.access_token = None
        self.refresh_token = None

    def me(self) -> dict:
        return self._request("GET", "/auth/me")

    def update_profile(self, **fields) -> dict:
        profile = _parse(schemas.ProfileUpdate, fields)
        errors = validate_profile(profile.model_dump(exclude_unset=True))
        if errors:
            raise LocalValidationError(errors)
        return self._request("PATCH", "/users/profile",
                             json=profile.model_dump(mode="json", by_alias=True, exclude_unset=True))

    # --- Recipes ---

    def list_recipes(self, **params) -> dict:
        return self._request("GET", "/recipes/", params=params)

    def my_recipes(self, **params) -> dict:
        return self._request("GET", "/recipes/my/recipes", params=params)

    def get_recipe(self, recipe_id) -> dict:
        return self._request("GET", f"/recipes/{recipe_id}")

    def create_recipe(self, payload: Dict[str, Any]) -> dict:
        recipe = _parse(schemas.RecipeCreate, payload)
        errors = validate_recipe(recipe.model_dump())
        if errors:
            raise LocalValidationError(errors)
        return self._request("POST", "/recipes/",
                             json=recipe.model_dump(mode="json", by_alias=True, exclude_unset=True))

    def update_recipe(self, recipe_id, payload: Dict[str, Any]) -> dict:
        recipe = _parse(schemas.RecipeUpdate, payload)
        errors = validate_recipe(recipe.model_dump(exclude_unset=True), partial=True)
        if errors:
            raise LocalValidationError(errors)
        return self._request("PATCH", f"/recipes/{recipe_id}",
                             json=recipe.model_dump(mode="json", by_alias=True, exclude_unset=True))

    def delete_recipe(self, recipe_id) -> None:
        self._request("DELETE", f"/recipes/{recipe_id}")

    def publish_recipe(self, recipe_id) -> dict:
        return self._request("POST", f"/recipes/{recipe_id}/publish")

    def unpublish_recipe(self, recipe_id) -> dict:
        return self._request("POST", f"/recipes/{recipe_id}/unpublish")

    def archive_recipe(self, recipe_id) -> dict:
        return self._request("POST", f"/recipes/{recipe_id}/archive")

    def restore_recipe(self, recipe_id) -> dict:
        return self._request("POST", f"/recipes/{recipe_id}/restore")

    def remove_step(self, recipe_id, step_number: int) -> dict:
        return self._request("DELETE", f"/recipes/{recipe_id}/steps/{step_number}")

    def like_recipe(self, recipe_id) -> dict:
        return self._request("POST", f"/recipes/{recipe_id}/like")

    def unlike_recipe(self, recipe_id) -> dict:
        return self._request("DELETE", f"/recipes/{recipe_id}/like")

    def featured_recipes(self, limit: int = 6) -> list:
        return self._request("GET", "/recipes/featured", params={"limit": limit})

    # --- Ratings and favorites ---

    def rate_recipe(self, recipe_id, rating: int, comment: Optional[str] = None) -> dict:
        request = _parse(schemas.RatingCreate, {"recipe_id": recipe_id, "rating": rating, "comment": comment})
        errors = validate_rating(request.model_dump())
        if errors:
            raise LocalValidationError(errors)
        return self._request("POST", "/ratings/", json=request.model_dump(mode="json", by_alias=True))

    def rating_summary(self, recipe_id) -> dict:
        return self._request("GET", f"/ratings/recipe/{recipe_id}/summary")

    def add_favorite(self, recipe_id) -> dict:
        return self._request("POST", "/users/favorites", json={"recipeId": str(recipe_id)})

    def remove_favorite(self, recipe_id) -> None:
        self._request("DELETE", f"/users/favorites/{recipe_id}")

    def list_favorites(self, **params) -> dict:
        return self._request("GET", "/users/favorites", params=params)

    # --- Reference data ---

    def list_categories(self) -> list:
        return self._request("GET", "/categories/")

    def list_ingredients(self, **params) -> dict:
        return self._request("GET", "/ingredients/", params=params)
