# errors.py
# Domain error taxonomy. Each error knows the HTTP status it maps to;
# the handlers in main.py turn them into the standard response envelope.

from typing import Any, Dict, List, Optional


class RecipeHubError(Exception):
    status_code = 500
    error_code = "INTERNAL_ERROR"

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.details = details


class ValidationFailed(RecipeHubError):
    status_code = 400
    error_code = "VALIDATION_FAILED"

    def __init__(self, errors: List[Any], message: str = "Validation failed"):
        super().__init__(message)
        self.errors = list(errors)

    def error_list(self) -> List[Dict[str, str]]:
        return [e.to_dict() if hasattr(e, "to_dict") else dict(e) for e in self.errors]


class AuthenticationError(RecipeHubError):
    status_code = 401
    error_code = "UNAUTHORIZED"


class AuthorizationError(RecipeHubError):
    status_code = 403
    error_code = "FORBIDDEN"


class NotFoundError(RecipeHubError):
    status_code = 404
    error_code = "NOT_FOUND"

    @classmethod
    def for_resource(cls, resource: str, resource_id: Any) -> "NotFoundError":
        return cls(f"{resource} not found", {"resource": resource, "id": str(resource_id)})


class ConflictError(RecipeHubError):
    status_code = 409
    error_code = "CONFLICT"

    @classmethod
    def duplicate(cls, field: str, value: Any) -> "ConflictError":
        return cls(f"A record with this {field} already exists", {"field": field, "value": str(value)})
