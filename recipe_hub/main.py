# main.py
# Main application file for the Recipe Hub API.

import logging
import logging.config
import os

import uvicorn
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.responses import Response

# Import local modules
from recipe_hub import models
from recipe_hub.api import auth, categories, ingredients, ratings, recipes, users
from recipe_hub.core.config import settings
from recipe_hub.core.logging_middleware import StructuredLoggingMiddleware
from recipe_hub.core.rate_limit import limiter
from recipe_hub.db.session import engine
from recipe_hub.errors import RecipeHubError, ValidationFailed

# Load logging configuration
if os.path.exists(settings.LOGGING_CONFIG):
    logging.config.fileConfig(settings.LOGGING_CONFIG, disable_existing_loggers=False)
else:
    logging.basicConfig(level=logging.INFO)

# Get the logger instance
logger = logging.getLogger(__name__)

# Create all database tables for local development; migrations live in alembic/
models.Base.metadata.create_all(bind=engine)

# Initialize the FastAPI app
app = FastAPI(
    title=settings.PROJECT_NAME,
    description="API for sharing recipes, with user accounts, categories, ingredients, ratings and favorites.",
    version="1.0.0",
    root_path=settings.ROOT_PATH,
    openapi_url=f"{settings.API_V1_STR}/openapi.json",
    docs_url=f"{settings.API_V1_STR}/docs",
)

# Add rate limiter to app state and register exception handler
app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)


# --- Exception Handlers ---

HTTP_ERROR_CODES = {
    400: "BAD_REQUEST",
    401: "UNAUTHORIZED",
    403: "FORBIDDEN",
    404: "NOT_FOUND",
    405: "METHOD_NOT_ALLOWED",
    409: "CONFLICT",
}


def error_response(status_code: int, message: str, error: str, errors=None, headers=None) -> JSONResponse:
    body = {"success": False, "message": message, "error": error}
    if errors is not None:
        body["errors"] = errors
    return JSONResponse(status_code=status_code, content=body, headers=headers)


def _log_denied(request: Request, status_code: int, message: str) -> None:
    if status_code in (401, 403):
        client_ip = request.client.host if request.client else None
        logger.warning(f"{status_code} {request.method} {request.url.path} from {client_ip}: {message}")


@app.exception_handler(RecipeHubError)
async def recipe_hub_error_handler(request: Request, exc: RecipeHubError):
    _log_denied(request, exc.status_code, exc.message)
    errors = exc.error_list() if isinstance(exc, ValidationFailed) else None
    headers = {"WWW-Authenticate": "Bearer"} if exc.status_code == 401 else None
    return error_response(exc.status_code, exc.message, exc.error_code, errors, headers)


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError):
    errors = []
    for error in exc.errors():
        # Drop the leading "body"/"query"/"path" segment
        loc = [str(part) for part in error["loc"][1:]] or [str(error["loc"][0])]
        errors.append({"field": ".".join(loc), "message": error["msg"]})
    logger.debug(f"Request validation failed on {request.url.path}: {errors}")
    return error_response(400, "Validation failed", ValidationFailed.error_code, errors)


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    message = exc.detail if isinstance(exc.detail, str) else "Request failed"
    _log_denied(request, exc.status_code, message)
    error = HTTP_ERROR_CODES.get(exc.status_code, "HTTP_ERROR")
    return error_response(exc.status_code, message, error, headers=getattr(exc, "headers", None))


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception):
    logger.exception(f"Unhandled error on {request.method} {request.url.path}")
    return error_response(500, "An unexpected error occurred", "INTERNAL_ERROR")


# --- Add Structured Logging Middleware ---
app.add_middleware(StructuredLoggingMiddleware)

# --- Add CORS Middleware ---
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PATCH", "DELETE", "OPTIONS"],
    allow_headers=["Authorization", "Content-Type", "Accept"],
    expose_headers=["X-Total-Count"],
)


# --- Security Headers Middleware ---

class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    """Add security headers to all responses."""

    async def dispatch(self, request: Request, call_next):
        response: Response = await call_next(request)
        response.headers["X-Frame-Options"] = "DENY"
        response.headers["X-Content-Type-Options"] = "nosniff"
        response.headers["Referrer-Policy"] = "strict-origin-when-cross-origin"
        if settings.ENVIRONMENT in ["development", "testing"]:
            # Swagger UI loads its assets from a CDN
            response.headers["Content-Security-Policy"] = (
                "default-src 'self'; "
                "img-src 'self' data: https://fastapi.tiangolo.com; "
                "style-src 'self' 'unsafe-inline' https://cdn.jsdelivr.net; "
                "script-src 'self' 'unsafe-inline' https://cdn.jsdelivr.net"
            )
        else:
            response.headers["Content-Security-Policy"] = "default-src 'self'"
        return response


app.add_middleware(SecurityHeadersMiddleware)

# Include API routers
app.include_router(auth.router, prefix=f"{settings.API_V1_STR}/auth", tags=["Authentication"])
app.include_router(users.router, prefix=f"{settings.API_V1_STR}/users", tags=["Users"])
app.include_router(recipes.router, prefix=f"{settings.API_V1_STR}/recipes", tags=["Recipes"])
app.include_router(categories.router, prefix=f"{settings.API_V1_STR}/categories", tags=["Categories"])
app.include_router(ingredients.router, prefix=f"{settings.API_V1_STR}/ingredients", tags=["Ingredients"])
app.include_router(ratings.router, prefix=f"{settings.API_V1_STR}/ratings", tags=["Ratings"])


@app.get("/", tags=["Root"])
async def read_root():
    """
    Root endpoint to check if the API is running.
    """
    logger.debug("Root endpoint accessed")
    return {"success": True, "message": "Welcome to the Recipe Hub API!", "data": {"docs": app.docs_url}}


if __name__ == "__main__":
    # Development server; run behind a process manager in production.
    uvicorn.run("recipe_hub.main:app", host="0.0.0.0", port=8000, reload=True)
