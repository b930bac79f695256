from pydantic_settings import BaseSettings, SettingsConfigDict
from typing import List

class Settings(BaseSettings):
    PROJECT_NAME: str = "Recipe Hub API"
    ROOT_PATH: str = ""
    API_V1_STR: str = "/api/v1"
    ENVIRONMENT: str = "development"

    # Tokens
    SECRET_KEY: str = "change-me-access-secret"  # Default for dev, override in prod
    REFRESH_SECRET_KEY: str = "change-me-refresh-secret"
    ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 60
    REFRESH_TOKEN_EXPIRE_DAYS: int = 7

    # Password hashing cost; tests lower this to keep bcrypt fast
    BCRYPT_ROUNDS: int = 12

    FIRST_SUPERUSER_EMAIL: str = "admin@example.com"
    FIRST_SUPERUSER_PASSWORD: str = "Admin123!"
    FIRST_SUPERUSER_FIRST_NAME: str = "Initial"
    FIRST_SUPERUSER_LAST_NAME: str = "Admin"

    # Database
    DATABASE_URL: str = "sqlite:///./recipe_hub.db"

    # Logging
    LOGGING_CONFIG: str = "logging.ini"
    # Structured request log: always keep requests slower than this, sample the rest
    SLOW_REQUEST_MS: float = 500
    LOG_SAMPLE_RATE: float = 0.05

    # Rate limiting
    RATE_LIMIT_ENABLED: bool = True
    AUTH_RATE_LIMIT: str = "10/minute"

    # CORS
    CORS_ORIGINS: List[str] = [
        "http://localhost:5173",
        "http://localhost:3000"
    ]

    model_config = SettingsConfigDict(case_sensitive=True, env_file=".env")

settings = Settings()
