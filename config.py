"""Application settings loaded from the environment (and an optional .env file)."""
from functools import lru_cache
from typing import List, Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


DEFAULT_ORIGINS = (
    "http://localhost:3000,https://localhost:3000,"
    "http://127.0.0.1:3000,https://127.0.0.1:3000,"
    "http://localhost:8501"
)


class Settings(BaseSettings):
    # Database
    database_url: str = Field(..., description="MongoDB connection string")
    database_name: str = Field(default="customer_payments")

    # Tokens
    jwt_secret: str = Field(..., min_length=32, description="Bearer token signing secret")
    jwt_algorithm: str = Field(default="HS256")
    token_expiry_hours: int = Field(default=24, ge=1)
    employee_token_expiry_hours: int = Field(default=2, ge=1)

    # Shared secret required by /user/admin/signup
    admin_signup_secret: str = Field(..., min_length=8)

    # HTTP
    host: str = Field(default="0.0.0.0")
    port: int = Field(default=5001)
    frontend_origins: str = Field(default=DEFAULT_ORIGINS)
    ssl_keyfile: Optional[str] = None
    ssl_certfile: Optional[str] = None

    # Per-process throttling
    rate_limit_requests: int = Field(default=100, ge=1)
    rate_limit_window_seconds: int = Field(default=15 * 60, ge=1)
    login_max_failures: int = Field(default=5, ge=1)
    login_lockout_seconds: int = Field(default=5 * 60, ge=1)

    enable_debug_routes: bool = False
    app_env: str = Field(default="development")
    log_level: str = Field(default="INFO")

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    @field_validator("database_url")
    @classmethod
    def validate_database_url(cls, v: str) -> str:
        if not v.startswith(("mongodb://", "mongodb+srv://")):
            raise ValueError("DATABASE_URL must start with mongodb:// or mongodb+srv://")
        return v

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        valid_levels = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
        if v.upper() not in valid_levels:
            raise ValueError(f"Invalid log level. Must be one of: {valid_levels}")
        return v.upper()

    def get_allowed_origins_list(self) -> List[str]:
        return [o.strip() for o in self.frontend_origins.split(",") if o.strip()]

    @property
    def tls_enabled(self) -> bool:
        return bool(self.ssl_keyfile and self.ssl_certfile)

    @property
    def is_production(self) -> bool:
        return self.app_env.lower() == "production"


@lru_cache()
def get_settings() -> Settings:
    """Load settings once; raises ValidationError when a required value is missing."""
    return Settings()
