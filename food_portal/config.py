"""Application configuration using Pydantic Settings."""
import re

from pydantic import model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

_TOKEN_PREFIX_RE = re.compile(r"^[A-Z]{3}$")


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    # App
    app_name: str = "Food Distribution Portal"
    debug: bool = False
    log_level: str = "INFO"

    # MongoDB
    mongodb_url: str = "mongodb://localhost:27017"
    mongodb_db_name: str = "food_distribution"

    # JWT
    jwt_secret_key: str = "change-me-in-production"
    jwt_algorithm: str = "HS256"
    jwt_access_token_expire_minutes: int = 60
    jwt_refresh_token_expire_days: int = 30

    # Credentials
    bcrypt_rounds: int = 12
    min_password_length: int = 6

    # Pickup tokens look like SAY-1234
    token_prefix: str = "SAY"

    # Firebase (FCM)
    firebase_credentials_path: str = ""

    # CORS (comma-separated origins)
    cors_origins: str = "http://localhost:5173"

    # Bootstrap account, created on startup when missing
    super_admin_email: str = "superadmin@foodportal.org"
    super_admin_password: str = "change-me-now"
    super_admin_name: str = "Super Admin"

    @model_validator(mode="after")
    def _validate_production_secrets(self):
        if not self.debug:
            if self.jwt_secret_key in ("change-me-in-production", ""):
                raise ValueError(
                    "JWT_SECRET_KEY must be set to a strong secret when DEBUG is not enabled. "
                    "Generate one with: python -c \"import secrets; print(secrets.token_hex(32))\""
                )
        if not _TOKEN_PREFIX_RE.match(self.token_prefix):
            raise ValueError("TOKEN_PREFIX must be exactly three uppercase letters, e.g. SAY")
        return self


settings = Settings()
