"""Auth and persistence settings."""

from pydantic import AliasChoices, Field
from pydantic_settings import BaseSettings

from shared.auth.token import SESSION_TTL_SECONDS


class AuthSettings(BaseSettings):
    model_config = {"env_prefix": "AUTH_", "populate_by_name": True}

    # HMAC secret for session tokens -- required, no default.
    # The application fails to start if neither AUTH_TOKEN_SECRET nor JWT_SECRET is set.
    token_secret: str = Field(
        min_length=1,
        validation_alias=AliasChoices("AUTH_TOKEN_SECRET", "JWT_SECRET"),
    )

    token_ttl_seconds: int = Field(default=SESSION_TTL_SECONDS, gt=0)

    # SQLite database file path (":memory:" for an isolated store)
    database_path: str = "backend/storage.db"

    # "bcrypt" in production, "simple" for tests
    password_hasher: str = "bcrypt"
    bcrypt_rounds: int = Field(default=10, ge=4, le=31)
