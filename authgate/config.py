# authgate/config.py

"""
Configuration module for the authgate JWT authentication service.

Runtime settings are declared with Pydantic's `BaseSettings`, so every value
can come from the environment or a `.env` file and is validated at startup.

Two layers live here:
- `Settings`: the process-wide, environment-backed configuration.
- `AuthConfig`: the frozen slice of it that the token policy and the JWT
  strategy are built from. It is constructed once and passed explicitly
  into both, never looked up globally.

🔐 `JWT_SECRET_KEY` is mandatory; the service refuses to start without it.
"""

from functools import lru_cache
from typing import List, Literal, Optional, Union

from jwt.algorithms import get_default_algorithms
from pydantic import AnyHttpUrl, BaseModel, ConfigDict, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class AuthConfig(BaseModel):
    """
    Immutable token policy configuration.

    `ignore_expiration` is pinned to False: expiry is always enforced.
    """

    model_config = ConfigDict(frozen=True)

    secret: str = Field(..., min_length=1)
    issuer: str
    audience: str
    algorithm: str = "HS256"
    leeway_seconds: int = 0
    query_param: str = "token"
    ignore_expiration: Literal[False] = False


class Settings(BaseSettings):
    # ─── Secrets (required from .env or environment) ───────────────────────────
    jwt_secret_key: str                      # Key material used to sign and verify JWTs
    session_secret_key: Optional[str] = None  # Session cookie key, falls back to the JWT key

    # ─── Token Policy ──────────────────────────────────────────────────────────
    jwt_issuer: str = "authgate"
    jwt_audience: str = "authgate-clients"
    jwt_algorithm: str = "HS256"
    jwt_leeway_seconds: int = 0   # Clock skew tolerated when checking exp
    jwt_query_param: str = "token"  # Query parameter consulted when no bearer header is sent

    # ─── Authenticate Middleware ───────────────────────────────────────────────
    # When true, a successful login is also persisted in the session cookie
    jwt_session: bool = False

    # ─── Service ───────────────────────────────────────────────────────────────
    log_level: str = "INFO"
    cors_origins: List[Union[AnyHttpUrl, Literal["*"]]] = ["*"]

    # ─── Pydantic Global Configuration ─────────────────────────────────────────
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # ─── Validators ────────────────────────────────────────────────────────────
    @field_validator("jwt_algorithm")
    @classmethod
    def check_algorithm(cls, v: str) -> str:
        """
        Only algorithms PyJWT can actually sign with are accepted, so a typo
        fails at boot instead of on the first login.
        """
        if v not in get_default_algorithms():
            raise ValueError(f"unsupported JWT algorithm `{v}`")
        if v == "none":
            raise ValueError("unsigned tokens are not allowed")
        return v

    @field_validator("jwt_leeway_seconds")
    @classmethod
    def check_leeway(cls, v: int) -> int:
        if v < 0:
            raise ValueError("jwt_leeway_seconds must not be negative")
        return v

    def auth_config(self) -> AuthConfig:
        """Build the frozen policy configuration from these settings."""
        return AuthConfig(
            secret=self.jwt_secret_key,
            issuer=self.jwt_issuer,
            audience=self.jwt_audience,
            algorithm=self.jwt_algorithm,
            leeway_seconds=self.jwt_leeway_seconds,
            query_param=self.jwt_query_param,
        )


@lru_cache
def get_settings() -> Settings:
    """
    Process-wide settings, read from the environment on first use.

    Cached so the configuration is built once at startup and stays fixed.
    Tests call `get_settings.cache_clear()` after changing the environment.
    """
    return Settings()
