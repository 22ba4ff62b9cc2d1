"""
Application settings loaded from environment variables.
"""

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    # ── Token signing ────────────────────────────────────────────────────
    jwt_secret: str = "change-me-jwt-secret-key-at-least-32-bytes"  # HMAC secret for access/refresh tokens
    jwt_algorithm: str = "HS256"
    access_token_lifetime_seconds: int = 300            # 5 minutes
    refresh_token_lifetime_seconds: int = 86400         # 1 day
    bcrypt_rounds: int = 12

    # ── Database ─────────────────────────────────────────────────────────
    database_url: str = "sqlite+aiosqlite:///./auth.db"

    # ── Server ───────────────────────────────────────────────────────────
    port: int = 8000
    host: str = "0.0.0.0"
    debug: bool = False
    cors_origins: list = ["*"]

    # ── Client ───────────────────────────────────────────────────────────
    api_url: str = "http://localhost:8000/api"
    session_namespace: str = "auth"
    session_store_path: str = "~/.jwt_session/storage.json"
    request_timeout: float = 10.0

    model_config = {
        "env_file": ".env",
        "case_sensitive": False,
    }


config = Settings()
