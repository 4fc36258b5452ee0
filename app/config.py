from functools import lru_cache
from pathlib import Path
from typing import Annotated, List

from pydantic import AnyHttpUrl, Field, field_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    app_name: str = Field(default="Agropal API", description="Human readable service name")
    environment: str = Field(default="development", description="Deployment environment name")
    debug: bool = Field(default=True, description="Enable debug mode")

    cors_origins: Annotated[List[AnyHttpUrl], NoDecode] = Field(
        default_factory=lambda: [
            "http://localhost:3000",
            "http://127.0.0.1:3000",
        ],
        description="List of allowed CORS origins (the React frontend)",
    )

    mongo_url: str = Field(default="mongodb://localhost:27017", description="MongoDB connection URL")
    mongo_db_name: str = Field(default="agropal", description="MongoDB database name")
    mongo_server_selection_timeout_ms: int = Field(default=5000)
    mongo_connect_timeout_ms: int = Field(default=10000)

    jwt_secret_key: str = Field(
        default="change-me-agropal-development-secret",
        description="Shared secret used to sign access tokens",
    )
    jwt_algorithm: str = Field(default="HS256")
    access_token_expire_minutes: int = Field(default=60 * 24 * 7)

    websocket_keepalive_timeout_seconds: float = Field(
        default=30,
        description="Idle seconds before the server checks the socket and sends a ping",
    )
    websocket_keepalive_ping_interval_seconds: float = Field(
        default=25,
        description="Minimum delay between two server pings on an idle socket",
    )
    websocket_keepalive_max_missed_pings: int = Field(
        default=3,
        description="Unanswered pings after which the socket is closed (0 never closes)",
    )
    realtime_auth_timeout_seconds: float = Field(
        default=5,
        description="Upper bound for handshake credential verification; slower lookups are rejected",
    )

    notifications_page_size: int = Field(default=20)
    notifications_max_page_size: int = Field(default=100)
    notification_scheduler_interval_seconds: float = Field(
        default=60,
        description="Delay between runs of the scheduled notification dispatcher (0 disables it)",
    )

    model_config = SettingsConfigDict(
        env_file=str(Path(__file__).resolve().parents[1] / ".env"),
        env_file_encoding="utf-8",
        extra="ignore",
    )

    @field_validator("cors_origins", mode="before")
    @classmethod
    def assemble_cors_origins(cls, v):  # type: ignore[override]
        if v in (None, "", Ellipsis):
            return v
        if isinstance(v, str):
            return [origin.strip() for origin in v.split(",") if origin.strip()]
        if isinstance(v, (list, tuple, set)):
            return list(v)
        return v


@lru_cache
def get_settings() -> Settings:
    return Settings()
