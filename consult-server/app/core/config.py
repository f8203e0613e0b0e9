"""Application configuration using pydantic settings with structured sections."""

from functools import lru_cache
from typing import Literal, Optional

from pydantic import BaseModel, Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class ServerSettings(BaseModel):
    host: str = "0.0.0.0"
    port: int = 8000
    reload: bool = False


class DatabaseSettings(BaseModel):
    url: str = Field(default="sqlite+aiosqlite:///./consult.db", alias="url")
    echo: bool = False
    pool_size: Optional[int] = None
    max_overflow: Optional[int] = None


class SecuritySettings(BaseModel):
    secret_key: str = Field(default="change-me", min_length=8)
    algorithm: str = "HS256"
    access_token_expire_minutes: int = 60 * 24 * 7


class BillingSettings(BaseModel):
    """Per-minute metering knobs."""

    tick_interval_seconds: float = Field(default=60.0, gt=0)
    default_rate_per_minute_cents: int = Field(default=1000, gt=0)
    provider_share_percent: int = Field(default=80, ge=1, le=100)
    currency: str = "INR"
    catch_up_policy: Literal["incremental", "full"] = "incremental"
    minimum_minutes: int = Field(default=1, ge=1)
    free_trial_seconds: int = Field(default=60, ge=0)
    free_trial_session_types: tuple[str, ...] = ("chat",)


class WebSocketSettings(BaseModel):
    heartbeat_interval: int = 30
    timeout: int = 300


class LoggingSettings(BaseModel):
    level: str = "INFO"
    format: str = "%(asctime)s %(levelname)s [%(name)s] %(message)s"


class Settings(BaseSettings):
    """Top-level application settings with nested sections."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_nested_delimiter="__",
        extra="ignore",
        case_sensitive=False,
    )

    environment: Literal["development", "staging", "production", "test"] = "development"
    debug: bool = False
    project_name: str = "Consultation Billing Server"
    api_prefix: str = "/api"

    server: ServerSettings = ServerSettings()
    database: DatabaseSettings = DatabaseSettings()
    security: SecuritySettings = SecuritySettings()
    billing: BillingSettings = BillingSettings()
    websocket: WebSocketSettings = WebSocketSettings()
    logging: LoggingSettings = LoggingSettings()

    @property
    def database_url(self) -> str:
        return self.database.url

    @property
    def host(self) -> str:
        return self.server.host

    @property
    def port(self) -> int:
        return self.server.port

    @property
    def secret_key(self) -> str:
        return self.security.secret_key

    @property
    def algorithm(self) -> str:
        return self.security.algorithm

    @property
    def access_token_expire_minutes(self) -> int:
        return self.security.access_token_expire_minutes

    @property
    def ws_heartbeat_interval(self) -> int:
        return self.websocket.heartbeat_interval

    @property
    def ws_timeout(self) -> int:
        return self.websocket.timeout


@lru_cache()
def get_settings() -> Settings:
    return Settings()
