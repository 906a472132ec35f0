from __future__ import annotations

from pydantic import ConfigDict
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    BROKER_URL: str
    STORE_URL: str
    STORE_DB: str = "smsdb"
    CLIENT_ENDPOINT: str

    DB_POOL_SIZE: int = 10
    DB_MAX_OVERFLOW: int = 20
    DB_POOL_RECYCLE: int = 300

    SMS_STREAM: str = "sms-incoming"
    SMS_CONSUMER_GROUP: str = "sms-persistence"
    SMS_CONSUMER_NAME: str = "persistence-1"

    DEDUP_TTL_SECONDS: float = 300.0
    DEDUP_SWEEP_SECONDS: float = 60.0

    # Ingress and consumer reconnect settings are deliberately separate.
    INGRESS_STARTUP_DELAY_SECONDS: float = 5.0
    INGRESS_BROKER_CONNECT_ATTEMPTS: int = 30
    INGRESS_BROKER_CONNECT_DELAY_SECONDS: float = 2.0

    CONSUMER_STARTUP_DELAY_SECONDS: float = 15.0
    CONSUMER_BROKER_CONNECT_ATTEMPTS: int = 60
    CONSUMER_BROKER_CONNECT_DELAY_SECONDS: float = 1.0

    FORWARD_MAX_ATTEMPTS: int = 3
    FORWARD_RETRY_DELAY_SECONDS: float = 1.0
    FORWARD_PACING_MIN_SECONDS: int = 5
    FORWARD_PACING_MAX_SECONDS: int = 30
    FORWARD_TIMEOUT_SECONDS: float = 10.0
    FORWARD_MAX_CONCURRENCY: int = 100
    FORWARD_DRAIN_TIMEOUT_SECONDS: float = 60.0

    @property
    def database_url(self) -> str:
        return f"{self.STORE_URL.rstrip('/')}/{self.STORE_DB}"

    @property
    def listen_dsn(self) -> str:
        """Plain libpq DSN for the raw asyncpg LISTEN connection."""
        return self.database_url.replace("+asyncpg", "")

    model_config = ConfigDict(
        env_file=".env",
        extra="ignore",
    )


settings = Settings()  # type: ignore[call-arg]
