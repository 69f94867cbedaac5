from typing import Optional
from pydantic_settings import BaseSettings, SettingsConfigDict

from common.core.constants import Environment


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8")

    # Environment Profile
    environment: Environment = Environment.LOCAL

    app_name: str = "entitlement-ledger"
    debug: bool = False

    # Database Components
    db_user: str = "postgres"
    db_password: str = "postgres"
    db_host: str = "localhost"
    db_port: int = 5432
    db_name: str = "ledger"
    db_use_nullpool: bool = (
        False  # True for workers (sequential), False for API (concurrent)
    )
    db_pool_size: int = 10
    db_pool_overflow: int = 5

    @property
    def database_url(self) -> str:
        """Construct database URL from components."""
        return f"postgresql://{self.db_user}:{self.db_password}@{self.db_host}:{self.db_port}/{self.db_name}"

    # RabbitMQ
    rabbitmq_host: str = "localhost"
    rabbitmq_port: int = 5672
    rabbitmq_username: str = "guest"
    rabbitmq_password: str = "guest"
    rabbitmq_vhost: str = "/"

    # Redis
    redis_host: str = "localhost"
    redis_port: int = 6379
    redis_password: Optional[str] = None
    redis_db: int = 0

    # OpenTelemetry
    otel_service_name: str = "entitlement-ledger"
    otel_service_version: str = "0.1.0"
    otel_exporter_endpoint: Optional[str] = None  # e.g. http://collector:4318/v1/traces
    otel_exporter_token: Optional[str] = None

    # Ledger
    subscription_duration_years: int = 1
    renewal_scan_lock_ttl_seconds: int = 600
    renewal_scan_batch_size: int = 500


settings = Settings()
