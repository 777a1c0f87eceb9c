"""Configuration for the application."""

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from src.strategy.domain.models import IncompleteConditionPolicy, Weekday


class BackendConfig(BaseSettings):
    """Configuration for the collections backend REST API."""

    model_config = SettingsConfigDict(env_prefix="BACKEND_", env_file=".env", extra="ignore")

    base_url: str = Field(default="http://localhost:8080/api/v1", description="Backend API base URL")
    api_token: str | None = Field(default=None, description="Bearer token sent with every request")
    timeout_seconds: float = Field(default=30.0, gt=0, description="HTTP timeout per request")


class PollingConfig(BaseSettings):
    """Configuration for execution and batch status polling."""

    model_config = SettingsConfigDict(env_prefix="POLLING_", env_file=".env", extra="ignore")

    interval_seconds: float = Field(default=2.0, gt=0, description="Delay between two status requests")


class CompilerConfig(BaseSettings):
    """Configuration for the rule compiler."""

    model_config = SettingsConfigDict(env_prefix="COMPILER_", env_file=".env", extra="ignore")

    incomplete_condition_policy: IncompleteConditionPolicy = Field(
        default=IncompleteConditionPolicy.DROP,
        description="What to do with criteria missing an operand (drop or reject)",
    )
    default_priority: int = Field(default=1, description="Priority used when the draft carries none")
    default_template_name: str = Field(
        default="Default Template", description="Template name sent when none could be resolved"
    )


class ScheduleConfig(BaseSettings):
    """Configuration for schedule normalization."""

    model_config = SettingsConfigDict(env_prefix="SCHEDULE_", env_file=".env", extra="ignore")

    working_days: list[Weekday] = Field(
        default_factory=lambda: [
            Weekday.MONDAY,
            Weekday.TUESDAY,
            Weekday.WEDNESDAY,
            Weekday.THURSDAY,
            Weekday.FRIDAY,
        ],
        description="Weekdays implied by a DAILY schedule",
    )


class CatalogConfig(BaseSettings):
    """Configuration for the filter field catalog."""

    model_config = SettingsConfigDict(env_prefix="CATALOG_", env_file=".env", extra="ignore")

    ttl_seconds: float = Field(
        default=900.0, gt=0, description="How long loaded master-data option lists are reused"
    )


class LoggingConfig(BaseSettings):
    """Configuration for logging sinks."""

    model_config = SettingsConfigDict(env_prefix="LOG_", env_file=".env", extra="ignore")

    level: str = Field(default="INFO", description="Console log level")
    file: str | None = Field(default=None, description="Optional log file path")
    rotation: str = Field(default="100 MB", description="File sink rotation")
    retention: str = Field(default="30 days", description="File sink retention")


class AppConfig(BaseSettings):
    """Application configuration."""

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    backend: BackendConfig = Field(default_factory=BackendConfig)
    polling: PollingConfig = Field(default_factory=PollingConfig)
    compiler: CompilerConfig = Field(default_factory=CompilerConfig)
    schedule: ScheduleConfig = Field(default_factory=ScheduleConfig)
    catalog: CatalogConfig = Field(default_factory=CatalogConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)
