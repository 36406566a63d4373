from functools import lru_cache
from typing import Annotated, Any, Literal

from pydantic import BeforeValidator, Field
from pydantic_settings import BaseSettings, SettingsConfigDict


def parse_status_list(v: Any) -> list[str] | str:
    if isinstance(v, str) and not v.startswith("["):
        return [i.strip().upper() for i in v.split(",") if i.strip()]
    elif isinstance(v, list | str):
        return v
    raise ValueError(v)


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_prefix="SHOPFLOOR_",
        env_ignore_empty=True,
        extra="ignore",
    )

    ENVIRONMENT: Literal["local", "staging", "production"] = "local"

    # Logging
    LOG_LEVEL: str = "INFO"
    LOG_FORMAT: Literal["json", "console"] = "json"

    # Breakdown handling
    BREAKDOWN_RESOLUTION_NOTE: str = "Machine restored to service"
    # Keep a machine DOWN while other breakdowns on it are still open
    STRICT_BREAKDOWN_RESOLUTION: bool = True
    # Reuse an identical open breakdown instead of inserting a duplicate row
    DEDUPLICATE_BREAKDOWN_REPORTS: bool = True

    # Progress roll-up
    DERIVE_PARENT_STATUS: bool = True
    ACTUAL_HOURS_PRECISION: int = Field(default=2, ge=0, le=6)

    # Timeline
    TIMELINE_EXCLUDED_ORDER_STATUSES: Annotated[
        list[str] | str, BeforeValidator(parse_status_list)
    ] = ["DELIVERED", "CANCELLED", "CLOSED"]


@lru_cache
def get_settings() -> Settings:
    return Settings()


settings = get_settings()
