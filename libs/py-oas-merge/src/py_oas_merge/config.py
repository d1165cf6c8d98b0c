"""Environment driven settings for the merge tooling."""

import os
from functools import lru_cache

from pydantic import BaseModel, field_validator


def _env_bool(name: str, default: bool) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


class MergeSettings(BaseModel):
    """Settings for logging and output of merge runs."""

    service_name: str = "oas-merge"
    log_level: str = "INFO"
    json_logs: bool = False
    default_format: str = "yaml"

    @field_validator("log_level")
    @classmethod
    def _upper_level(cls, value: str) -> str:
        return value.upper()

    @field_validator("default_format")
    @classmethod
    def _known_format(cls, value: str) -> str:
        value = value.lower()
        if value not in ("yaml", "json"):
            raise ValueError(f"unsupported output format: {value}")
        return value


@lru_cache(maxsize=1)
def get_settings() -> MergeSettings:
    """Read settings from the environment once per process."""
    return MergeSettings(
        service_name=os.getenv("OAS_MERGE_SERVICE_NAME", "oas-merge"),
        log_level=os.getenv("OAS_MERGE_LOG_LEVEL", "INFO"),
        json_logs=_env_bool("OAS_MERGE_JSON_LOGS", False),
        default_format=os.getenv("OAS_MERGE_DEFAULT_FORMAT", "yaml"),
    )
