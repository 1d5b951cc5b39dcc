"""Configuration schema using Pydantic."""

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from framebus.bus.events import ALLOW_ANY_ORIGIN, DEFAULT_NAMESPACE


class BusConfig(BaseSettings):
    """Message bus configuration."""
    default_namespace: str = DEFAULT_NAMESPACE  # Appended to bare message types
    target_origin: str = ALLOW_ANY_ORIGIN  # Default targetOrigin for sends
    allowed_origins: list[str] = Field(default_factory=lambda: [ALLOW_ANY_ORIGIN])  # Trusted sender origins
    namespaces: list[str] = Field(default_factory=list)  # Namespaces listened to at startup
    log_level: str = "INFO"

    @field_validator("default_namespace")
    def _strip_namespace(cls, v: str) -> str:
        name = v.strip().lstrip(".")
        if not name:
            raise ValueError("default_namespace must not be empty")
        return name

    @field_validator("log_level")
    def _upper_level(cls, v: str) -> str:
        return v.strip().upper()

    model_config = SettingsConfigDict(
        env_prefix="FRAMEBUS_",
        env_nested_delimiter="__",
    )
