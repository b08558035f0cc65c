"""Defines Pydantic models for the builder section of the configuration."""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from .config import DEFAULT_CONFIG, Config
from .menus import DROPDOWN_ITEMS_LIMIT


class AllowedResources(BaseModel):
    """Building blocks used to populate the builder dropdowns."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    # If empty, the builder lists all namespaces and needs permission to do so.
    namespaces: tuple[str, ...] = Field(default=())
    # At least one sub-command must be allowed, and no more than fit in the
    # command dropdown. "resources" is the legacy key.
    cmds: tuple[str, ...] = Field(
        ..., alias="resources", min_length=1, max_length=DROPDOWN_ITEMS_LIMIT
    )

    @field_validator("cmds", "namespaces", mode="before")
    @classmethod
    def drop_blank_entries(cls, v: Any) -> Any:
        if isinstance(v, list | tuple):
            return tuple(str(item).strip() for item in v if str(item).strip())
        return v


class BuilderConfig(BaseModel):
    """Validated, immutable builder configuration."""

    model_config = ConfigDict(frozen=True)

    allowed: AllowedResources
    default_namespace: str = "default"

    @classmethod
    def default(cls) -> "BuilderConfig":
        return cls.model_validate(
            {
                "allowed": DEFAULT_CONFIG["builder"]["allowed"],
                "default_namespace": DEFAULT_CONFIG["core"]["default_namespace"],
            }
        )

    @classmethod
    def from_config(cls, config: Config) -> "BuilderConfig":
        """Build from the user's configuration file.

        Raises:
            ValueError: If the builder section is invalid
        """
        try:
            return cls.model_validate(
                {
                    "allowed": config.get("builder.allowed", {}) or {},
                    "default_namespace": config.get("core.default_namespace")
                    or "default",
                }
            )
        except ValidationError as e:
            raise ValueError(f"Invalid builder configuration: {e}") from e
