"""Configuration settings for the watermarker"""

from __future__ import annotations

from functools import lru_cache
from pathlib import Path
from typing import Any, Dict, List, Optional, Set

import yaml
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from .errors import InvalidArgument

DEFAULT_SUPPORTED_TYPES = "image/jpeg,image/png,image/webp"
DEFAULT_DERIVATIVE_TYPES = "large,medium"


class Settings(BaseSettings):
    """Global watermarking toggles and filesystem locations."""

    # Feature toggles
    enabled: bool = Field(True, description="Watermarking enabled globally")
    apply_on_upload: bool = Field(True, description="Watermark new media when it is uploaded")
    apply_on_import: bool = Field(True, description="Watermark media created by an import")

    # Processing settings
    supported_types: str = Field(DEFAULT_SUPPORTED_TYPES, description="Comma separated MIME types to watermark")
    derivative_types: str = Field(DEFAULT_DERIVATIVE_TYPES, description="Comma separated derivative renditions to watermark")

    # Storage
    files_root: Path = Field(Path("./files"), description="Root directory holding original, derivative and asset files")
    database_path: Path = Field(Path("state/watermarker.sqlite"), description="Path to the watermark database")

    # Logging
    log_level: str = Field("INFO", description="Logging level")
    log_file: Optional[Path] = Field(None, description="Log file path; console only when unset")

    model_config = SettingsConfigDict(
        env_file=".env",
        env_prefix="WATERMARKER_",
        case_sensitive=False,
        extra="ignore",
    )

    @field_validator("supported_types", "derivative_types", mode="before")
    @classmethod
    def _join_lists(cls, value: Any) -> Any:
        if isinstance(value, (list, tuple, set)):
            return ",".join(str(part) for part in value)
        return value

    @property
    def supported_type_set(self) -> Set[str]:
        return {part.strip().lower() for part in self.supported_types.split(",") if part.strip()}

    @property
    def derivative_type_list(self) -> List[str]:
        return [part.strip() for part in self.derivative_types.split(",") if part.strip()]


def load_settings(config_path: Optional[Path] = None) -> Settings:
    """
    Load settings, overlaying values from a YAML file on the environment.

    Args:
        config_path: Optional path to a YAML mapping of setting names to values.

    Returns:
        Validated Settings object.

    Raises:
        FileNotFoundError: If the config file doesn't exist.
        InvalidArgument: If the YAML document is not a mapping.
    """
    if config_path is None:
        return Settings()

    resolved = Path(config_path).expanduser().resolve()
    if not resolved.exists():
        raise FileNotFoundError(f"Config file not found: {resolved}")
    with resolved.open("r", encoding="utf-8") as handle:
        data = yaml.safe_load(handle) or {}
    if not isinstance(data, dict):
        raise InvalidArgument(f"Config file must contain a mapping: {resolved}")

    overrides: Dict[str, Any] = {key.replace("-", "_"): value for key, value in data.items()}
    return Settings(**overrides)


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings()
