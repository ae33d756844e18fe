"""Watermark sets, settings, assignments and the enums they use."""

from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import List, NamedTuple, Optional

from pydantic import BaseModel, Field, field_validator, model_validator

from .errors import InvalidArgument


class ResourceType(str, Enum):
    """Resources that can carry a watermark assignment."""
    ITEM = "item"
    ITEM_SET = "item_set"
    MEDIA = "media"

    @classmethod
    def parse(cls, value: "ResourceType | str") -> "ResourceType":
        """Map a canonical name or a legacy alias to a ResourceType."""
        if isinstance(value, cls):
            return value
        if isinstance(value, str):
            resource_type = _RESOURCE_TYPE_ALIASES.get(value.strip())
            if resource_type is not None:
                return resource_type
        raise InvalidArgument(f"Invalid resource type: {value!r}")


_RESOURCE_TYPE_ALIASES = {
    "item": ResourceType.ITEM,
    "items": ResourceType.ITEM,
    "item_set": ResourceType.ITEM_SET,
    "item_sets": ResourceType.ITEM_SET,
    "item-set": ResourceType.ITEM_SET,
    "itemSet": ResourceType.ITEM_SET,
    "media": ResourceType.MEDIA,
}


class SettingType(str, Enum):
    """Image orientation a watermark setting applies to."""
    ALL = "all"
    LANDSCAPE = "landscape"
    PORTRAIT = "portrait"
    SQUARE = "square"


class Position(str, Enum):
    """Where the watermark is placed on the base image."""
    TOP_LEFT = "top-left"
    TOP_RIGHT = "top-right"
    BOTTOM_LEFT = "bottom-left"
    BOTTOM_RIGHT = "bottom-right"
    CENTER = "center"
    BOTTOM_FULL = "bottom-full"


class ResourceRef(NamedTuple):
    resource_type: ResourceType
    resource_id: int

    @classmethod
    def of(cls, resource_type: "ResourceType | str", resource_id: int) -> "ResourceRef":
        try:
            identifier = int(resource_id)
        except (TypeError, ValueError) as exc:
            raise InvalidArgument(f"Invalid resource id: {resource_id!r}") from exc
        return cls(ResourceType.parse(resource_type), identifier)

    def __str__(self) -> str:
        return f"{self.resource_type.value}#{self.resource_id}"


class WatermarkSetting(BaseModel):
    """One placement rule within a watermark set."""

    id: Optional[int] = Field(None, description="Setting identifier")
    set_id: int = Field(..., description="Owning watermark set")
    type: SettingType = Field(SettingType.ALL, description="Orientation the setting applies to")
    position: Position = Field(Position.BOTTOM_RIGHT, description="Placement on the base image")
    opacity: float = Field(..., ge=0.0, le=1.0, description="Watermark opacity (0.0-1.0)")
    image_ref: str = Field(..., min_length=1, description="Overlay image asset reference")
    created: Optional[datetime] = None
    modified: Optional[datetime] = None


class WatermarkSet(BaseModel):
    """Named, ordered collection of watermark settings."""

    id: Optional[int] = Field(None, description="Set identifier")
    name: str = Field(..., description="Set name")
    is_default: bool = Field(False, description="Whether this is the system-wide default")
    enabled: bool = Field(True, description="Whether the set may be applied")
    settings: List[WatermarkSetting] = Field(default_factory=list)
    created: Optional[datetime] = None
    modified: Optional[datetime] = None

    @field_validator("name")
    @classmethod
    def name_must_not_be_empty(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("The watermark set must have a name")
        return v.strip()

    def setting_for(self, orientation: SettingType) -> Optional[WatermarkSetting]:
        """
        Pick the setting to apply for an image orientation.

        The first setting whose type matches the orientation wins, then the
        first ``all`` setting, then the first setting of the set.
        """
        if not self.settings:
            return None
        for setting in self.settings:
            if setting.type == orientation:
                return setting
        for setting in self.settings:
            if setting.type == SettingType.ALL:
                return setting
        return self.settings[0]


class ResourceWatermarkAssignment(BaseModel):
    """A resource's explicit override of inherited watermarking."""

    id: Optional[int] = None
    resource_type: ResourceType
    resource_id: int = Field(..., gt=0)
    watermark_set_id: Optional[int] = None
    explicitly_no_watermark: bool = False
    created: Optional[datetime] = None
    modified: Optional[datetime] = None

    @model_validator(mode="after")
    def set_and_none_are_exclusive(self) -> "ResourceWatermarkAssignment":
        if self.watermark_set_id is not None and self.explicitly_no_watermark:
            raise ValueError("Cannot have both a watermark set and explicitly no watermark")
        return self

    @property
    def ref(self) -> ResourceRef:
        return ResourceRef(self.resource_type, self.resource_id)


__all__ = [
    "Position",
    "ResourceRef",
    "ResourceType",
    "ResourceWatermarkAssignment",
    "SettingType",
    "WatermarkSet",
    "WatermarkSetting",
]
