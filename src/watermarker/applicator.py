"""Apply the effective watermark to a media item's derivative renditions"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import List, Optional

from PIL import Image

from .compositor import classify_orientation, composite
from .config import Settings
from .errors import ImageDecodeError, ImageEncodeError, ResourceNotFound
from .io import encode_image, image_format, load_image
from .logger import log
from .models import ResourceType, SettingType, WatermarkSetting
from .resolver import AssignmentResolver
from .resources import MediaRecord, ResourceCatalog
from .storage import RENDITION_TYPES, FileStore


class Trigger(str, Enum):
    """What asked for a media item to be watermarked"""
    UPLOAD = "upload"
    IMPORT = "import"
    MANUAL = "manual"


class ApplyStatus(str, Enum):
    APPLIED = "applied"
    SKIPPED = "skipped"
    FAILED = "failed"


@dataclass
class MediaResult:
    """Outcome of watermarking one media item"""
    media_id: int
    status: ApplyStatus
    reason: str = ""
    watermark_set_id: Optional[int] = None
    watermarked: List[str] = field(default_factory=list)
    failed: List[str] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return self.status != ApplyStatus.FAILED


class WatermarkApplicator:
    """Resolves, selects and composites the watermark for a media item"""

    def __init__(
        self,
        settings: Settings,
        resolver: AssignmentResolver,
        catalog: ResourceCatalog,
        files: FileStore,
    ):
        self.settings = settings
        self.resolver = resolver
        self.catalog = catalog
        self.files = files

        unknown = [name for name in settings.derivative_type_list if name not in RENDITION_TYPES]
        if unknown:
            log.warning(f"Unrecognised derivative types configured: {unknown}")

    def process_media(self, media_id: int, trigger: Trigger = Trigger.MANUAL) -> MediaResult:
        """Apply the watermark if the global toggles allow it for this trigger."""
        log.info(f"Processing media #{media_id} (trigger: {trigger.value})")

        if not self.settings.enabled:
            return self._skip(media_id, "watermarking is disabled globally")
        if trigger == Trigger.UPLOAD and not self.settings.apply_on_upload:
            return self._skip(media_id, "watermarking on upload is disabled")
        if trigger == Trigger.IMPORT and not self.settings.apply_on_import:
            return self._skip(media_id, "watermarking on import is disabled")

        return self.apply(media_id)

    def apply(self, media_id: int) -> MediaResult:
        """
        Watermark every configured derivative of one media item.

        A derivative that cannot be decoded or written is logged and counted as
        failed; the remaining derivatives are still processed.

        Raises:
            ResourceNotFound: If the media does not exist.
        """
        media = self.catalog.get_media(media_id)

        if not media.has_original:
            return self._skip(media_id, "media has no original file")
        if media.media_type.lower() not in self.settings.supported_type_set:
            return self._skip(media_id, f"unsupported media type {media.media_type}")

        resolution = self.resolver.resolve(ResourceType.MEDIA, media_id)
        watermark_set = resolution.watermark_set
        if watermark_set is None:
            return self._skip(media_id, f"no watermark set applies ({resolution.source.value})")
        if not watermark_set.enabled:
            return self._skip(media_id, f"watermark set #{watermark_set.id} is disabled")

        paths = self.files.derivative_paths(media, self.settings.derivative_type_list)
        if not paths:
            log.error(f"Could not find derivative files for media #{media_id}")
            return MediaResult(media_id, ApplyStatus.FAILED, "no derivative files found", watermark_set.id)

        orientation = self._orientation(media, list(paths.values()))
        setting = watermark_set.setting_for(orientation)
        if setting is None:
            return self._skip(media_id, f"watermark set #{watermark_set.id} has no settings")

        try:
            watermark = self._load_watermark(setting)
        except (ResourceNotFound, ImageDecodeError) as e:
            log.error(f"Failed to load watermark for media #{media_id}: {e}")
            return MediaResult(media_id, ApplyStatus.FAILED, str(e), watermark_set.id)

        result = MediaResult(media_id, ApplyStatus.APPLIED, watermark_set_id=watermark_set.id)
        for rendition, path in paths.items():
            try:
                self._watermark_file(path, watermark, setting)
            except (ImageDecodeError, ImageEncodeError) as e:
                log.error(f"Failed to watermark {rendition} derivative of media #{media_id}: {e}")
                result.failed.append(rendition)
                continue
            log.info(f"Watermarked {rendition} derivative of media #{media_id}")
            result.watermarked.append(rendition)

        if not result.watermarked:
            result.status = ApplyStatus.FAILED
            result.reason = "no derivative could be watermarked"
        return result

    def _watermark_file(self, path: Path, watermark: Image.Image, setting: WatermarkSetting) -> None:
        base = load_image(path)
        fmt = image_format(base)
        watermarked = composite(base, watermark, setting.position, setting.opacity)
        self.files.replace(path, encode_image(watermarked, fmt))

    def _load_watermark(self, setting: WatermarkSetting) -> Image.Image:
        return load_image(self.files.asset_path(setting.image_ref))

    def _orientation(self, media: MediaRecord, paths: List[Path]) -> SettingType:
        """Orientation from recorded dimensions, else from the first readable derivative."""
        if media.width and media.height:
            return classify_orientation(media.width, media.height)
        for path in paths:
            try:
                with Image.open(path) as image:
                    return classify_orientation(*image.size)
            except (Image.DecompressionBombError, OSError) as e:
                log.warning(f"Cannot read dimensions of {path}: {e}")
        return SettingType.ALL

    @staticmethod
    def _skip(media_id: int, reason: str) -> MediaResult:
        log.info(f"Skipping media #{media_id}: {reason}")
        return MediaResult(media_id, ApplyStatus.SKIPPED, reason)


__all__ = ["ApplyStatus", "MediaResult", "Trigger", "WatermarkApplicator"]
