"""Local file layout for originals, derivatives and watermark assets"""

from __future__ import annotations

from pathlib import Path
from typing import Dict, Iterable, Optional, Union

from .errors import ResourceNotFound
from .io import replace_atomically
from .resources import MediaRecord

RENDITION_TYPES = ("original", "large", "medium", "square")
PROBE_EXTENSIONS = ("jpg", "jpeg", "png", "webp")
ASSET_DIR = "asset"


class FileStore:
    """Finds rendition and asset files below a files root.

    Renditions live at ``<root>/<type>/<storage_id>[.<ext>]`` and overlay
    assets at ``<root>/asset/<name>``.
    """

    def __init__(self, files_root: Union[str, Path]):
        self.files_root = Path(files_root)

    def rendition_dir(self, rendition: str) -> Path:
        return self.files_root / rendition

    def derivative_path(self, media: MediaRecord, rendition: str) -> Optional[Path]:
        """Locate one rendition of a media file, or None if it isn't on disk."""
        directory = self.rendition_dir(rendition)
        if not directory.is_dir():
            return None

        candidates = []
        if media.extension:
            candidates.append(directory / f"{media.storage_id}.{media.extension}")
        candidates.append(directory / media.storage_id)
        candidates.extend(directory / f"{media.storage_id}.{ext}" for ext in PROBE_EXTENSIONS)
        for candidate in candidates:
            if candidate.is_file():
                return candidate

        matches = sorted(p for p in directory.glob(f"{media.storage_id}*") if p.is_file())
        return matches[0] if matches else None

    def derivative_paths(self, media: MediaRecord, renditions: Iterable[str]) -> Dict[str, Path]:
        """Map each requested rendition that exists on disk to its path."""
        paths: Dict[str, Path] = {}
        for rendition in renditions:
            path = self.derivative_path(media, rendition)
            if path is not None:
                paths[rendition] = path
        return paths

    def asset_path(self, image_ref: str) -> Path:
        """
        Resolve a watermark overlay reference to a file.

        Raises:
            ResourceNotFound: If no asset file matches the reference.
        """
        directory = self.files_root / ASSET_DIR
        name = Path(image_ref).name
        candidate = directory / name
        if candidate.is_file():
            return candidate
        matches = sorted(p for p in directory.glob(f"{name}.*") if p.is_file()) if directory.is_dir() else []
        if matches:
            return matches[0]
        raise ResourceNotFound(f"Watermark asset not found: {image_ref}")

    def replace(self, path: Union[str, Path], data: bytes) -> Path:
        return replace_atomically(path, data)


__all__ = ["ASSET_DIR", "FileStore", "RENDITION_TYPES"]
