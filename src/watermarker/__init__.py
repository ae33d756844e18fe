"""
Watermarker
===========
Resolves which watermark set applies to an item, item set or media resource
and composites the chosen watermark onto media derivatives.

Usage:
    from watermarker import InMemoryResourceCatalog, create_watermarker
"""

__version__ = "1.0.0"

from .applicator import ApplyStatus, MediaResult, Trigger, WatermarkApplicator
from .batch import BatchProcessor, BatchSummary
from .compositor import Placement, classify_orientation, composite, compute_placement
from .config import Settings, get_settings, load_settings
from .errors import (
    ImageDecodeError,
    ImageEncodeError,
    InvalidArgument,
    InvalidAssignment,
    PersistenceError,
    ResourceNotFound,
    WatermarkerError,
)
from .models import (
    Position,
    ResourceRef,
    ResourceType,
    ResourceWatermarkAssignment,
    SettingType,
    WatermarkSet,
    WatermarkSetting,
)
from .resolver import AssignmentResolver, Resolution, ResolutionSource
from .resources import InMemoryResourceCatalog, ItemRecord, MediaRecord, ResourceCatalog
from .service import Watermarker, create_watermarker
from .storage import FileStore
from .store import WatermarkStore

__all__ = [
    "__version__",

    # Services
    "AssignmentResolver",
    "BatchProcessor",
    "FileStore",
    "WatermarkApplicator",
    "WatermarkStore",
    "Watermarker",
    "create_watermarker",

    # Compositing
    "Placement",
    "classify_orientation",
    "composite",
    "compute_placement",

    # Data
    "ApplyStatus",
    "BatchSummary",
    "InMemoryResourceCatalog",
    "ItemRecord",
    "MediaRecord",
    "MediaResult",
    "Position",
    "Resolution",
    "ResolutionSource",
    "ResourceCatalog",
    "ResourceRef",
    "ResourceType",
    "ResourceWatermarkAssignment",
    "SettingType",
    "Trigger",
    "WatermarkSet",
    "WatermarkSetting",

    # Configuration
    "Settings",
    "get_settings",
    "load_settings",

    # Errors
    "ImageDecodeError",
    "ImageEncodeError",
    "InvalidArgument",
    "InvalidAssignment",
    "PersistenceError",
    "ResourceNotFound",
    "WatermarkerError",
]
