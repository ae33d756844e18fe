"""Wires the store, resolver, applicator and batch processor from settings."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from .applicator import WatermarkApplicator
from .batch import BatchProcessor
from .config import Settings, get_settings
from .logger import log, setup_logger
from .resolver import AssignmentResolver
from .resources import ResourceCatalog
from .storage import FileStore
from .store import WatermarkStore


@dataclass
class Watermarker:
    settings: Settings
    store: WatermarkStore
    resolver: AssignmentResolver
    applicator: WatermarkApplicator
    batch: BatchProcessor

    def close(self) -> None:
        self.store.close()


def create_watermarker(
    catalog: ResourceCatalog,
    settings: Optional[Settings] = None,
    configure_logging: bool = False,
) -> Watermarker:
    if settings is None:
        settings = get_settings()
    if configure_logging:
        setup_logger(settings.log_level, settings.log_file)

    store = WatermarkStore(settings.database_path)
    resolver = AssignmentResolver(store, catalog)
    applicator = WatermarkApplicator(settings, resolver, catalog, FileStore(settings.files_root))
    log.info(f"Watermarker ready (database: {settings.database_path}, files: {settings.files_root})")
    return Watermarker(
        settings=settings,
        store=store,
        resolver=resolver,
        applicator=applicator,
        batch=BatchProcessor(applicator, catalog),
    )


__all__ = ["Watermarker", "create_watermarker"]
