"""Sequential batch watermarking with a success/failure tally"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterable, List, Optional

from .applicator import ApplyStatus, MediaResult, Trigger, WatermarkApplicator
from .errors import WatermarkerError
from .logger import log
from .resources import ResourceCatalog


@dataclass
class BatchSummary:
    """Counts for a finished batch"""
    total: int = 0
    successful: int = 0
    skipped: int = 0
    failed: int = 0
    results: List[MediaResult] = field(default_factory=list)

    def record(self, result: MediaResult) -> None:
        self.total += 1
        self.results.append(result)
        if result.status == ApplyStatus.APPLIED:
            self.successful += 1
        elif result.status == ApplyStatus.SKIPPED:
            self.skipped += 1
        else:
            self.failed += 1


class BatchProcessor:
    """Watermarks many media items one at a time"""

    def __init__(self, applicator: WatermarkApplicator, catalog: ResourceCatalog):
        self.applicator = applicator
        self.catalog = catalog

    def process_media_ids(self, media_ids: Iterable[int], trigger: Trigger = Trigger.MANUAL) -> BatchSummary:
        summary = BatchSummary()
        for media_id in media_ids:
            try:
                result = self.applicator.process_media(media_id, trigger)
            except WatermarkerError as e:
                log.error(f"Error processing media #{media_id}: {e}")
                result = MediaResult(media_id, ApplyStatus.FAILED, str(e))
            summary.record(result)

        log.info(
            f"Processed {summary.total} media: {summary.successful} successful, "
            f"{summary.skipped} skipped, {summary.failed} failed"
        )
        return summary

    def process_item(self, item_id: int, trigger: Trigger = Trigger.MANUAL) -> BatchSummary:
        """Watermark all media of an item"""
        media_ids = [media.id for media in self.catalog.media_for_item(item_id)]
        log.info(f"Found {len(media_ids)} media for item #{item_id}")
        return self.process_media_ids(media_ids, trigger)

    def process_item_set(self, item_set_id: int, trigger: Trigger = Trigger.MANUAL) -> BatchSummary:
        """Watermark all media of all items in an item set"""
        item_ids = self.catalog.items_in_set(item_set_id)
        media_ids: List[int] = []
        for item_id in item_ids:
            media_ids.extend(media.id for media in self.catalog.media_for_item(item_id))
        log.info(f"Found {len(item_ids)} items and {len(media_ids)} media in item set #{item_set_id}")
        return self.process_media_ids(media_ids, trigger)

    def process_all(self, limit: Optional[int] = 100, offset: int = 0, trigger: Trigger = Trigger.MANUAL) -> BatchSummary:
        """Watermark a page of all media, ordered by id"""
        media_ids = self.catalog.all_media_ids()[offset:]
        if limit is not None:
            media_ids = media_ids[:limit]
        return self.process_media_ids(media_ids, trigger)


__all__ = ["BatchProcessor", "BatchSummary"]
