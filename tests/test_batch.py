"""Tests for batch processing and service wiring."""

import pytest

from watermarker.applicator import ApplyStatus, Trigger
from watermarker.service import create_watermarker


@pytest.fixture
def watermarker(catalog, settings):
    service = create_watermarker(catalog, settings)
    yield service
    service.close()


@pytest.fixture
def holiday(watermarker, files_root, make_image):
    make_image(files_root / "asset" / "logo.png", size=(20, 20), color=(255, 0, 0, 255), mode="RGBA")
    watermark_set = watermarker.store.create_set("Holiday")
    watermarker.store.add_setting(watermark_set.id, "logo.png", 0.8, position="bottom-right")
    return watermark_set


def _add_media(catalog, files_root, make_image, media_id, item_id):
    catalog.add_media(media_id, item_id, media_type="image/png", extension="png")
    make_image(files_root / "large" / f"media-{media_id}.png")


class TestBatchProcessor:
    """Tallies across several media."""

    def test_item_set_batch(self, watermarker, catalog, files_root, make_image, holiday):
        catalog.add_item(6, [2])
        _add_media(catalog, files_root, make_image, 42, 5)
        _add_media(catalog, files_root, make_image, 43, 5)
        _add_media(catalog, files_root, make_image, 60, 6)
        catalog.add_media(61, 6, media_type="image/png", extension="png")
        watermarker.resolver.set_assignment("item_set", 2, holiday.id)
        watermarker.resolver.set_assignment("media", 43, "none")

        summary = watermarker.batch.process_item_set(2)

        assert summary.total == 4
        assert summary.successful == 2
        assert summary.skipped == 1
        assert summary.failed == 1
        assert [result.media_id for result in summary.results] == [42, 43, 60, 61]

    def test_item_batch(self, watermarker, catalog, files_root, make_image, holiday):
        _add_media(catalog, files_root, make_image, 7, 3)
        watermarker.resolver.set_assignment("item", 3, holiday.id)

        summary = watermarker.batch.process_item(3, Trigger.UPLOAD)

        assert summary.total == 1
        assert summary.successful == 1

    def test_missing_media_counted_as_failed(self, watermarker, holiday):
        summary = watermarker.batch.process_media_ids([404])

        assert summary.total == 1
        assert summary.failed == 1
        assert summary.results[0].status is ApplyStatus.FAILED

    def test_process_all_pages_by_id(self, watermarker, catalog):
        catalog.add_media(1, 3, media_type="image/png")
        catalog.add_media(2, 3, media_type="image/png")

        summary = watermarker.batch.process_all(limit=2, offset=1)

        assert [result.media_id for result in summary.results] == [2, 7]

    def test_process_all_without_limit(self, watermarker, catalog):
        summary = watermarker.batch.process_all(limit=None)
        assert summary.total == 2
        assert summary.skipped == 2


class TestService:
    def test_wiring_shares_store(self, watermarker, settings):
        assert watermarker.resolver.store is watermarker.store
        assert watermarker.applicator.resolver is watermarker.resolver
        assert watermarker.batch.applicator is watermarker.applicator
        assert settings.database_path.exists()
