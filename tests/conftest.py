from __future__ import annotations

from pathlib import Path
from typing import Generator, Tuple

import pytest
from PIL import Image

from watermarker.config import Settings, get_settings
from watermarker.resolver import AssignmentResolver
from watermarker.resources import InMemoryResourceCatalog
from watermarker.store import WatermarkStore


@pytest.fixture(autouse=True)
def clean_env(monkeypatch: pytest.MonkeyPatch) -> Generator[None, None, None]:
    for name in ("ENABLED", "APPLY_ON_UPLOAD", "APPLY_ON_IMPORT", "SUPPORTED_TYPES", "DERIVATIVE_TYPES"):
        monkeypatch.delenv(f"WATERMARKER_{name}", raising=False)
    yield
    get_settings.cache_clear()


@pytest.fixture
def store(tmp_path: Path) -> Generator[WatermarkStore, None, None]:
    watermark_store = WatermarkStore(tmp_path / "state" / "watermarker.sqlite")
    yield watermark_store
    watermark_store.close()


@pytest.fixture
def catalog() -> InMemoryResourceCatalog:
    """Item set #2 holds item #5 (media #42); item #3 (media #7) has no item set."""
    resources = InMemoryResourceCatalog()
    resources.add_item_set(2)
    resources.add_item_set(9)
    resources.add_item(5, [2])
    resources.add_item(3, [])
    resources.add_media(42, 5, media_type="image/png", extension="png")
    resources.add_media(7, 3, media_type="image/png", extension="png")
    return resources


@pytest.fixture
def resolver(store: WatermarkStore, catalog: InMemoryResourceCatalog) -> AssignmentResolver:
    return AssignmentResolver(store, catalog)


@pytest.fixture
def files_root(tmp_path: Path) -> Path:
    root = tmp_path / "files"
    for directory in ("original", "large", "medium", "square", "asset"):
        (root / directory).mkdir(parents=True, exist_ok=True)
    return root


@pytest.fixture
def settings(tmp_path: Path, files_root: Path) -> Settings:
    return Settings(
        _env_file=None,
        files_root=files_root,
        database_path=tmp_path / "state" / "watermarker.sqlite",
    )


def write_image(
    path: Path,
    size: Tuple[int, int] = (200, 100),
    color=(255, 255, 255),
    mode: str = "RGB",
    fmt: str = "PNG",
) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    Image.new(mode, size, color).save(path, format=fmt)
    return path


@pytest.fixture
def make_image():
    return write_image
