"""I/O utilities for image decoding, encoding and atomic replacement."""

from __future__ import annotations

import io
import os
import tempfile
from pathlib import Path
from typing import Dict, Union

from PIL import Image, UnidentifiedImageError

from .errors import ImageDecodeError, ImageEncodeError
from .logger import log

# Encoder options per codec; watermarking never changes a derivative's format
SAVE_OPTIONS: Dict[str, Dict[str, object]] = {
    "JPEG": {"quality": 95},
    "PNG": {"compress_level": 9},
    "WEBP": {"quality": 95},
}

MIME_TO_FORMAT = {
    "image/jpeg": "JPEG",
    "image/png": "PNG",
    "image/webp": "WEBP",
}


def load_image(source: Union[str, Path, bytes]) -> Image.Image:
    """
    Decode an image from a path or raw bytes.

    The returned image is fully loaded and keeps its ``format`` attribute so
    callers can encode the result in the same codec.

    Raises:
        ImageDecodeError: If the file is missing, unreadable or not an image.
    """
    label = "<bytes>" if isinstance(source, (bytes, bytearray)) else str(source)
    try:
        if isinstance(source, (bytes, bytearray)):
            image = Image.open(io.BytesIO(source))
        else:
            image = Image.open(Path(source))
        image.load()
    except FileNotFoundError as e:
        raise ImageDecodeError(f"Image not found: {label}") from e
    except (UnidentifiedImageError, Image.DecompressionBombError, OSError, ValueError) as e:
        raise ImageDecodeError(f"Failed to decode image {label}: {e}") from e
    return image


def image_format(image: Image.Image, default: str = "PNG") -> str:
    return (image.format or default).upper()


def encode_image(image: Image.Image, fmt: str) -> bytes:
    """
    Encode an image with the codec options used for derivatives.

    Raises:
        ImageEncodeError: If Pillow cannot write the format.
    """
    fmt = fmt.upper()
    if fmt == "JPG":
        fmt = "JPEG"
    prepared = image
    if fmt == "JPEG" and image.mode not in ("RGB", "L", "CMYK"):
        prepared = image.convert("RGB")
    buffer = io.BytesIO()
    try:
        prepared.save(buffer, format=fmt, **SAVE_OPTIONS.get(fmt, {}))
    except (KeyError, OSError, ValueError) as e:
        raise ImageEncodeError(f"Failed to encode image as {fmt}: {e}") from e
    return buffer.getvalue()


def replace_atomically(destination: Union[str, Path], data: bytes) -> Path:
    """
    Replace a file's contents without leaving it half written.

    The data goes to a temporary file in the destination directory which is
    then moved over the destination. On failure the destination is untouched.

    Raises:
        ImageEncodeError: If the temporary file cannot be written or moved.
    """
    path = Path(destination)
    try:
        fd, tmp_name = tempfile.mkstemp(prefix=".watermark_", suffix=path.suffix, dir=path.parent)
    except OSError as e:
        raise ImageEncodeError(f"Failed to create temporary file for {path}: {e}") from e
    tmp_path = Path(tmp_name)
    try:
        with os.fdopen(fd, "wb") as handle:
            handle.write(data)
        if path.exists():
            os.chmod(tmp_path, path.stat().st_mode & 0o777)
        os.replace(tmp_path, path)
    except OSError as e:
        tmp_path.unlink(missing_ok=True)
        log.error(f"Failed to replace {path}: {e}")
        raise ImageEncodeError(f"Failed to write {path}: {e}") from e
    return path
