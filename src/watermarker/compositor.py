"""Watermark placement geometry and alpha compositing."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Tuple, Union

from PIL import Image

from .errors import InvalidArgument
from .io import encode_image, image_format, load_image
from .models import Position, SettingType

# Distance from the image edge for corner and bottom-center placements
EDGE_MARGIN = 10

ALPHA_MODES = ("RGBA", "LA", "PA")


@dataclass(frozen=True)
class Placement:
    """Offset of the watermark on the base image and the size it is drawn at."""
    x: int
    y: int
    width: int
    height: int
    scaled: bool = False

    @property
    def size(self) -> Tuple[int, int]:
        return self.width, self.height


def classify_orientation(width: int, height: int) -> SettingType:
    if width > height:
        return SettingType.LANDSCAPE
    if height > width:
        return SettingType.PORTRAIT
    return SettingType.SQUARE


def compute_placement(
    base_size: Tuple[int, int],
    watermark_size: Tuple[int, int],
    position: Union[Position, str],
) -> Placement:
    """
    Work out where the watermark goes and at what size.

    Offsets are not clamped, so a watermark wider than the base gets a
    negative x and is clipped when drawn.
    """
    position = _parse_position(position)
    base_w, base_h = base_size
    wm_w, wm_h = watermark_size

    if position == Position.BOTTOM_FULL:
        if wm_w < base_w:
            scaled_h = int(wm_h * (base_w / wm_w))
            return Placement(0, base_h - scaled_h, base_w, scaled_h, scaled=True)
        # Already full width: bottom-center without rescaling
        return Placement(int((base_w - wm_w) / 2), base_h - wm_h - EDGE_MARGIN, wm_w, wm_h)

    if position == Position.TOP_LEFT:
        x, y = EDGE_MARGIN, EDGE_MARGIN
    elif position == Position.TOP_RIGHT:
        x, y = base_w - wm_w - EDGE_MARGIN, EDGE_MARGIN
    elif position == Position.BOTTOM_LEFT:
        x, y = EDGE_MARGIN, base_h - wm_h - EDGE_MARGIN
    elif position == Position.BOTTOM_RIGHT:
        x, y = base_w - wm_w - EDGE_MARGIN, base_h - wm_h - EDGE_MARGIN
    else:
        x, y = int((base_w - wm_w) / 2), int((base_h - wm_h) / 2)
    return Placement(x, y, wm_w, wm_h)


def apply_opacity(watermark: Image.Image, opacity: float) -> Image.Image:
    """Return an RGBA copy of the watermark with its alpha scaled by opacity."""
    opacity = _check_opacity(opacity)
    adjusted = watermark.convert("RGBA")
    if opacity < 1.0:
        alpha = adjusted.getchannel("A")
        alpha = alpha.point(lambda p: int(p * opacity))
        adjusted.putalpha(alpha)
    return adjusted


def composite(
    base: Image.Image,
    watermark: Image.Image,
    position: Union[Position, str],
    opacity: float,
) -> Image.Image:
    """
    Blend a watermark over a base image and return a new image.

    Neither input is modified. A base with an alpha channel keeps it; an
    opaque base comes back in its own mode. The result carries the base's
    ``format`` so it can be encoded with the same codec.
    """
    opacity = _check_opacity(opacity)
    placement = compute_placement(base.size, watermark.size, position)

    mark = watermark
    if placement.scaled:
        mark = watermark.convert("RGBA").resize(placement.size, Image.LANCZOS)
    mark = apply_opacity(mark, opacity)

    base_rgba = base.convert("RGBA")
    layer = Image.new("RGBA", base.size, (0, 0, 0, 0))
    layer.paste(mark, (placement.x, placement.y))
    result = Image.alpha_composite(base_rgba, layer)

    if not _has_alpha(base):
        target_mode = base.mode if base.mode in ("RGB", "L", "CMYK") else "RGB"
        result = result.convert(target_mode)
    result.format = base.format
    return result


def watermark_bytes(
    base_bytes: bytes,
    watermark: Image.Image,
    position: Union[Position, str],
    opacity: float,
) -> bytes:
    """Decode, watermark and re-encode an image in its original format."""
    base = load_image(base_bytes)
    fmt = image_format(base)
    result = composite(base, watermark, position, opacity)
    return encode_image(result, fmt)


def _has_alpha(image: Image.Image) -> bool:
    return image.mode in ALPHA_MODES or (image.mode == "P" and "transparency" in image.info)


def _check_opacity(opacity: float) -> float:
    try:
        value = float(opacity)
    except (TypeError, ValueError) as e:
        raise InvalidArgument(f"Opacity must be a number, got {opacity!r}") from e
    if not 0.0 <= value <= 1.0:
        raise InvalidArgument(f"Opacity must be between 0.0 and 1.0, got {value}")
    return value


def _parse_position(position: Union[Position, str]) -> Position:
    try:
        return Position(position)
    except ValueError as e:
        raise InvalidArgument(f"Invalid position: {position!r}") from e


__all__ = [
    "EDGE_MARGIN",
    "Placement",
    "apply_opacity",
    "classify_orientation",
    "composite",
    "compute_placement",
    "watermark_bytes",
]
