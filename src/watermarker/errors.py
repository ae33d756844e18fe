"""Exception hierarchy for watermark resolution and compositing."""

from typing import Optional


class WatermarkerError(Exception):
    """Base exception for watermarker errors"""

    default_code = "WATERMARKER_ERROR"

    def __init__(self, message: str, code: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.code = code or self.default_code


class ResourceNotFound(WatermarkerError):
    """A resource, watermark set, setting or asset does not exist"""

    default_code = "RESOURCE_NOT_FOUND"


class InvalidAssignment(WatermarkerError):
    """An assignment is conflicting or points at a missing or disabled set"""

    default_code = "INVALID_ASSIGNMENT"


class InvalidArgument(WatermarkerError, ValueError):
    """A value failed validation at the write boundary"""

    default_code = "INVALID_ARGUMENT"


class ImageDecodeError(WatermarkerError):
    """An image could not be read or decoded"""

    default_code = "IMAGE_DECODE_ERROR"


class ImageEncodeError(WatermarkerError):
    """An image could not be encoded or written"""

    default_code = "IMAGE_ENCODE_ERROR"


class PersistenceError(WatermarkerError):
    """The underlying store failed"""

    default_code = "PERSISTENCE_ERROR"
