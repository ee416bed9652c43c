"""
Exception classes for the photo stitcher.
"""
from typing import Optional, Dict, Any


class StitchError(Exception):
    """Base exception class for stitching errors"""
    def __init__(self, message: str, code: str = "STITCH_ERROR", details: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.code = code
        self.details = details or {}

    def to_dict(self) -> Dict[str, Any]:
        """Convert exception to standard error format"""
        return {
            "code": self.code,
            "message": str(self),
            "details": self.details
        }


class ImageDecodeError(StitchError):
    """Raised when source bytes cannot be decoded as an image"""
    def __init__(self, name: str, reason: str = "unsupported or corrupt image data"):
        message = f"Could not decode image '{name}': {reason}"
        super().__init__(message, code="IMAGE_DECODE_ERROR", details={"name": name})


class InvalidOptionError(StitchError):
    """Raised when an option value cannot be interpreted"""
    def __init__(self, option: str, value: Any):
        message = f"Invalid value for option '{option}': {value!r}"
        super().__init__(message, code="INVALID_OPTION", details={"option": option})


class JobCancelled(StitchError):
    """Raised at a cancellation check boundary to unwind a running render"""
    def __init__(self, job_id: str = ""):
        super().__init__(f"Job '{job_id}' was cancelled", code="CANCELLED", details={"job_id": job_id})


class MetadataParseError(StitchError):
    """Raised when embedded EXIF metadata cannot be parsed"""
    def __init__(self, name: str, reason: str):
        message = f"Could not read EXIF metadata of '{name}': {reason}"
        super().__init__(message, code="METADATA_PARSE_ERROR", details={"name": name})
