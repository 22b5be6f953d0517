"""Signature feature exceptions."""
from __future__ import annotations

from core.exceptions.errors import ConflictError, DomainError, NotFoundError, ValidationError


class SignatureError(DomainError):
    """Base exception for signature feature."""


class EmptySignatureError(SignatureError, ValidationError):
    """Raised when a drawn signature has no visible strokes."""


class UnsupportedFileTypeError(SignatureError, ValidationError):
    """Raised when an uploaded file is not an accepted raster image."""


class UploadTooLargeError(SignatureError, ValidationError):
    """Raised when an uploaded image exceeds the configured size limit."""


class SignatureNameRequiredError(SignatureError, ValidationError):
    """Raised when saving to the library without a name."""


class SavedSignatureNotFoundError(SignatureError, NotFoundError):
    """Raised when a saved signature id is unknown for the acting user."""


class CaptureClosedError(SignatureError, ConflictError):
    """Raised when a committed or cancelled capture session is used again."""
