"""Contracts feature exceptions."""
from __future__ import annotations

from typing import Sequence

from core.exceptions.errors import (
    ConflictError,
    DomainError,
    NotFoundError,
    PersistenceError,
    ValidationError,
)


class ContractsError(DomainError):
    """Base exception for contracts feature."""


# ---- validation -------------------------------------------------------------
class ContractValidationError(ContractsError, ValidationError):
    """Generic input validation failure."""


class MissingFieldValueError(ContractValidationError):
    """Raised when required fields of the signing party are empty."""

    def __init__(self, labels: Sequence[str]) -> None:
        self.labels = list(labels)
        super().__init__("Please fill in: " + ", ".join(self.labels))


class InvalidFieldValueError(ContractValidationError):
    """Raised when a value targets a field the actor may not fill."""


class UnsupportedDocumentTypeError(ContractValidationError):
    """Raised when a source document is not a PDF/DOC/DOCX file."""


class InvalidModeError(ContractValidationError):
    """Raised when an overlay operation is used in the wrong mode."""


# ---- lookup -----------------------------------------------------------------
class ContractNotFoundError(ContractsError, NotFoundError):
    pass


class FieldNotFoundError(ContractsError, NotFoundError):
    pass


class SubmissionNotFoundError(ContractsError, NotFoundError):
    pass


class ShareLinkNotFoundError(ContractsError, NotFoundError):
    """Unknown token, or the contract is no longer active."""


# ---- workflow / persistence -------------------------------------------------
class OperationInProgressError(ContractsError, ConflictError):
    """A second trigger of the same write while the first is still running."""


class ContractPersistenceError(ContractsError, PersistenceError):
    """Store or storage failure; the transaction was rolled back."""


class ExportError(ContractsError):
    """The source document could not be composed into a signed artifact."""
