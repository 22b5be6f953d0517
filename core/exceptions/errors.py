"""Shared exception taxonomy.

Feature packages derive their concrete errors from these bases so that a
caller can handle "the user has to fix something" (ValidationError),
"the thing does not exist" (NotFoundError) and "the store failed"
(PersistenceError) uniformly.
"""
from __future__ import annotations


class DomainError(Exception):
    """Base exception for all feature packages."""


class ValidationError(DomainError):
    """Input rejected before any state change."""


class NotFoundError(DomainError):
    """A referenced record does not exist (or is not reachable)."""


class PersistenceError(DomainError):
    """The data store or file storage failed; nothing was committed."""


class ConflictError(DomainError):
    """The action conflicts with the current state (e.g. already running)."""
