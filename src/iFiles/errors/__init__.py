"""Custom exception hierarchy for iFiles."""

from __future__ import annotations


class IFilesError(Exception):
    """Base class for all custom errors raised by iFiles."""


# --- 3-layer hierarchy ---

class DomainError(IFilesError):
    """Base class for domain-level errors."""


class InfrastructureError(IFilesError):
    """Base class for infrastructure-level errors."""


class ApplicationError(IFilesError):
    """Base class for application-level errors."""


# --- Domain errors ---

class InvariantViolationError(DomainError):
    """Raised when a list window breaks one of its structural invariants.

    This always signals a programming error: windows are built so that it
    cannot happen, and nothing tries to repair a window after the fact.
    """


class NodeNotFoundError(DomainError):
    """Raised when the requested node cannot be located."""


class InvalidCursorError(DomainError):
    """Raised when a continuation token cannot be decoded or does not fit the request."""


# --- Infrastructure errors ---

class NodeSourceError(InfrastructureError):
    """Raised when the node source fails to answer a page request."""


# --- Application errors ---

class StaleResponseError(ApplicationError):
    """Raised when a page arrives for a collection that is no longer active."""


class UploadNotFoundError(ApplicationError):
    """Raised when an upload id is not tracked."""


# --- Settings ---

class SettingsError(IFilesError):
    """Base class for settings related failures."""


class SettingsLoadError(SettingsError):
    """Raised when the settings file cannot be parsed or loaded."""


class SettingsValidationError(SettingsError):
    """Raised when settings data fails schema validation."""


__all__ = [
    "ApplicationError",
    "DomainError",
    "IFilesError",
    "InfrastructureError",
    "InvalidCursorError",
    "InvariantViolationError",
    "NodeNotFoundError",
    "NodeSourceError",
    "SettingsError",
    "SettingsLoadError",
    "SettingsValidationError",
    "StaleResponseError",
    "UploadNotFoundError",
]
