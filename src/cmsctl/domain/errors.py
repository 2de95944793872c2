"""Error taxonomy shared by the domain and service layers.

Domain code raises :class:`CmsError` subclasses for invariant violations.
Services translate them into ``ServiceResult`` errors keyed by
:class:`ErrorKind`, so user-facing failures never escape as exceptions.
"""

from __future__ import annotations

from enum import StrEnum
from typing import Any


class ErrorKind(StrEnum):
    """Failure categories; values double as ``ServiceError.code``."""

    VALIDATION = "VALIDATION"
    NOT_FOUND = "NOT_FOUND"
    CONFLICT = "CONFLICT"
    FORBIDDEN = "FORBIDDEN"
    UNAUTHORIZED = "UNAUTHORIZED"
    INFRASTRUCTURE = "INFRASTRUCTURE"


class CmsError(Exception):
    """Base domain error carrying an :class:`ErrorKind` and optional detail."""

    kind: ErrorKind = ErrorKind.INFRASTRUCTURE

    def __init__(
        self,
        message: str,
        *,
        kind: ErrorKind | None = None,
        detail: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        if kind is not None:
            self.kind = kind
        self.detail = detail or {}


class CannotPublishError(CmsError):
    """Raised when a content type is not in a publishable state."""

    kind = ErrorKind.CONFLICT


class RuleRegistryError(CmsError):
    """Raised when the registry is asked for a type it does not know.

    Callers validate rule types with ``try_create`` before any mutation,
    so reaching this error means validation was skipped or the registry
    changed between check and use.
    """

    kind = ErrorKind.INFRASTRUCTURE


class VersionConflictError(CmsError):
    """Raised when two writers claim the same ``(name, status, version)`` slot."""

    kind = ErrorKind.CONFLICT
