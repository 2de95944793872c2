"""ServiceResult and ServiceError — the universal service contract.

INVARIANT: All public service methods return ServiceResult. User-facing
failures are reported through ``error`` and never escape as exceptions.
Error codes are :class:`~cmsctl.domain.errors.ErrorKind` values.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field

from cmsctl.domain.errors import CmsError, ErrorKind


class ServiceError(BaseModel):
    """Structured error payload within a ServiceResult."""

    model_config = {"frozen": True}

    code: str
    message: str
    detail: dict[str, Any] = Field(default_factory=dict)


class ServiceResult(BaseModel):
    """Return type of every service operation.

    Attributes:
        ok: Whether the operation succeeded.
        op: Operation name (e.g. ``"publish_content_type"``).
        data: Operation-specific payload on success.
        warnings: Non-fatal issues (capability mismatches, plugin failures).
        error: Structured error if ``ok`` is False.
        meta: Optional metadata such as telemetry spans.
    """

    model_config = {"frozen": True}

    ok: bool
    op: str
    data: dict[str, Any] = Field(default_factory=dict)
    warnings: list[str] = Field(default_factory=list)
    error: ServiceError | None = None
    meta: dict[str, Any] | None = None

    @classmethod
    def failure(
        cls,
        op: str,
        kind: ErrorKind,
        message: str,
        *,
        detail: dict[str, Any] | None = None,
        warnings: list[str] | None = None,
    ) -> ServiceResult:
        return cls(
            ok=False,
            op=op,
            warnings=warnings or [],
            error=ServiceError(code=str(kind), message=message, detail=detail or {}),
        )

    @classmethod
    def from_error(
        cls, op: str, exc: CmsError, *, warnings: list[str] | None = None
    ) -> ServiceResult:
        """Translate a domain error into a failed result."""
        return cls.failure(op, exc.kind, exc.message, detail=exc.detail, warnings=warnings)
