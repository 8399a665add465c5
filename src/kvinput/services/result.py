"""The value DocumentService hands back to the CLI.

DocumentService never raises for bad input: a seed that is not an object
or an edit that does not apply becomes a warning, and a document that
fails its check becomes ``ok=False`` with a structured error. The editor
underneath reports through its own state, not through these.
"""

from __future__ import annotations

from enum import StrEnum
from typing import Any

from pydantic import BaseModel, Field


class ErrorCode(StrEnum):
    DUPLICATE_KEYS = "DUPLICATE_KEYS"


class ServiceError(BaseModel):
    """Machine-readable failure attached to a ServiceResult."""

    model_config = {"frozen": True}

    code: str
    message: str
    detail: dict[str, Any] = Field(default_factory=dict)


class ServiceResult(BaseModel):
    """Outcome of ``show``, ``edit`` or ``check``.

    ``data`` carries the document payload (rows with their field
    descriptors, the committed snapshot, duplicate keys) on success and
    on failure alike, so a failed check still shows what was checked.
    """

    model_config = {"frozen": True}

    ok: bool
    op: str
    data: dict[str, Any] = Field(default_factory=dict)
    warnings: list[str] = Field(default_factory=list)
    error: ServiceError | None = None
    meta: dict[str, Any] | None = None

    @classmethod
    def success(cls, op: str, data: dict[str, Any], warnings: list[str] | None = None) -> ServiceResult:
        return cls(ok=True, op=op, data=data, warnings=list(warnings or []))

    @classmethod
    def failure(
        cls,
        op: str,
        code: ErrorCode | str,
        message: str,
        *,
        data: dict[str, Any] | None = None,
        detail: dict[str, Any] | None = None,
        warnings: list[str] | None = None,
    ) -> ServiceResult:
        return cls(
            ok=False,
            op=op,
            data=data or {},
            warnings=list(warnings or []),
            error=ServiceError(code=str(code), message=message, detail=detail or {}),
        )

    @property
    def exit_code(self) -> int:
        """Process exit status for this result: 0 on success, 1 otherwise."""
        return 0 if self.ok else 1
