"""Core types shared by the store and the session layer."""

from enum import StrEnum
from typing import Generic, TypeVar

from pydantic import BaseModel, Field

T = TypeVar("T")


class Severity(StrEnum):
    ERROR = "error"
    WARNING = "warning"


class Diag(BaseModel):
    """A structured diagnostic message."""

    severity: Severity
    code: str
    message: str
    hint: str | None = None


class Result(BaseModel, Generic[T]):  # noqa: UP046 — Pydantic requires Generic[T] subclass
    """Result container that pairs output with diagnostics.

    Store I/O never throws for expected failures (disk full, missing file,
    permission denied). It returns a Result carrying the diagnostics instead,
    and the caller decides how to surface them.
    """

    data: T | None = None
    diagnostics: list[Diag] = Field(default_factory=list)

    @property
    def has_errors(self) -> bool:
        return any(d.severity == Severity.ERROR for d in self.diagnostics)

    @property
    def ok(self) -> bool:
        return not self.has_errors

    def first_error(self) -> Diag | None:
        for d in self.diagnostics:
            if d.severity == Severity.ERROR:
                return d
        return None

    def error(self, code: str, message: str, *, hint: str | None = None) -> None:
        self.diagnostics.append(Diag(severity=Severity.ERROR, code=code, message=message, hint=hint))

    def warning(self, code: str, message: str, *, hint: str | None = None) -> None:
        self.diagnostics.append(Diag(severity=Severity.WARNING, code=code, message=message, hint=hint))


class StoreError(Exception):
    """Raised by item bookkeeping (create, rename, delete) when the notebook rejects the change."""

    def __init__(self, code: str, message: str) -> None:
        super().__init__(message)
        self.code = code
        self.message = message
