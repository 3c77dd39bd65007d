"""Result objects returned by repositories, the diagnostic engine and orchestrators."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from .errors import VisaOpsError
    from .model import DocumentChecklistItem, VisaPackage


@dataclass(slots=True)
class OperationResult[T]:
    """Outcome of a repository or orchestrator call.

    Failures are values, not exceptions: ``error`` carries the typed cause and
    ``message`` is what an operator sees.
    """

    success: bool
    message: str
    data: T | None = None
    error: VisaOpsError | None = None

    @classmethod
    def ok(cls, message: str, data: T | None = None) -> OperationResult[T]:
        return cls(success=True, message=message, data=data)

    @classmethod
    def failed(cls, error: VisaOpsError, message: str | None = None) -> OperationResult[T]:
        return cls(success=False, message=message or error.message, error=error)


@dataclass(slots=True)
class CountrySnapshot:
    """Package and checklist of one country as read back after a mutation."""

    package: VisaPackage | None
    documents: list[DocumentChecklistItem] = field(default_factory=list["DocumentChecklistItem"])


type CountryStateResult = OperationResult[CountrySnapshot]


@dataclass(slots=True)
class CheckOutcome:
    success: bool
    error: str | None = None


@dataclass(slots=True)
class DiagnosticChecks:
    """Sub-check results collected while diagnosing a country."""

    table_access: CheckOutcome | None = None
    document_table_access: CheckOutcome | None = None
    country_exists: bool = False
    package_exists: bool = False
    package_active: bool = False
    documents_exist: bool = False
    documents_count: int = 0
    missing_columns: tuple[str, ...] = ()
    issues: tuple[str, ...] = ()
    package: VisaPackage | None = None


def _utcnow() -> datetime:
    return datetime.now(tz=UTC)


@dataclass(slots=True)
class DiagnosticResult:
    """Ephemeral report of one diagnostic run; superseded by the next run."""

    success: bool
    message: str
    recommendations: list[str] = field(default_factory=list[str])
    results: DiagnosticChecks = field(default_factory=DiagnosticChecks)
    notes: list[str] = field(default_factory=list[str])
    error: VisaOpsError | None = None
    schema_fixed: bool | None = None
    default_package_created: bool = False
    timestamp: datetime = field(default_factory=_utcnow)
