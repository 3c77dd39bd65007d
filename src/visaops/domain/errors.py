"""Error taxonomy for the visa configuration consistency engine."""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Sequence


class VisaOpsError(Exception):
    """Base class for all domain errors."""

    @property
    def message(self) -> str:
        return str(self)


class StoreError(VisaOpsError):
    """The underlying store call failed (connectivity, permission, malformed query)."""

    def __init__(
        self,
        message: str,
        *,
        operation: str | None = None,
        code: str | None = None,
    ) -> None:
        super().__init__(message)
        self.operation = operation
        self.code = code


class ValidationError(VisaOpsError):
    """Caller supplied invalid input; raised before any store call."""


class NotFoundError(VisaOpsError):
    """A referenced country does not exist."""

    def __init__(self, message: str, *, country_id: str) -> None:
        super().__init__(message)
        self.country_id = country_id


class PartialFailure(VisaOpsError):
    """A multi-step write where an earlier step succeeded and a later one failed.

    No rollback is attempted; ``failures`` lists the failed steps in order.
    """

    def __init__(
        self,
        failures: Sequence[str],
        *,
        errors: Sequence[VisaOpsError] = (),
    ) -> None:
        super().__init__("; ".join(failures))
        self.failures = tuple(failures)
        self.errors = tuple(errors)


class SchemaGateFailure(VisaOpsError):
    """The schema reconciler precondition failed; no package or document state was touched."""
