"""Ordered fallback strategies where the first success wins."""

from __future__ import annotations

from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from logging import getLogger
from typing import TYPE_CHECKING

from .errors import StoreError

if TYPE_CHECKING:
    from collections.abc import Sequence

log = getLogger(__name__)


@dataclass(frozen=True, slots=True)
class StrategyOutcome:
    success: bool
    message: str


@dataclass(frozen=True, slots=True)
class Strategy:
    name: str
    run: Callable[[], Awaitable[StrategyOutcome]]


@dataclass(frozen=True, slots=True)
class ChainResult:
    success: bool
    message: str
    strategy: str | None = None
    attempts: tuple[str, ...] = ()


@dataclass(slots=True)
class FallbackChain:
    """Try ``strategies`` in order and stop at the first success.

    A strategy fails by returning an unsuccessful outcome or by raising one of
    ``recoverable``. Each failure is logged and recorded; the chain only fails
    once every strategy has been tried. Other exceptions propagate.
    """

    strategies: Sequence[Strategy]
    recoverable: tuple[type[Exception], ...] = field(default=(StoreError,))

    async def run(self) -> ChainResult:
        attempts: list[str] = []
        for strategy in self.strategies:
            try:
                outcome = await strategy.run()
            except self.recoverable as exc:
                outcome = StrategyOutcome(success=False, message=str(exc))

            if outcome.success:
                log.info("Strategy %s succeeded: %s", strategy.name, outcome.message)
                return ChainResult(
                    success=True,
                    message=outcome.message,
                    strategy=strategy.name,
                    attempts=(*attempts, f"{strategy.name}: {outcome.message}"),
                )

            log.warning("Strategy %s failed: %s", strategy.name, outcome.message)
            attempts.append(f"{strategy.name}: {outcome.message}")

        if not attempts:
            return ChainResult(success=False, message="No strategies configured")
        return ChainResult(
            success=False,
            message="All strategies failed: " + "; ".join(attempts),
            attempts=tuple(attempts),
        )
