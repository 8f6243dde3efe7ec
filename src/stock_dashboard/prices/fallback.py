"""Ordered fallback over data sources: the first acceptable result wins.

Every tier of the dashboard (primary provider, secondary provider, cache,
sample) is expressed as a named zero-argument coroutine factory. The
combinator runs them strictly in order, converts each exception into a
failed ``SourceOutcome`` and stops at the first value the caller accepts.
Nothing is raced and nothing is retried.
"""

from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable, Sequence
from dataclasses import dataclass, field
from typing import Generic, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")

SourceStrategy = tuple[str, Callable[[], Awaitable[T]]]


@dataclass(frozen=True)
class SourceOutcome(Generic[T]):
    """Result-or-failure of a single strategy attempt."""

    name: str
    value: T | None = None
    error: Exception | None = None
    accepted: bool = False

    @property
    def ok(self) -> bool:
        return self.error is None

    @property
    def reason(self) -> str:
        if self.error is not None:
            return f"{type(self.error).__name__}: {self.error}"
        if not self.accepted:
            return "rejected"
        return "ok"


@dataclass
class FallbackResult(Generic[T]):
    """Outcome of a ``first_success`` run."""

    winner: SourceOutcome[T] | None
    attempts: list[SourceOutcome[T]] = field(default_factory=list)

    @property
    def value(self) -> T | None:
        return self.winner.value if self.winner is not None else None

    def failures(self) -> dict[str, str]:
        return {a.name: a.reason for a in self.attempts if not a.accepted}


async def attempt(
    name: str,
    factory: Callable[[], Awaitable[T]],
    fatal: tuple[type[Exception], ...] = (),
) -> SourceOutcome[T]:
    """Run one strategy, capturing any exception as a failed outcome.

    Exceptions listed in ``fatal`` are re-raised instead of captured.
    """
    try:
        value = await factory()
    except fatal:
        raise
    except Exception as e:
        logger.warning("Source %s failed: %s", name, e)
        return SourceOutcome(name=name, error=e)
    return SourceOutcome(name=name, value=value)


async def first_success(
    strategies: Sequence[SourceStrategy[T]],
    accept: Callable[[T], bool] = bool,
    fatal: tuple[type[Exception], ...] = (),
) -> FallbackResult[T]:
    """Try ``strategies`` in order and return the first accepted value.

    Parameters
    ----------
    strategies : sequence of (name, factory)
        Factories are only invoked when every earlier strategy failed or
        was rejected.
    accept : callable
        Predicate over a successful value. Defaults to truthiness, so an
        empty list counts as a miss.
    fatal : tuple of exception types
        Propagated immediately rather than treated as a tier miss.
    """
    attempts: list[SourceOutcome[T]] = []
    for name, factory in strategies:
        outcome = await attempt(name, factory, fatal)
        if outcome.ok and accept(outcome.value):
            outcome = SourceOutcome(name=name, value=outcome.value, accepted=True)
            attempts.append(outcome)
            return FallbackResult(winner=outcome, attempts=attempts)
        if outcome.ok:
            logger.info("Source %s returned an unusable result", name)
        attempts.append(outcome)
    return FallbackResult(winner=None, attempts=attempts)
