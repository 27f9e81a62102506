"""
Ordered fallback over interchangeable strategies.

A strategy is a named zero-argument coroutine function. Strategies are
awaited in order until one returns; if every one raises, the chain raises
`AllStrategiesFailed` carrying the last error.
"""

from typing import Awaitable, Callable, Generic, List, Optional, Sequence, Tuple, TypeVar

from visit_engine.core.logging import get_logger

logger = get_logger(__name__)

T = TypeVar("T")

Strategy = Tuple[str, Callable[[], Awaitable[T]]]


class AllStrategiesFailed(Exception):
    """Raised when no strategy in a fallback chain succeeded."""

    def __init__(self, errors: List[Tuple[str, BaseException]]):
        self.errors = errors
        self.last_error: Optional[BaseException] = errors[-1][1] if errors else None
        message = str(self.last_error) if self.last_error else "No strategies configured"
        super().__init__(message or type(self.last_error).__name__)


class FallbackChain(Generic[T]):
    """Evaluates strategies in order and returns the first success."""

    def __init__(self, strategies: Sequence[Strategy] = ()):
        self._strategies: List[Strategy] = list(strategies)

    def add(self, name: str, strategy: Callable[[], Awaitable[T]]) -> "FallbackChain[T]":
        self._strategies.append((name, strategy))
        return self

    def __len__(self) -> int:
        return len(self._strategies)

    async def run(self) -> Tuple[str, T]:
        """Returns `(name, result)` of the first strategy that succeeded."""
        errors: List[Tuple[str, BaseException]] = []
        for name, strategy in self._strategies:
            try:
                result = await strategy()
            except Exception as e:
                logger.warning(f"Strategy '{name}' failed: {e}")
                errors.append((name, e))
                continue
            if errors:
                logger.info(f"Strategy '{name}' succeeded after {len(errors)} failed attempt(s)")
            return name, result
        raise AllStrategiesFailed(errors)
