"""
Ordered fallback strategies.

Each strategy returns a value or a ``TryNext`` signal; the chain returns the
first value. Errors that are not converted into ``TryNext`` propagate.
"""
import logging
from typing import Awaitable, Callable, Generic, List, Sequence, Tuple, TypeVar, Union

from smarty.client.errors import ApiError

logger = logging.getLogger(__name__)

T = TypeVar("T")


class TryNext:
    """Signal that a strategy could not produce a result."""

    def __init__(self, reason: str):
        self.reason = reason

    def __repr__(self) -> str:
        return f"TryNext({self.reason!r})"


Outcome = Union[T, TryNext]
Strategy = Callable[[], Awaitable[Outcome]]


class FallbackExhausted(ApiError):
    def __init__(self, reasons: List[str]):
        super().__init__("All strategies failed: " + "; ".join(reasons))
        self.reasons = reasons


async def try_next_on(
    call: Callable[[], Awaitable[T]],
    should_skip: Callable[[ApiError], bool],
) -> Outcome:
    """Run ``call`` and turn matching ``ApiError``s into ``TryNext``."""
    try:
        return await call()
    except ApiError as e:
        if should_skip(e):
            return TryNext(str(e))
        raise


def when_unavailable(error: ApiError) -> bool:
    return error.is_unavailable


def always(error: ApiError) -> bool:
    return True


class FallbackChain(Generic[T]):
    """Named strategies tried in order."""

    def __init__(self, strategies: Sequence[Tuple[str, Strategy]]):
        self.strategies = list(strategies)

    async def run(self) -> T:
        reasons = []
        for name, strategy in self.strategies:
            outcome = await strategy()
            if isinstance(outcome, TryNext):
                logger.info("Strategy %s unavailable, trying next: %s", name, outcome.reason)
                reasons.append(f"{name}: {outcome.reason}")
                continue
            return outcome
        raise FallbackExhausted(reasons)
