import asyncio
import logging
from dataclasses import dataclass
from typing import Awaitable, Callable, Generic, List, Optional, Sequence, TypeVar

T = TypeVar("T")
R = TypeVar("R")

# self-imposed backpressure towards the aggregator (~10 rps upstream)
BATCH_SIZE = 5
DELAY_BETWEEN_BATCHES_SEC = 1.0

_logger = logging.getLogger(__name__)


@dataclass
class BatchOutcome(Generic[R]):
    """Settled result of one item: either `value` or `error` is set."""
    value: Optional[R] = None
    error: Optional[BaseException] = None

    @property
    def ok(self) -> bool:
        return self.error is None


async def process_in_batches(
    items: Sequence[T],
    process_fn: Callable[[T], Awaitable[R]],
    *,
    batch_size: int = BATCH_SIZE,
    delay_sec: float = DELAY_BETWEEN_BATCHES_SEC,
) -> List[BatchOutcome[R]]:
    """
    Run `process_fn` over `items` with at most `batch_size` calls in flight,
    sleeping `delay_sec` between batches.

    Output order == input order. A failing item never aborts its siblings;
    cancellation of the caller is NOT swallowed.
    """
    outcomes: List[BatchOutcome[R]] = []
    for start in range(0, len(items), batch_size):
        batch = items[start:start + batch_size]
        _logger.debug("Processing batch of %s items (starting at index %s)", len(batch), start)

        results = await asyncio.gather(*(process_fn(it) for it in batch), return_exceptions=True)
        for res in results:
            if isinstance(res, asyncio.CancelledError):
                raise res
            if isinstance(res, BaseException):
                outcomes.append(BatchOutcome(error=res))
            else:
                outcomes.append(BatchOutcome(value=res))

        if start + batch_size < len(items) and delay_sec > 0:
            await asyncio.sleep(delay_sec)
    return outcomes
