"""
Concurrency Limiter
Sliding-window execution of deferred async tasks with a cap on tasks in flight
"""
import asyncio
import logging
from typing import Any, Awaitable, Callable, Dict, List, Sequence, Set

logger = logging.getLogger(__name__)

DEFAULT_MAX_CONCURRENCY = 3

DeferredTask = Callable[[], Awaitable[Any]]


class ConcurrencyLimiter:
    """
    Runs deferred tasks with at most ``max_concurrency`` in flight

    A slot is handed to the next queued task as soon as any running task
    finishes. The first failure is re-raised after the remaining in-flight
    tasks have been cancelled and have settled; queued tasks are never started.
    """

    def __init__(self, max_concurrency: int = DEFAULT_MAX_CONCURRENCY):
        if max_concurrency < 1:
            raise ValueError(f"max_concurrency must be >= 1, got {max_concurrency}")
        self.max_concurrency = max_concurrency
        self.peak_in_flight = 0

    async def run(self, tasks: Sequence[DeferredTask]) -> List[Any]:
        """Run all tasks and return their results in submission order"""
        results: List[Any] = [None] * len(tasks)
        positions: Dict[asyncio.Future, int] = {}
        pending: Set[asyncio.Future] = set()

        try:
            for index, task in enumerate(tasks):
                future = asyncio.ensure_future(task())
                positions[future] = index
                pending.add(future)
                self.peak_in_flight = max(self.peak_in_flight, len(pending))

                if len(pending) >= self.max_concurrency:
                    done, pending = await asyncio.wait(pending, return_when=asyncio.FIRST_COMPLETED)
                    self._collect(done, positions, results)

            while pending:
                done, pending = await asyncio.wait(pending, return_when=asyncio.FIRST_EXCEPTION)
                self._collect(done, positions, results)

        except BaseException:
            if pending:
                logger.warning(f"🛑 Cancelling {len(pending)} in-flight task(s) after failure")
                for future in pending:
                    future.cancel()
                await asyncio.gather(*pending, return_exceptions=True)
            raise

        return results

    @staticmethod
    def _collect(done: Set[asyncio.Future], positions: Dict[asyncio.Future, int], results: List[Any]):
        # Settle every finished future before raising so none is left with an unretrieved exception
        failure = None
        for future in sorted(done, key=positions.get):
            if future.cancelled():
                failure = failure or asyncio.CancelledError()
            elif future.exception() is not None:
                failure = failure or future.exception()
            else:
                results[positions[future]] = future.result()
        if failure is not None:
            raise failure
