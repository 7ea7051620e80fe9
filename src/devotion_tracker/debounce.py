"""
Query Debouncer.

Coalesces bursts of search input into one evaluation. A new submit()
cancels the pending task only while it is still waiting out the quiescence
window. Evaluations are never interrupted once started; instead every
result carries the sequence number of the request that produced it and is
discarded at delivery if a newer request exists.
"""

import asyncio
import inspect
import logging
from typing import Any, Callable, List, Optional, Set

from .query import QueryDescriptor

logger = logging.getLogger(__name__)

Evaluator = Callable[[QueryDescriptor], Any]
ResultHandler = Callable[[int, QueryDescriptor, Any], None]
ErrorHandler = Callable[[int, QueryDescriptor, Exception], None]


class QueryDebouncer:
    """
    Single-owner scheduler holding at most one waiting query.

    Must be used from a running asyncio event loop.
    """

    def __init__(
        self,
        evaluate: Evaluator,
        on_result: ResultHandler,
        quiescence: float = 0.3,
        on_commit: Optional[Callable[[str], None]] = None,
        on_error: Optional[ErrorHandler] = None,
    ):
        """
        Args:
            evaluate: Filter/search function; may be sync or a coroutine function
            on_result: Receives (sequence, query, result) for the latest request only
            quiescence: Seconds of input silence before evaluating
            on_commit: Receives the search text after a non-empty text query is delivered
            on_error: Receives (sequence, query, error) when the latest request fails
        """
        self._evaluate = evaluate
        self._on_result = on_result
        self._on_commit = on_commit
        self._on_error = on_error
        self.quiescence = quiescence

        self._sequence = 0
        self._waiting: Optional[asyncio.Task] = None
        self._tasks: Set[asyncio.Task] = set()
        self.evaluations = 0
        self.discarded = 0
        self.latest_result: Any = None
        self.latest_error: Optional[Exception] = None
        self._unreported: List[Exception] = []

    @property
    def sequence(self) -> int:
        """Sequence number of the most recently submitted request."""
        return self._sequence

    @property
    def is_pending(self) -> bool:
        """True while any request is waiting or evaluating."""
        return bool(self._tasks)

    def submit(self, query: QueryDescriptor) -> int:
        """
        Schedule query for evaluation after the quiescence window.

        Returns:
            The request's sequence number
        """
        self._sequence += 1
        seq = self._sequence
        if self._waiting is not None and not self._waiting.done():
            self._waiting.cancel()
            logger.debug(f"[DEBOUNCE] request {seq} supersedes waiting request")

        task = asyncio.get_running_loop().create_task(self._run(seq, query))
        self._waiting = task
        self._tasks.add(task)
        task.add_done_callback(self._task_done)
        return seq

    async def _run(self, seq: int, query: QueryDescriptor) -> None:
        await asyncio.sleep(self.quiescence)
        # Past the window: from here on the request runs to completion
        if self._waiting is asyncio.current_task():
            self._waiting = None
        await self._evaluate_and_deliver(seq, query)

    async def _evaluate_and_deliver(self, seq: int, query: QueryDescriptor) -> None:
        self.evaluations += 1
        try:
            result = self._evaluate(query)
            if inspect.isawaitable(result):
                result = await result
        except Exception as e:
            if seq != self._sequence:
                self.discarded += 1
                logger.debug(f"[DEBOUNCE] discarding stale error {seq}: {e}")
                return
            logger.warning(f"[DEBOUNCE] request {seq} failed: {e}")
            self.latest_error = e
            self._unreported.append(e)
            if self._on_error:
                self._on_error(seq, query, e)
            return

        if seq != self._sequence:
            self.discarded += 1
            logger.debug(f"[DEBOUNCE] discarding stale result {seq} (latest {self._sequence})")
            return

        self.latest_error = None
        self.latest_result = result
        self._on_result(seq, query, result)

        if query.search_text and self._on_commit:
            self._on_commit(query.search_text)

    def _task_done(self, task: asyncio.Task) -> None:
        self._tasks.discard(task)
        # Errors raised by on_result or on_commit surface through flush()
        if not task.cancelled() and task.exception() is not None:
            self._unreported.append(task.exception())

    async def flush(self) -> None:
        """
        Wait until no request is waiting or evaluating.

        Raises:
            Exception: the first error of a latest request not yet reported
                by a previous flush()
        """
        while self._tasks:
            await asyncio.wait(set(self._tasks))
        if self._unreported:
            error = self._unreported[0]
            self._unreported.clear()
            raise error

    def cancel(self) -> None:
        """Drop the waiting request and make any in-flight result stale."""
        if self._waiting is not None and not self._waiting.done():
            self._waiting.cancel()
        self._waiting = None
        self._sequence += 1
