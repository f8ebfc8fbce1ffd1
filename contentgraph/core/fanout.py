"""
Fan-out/fan-in execution of independent side-effecting operations.

Each operation is a zero-argument async callable. All operations of all
groups run concurrently; the caller is suspended until every operation
has finished (or hit the group deadline).

Error policy is collect-all:
- every dispatched operation runs to completion, none is dropped
- failures are recorded in the order they were observed
- a single failing operation with no successful siblings re-raises its
  own exception unchanged
- otherwise a FanOutError (nothing succeeded) or PartialCascadeError
  (something succeeded) carrying every failure is raised
Mutations made by successful operations are never rolled back.
"""

import asyncio
from collections.abc import Awaitable, Callable, Mapping, Sequence
from typing import Any

from contentgraph.utils.exceptions import FanOutError, FanOutTimeoutError, PartialCascadeError
from contentgraph.utils.logger import get_logger

logger = get_logger(__name__)

Operation = Callable[[], Awaitable[Any]]


class _GroupOutcome:
    def __init__(self, size: int):
        self.results: list[Any] = [None] * size
        self.succeeded = 0


class FanOutExecutor:
    """
    Runs groups of independent operations concurrently and joins on them.

    Optional limits:
    - max_concurrency: at most this many operations of one group in flight
    - timeout: per-group deadline in seconds; operations still running
      (or still waiting for a slot) at the deadline are cancelled and
      reported as FanOutTimeoutError failures
    """

    def __init__(self, max_concurrency: int | None = None, timeout: float | None = None):
        """
        Initialize fan-out executor.

        Args:
            max_concurrency: Per-group concurrency bound (None = unbounded)
            timeout: Per-group deadline in seconds (None = no deadline)
        """
        if max_concurrency is not None and max_concurrency < 1:
            raise ValueError("max_concurrency must be >= 1")
        if timeout is not None and timeout <= 0:
            raise ValueError("timeout must be > 0")

        self.max_concurrency = max_concurrency
        self.timeout = timeout

    async def run(self, label: str, operations: Sequence[Operation]) -> list[Any]:
        """
        Run one group of operations.

        Args:
            label: Group name used in logs and errors
            operations: Zero-argument async callables

        Returns:
            Results in the order of ``operations``

        Raises:
            The single failure's own exception, FanOutError or PartialCascadeError
        """
        results = await self.run_groups({label: operations})
        return results[label]

    async def run_groups(self, groups: Mapping[str, Sequence[Operation]]) -> dict[str, list[Any]]:
        """
        Run several groups concurrently with each other.

        Args:
            groups: Group label -> operations

        Returns:
            Group label -> results in operation order

        Raises:
            The single failure's own exception, FanOutError or PartialCascadeError
        """
        failures: list[BaseException] = []

        outcomes = await asyncio.gather(
            *(self._run_group(label, list(ops), failures) for label, ops in groups.items())
        )

        succeeded = sum(outcome.succeeded for outcome in outcomes)
        if failures:
            raise self._aggregate(groups, failures, succeeded)

        return {label: outcome.results for label, outcome in zip(groups, outcomes)}

    async def run_steps(self, label: str, steps: Sequence[Operation]) -> list[Any]:
        """
        Attempt independent steps one after another.

        Same collect-all policy as ``run``: a failing step doesn't stop
        the following ones, and all failures are reported at the end.
        No deadline or concurrency bound applies.

        Args:
            label: Sequence name used in logs and errors
            steps: Zero-argument async callables, attempted in order

        Returns:
            Results in step order
        """
        results: list[Any] = [None] * len(steps)
        failures: list[BaseException] = []
        succeeded = 0

        for index, step in enumerate(steps):
            try:
                results[index] = await step()
                succeeded += 1
            except Exception as e:
                failures.append(e)
                logger.bind(group=label, index=index, error_type=type(e).__name__).error(
                    f"{label}[{index}] failed: {e}"
                )

        if failures:
            raise self._aggregate({label: steps}, failures, succeeded)
        return results

    async def _run_group(
        self, label: str, operations: list[Operation], failures: list[BaseException]
    ) -> _GroupOutcome:
        outcome = _GroupOutcome(len(operations))
        if not operations:
            return outcome

        loop = asyncio.get_running_loop()
        deadline = loop.time() + self.timeout if self.timeout else None
        semaphore = asyncio.Semaphore(self.max_concurrency) if self.max_concurrency else None

        async def _item(index: int, operation: Operation) -> None:
            try:
                value = await self._call(operation, deadline, semaphore)
            except Exception as e:
                failures.append(e)
                logger.bind(group=label, index=index, error_type=type(e).__name__).error(
                    f"{label}[{index}] failed: {e}"
                )
                return
            outcome.results[index] = value
            outcome.succeeded += 1

        await asyncio.gather(*(_item(i, op) for i, op in enumerate(operations)))

        logger.bind(group=label, total=len(operations), succeeded=outcome.succeeded).debug(
            f"{label}: {outcome.succeeded}/{len(operations)} succeeded"
        )
        return outcome

    async def _call(
        self,
        operation: Operation,
        deadline: float | None,
        semaphore: asyncio.Semaphore | None,
    ) -> Any:
        if deadline is None:
            if semaphore is None:
                return await operation()
            async with semaphore:
                return await operation()

        remaining = deadline - asyncio.get_running_loop().time()
        try:
            return await asyncio.wait_for(self._call(operation, None, semaphore), remaining)
        except TimeoutError as e:
            raise FanOutTimeoutError(
                f"Operation did not finish within {self.timeout}s",
                context={"timeout": self.timeout},
            ) from e

    @staticmethod
    def _aggregate(
        groups: Mapping[str, Sequence[Operation]],
        failures: list[BaseException],
        succeeded: int,
    ) -> BaseException:
        if succeeded == 0 and len(failures) == 1:
            return failures[0]

        total = sum(len(ops) for ops in groups.values())
        error_cls = PartialCascadeError if succeeded else FanOutError
        return error_cls(
            f"{len(failures)} of {total} operations failed ({', '.join(groups)}): {failures[0]}",
            errors=list(failures),
            succeeded=succeeded,
            context={"groups": {label: len(ops) for label, ops in groups.items()}},
        )
