from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Awaitable, Generic, List, Optional, Sequence, TypeVar

from mobile.app import config
from mobile.app.utils.observability import record_fanout_failure

logger = logging.getLogger("core.fanout")

T = TypeVar("T")

FAIL_FAST = "fail_fast"
COLLECT = "collect"
POLICIES = (FAIL_FAST, COLLECT)


@dataclass
class FanoutResult(Generic[T]):
    results: List[T] = field(default_factory=list)
    errors: List[Exception] = field(default_factory=list)

    @property
    def partial(self) -> bool:
        return bool(self.errors)


def resolve_policy(policy: Optional[str]) -> str:
    resolved = (policy or config.FANOUT_FAILURE_POLICY or FAIL_FAST).strip().lower()
    if resolved not in POLICIES:
        logger.warning("Unknown fan-out policy %s; using %s", resolved, FAIL_FAST)
        return FAIL_FAST
    return resolved


async def gather_all(awaitables: Sequence[Awaitable[T]], *, policy: Optional[str] = None) -> FanoutResult[T]:
    """Run every sub-fetch concurrently and join them.

    ``fail_fast`` cancels the siblings and re-raises the first failure, so the
    aggregate is all-or-nothing. ``collect`` keeps the successes in input order
    and reports the failures next to them.
    """
    resolved = resolve_policy(policy)
    tasks = [asyncio.ensure_future(item) for item in awaitables]
    if not tasks:
        return FanoutResult()

    if resolved == FAIL_FAST:
        try:
            results = await asyncio.gather(*tasks)
        except Exception:
            record_fanout_failure(resolved)
            for task in tasks:
                task.cancel()
            await asyncio.gather(*tasks, return_exceptions=True)
            raise
        except asyncio.CancelledError:
            for task in tasks:
                task.cancel()
            raise
        return FanoutResult(results=list(results))

    outcomes = await asyncio.gather(*tasks, return_exceptions=True)
    collected: FanoutResult[T] = FanoutResult()
    for outcome in outcomes:
        if isinstance(outcome, asyncio.CancelledError):
            raise outcome
        if isinstance(outcome, Exception):
            record_fanout_failure(resolved)
            collected.errors.append(outcome)
        else:
            collected.results.append(outcome)
    if collected.errors:
        logger.warning("%d of %d sub-fetches failed", len(collected.errors), len(tasks))
    return collected
