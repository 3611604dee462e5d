"""
Fan-out branch results.

Every concurrent gateway call is wrapped by ``settle`` so that it never
raises: the outcome is a ``BranchResult`` carrying either the value or the
captured failure. ``asyncio.gather`` over settled branches preserves input
order, so joins are deterministic.
"""

from __future__ import annotations

from collections.abc import Awaitable
from dataclasses import dataclass
from typing import Generic, TypeVar

import httpx
import structlog

from unichat.kernel.errors import UnichatError

logger = structlog.get_logger()

T = TypeVar("T")

# Expected upstream failures, logged as warnings without a traceback.
UPSTREAM_FAILURES = (httpx.HTTPError, UnichatError, ValueError)


@dataclass(frozen=True)
class BranchResult(Generic[T]):
    value: T | None = None
    error: str | None = None

    @property
    def ok(self) -> bool:
        return self.error is None

    def value_or(self, default: T) -> T:
        if self.ok and self.value is not None:
            return self.value
        return default


async def settle(awaitable: Awaitable[T], **log_context) -> BranchResult[T]:
    """Await one branch and capture any failure as a result."""
    try:
        return BranchResult(value=await awaitable)
    except UPSTREAM_FAILURES as e:
        logger.warning("Gateway branch failed", error=str(e), **log_context)
        return BranchResult(error=str(e) or type(e).__name__)
    except Exception as e:
        logger.exception("Gateway branch crashed", error=str(e), **log_context)
        return BranchResult(error=f"{type(e).__name__}: {e}")
