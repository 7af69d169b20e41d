from __future__ import annotations

import asyncio
from typing import Optional

from src.backend.config import settings


async def simulate_latency(delay_ms: Optional[int] = None) -> None:
    """Sleep for the configured artificial API latency.

    The demo backend answers from memory; the delay lets clients exercise
    their loading states the same way they would against a remote service.
    """

    ms = settings.simulated_latency_ms if delay_ms is None else delay_ms
    if ms > 0:
        await asyncio.sleep(ms / 1000.0)


async def latency_dependency() -> None:
    """FastAPI dependency applying the configured latency to a router."""

    await simulate_latency()
