"""
Background maintenance worker.

Periodic sweep of expired jobs from every registry, plus the startup
pre-warm of the compositor bundle.
"""

import asyncio
from datetime import timedelta
from typing import Awaitable, Callable, Dict, Mapping, Optional

from modules.render import RenderService
from shared.job_registry import JobRegistry
from shared.logging import get_logger

logger = get_logger("api_gateway.worker")


def sweep_expired_jobs(registries: Mapping[str, JobRegistry], max_age: timedelta) -> Dict[str, int]:
    """
    Sweep every registry once.

    Args:
        registries: Registries keyed by job kind
        max_age: Maximum job age to keep

    Returns:
        Number of removed jobs per kind
    """
    removed = {kind: registry.sweep(max_age) for kind, registry in registries.items()}
    logger.info(
        "Job sweep finished",
        extra={"removed": removed, "max_age_seconds": max_age.total_seconds()}
    )
    return removed


async def sweep_loop(
    registries: Mapping[str, JobRegistry],
    max_age: timedelta,
    interval_seconds: float,
    sleep: Optional[Callable[[float], Awaitable[None]]] = None
) -> None:
    """
    Sweep expired jobs every `interval_seconds` until cancelled.

    Errors in one sweep are logged and the loop keeps going.
    """
    sleep = sleep or asyncio.sleep
    logger.info(
        "Sweep loop started",
        extra={"interval_seconds": interval_seconds, "max_age_seconds": max_age.total_seconds()}
    )

    while True:
        try:
            await sleep(interval_seconds)
            sweep_expired_jobs(registries, max_age)
        except asyncio.CancelledError:
            logger.info("Sweep loop cancelled")
            raise
        except Exception as e:
            logger.error("Error in sweep loop", exc_info=e)


async def prewarm_bundle(render: RenderService) -> bool:
    """
    Build the compositor bundle ahead of the first render.

    A failure is logged and left for the first render job to retry.

    Returns:
        True if the bundle is ready
    """
    try:
        await render.ensure_bundle()
    except Exception as e:
        logger.warning("Failed to pre-warm compositor bundle", exc_info=e)
        return False

    logger.info("Compositor bundle ready")
    return True
