"""Fallback strategies for store reads

Provides orchestration for trying multiple strategies in sequence until one
produces a result. Used to prefer the remote store and fall back to the
local copy when the remote document is missing or the call fails.
"""

import logging
from typing import Any, Awaitable, Callable, List, Optional, TypeVar
from dataclasses import dataclass

from calinode.resilience.metrics import record_fallback

logger = logging.getLogger(__name__)

T = TypeVar('T')


@dataclass
class FallbackStrategy:
    """
    Defines a fallback strategy with priority ordering.

    Attributes:
        name: Human-readable name for logging
        handler: Async callable that implements the strategy
        priority: Priority level (lower = higher priority, 1 = primary)
    """
    name: str
    handler: Callable[..., Awaitable[Optional[T]]]
    priority: int


async def execute_with_fallbacks(
    strategies: List[FallbackStrategy],
    *args: Any,
    **kwargs: Any
) -> Optional[T]:
    """
    Execute strategies in priority order until one returns a result.

    A strategy that returns None is a miss and the next one is tried. If a
    strategy raises, the error is logged and the next one is tried.

    Args:
        strategies: List of FallbackStrategy to try
        *args, **kwargs: Arguments to pass to each strategy handler

    Returns:
        Result from first strategy that produced one, or None if every
        strategy missed

    Raises:
        Last exception if every strategy raised

    Example:
        strategies = [
            FallbackStrategy("remote", load_remote, priority=1),
            FallbackStrategy("local", load_local, priority=2),
        ]
        profile = await execute_with_fallbacks(strategies, user_id)
    """
    sorted_strategies = sorted(strategies, key=lambda s: s.priority)

    last_exception = None
    failures = 0
    primary = sorted_strategies[0].name if sorted_strategies else "unknown"

    for strategy in sorted_strategies:
        try:
            logger.debug(f"[FALLBACK] Trying strategy: {strategy.name}")
            result = await strategy.handler(*args, **kwargs)
        except Exception as e:
            logger.warning(
                f"[FALLBACK] Strategy '{strategy.name}' failed: "
                f"{type(e).__name__}: {e}"
            )
            last_exception = e
            failures += 1
            if strategy.priority > 1:
                record_fallback(primary, strategy.name, success=False)
            continue

        if result is None:
            logger.debug(f"[FALLBACK] Strategy '{strategy.name}' found nothing")
            if strategy.priority > 1:
                record_fallback(primary, strategy.name, success=False)
            continue

        if strategy.priority > 1:
            logger.info(f"[FALLBACK] Strategy '{strategy.name}' succeeded")
            record_fallback(primary, strategy.name, success=True)
        return result

    if sorted_strategies and failures == len(sorted_strategies):
        logger.error(
            f"[FALLBACK] All {len(sorted_strategies)} fallback strategies failed"
        )
        raise last_exception

    return None
