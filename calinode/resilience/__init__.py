"""Resilience patterns for the document store

This module provides fallback orchestration and metrics collection so that
persistence problems degrade to local storage instead of failing callers.
"""

from calinode.resilience.fallback import execute_with_fallbacks, FallbackStrategy
from calinode.resilience.metrics import (
    record_store_operation,
    record_fallback,
    record_persistence_failure,
    record_quest_completed,
    record_readiness_event,
)

__all__ = [
    # Fallback
    "execute_with_fallbacks",
    "FallbackStrategy",
    # Metrics
    "record_store_operation",
    "record_fallback",
    "record_persistence_failure",
    "record_quest_completed",
    "record_readiness_event",
]
