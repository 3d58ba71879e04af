"""Prometheus metrics for persistence and progression events

Recording helpers never raise; a metrics failure is logged and ignored.
"""

import logging
from prometheus_client import Counter

from calinode.config import ENABLE_PROMETHEUS

logger = logging.getLogger(__name__)

# Labels: store (postgres/memory/local), operation (get/set/delete/...), status (success/failure)
store_operations_total = Counter(
    'calinode_store_operations_total',
    'Total document store operations',
    ['store', 'operation', 'status']
)

# Labels: primary, fallback_strategy, status (success/failure)
fallback_executions_total = Counter(
    'calinode_fallback_executions_total',
    'Total number of fallback strategy executions',
    ['primary', 'fallback_strategy', 'status']
)

# Labels: record (profile/progress/streaks/quests), target (remote/local)
persistence_failures_total = Counter(
    'calinode_persistence_failures_total',
    'Writes that failed and were not retried',
    ['record', 'target']
)

# Labels: difficulty (starter/challenger/beast_mode/readiness_test)
quests_completed_total = Counter(
    'calinode_quests_completed_total',
    'Quests completed',
    ['difficulty']
)

# Labels: skill, event (unlocked/passed/failed)
readiness_tests_total = Counter(
    'calinode_readiness_tests_total',
    'Readiness test lifecycle events',
    ['skill', 'event']
)


def record_store_operation(store: str, operation: str, success: bool) -> None:
    """Record one store round trip."""
    if not ENABLE_PROMETHEUS:
        return
    try:
        status = "success" if success else "failure"
        store_operations_total.labels(store=store, operation=operation, status=status).inc()
    except Exception as e:
        logger.error(f"Failed to record store operation metric: {e}")


def record_fallback(primary: str, fallback_strategy: str, success: bool) -> None:
    """
    Record fallback strategy execution.

    Args:
        primary: Strategy that was tried first
        fallback_strategy: Strategy that ran instead
        success: Whether the fallback produced a result
    """
    if not ENABLE_PROMETHEUS:
        return
    try:
        status = "success" if success else "failure"
        fallback_executions_total.labels(
            primary=primary,
            fallback_strategy=fallback_strategy,
            status=status
        ).inc()
        logger.debug(f"[METRICS] Fallback {primary} → {fallback_strategy}: {status}")
    except Exception as e:
        logger.error(f"Failed to record fallback metric: {e}")


def record_persistence_failure(record: str, target: str) -> None:
    if not ENABLE_PROMETHEUS:
        return
    try:
        persistence_failures_total.labels(record=record, target=target).inc()
    except Exception as e:
        logger.error(f"Failed to record persistence failure metric: {e}")


def record_quest_completed(difficulty: str) -> None:
    if not ENABLE_PROMETHEUS:
        return
    try:
        quests_completed_total.labels(difficulty=difficulty).inc()
    except Exception as e:
        logger.error(f"Failed to record quest completion metric: {e}")


def record_readiness_event(skill: str, event: str) -> None:
    if not ENABLE_PROMETHEUS:
        return
    try:
        readiness_tests_total.labels(skill=skill, event=event).inc()
    except Exception as e:
        logger.error(f"Failed to record readiness metric: {e}")
