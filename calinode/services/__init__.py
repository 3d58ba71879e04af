"""
Service Layer Package

Stateful services on top of the pure rule modules in calinode.gamification:
- QuestService: assessment, daily quests, workout progress, readiness tests
- StreakService: workout and quest-completion streak ledger
- ProgressionRepository: remote document store with local fallback
"""

from calinode.services.container import ServiceContainer
from calinode.services.progression_repository import PersistenceResult, ProgressionRepository
from calinode.services.quest_service import QuestService
from calinode.services.streak_service import StreakService

__all__ = [
    "ServiceContainer",
    "PersistenceResult",
    "ProgressionRepository",
    "QuestService",
    "StreakService",
]
