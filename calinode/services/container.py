"""
Service Container - Dependency Injection Container

Wires one user's services to the persistence they share. Services are
lazy-loaded on first access; the clock and random source are injected so
callers (and tests) control time and starter quest selection.
"""

import logging
import random
from dataclasses import dataclass, field
from datetime import datetime
from typing import Callable, Optional

from calinode.db.documents import DocumentStore
from calinode.db.local_store import LocalKeyValueStore
from calinode.utils.datetime_helpers import now_user_timezone

logger = logging.getLogger(__name__)


@dataclass
class ServiceContainer:
    """
    Dependency injection container for one user's progression services.

    Infrastructure (local store, optional remote document store) is injected;
    services are created on first access via properties.
    """

    user_id: str
    local_store: LocalKeyValueStore
    remote_store: Optional[DocumentStore] = None
    clock: Callable[[], datetime] = now_user_timezone
    rng: Optional[random.Random] = None

    # Services (lazy-loaded via properties)
    _repository: Optional[object] = field(default=None, init=False, repr=False)
    _streak_service: Optional[object] = field(default=None, init=False, repr=False)
    _quest_service: Optional[object] = field(default=None, init=False, repr=False)

    @property
    def repository(self):
        """Get ProgressionRepository instance (lazy-loaded)"""
        if self._repository is None:
            from calinode.services.progression_repository import ProgressionRepository
            self._repository = ProgressionRepository(self.local_store, self.remote_store)
            logger.debug("ProgressionRepository instantiated")
        return self._repository

    @property
    def streak_service(self):
        """Get StreakService instance (lazy-loaded)"""
        if self._streak_service is None:
            from calinode.services.streak_service import StreakService
            self._streak_service = StreakService(self.repository, self.user_id, self.clock)
            logger.debug("StreakService instantiated")
        return self._streak_service

    @property
    def quest_service(self):
        """Get QuestService instance (lazy-loaded)"""
        if self._quest_service is None:
            from calinode.services.quest_service import QuestService
            self._quest_service = QuestService(
                self.repository,
                self.streak_service,
                self.user_id,
                clock=self.clock,
                rng=self.rng,
            )
            logger.debug("QuestService instantiated")
        return self._quest_service
