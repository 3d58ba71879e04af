"""Global test fixtures and utilities for calinode tests"""
import random
import pytest
from datetime import datetime, timedelta, timezone
from typing import Iterable, List, Optional, Sequence

from calinode.db.documents import DocumentStore, InMemoryDocumentStore
from calinode.db.local_store import LocalKeyValueStore
from calinode.exceptions import ConnectionError
from calinode.models.profile import CapabilityProfile, FitnessLevel
from calinode.models.workout import ActiveWorkout, WorkoutExercise, WorkoutSet
from calinode.services.container import ServiceContainer


FIXED_NOW = datetime(2024, 6, 15, 12, 0, 0, tzinfo=timezone.utc)


# ============================================================================
# Clock
# ============================================================================

class FixedClock:
    """Callable clock that only moves when told to"""

    def __init__(self, now: datetime = FIXED_NOW):
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, days: int = 0, hours: int = 0) -> None:
        self.now = self.now + timedelta(days=days, hours=hours)


@pytest.fixture
def clock():
    """Clock pinned to 2024-06-15 12:00 UTC"""
    return FixedClock()


# ============================================================================
# Store Fixtures
# ============================================================================

class FailingDocumentStore(DocumentStore):
    """Remote store whose every call fails as if the network were down"""

    name = "failing"

    def __init__(self):
        self.calls = 0

    def _fail(self):
        self.calls += 1
        raise ConnectionError("Document store unreachable")

    async def get(self, path):
        self._fail()

    async def set(self, path, data, merge=False):
        self._fail()

    async def delete(self, path):
        self._fail()

    async def delete_fields(self, path, fields):
        self._fail()

    async def list_documents(self, prefix):
        self._fail()

    async def delete_prefix(self, prefix):
        self._fail()


@pytest.fixture
def memory_store():
    """Empty in-memory remote store"""
    return InMemoryDocumentStore()


@pytest.fixture
def failing_store():
    return FailingDocumentStore()


@pytest.fixture
def local_store(tmp_path):
    """Local fallback store rooted in a temp directory"""
    return LocalKeyValueStore(tmp_path / "data")


@pytest.fixture
def test_user_id():
    """Standard test user ID"""
    return "user-123"


# ============================================================================
# Service Fixtures
# ============================================================================

@pytest.fixture
def container(test_user_id, local_store, memory_store, clock):
    """Container wired to the in-memory remote store and a fixed clock"""
    return ServiceContainer(
        user_id=test_user_id,
        local_store=local_store,
        remote_store=memory_store,
        clock=clock,
        rng=random.Random(7),
    )


@pytest.fixture
def quest_service(container):
    return container.quest_service


@pytest.fixture
def streak_service(container):
    return container.streak_service


# ============================================================================
# Model Builders
# ============================================================================

@pytest.fixture
def assessed_profile():
    """Intermediate profile with a 20 push-up maximum"""
    return CapabilityProfile(
        max_push_ups=20,
        max_pull_ups=5,
        max_plank_seconds=60,
        max_squats=30,
        fitness_level=FitnessLevel.INTERMEDIATE,
        last_assessment=FIXED_NOW,
    )


def build_workout(
    end: Optional[datetime] = FIXED_NOW,
    minutes: int = 10,
    push_ups: Sequence[int] = (),
    extra: Optional[dict] = None,
    finished: bool = True
) -> ActiveWorkout:
    """
    Workout ending at `end` with one push-up exercise (reps per set) and
    optional extra exercises given as {exercise_id: [reps, ...]}
    """
    end = end or FIXED_NOW
    exercises: List[WorkoutExercise] = []
    if push_ups:
        exercises.append(WorkoutExercise(
            exercise_id="push_up",
            sets=[WorkoutSet(reps=r, is_completed=True) for r in push_ups],
        ))
    for exercise_id, reps in (extra or {}).items():
        exercises.append(WorkoutExercise(
            exercise_id=exercise_id,
            sets=[WorkoutSet(reps=r, is_completed=True) for r in reps],
        ))
    return ActiveWorkout(
        name="Test workout",
        exercises=exercises,
        start_time=end - timedelta(minutes=minutes),
        end_time=end if finished else None,
    )


@pytest.fixture
def make_workout():
    """Factory fixture for ActiveWorkout events"""
    return build_workout


def date_keys(days: Iterable[int], today: datetime = FIXED_NOW) -> List[str]:
    """yyyy-MM-dd keys for offsets relative to today (0 = today, -1 = yesterday)"""
    return sorted((today + timedelta(days=d)).strftime("%Y-%m-%d") for d in days)


@pytest.fixture
def day_keys():
    """Factory fixture: date keys for day offsets around FIXED_NOW"""
    return date_keys
