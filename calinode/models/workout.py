"""Completed-workout event models fed in by the workout tracker"""
from datetime import datetime
from typing import Optional
from uuid import uuid4
from pydantic import BaseModel, Field


class WorkoutSet(BaseModel):
    """A single logged set"""
    id: str = Field(default_factory=lambda: str(uuid4()))
    reps: Optional[int] = None
    duration: Optional[int] = None  # seconds
    distance: Optional[float] = None
    is_completed: bool = False


class WorkoutExercise(BaseModel):
    """An exercise with its sets inside a workout"""
    id: str = Field(default_factory=lambda: str(uuid4()))
    exercise_id: str
    sets: list[WorkoutSet] = Field(default_factory=list)
    target_sets: int = 3

    @property
    def max_reps(self) -> int:
        reps = [s.reps for s in self.sets if s.reps is not None]
        return max(reps) if reps else 0

    @property
    def total_reps(self) -> int:
        return sum(s.reps for s in self.sets if s.reps is not None)


class ActiveWorkout(BaseModel):
    """Workout summary; finished once end_time is set"""
    id: str = Field(default_factory=lambda: str(uuid4()))
    name: str = "Workout"
    exercises: list[WorkoutExercise] = Field(default_factory=list)
    start_time: datetime
    end_time: Optional[datetime] = None
    is_from_template: bool = False

    @property
    def is_completed(self) -> bool:
        return self.end_time is not None

    @property
    def duration_seconds(self) -> int:
        """Elapsed whole seconds, 0 while unfinished"""
        if self.end_time is None:
            return 0
        return max(0, int((self.end_time - self.start_time).total_seconds()))

    @property
    def total_reps(self) -> int:
        return sum(e.total_reps for e in self.exercises)

    def total_reps_for(self, exercise_id: str) -> int:
        """Reps logged against exercise_id across all of its sets"""
        return sum(e.total_reps for e in self.exercises if e.exercise_id == exercise_id)
