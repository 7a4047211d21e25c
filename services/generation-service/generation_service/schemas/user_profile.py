from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, Field, field_validator


class ExperienceLevel(str, Enum):
    BEGINNER = "Beginner"
    INTERMEDIATE = "Intermediate"
    ADVANCED = "Advanced"


class StrengthProfile(BaseModel):
    """One-rep-max snapshot of the four major lifts, all in the same unit."""

    squat: float = Field(gt=0)
    bench: float = Field(gt=0)
    deadlift: float = Field(gt=0)
    overhead_press: float = Field(gt=0)


VOLUME_PARAMETER_BOUNDS: dict[str, tuple[float, float]] = {
    "training_age_years": (0.0, 60.0),
    "recovery_capacity": (1.0, 10.0),
    "volume_tolerance": (0.5, 2.0),
    "stress_level": (1.0, 10.0),
}


class VolumeParameters(BaseModel):
    """Inputs of the landmark calculator; out-of-range values are clamped, never rejected."""

    training_age_years: float
    recovery_capacity: float
    volume_tolerance: float = 1.0
    stress_level: float

    @field_validator("training_age_years", "recovery_capacity", "volume_tolerance", "stress_level")
    @classmethod
    def _clamp(cls, value: float, info):
        low, high = VOLUME_PARAMETER_BOUNDS[info.field_name]
        return max(low, min(high, value))


class UserProfile(BaseModel):
    name: str = Field(min_length=1)
    age: int = Field(ge=13, le=100)
    experience_level: ExperienceLevel
    primary_goal: str = Field(min_length=1)
    training_frequency_days: int = Field(ge=1, le=7)
    session_duration: str = "60 minutes"
    equipment: list[str] = Field(default_factory=list)
    injuries_limitations: str | None = None
    squat_1rm: float | None = Field(default=None, gt=0)
    bench_1rm: float | None = Field(default=None, gt=0)
    deadlift_1rm: float | None = Field(default=None, gt=0)
    overhead_press_1rm: float | None = Field(default=None, gt=0)

    def missing_one_rep_maxes(self) -> list[str]:
        lifts = {
            "squat": self.squat_1rm,
            "bench": self.bench_1rm,
            "deadlift": self.deadlift_1rm,
            "overhead_press": self.overhead_press_1rm,
        }
        return [name for name, value in lifts.items() if value is None]

    def strength_profile(self) -> StrengthProfile | None:
        if self.missing_one_rep_maxes():
            return None
        return StrengthProfile(
            squat=self.squat_1rm,
            bench=self.bench_1rm,
            deadlift=self.deadlift_1rm,
            overhead_press=self.overhead_press_1rm,
        )
