from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from pydantic.alias_generators import to_camel


class DayOfWeek(str, Enum):
    MONDAY = "Monday"
    TUESDAY = "Tuesday"
    WEDNESDAY = "Wednesday"
    THURSDAY = "Thursday"
    FRIDAY = "Friday"
    SATURDAY = "Saturday"
    SUNDAY = "Sunday"


WEEKDAYS: tuple[DayOfWeek, ...] = tuple(DayOfWeek)


class PhaseType(str, Enum):
    ACCUMULATION = "Accumulation"
    INTENSIFICATION = "Intensification"
    REALIZATION = "Realization"
    DELOAD = "Deload"


class ProgressionStrategy(str, Enum):
    LINEAR = "Linear"
    DOUBLE_PROGRESSION = "Double Progression"
    REVERSE_PYRAMID = "Reverse Pyramid"
    WAVE_LOADING = "Wave Loading"
    AUTOREGULATED = "Autoregulated"


class ExerciseTier(str, Enum):
    ANCHOR = "Anchor"
    PRIMARY = "Primary"
    SECONDARY = "Secondary"
    ACCESSORY = "Accessory"


class ExerciseCategory(str, Enum):
    ANCHOR_LIFT = "Anchor_Lift"
    COMPOUND = "Compound"
    ISOLATION = "Isolation"
    CARDIO = "Cardio"
    MOBILITY = "Mobility"
    CORE = "Core"
    WARM_UP = "Warm-up"
    COOL_DOWN = "Cool-down"
    POWER = "Power"
    CORRECTIVE = "Corrective"


class WeakPoint(str, Enum):
    WEAK_POSTERIOR_CHAIN = "WEAK_POSTERIOR_CHAIN"
    WEAK_HORIZONTAL_PRESS = "WEAK_HORIZONTAL_PRESS"
    WEAK_VERTICAL_PRESS = "WEAK_VERTICAL_PRESS"
    WEAK_CORE_STABILITY = "WEAK_CORE_STABILITY"
    WEAK_SHOULDER_STABILITY = "WEAK_SHOULDER_STABILITY"
    MOVEMENT_QUALITY = "MOVEMENT_QUALITY"


class Priority(str, Enum):
    HIGH = "High"
    MODERATE = "Moderate"
    LOW = "Low"


class CamelModel(BaseModel):
    """Accepts both the camelCase JSON produced by the LLM and snake_case names."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class ExerciseDetail(CamelModel):
    name: str = Field(min_length=1)
    sets: int = Field(gt=0)
    reps: int | str
    rest: str = ""
    rpe: float | str | None = None
    tier: ExerciseTier | None = None
    category: ExerciseCategory | None = None
    is_anchor_lift: bool | None = None
    notes: str | None = None
    weight: str | None = None

    @field_validator("reps")
    @classmethod
    def _check_reps(cls, value: int | str) -> int | str:
        if isinstance(value, int) and value <= 0:
            raise ValueError("reps must be positive")
        if isinstance(value, str) and not value.strip():
            raise ValueError("reps must not be empty")
        return value

    @field_validator("rpe")
    @classmethod
    def _check_rpe(cls, value: float | str | None) -> float | str | None:
        if isinstance(value, int | float) and not 1 <= value <= 10:
            raise ValueError("RPE must be between 1 and 10")
        return value

    @model_validator(mode="after")
    def _normalize_anchor(self) -> ExerciseDetail:
        marked = (
            self.tier == ExerciseTier.ANCHOR
            or self.is_anchor_lift is True
            or self.category == ExerciseCategory.ANCHOR_LIFT
        )
        denied = (
            (self.tier is not None and self.tier != ExerciseTier.ANCHOR)
            or self.is_anchor_lift is False
            or (self.category is not None and self.category != ExerciseCategory.ANCHOR_LIFT)
        )
        if marked and denied:
            raise ValueError(f"Exercise '{self.name}' has contradictory anchor markers")
        if marked:
            self.tier = ExerciseTier.ANCHOR
            self.category = ExerciseCategory.ANCHOR_LIFT
            self.is_anchor_lift = True
        else:
            self.is_anchor_lift = False
        return self

    @property
    def is_anchor(self) -> bool:
        return self.category == ExerciseCategory.ANCHOR_LIFT


class WorkoutDay(CamelModel):
    day_of_week: DayOfWeek
    is_rest_day: bool = False
    focus: str | None = None
    exercises: list[ExerciseDetail] = Field(default_factory=list)
    warm_up: list[ExerciseDetail] | None = None
    cool_down: list[ExerciseDetail] | None = None
    estimated_duration: str | None = None

    @model_validator(mode="after")
    def _check_session_shape(self) -> WorkoutDay:
        day = self.day_of_week.value
        if self.is_rest_day:
            if self.exercises:
                raise ValueError(f"{day}: rest day must not contain exercises")
            return self
        if not self.exercises:
            raise ValueError(f"{day}: training day must contain at least one exercise")
        anchors = [idx for idx, exercise in enumerate(self.exercises) if exercise.is_anchor]
        if len(anchors) != 1:
            raise ValueError(f"{day}: expected exactly one anchor lift, found {len(anchors)}")
        if anchors[0] != 0:
            raise ValueError(f"{day}: anchor lift must be the first exercise")
        return self

    @classmethod
    def rest(cls, day_of_week: DayOfWeek, focus: str = "Rest") -> WorkoutDay:
        return cls(day_of_week=day_of_week, is_rest_day=True, focus=focus, exercises=[])


class TrainingWeek(CamelModel):
    week_number: int = Field(gt=0)
    phase_week: int | None = Field(default=None, gt=0)
    progression_strategy: ProgressionStrategy
    intensity_focus: str = Field(min_length=1)
    days: list[WorkoutDay]
    weekly_volume_landmark: str | None = None

    @model_validator(mode="after")
    def _check_days(self) -> TrainingWeek:
        if len(self.days) != 7:
            raise ValueError(f"Week {self.week_number} must have exactly 7 days, got {len(self.days)}")
        names = {day.day_of_week for day in self.days}
        if len(names) != 7:
            missing = [d.value for d in WEEKDAYS if d not in names]
            raise ValueError(f"Week {self.week_number} has duplicate days; missing {', '.join(missing)}")
        return self


def _check_phase_weeks(phase_name: str, duration_weeks: int, week_numbers: list[int]) -> None:
    if len(week_numbers) != duration_weeks:
        raise ValueError(
            f"Phase '{phase_name}' declares {duration_weeks} weeks but contains {len(week_numbers)}"
        )
    if len(set(week_numbers)) != len(week_numbers):
        raise ValueError(f"Phase '{phase_name}' repeats a week number")


def _check_total_duration(total: int, phase_durations: list[int]) -> None:
    if total != sum(phase_durations):
        raise ValueError(
            f"durationWeeksTotal ({total}) does not match the sum of phase durations ({sum(phase_durations)})"
        )


class TrainingPhase(CamelModel):
    phase_name: str = Field(min_length=1)
    phase_type: PhaseType
    duration_weeks: int = Field(gt=0)
    primary_goal: str = Field(min_length=1)
    weeks: list[TrainingWeek]

    @model_validator(mode="after")
    def _check_weeks(self) -> TrainingPhase:
        _check_phase_weeks(self.phase_name, self.duration_weeks, [w.week_number for w in self.weeks])
        return self


class TrainingProgram(CamelModel):
    program_name: str = Field(min_length=1)
    description: str = Field(min_length=1)
    duration_weeks_total: int = Field(gt=0)
    periodization_model: str = Field(min_length=1)
    coach_intro: str = Field(min_length=1)
    general_advice: str = Field(min_length=1)
    phases: list[TrainingPhase] = Field(min_length=1)
    anchor_lifts: list[str] | None = None
    total_volume_progression: str | None = None

    @model_validator(mode="after")
    def _check_duration(self) -> TrainingProgram:
        _check_total_duration(self.duration_weeks_total, [p.duration_weeks for p in self.phases])
        return self


class ScaffoldWeek(CamelModel):
    week_number: int = Field(gt=0)
    phase_week: int | None = Field(default=None, gt=0)
    intensity_focus: str = Field(min_length=1)
    progression_strategy: ProgressionStrategy
    weekly_volume_landmark: str | None = None


class ScaffoldPhase(CamelModel):
    phase_name: str = Field(min_length=1)
    phase_type: PhaseType
    duration_weeks: int = Field(gt=0)
    primary_goal: str = Field(min_length=1)
    weeks: list[ScaffoldWeek]

    @model_validator(mode="after")
    def _check_weeks(self) -> ScaffoldPhase:
        _check_phase_weeks(self.phase_name, self.duration_weeks, [w.week_number for w in self.weeks])
        return self


class ProgramScaffold(CamelModel):
    """Macro-structure: phases and weeks without any training days."""

    program_name: str = Field(min_length=1)
    description: str = Field(min_length=1)
    duration_weeks_total: int = Field(gt=0)
    periodization_model: str = Field(min_length=1)
    phases: list[ScaffoldPhase] = Field(min_length=1)

    @model_validator(mode="after")
    def _check_duration(self) -> ProgramScaffold:
        _check_total_duration(self.duration_weeks_total, [p.duration_weeks for p in self.phases])
        return self


class NarrativeContent(CamelModel):
    coach_intro: str = Field(min_length=1)
    general_advice: str = Field(min_length=1)


class VolumeLandmarks(BaseModel):
    model_config = ConfigDict(populate_by_name=True, frozen=True)

    mev: int = Field(ge=0, alias="MEV")
    mav: int = Field(ge=0, alias="MAV")
    mrv: int = Field(ge=0, alias="MRV")

    @model_validator(mode="after")
    def _check_order(self) -> VolumeLandmarks:
        if not self.mev <= self.mav <= self.mrv:
            raise ValueError(f"Landmarks must satisfy MEV <= MAV <= MRV, got {self.mev}/{self.mav}/{self.mrv}")
        return self


class RPETarget(CamelModel):
    min: float = Field(ge=1, le=10)
    max: float = Field(ge=1, le=10)
    target: float = Field(ge=1, le=10)


class PhaseRPETargets(CamelModel):
    accumulation: RPETarget | None = None
    intensification: RPETarget | None = None
    realization: RPETarget | None = None
    deload: RPETarget | None = None


class AdjustmentGuidelines(CamelModel):
    high_readiness: str = Field(min_length=1)
    normal_readiness: str = Field(min_length=1)
    low_readiness: str = Field(min_length=1)
    very_low_readiness: str = Field(min_length=1)


class AutoregulationProtocol(CamelModel):
    phase_rpe_targets: PhaseRPETargets = Field(alias="phaseRPETargets")
    adjustment_guidelines: AdjustmentGuidelines | None = None
    recovery_markers: list[str] = Field(default_factory=list)
    fatigue_indicators: list[str] = Field(default_factory=list)


class MuscleVolume(CamelModel):
    weekly_volume: float = Field(ge=0)
    percentage_of_mav: float = Field(ge=0, le=120, alias="percentageOfMAV")
    exercise_breakdown: dict[str, float] | None = None


class WeakPointIntervention(CamelModel):
    target_area: WeakPoint
    identified_ratio: str | None = None
    current_ratio: float = Field(ge=0)
    target_ratio: float = Field(ge=0)
    priority: Priority
    intervention_exercises: list[str] = Field(min_length=1)
    weekly_volume: float = Field(ge=1)
    progression_protocol: str = Field(min_length=1)
    reassessment_period_weeks: int = Field(ge=2, le=12)
    expected_outcome: str = Field(min_length=1)

    @model_validator(mode="after")
    def _check_ratio_gap(self) -> WeakPointIntervention:
        if self.current_ratio >= self.target_ratio:
            raise ValueError(
                f"{self.target_area.value}: current ratio {self.current_ratio} must be below target {self.target_ratio}"
            )
        return self


class EnhancedTrainingProgram(TrainingProgram):
    autoregulation_protocol: AutoregulationProtocol | None = None
    volume_distribution: dict[str, MuscleVolume] | None = None
    weak_point_interventions: list[WeakPointIntervention] | None = None
