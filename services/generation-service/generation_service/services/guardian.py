from __future__ import annotations

from collections.abc import Iterator
from enum import Enum
from typing import Any

import structlog
from pydantic import BaseModel, Field, ValidationError

from ..metrics import PROGRAM_VALIDATION_FINDINGS_TOTAL
from ..schemas.program import CamelModel, ExerciseTier, PhaseType

logger = structlog.get_logger(__name__)


class ErrorType(str, Enum):
    SCHEMA = "SCHEMA"
    SCIENTIFIC = "SCIENTIFIC"
    STRUCTURAL = "STRUCTURAL"


class Severity(str, Enum):
    CRITICAL = "CRITICAL"
    HIGH = "HIGH"
    MEDIUM = "MEDIUM"


class WarningType(str, Enum):
    OPTIMIZATION = "OPTIMIZATION"
    BEST_PRACTICE = "BEST_PRACTICE"


class GuardianError(BaseModel):
    type: ErrorType
    severity: Severity
    message: str
    location: str | None = None
    suggested_fix: str | None = None


class GuardianWarning(BaseModel):
    type: WarningType
    message: str
    location: str | None = None


class GuardianResult(BaseModel):
    is_valid: bool = True
    errors: list[GuardianError] = Field(default_factory=list)
    warnings: list[GuardianWarning] = Field(default_factory=list)

    @property
    def critical_errors(self) -> list[GuardianError]:
        return [error for error in self.errors if error.severity == Severity.CRITICAL]


# Loose views: field types only, so structural problems surface as findings
# instead of parse failures.
class _Exercise(CamelModel):
    name: str
    sets: int
    tier: ExerciseTier | None = None
    category: str | None = None
    is_anchor_lift: bool | None = None

    @property
    def is_anchor(self) -> bool:
        return bool(self.is_anchor_lift) or self.tier == ExerciseTier.ANCHOR or self.category == "Anchor_Lift"


class _Day(CamelModel):
    day_of_week: str
    is_rest_day: bool = False
    focus: str | None = None
    exercises: list[_Exercise] = Field(default_factory=list)


class _Week(CamelModel):
    week_number: int
    days: list[_Day]


class _Phase(CamelModel):
    phase_name: str
    phase_type: PhaseType
    duration_weeks: int
    weeks: list[_Week]


class _Program(CamelModel):
    duration_weeks_total: int
    phases: list[_Phase] = Field(min_length=1)


VALID_PHASE_PATTERNS: tuple[tuple[PhaseType, ...], ...] = (
    (PhaseType.ACCUMULATION, PhaseType.INTENSIFICATION, PhaseType.REALIZATION),
    (PhaseType.ACCUMULATION, PhaseType.DELOAD),
    (PhaseType.ACCUMULATION, PhaseType.INTENSIFICATION, PhaseType.DELOAD),
    (PhaseType.ACCUMULATION, PhaseType.ACCUMULATION, PhaseType.INTENSIFICATION, PhaseType.DELOAD),
)
TIER_ORDER = [ExerciseTier.ANCHOR, ExerciseTier.PRIMARY, ExerciseTier.SECONDARY, ExerciseTier.ACCESSORY]
MAX_SETS_PER_EXERCISE = 8
MIN_SETS_NON_ACCESSORY = 2
DELOAD_MAX_AVERAGE_WEEKLY_SETS = 15
EQUIPMENT_MIX_MIN_EXERCISES = 6


def _weekly_sets(week: _Week) -> int:
    return sum(exercise.sets for day in week.days if not day.is_rest_day for exercise in day.exercises)


def _tiers_in_order(tiers: list[ExerciseTier | None]) -> bool:
    ranks = [TIER_ORDER.index(tier) for tier in tiers if tier is not None]
    return all(later >= earlier for earlier, later in zip(ranks, ranks[1:]))


class GuardianLayer:
    """Independent post-assembly review of a program document.

    Works on the raw JSON-shaped document, so it reports problems that the
    schema layer would have rejected outright.
    """

    def validate_program(self, document: Any) -> GuardianResult:
        result = GuardianResult()
        try:
            program = _Program.model_validate(document)
        except ValidationError as exc:
            result.errors.append(
                GuardianError(
                    type=ErrorType.SCHEMA,
                    severity=Severity.CRITICAL,
                    message=f"Schema validation failed: {exc.error_count()} error(s), first: {exc.errors()[0]['msg']}",
                    suggested_fix="Regenerate program with correct schema structure",
                )
            )
        else:
            self._check_sessions(program, result)
            self._check_anchor_lifts(program, result)
            self._check_volume_progression(program, result)
            self._check_periodization(program, result)
            self._check_exercise_programming(program, result)
            self._check_structural_integrity(program, result)
            self._check_equipment_mix(program, result)

        result.is_valid = not result.errors
        for error in result.errors:
            PROGRAM_VALIDATION_FINDINGS_TOTAL.labels(severity=error.severity.value).inc()
        if result.warnings:
            PROGRAM_VALIDATION_FINDINGS_TOTAL.labels(severity="WARNING").inc(len(result.warnings))
        logger.info(
            "guardian_validation_complete",
            is_valid=result.is_valid,
            errors=len(result.errors),
            critical=len(result.critical_errors),
            warnings=len(result.warnings),
        )
        return result

    def _days(self, program: _Program) -> Iterator[tuple[str, _Day]]:
        for phase_idx, phase in enumerate(program.phases):
            for week_idx, week in enumerate(phase.weeks):
                for day in week.days:
                    yield f"Phase {phase_idx + 1}, Week {week_idx + 1}, {day.day_of_week}", day

    def _check_sessions(self, program: _Program, result: GuardianResult) -> None:
        for location, day in self._days(program):
            if not day.is_rest_day and not day.exercises:
                result.errors.append(
                    GuardianError(
                        type=ErrorType.STRUCTURAL,
                        severity=Severity.CRITICAL,
                        message=f"Training day {day.day_of_week} has no exercises",
                        location=location,
                        suggested_fix="Regenerate the session or mark the day as rest",
                    )
                )

    def _check_anchor_lifts(self, program: _Program, result: GuardianResult) -> None:
        for location, day in self._days(program):
            if day.is_rest_day or not day.exercises:
                continue
            anchors = [exercise for exercise in day.exercises if exercise.is_anchor]
            if not anchors:
                result.errors.append(
                    GuardianError(
                        type=ErrorType.SCIENTIFIC,
                        severity=Severity.HIGH,
                        message=f"No anchor lift found for {day.focus or day.day_of_week}",
                        location=location,
                        suggested_fix="Designate the most neurologically demanding compound lift as anchor",
                    )
                )
                continue
            if len(anchors) > 1:
                result.warnings.append(
                    GuardianWarning(
                        type=WarningType.OPTIMIZATION,
                        message=f"Multiple anchor lifts detected for {day.focus or day.day_of_week}",
                        location=location,
                    )
                )
            if not day.exercises[0].is_anchor:
                result.warnings.append(
                    GuardianWarning(
                        type=WarningType.BEST_PRACTICE,
                        message="Anchor lift should be performed first in the workout",
                        location=location,
                    )
                )

    def _check_volume_progression(self, program: _Program, result: GuardianResult) -> None:
        for phase_idx, phase in enumerate(program.phases):
            volumes = [_weekly_sets(week) for week in phase.weeks]
            if phase.phase_type == PhaseType.ACCUMULATION:
                for week_idx in range(1, len(volumes)):
                    if volumes[week_idx] < volumes[week_idx - 1]:
                        result.warnings.append(
                            GuardianWarning(
                                type=WarningType.OPTIMIZATION,
                                message="Volume decreased during accumulation phase",
                                location=f"Phase {phase_idx + 1}, Week {week_idx + 1}",
                            )
                        )
            if phase.phase_type == PhaseType.DELOAD and volumes:
                if sum(volumes) / len(volumes) > DELOAD_MAX_AVERAGE_WEEKLY_SETS:
                    result.warnings.append(
                        GuardianWarning(
                            type=WarningType.OPTIMIZATION,
                            message="Deload phase volume may be too high",
                            location=f"Phase {phase_idx + 1}",
                        )
                    )

    def _check_periodization(self, program: _Program, result: GuardianResult) -> None:
        phase_types = tuple(phase.phase_type for phase in program.phases)
        matches = any(phase_types[: len(pattern)] == pattern for pattern in VALID_PHASE_PATTERNS)
        if not matches and len(program.phases) > 1:
            result.warnings.append(
                GuardianWarning(
                    type=WarningType.OPTIMIZATION,
                    message="Phase sequence may not follow established periodization patterns",
                    location="Program structure",
                )
            )

        for idx, phase in enumerate(program.phases):
            if phase.duration_weeks != len(phase.weeks):
                result.errors.append(
                    GuardianError(
                        type=ErrorType.STRUCTURAL,
                        severity=Severity.HIGH,
                        message=(
                            f"Phase duration mismatch: declared {phase.duration_weeks} weeks, "
                            f"but has {len(phase.weeks)} weeks"
                        ),
                        location=f"Phase {idx + 1}: {phase.phase_name}",
                    )
                )

    def _check_exercise_programming(self, program: _Program, result: GuardianResult) -> None:
        for location, day in self._days(program):
            if day.is_rest_day:
                continue
            if not _tiers_in_order([exercise.tier for exercise in day.exercises]):
                result.warnings.append(
                    GuardianWarning(
                        type=WarningType.BEST_PRACTICE,
                        message="Exercise order may not follow optimal hierarchy",
                        location=location,
                    )
                )
            for ex_idx, exercise in enumerate(day.exercises):
                where = f"{location}, Exercise {ex_idx + 1}"
                if exercise.sets > MAX_SETS_PER_EXERCISE:
                    result.warnings.append(
                        GuardianWarning(
                            type=WarningType.OPTIMIZATION,
                            message=f"High set count ({exercise.sets}) for {exercise.name}",
                            location=where,
                        )
                    )
                if exercise.sets < MIN_SETS_NON_ACCESSORY and exercise.tier != ExerciseTier.ACCESSORY:
                    tier = exercise.tier.value if exercise.tier else "untiered"
                    result.errors.append(
                        GuardianError(
                            type=ErrorType.SCIENTIFIC,
                            severity=Severity.MEDIUM,
                            message=f"Low set count ({exercise.sets}) for {exercise.name} - insufficient for {tier} tier",
                            location=where,
                        )
                    )

    def _check_structural_integrity(self, program: _Program, result: GuardianResult) -> None:
        total = sum(phase.duration_weeks for phase in program.phases)
        if total != program.duration_weeks_total:
            result.errors.append(
                GuardianError(
                    type=ErrorType.STRUCTURAL,
                    severity=Severity.HIGH,
                    message=(
                        f"Total duration mismatch: program declares {program.duration_weeks_total} weeks, "
                        f"but phases sum to {total} weeks"
                    ),
                    suggested_fix="Ensure phase durations sum to total program duration",
                )
            )

        expected = 1
        for phase_idx, phase in enumerate(program.phases):
            for week_idx, week in enumerate(phase.weeks):
                if week.week_number != expected:
                    result.errors.append(
                        GuardianError(
                            type=ErrorType.STRUCTURAL,
                            severity=Severity.MEDIUM,
                            message=f"Week numbering error: expected week {expected}, found week {week.week_number}",
                            location=f"Phase {phase_idx + 1}, Week {week_idx + 1}",
                        )
                    )
                expected += 1

    def _check_equipment_mix(self, program: _Program, result: GuardianResult) -> None:
        for location, day in self._days(program):
            names = [exercise.name.lower() for exercise in day.exercises]
            has_barbell = any("barbell" in name for name in names)
            has_dumbbell = any("dumbbell" in name for name in names)
            has_machine = any("machine" in name or "cable" in name for name in names)
            if has_barbell and has_dumbbell and has_machine and len(names) > EQUIPMENT_MIX_MIN_EXERCISES:
                result.warnings.append(
                    GuardianWarning(
                        type=WarningType.OPTIMIZATION,
                        message="Workout may require too many different equipment types",
                        location=location,
                    )
                )
