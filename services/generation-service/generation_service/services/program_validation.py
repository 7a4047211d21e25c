from __future__ import annotations

from collections.abc import Iterable, Mapping
from typing import Any

from pydantic import BaseModel, Field, ValidationError

from ..schemas.program import (
    AutoregulationProtocol,
    EnhancedTrainingProgram,
    MuscleVolume,
    Priority,
    VolumeLandmarks,
    WeakPoint,
    WeakPointIntervention,
)
from .volume_landmarks import PRIMARY_MUSCLE_GROUPS

MAX_RPE_BAND_WIDTH = 3
MAX_PERCENTAGE_OF_MAV = 110
HIGH_PRIORITY_MIN_WEEKLY_VOLUME = 4
MAX_REASSESSMENT_WEEKS = 8
RPE_PHASES = ("accumulation", "intensification", "realization", "deload")


class ProgramValidationResult(BaseModel):
    """``errors`` are schema/type failures, ``violations`` are broken domain rules."""

    is_valid: bool
    violations: list[str] = Field(default_factory=list)
    errors: list[str] = Field(default_factory=list)


def format_validation_errors(exc: ValidationError) -> list[str]:
    messages = []
    for error in exc.errors():
        location = ".".join(str(part) for part in error["loc"]) or "program"
        messages.append(f"{location}: {error['msg']}")
    return messages


def validate_rpe_targets(protocol: AutoregulationProtocol | None) -> list[str]:
    if protocol is None:
        return ["Autoregulation protocol is missing"]

    targets = protocol.phase_rpe_targets
    violations: list[str] = []
    for phase in RPE_PHASES:
        target = getattr(targets, phase)
        if target is None:
            continue
        if target.min > target.max:
            violations.append(f"{phase}: RPE min {target.min:g} is above max {target.max:g}")
        if not target.min <= target.target <= target.max:
            violations.append(
                f"{phase}: RPE target {target.target:g} outside range {target.min:g}-{target.max:g}"
            )
        if target.max - target.min > MAX_RPE_BAND_WIDTH:
            violations.append(
                f"{phase}: RPE band {target.min:g}-{target.max:g} is wider than {MAX_RPE_BAND_WIDTH} points"
            )

    ordered = [(phase, getattr(targets, phase)) for phase in ("accumulation", "intensification", "realization")]
    present = [(phase, target) for phase, target in ordered if target is not None]
    for (prev_phase, prev), (next_phase, nxt) in zip(present, present[1:]):
        if prev.target > nxt.target:
            violations.append(
                f"RPE targets must not decrease: {prev_phase} {prev.target:g} > {next_phase} {nxt.target:g}"
            )
    if targets.deload is not None and targets.accumulation is not None:
        if targets.deload.target >= targets.accumulation.target:
            violations.append(
                f"Deload RPE target {targets.deload.target:g} must be below accumulation "
                f"target {targets.accumulation.target:g}"
            )
    return violations


def validate_volume_compliance(
    distribution: Mapping[str, MuscleVolume] | None,
    landmarks: Mapping[str, VolumeLandmarks],
) -> list[str]:
    if distribution is None:
        return ["Volume distribution is missing"]

    violations: list[str] = []
    for muscle, bounds in landmarks.items():
        volume = distribution.get(muscle)
        if volume is None:
            violations.append(f"{muscle}: no weekly volume prescribed")
            continue
        if volume.weekly_volume > bounds.mrv:
            violations.append(f"{muscle}: weekly volume {volume.weekly_volume:g} exceeds MRV {bounds.mrv}")
        if muscle in PRIMARY_MUSCLE_GROUPS and volume.weekly_volume < bounds.mev:
            violations.append(f"{muscle}: weekly volume {volume.weekly_volume:g} is below MEV {bounds.mev}")
        if volume.percentage_of_mav > MAX_PERCENTAGE_OF_MAV:
            violations.append(
                f"{muscle}: {volume.percentage_of_mav:g}% of MAV exceeds {MAX_PERCENTAGE_OF_MAV}%"
            )
    return violations


def validate_weak_point_addressing(
    interventions: list[WeakPointIntervention] | None,
    weak_points: Iterable[WeakPoint],
) -> list[str]:
    weak_points = list(weak_points)
    if interventions is None:
        return ["Weak point interventions are missing"] if weak_points else []

    violations: list[str] = []
    covered = {intervention.target_area for intervention in interventions}
    for weak_point in weak_points:
        if weak_point not in covered:
            violations.append(f"{weak_point.value}: no intervention addresses this weak point")

    for intervention in interventions:
        area = intervention.target_area.value
        if intervention.weekly_volume < 2:
            violations.append(f"{area}: weekly volume {intervention.weekly_volume:g} is too low to drive change")
        if intervention.priority == Priority.HIGH and intervention.weekly_volume < HIGH_PRIORITY_MIN_WEEKLY_VOLUME:
            violations.append(
                f"{area}: high priority needs at least {HIGH_PRIORITY_MIN_WEEKLY_VOLUME} weekly sets, "
                f"got {intervention.weekly_volume:g}"
            )
        if intervention.reassessment_period_weeks > MAX_REASSESSMENT_WEEKS:
            violations.append(
                f"{area}: reassessment in {intervention.reassessment_period_weeks} weeks exceeds "
                f"{MAX_REASSESSMENT_WEEKS}"
            )
    return violations


def validate_training_program(
    data: Any,
    *,
    landmarks: Mapping[str, VolumeLandmarks] | None = None,
    weak_points: Iterable[WeakPoint] | None = None,
    require_autoregulation: bool = True,
) -> ProgramValidationResult:
    """Run structural and domain checks without raising.

    Volume compliance runs only when ``landmarks`` are given and weak point
    coverage only when ``weak_points`` are given.
    """
    try:
        program = (
            data if isinstance(data, EnhancedTrainingProgram) else EnhancedTrainingProgram.model_validate(data)
        )
    except ValidationError as exc:
        return ProgramValidationResult(is_valid=False, errors=format_validation_errors(exc))

    violations: list[str] = []
    if require_autoregulation or program.autoregulation_protocol is not None:
        violations.extend(validate_rpe_targets(program.autoregulation_protocol))
    if landmarks is not None:
        violations.extend(validate_volume_compliance(program.volume_distribution, landmarks))
    if weak_points is not None:
        violations.extend(validate_weak_point_addressing(program.weak_point_interventions, weak_points))

    violations = list(dict.fromkeys(violations))
    return ProgramValidationResult(is_valid=not violations, violations=violations)
