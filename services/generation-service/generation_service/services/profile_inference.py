from __future__ import annotations

import re
from dataclasses import dataclass, field

from ..schemas.program import (
    AdjustmentGuidelines,
    AutoregulationProtocol,
    PhaseRPETargets,
    Priority,
    RPETarget,
    WeakPointIntervention,
)
from ..schemas.user_profile import ExperienceLevel, UserProfile, VolumeParameters
from .weak_points import WEAK_POINT_PROTOCOLS, STRENGTH_RATIO_STANDARDS, WeakPointAnalysis

TRAINING_AGE_BY_EXPERIENCE = {
    ExperienceLevel.BEGINNER: 0.25,
    ExperienceLevel.INTERMEDIATE: 1.25,
    ExperienceLevel.ADVANCED: 3.0,
}

_LONG_SESSIONS = {"60-75 minutes", "75+ minutes"}
_MEDIUM_SESSIONS = {"45-60 minutes"}

_INJURY_RULES: list[tuple[re.Pattern[str], str, tuple[str, ...]]] = [
    (
        re.compile(r"\b(knee|knees|patella)\b"),
        "Knees",
        ("High-impact plyometrics", "Deep squats if painful"),
    ),
    (
        re.compile(r"\b(back|spine|disc)\b"),
        "Lower Back",
        ("Heavy deadlifts from floor", "Barbell back squats"),
    ),
    (
        re.compile(r"\b(shoulder|shoulders|rotator cuff)\b"),
        "Shoulders",
        ("Overhead pressing", "Behind-the-neck movements"),
    ),
]

# Goal keyword -> program length in weeks.
_DURATION_BY_GOAL: list[tuple[str, int]] = [
    ("general fitness", 4),
    ("endurance", 5),
    ("weight loss", 5),
    ("muscle gain", 6),
    ("hypertrophy", 6),
    ("strength", 6),
    ("powerlifting", 6),
]
DEFAULT_DURATION_WEEKS = 6


@dataclass
class InjuryAssessment:
    identified_areas: list[str] = field(default_factory=list)
    contraindications: list[str] = field(default_factory=list)


def infer_training_age(experience_level: ExperienceLevel) -> float:
    return TRAINING_AGE_BY_EXPERIENCE.get(experience_level, 0.25)


def infer_recovery_capacity(training_frequency_days: int, session_duration: str) -> float:
    score = 0
    if training_frequency_days >= 6:
        score += 3
    elif training_frequency_days >= 4:
        score += 2
    else:
        score += 1

    duration = session_duration.strip().lower()
    if duration in _LONG_SESSIONS:
        score += 3
    elif duration in _MEDIUM_SESSIONS:
        score += 2
    else:
        score += 1

    if score >= 5:
        return 9
    if score >= 3:
        return 6
    return 3


def infer_stress_level(training_frequency_days: int) -> float:
    if training_frequency_days >= 6:
        return 3
    if training_frequency_days >= 4:
        return 6
    return 8


def infer_volume_parameters(profile: UserProfile) -> VolumeParameters:
    return VolumeParameters(
        training_age_years=infer_training_age(profile.experience_level),
        recovery_capacity=infer_recovery_capacity(profile.training_frequency_days, profile.session_duration),
        stress_level=infer_stress_level(profile.training_frequency_days),
        volume_tolerance=1.0,
    )


def parse_injury_limitations(text: str | None) -> InjuryAssessment:
    assessment = InjuryAssessment()
    lowered = (text or "").lower()
    if not lowered:
        return assessment
    for pattern, area, contraindications in _INJURY_RULES:
        if pattern.search(lowered):
            assessment.identified_areas.append(area)
            assessment.contraindications.extend(contraindications)
    assessment.contraindications = list(dict.fromkeys(assessment.contraindications))
    return assessment


def select_periodization_model(profile: UserProfile) -> str:
    goal = profile.primary_goal.lower()
    if "strength" in goal or "powerlifting" in goal:
        return "Strength-Focused Block Periodization"
    if "muscle gain" in goal or "hypertrophy" in goal:
        return "Hypertrophy-Focused Block Periodization"
    if "general fitness" in goal or profile.experience_level == ExperienceLevel.BEGINNER:
        return "Linear Progression Model"
    return "Balanced Block Periodization"


def program_duration_weeks(profile: UserProfile) -> int:
    goal = profile.primary_goal.lower()
    for keyword, weeks in _DURATION_BY_GOAL:
        if keyword in goal:
            return weeks
    return DEFAULT_DURATION_WEEKS


def default_autoregulation_protocol() -> AutoregulationProtocol:
    return AutoregulationProtocol(
        phase_rpe_targets=PhaseRPETargets(
            accumulation=RPETarget(min=6, max=8, target=7),
            intensification=RPETarget(min=7, max=9, target=8),
            realization=RPETarget(min=8, max=10, target=9),
            deload=RPETarget(min=4, max=6, target=5),
        ),
        adjustment_guidelines=AdjustmentGuidelines(
            high_readiness="Add 2-5% load or 1-2 sets",
            normal_readiness="Execute the planned session",
            low_readiness="Reduce intensity 10-20% or volume 20-30%",
            very_low_readiness="Active recovery or complete rest",
        ),
        recovery_markers=["Sleep quality", "Resting heart rate", "Muscle soreness"],
        fatigue_indicators=["Bar speed drop", "RPE creep at fixed load", "Persistent joint aches"],
    )


def autoregulation_notes(profile: UserProfile) -> str:
    protocol = default_autoregulation_protocol()
    targets = protocol.phase_rpe_targets
    lines = ["RPE Target Ranges:"]
    for label, target in (
        ("Accumulation", targets.accumulation),
        ("Intensification", targets.intensification),
        ("Realization", targets.realization),
        ("Deload", targets.deload),
    ):
        lines.append(f"- {label} Phase: {target.min:g}-{target.max:g} RPE (target {target.target:g})")
    guidelines = protocol.adjustment_guidelines
    lines.extend(
        [
            "",
            "Daily Adjustments:",
            f"- High readiness days: {guidelines.high_readiness}",
            f"- Normal readiness: {guidelines.normal_readiness}",
            f"- Low readiness: {guidelines.low_readiness}",
            f"- Very low readiness: {guidelines.very_low_readiness}",
        ]
    )
    if profile.experience_level == ExperienceLevel.BEGINNER:
        lines.append("- Beginners: keep most work at RPE 6-8 while technique settles")
    return "\n".join(lines)


def build_weak_point_interventions(analysis: WeakPointAnalysis) -> list[WeakPointIntervention]:
    """One intervention per identified weak point, sized by severity."""
    interventions: list[WeakPointIntervention] = []
    for issue in analysis.issues:
        standard = STRENGTH_RATIO_STANDARDS[issue.ratio_name]
        high = issue.severity == Priority.HIGH
        interventions.append(
            WeakPointIntervention(
                target_area=issue.weak_point,
                identified_ratio=issue.ratio_name,
                current_ratio=issue.current_ratio,
                target_ratio=standard.optimal,
                priority=issue.severity,
                intervention_exercises=WEAK_POINT_PROTOCOLS[issue.weak_point],
                weekly_volume=6 if high else 4,
                progression_protocol="Add one set per week while RPE stays at or below 8",
                reassessment_period_weeks=min(analysis.reassessment_period_weeks, 8),
                expected_outcome=f"Raise {issue.ratio_name} from {issue.current_ratio:.2f} toward {standard.optimal:.2f}",
            )
        )
    return interventions
