from __future__ import annotations

import json
from collections.abc import Mapping, Sequence

from ..schemas.program import DayOfWeek, PhaseType, ProgramScaffold, ProgressionStrategy, VolumeLandmarks, WeakPoint
from ..schemas.user_profile import UserProfile
from .guidelines import (
    AUTOREGULATION,
    MACRO_STRUCTURE_GUIDELINES,
    NARRATIVE_GUIDELINES,
    SESSION_GUIDELINES,
    WEAK_POINT_INTERVENTION,
)

COACH_PERSONA = "You are an elite exercise scientist and AI coach named Neural."
JSON_ONLY = (
    "Respond with ONLY a valid JSON object matching the schema. Use double quotes, "
    "no comments, no trailing commas and no text before or after the JSON."
)


def _format_list(lines: Sequence[str]) -> str:
    return "\n".join(str(line) for line in lines if line)


def _join_lines(parts: Sequence[str | None]) -> str:
    return "\n".join(part for part in parts if part is not None)


def _profile_json(profile: UserProfile) -> str:
    return json.dumps(profile.model_dump(mode="json", exclude_none=True), indent=2, sort_keys=True)


def _landmarks_table(landmarks: Mapping[str, VolumeLandmarks]) -> str:
    return _format_list(
        f"- {muscle}: MEV {value.mev}, MAV {value.mav}, MRV {value.mrv} sets/week"
        for muscle, value in landmarks.items()
    )


def _limitations_lines(profile: UserProfile, contraindications: Sequence[str]) -> list[str]:
    if not profile.injuries_limitations:
        return ["- No reported injuries or limitations"]
    lines = [f"- IMPORTANT: account for limitations: {profile.injuries_limitations}"]
    if contraindications:
        lines.append(f"- Avoid or modify: {', '.join(contraindications)}")
    return lines


def _weak_point_lines(weak_points: Sequence[WeakPoint], correction_exercises: Sequence[str]) -> list[str]:
    if not weak_points:
        return []
    lines = [
        "",
        "WEAK POINTS:",
        f"- Weak Points: {', '.join(wp.value for wp in weak_points)}",
    ]
    if correction_exercises:
        lines.append(f"- Address weak points with: {', '.join(correction_exercises)}")
    lines.extend(["", WEAK_POINT_INTERVENTION])
    return lines


def build_macro_structure_prompt(
    *,
    profile: UserProfile,
    periodization_model: str,
    duration_weeks: int,
    landmarks: Mapping[str, VolumeLandmarks],
    weak_points: Sequence[WeakPoint] = (),
    correction_exercises: Sequence[str] = (),
    contraindications: Sequence[str] = (),
    autoregulation_notes: str | None = None,
) -> str:
    """Compose prompt for the macro-structure (ProgramScaffold) stage.

    ``autoregulation_notes`` replaces the generic autoregulation block when given.
    """
    equipment = ", ".join(profile.equipment) or "bodyweight only"
    autoregulation = f"AUTOREGULATION\n{autoregulation_notes}" if autoregulation_notes else AUTOREGULATION
    return _join_lines(
        [
            COACH_PERSONA,
            "Design the high-level macro-structure of a personalized training program as a ProgramScaffold:"
            " phases with their weeks, without any training days or exercises.",
            "",
            "USER PROFILE:",
            _profile_json(profile),
            "",
            "PROGRAM REQUIREMENTS:",
            f"- Goal: {profile.primary_goal} ({profile.experience_level.value})",
            f"- Training frequency: {profile.training_frequency_days} days/week, sessions of {profile.session_duration}",
            f"- Equipment: {equipment}",
            *_limitations_lines(profile, contraindications),
            f"- Periodization model: {periodization_model}",
            f"- Total duration: exactly {duration_weeks} weeks (durationWeeksTotal = {duration_weeks})",
            "- Each phase lists exactly durationWeeks weeks; weekNumber counts 1..N across the whole program"
            " and phaseWeek counts 1..durationWeeks inside the phase.",
            f"- phaseType is one of: {', '.join(p.value for p in PhaseType)}",
            f"- progressionStrategy is one of: {', '.join(s.value for s in ProgressionStrategy)}",
            "",
            "INDIVIDUAL VOLUME LANDMARKS:",
            _landmarks_table(landmarks),
            *_weak_point_lines(weak_points, correction_exercises),
            "",
            *MACRO_STRUCTURE_GUIDELINES,
            autoregulation,
            "",
            JSON_ONLY,
        ]
    )


def build_session_detail_prompt(
    *,
    profile: UserProfile,
    day_of_week: DayOfWeek,
    focus: str,
    week_number: int,
    phase_week: int,
    intensity_focus: str,
    progression_strategy: ProgressionStrategy,
    phase_type: PhaseType,
    weak_points: Sequence[WeakPoint] = (),
    correction_exercises: Sequence[str] = (),
    contraindications: Sequence[str] = (),
) -> str:
    """Compose prompt for one training day (WorkoutDay) of the sessions stage."""
    equipment = ", ".join(profile.equipment) or "bodyweight only"
    return _join_lines(
        [
            COACH_PERSONA,
            "Design one detailed training session as a WorkoutDay JSON object.",
            "",
            "USER PROFILE:",
            _profile_json(profile),
            "",
            "WORKOUT CONTEXT:",
            f"- Day of week: {day_of_week.value}",
            f'- Focus: "{focus}"',
            f"- Week number: {week_number} (week {phase_week} of the {phase_type.value} phase)",
            f'- Intensity focus: "{intensity_focus}"',
            f'- Progression strategy: "{progression_strategy.value}"',
            f"- Available equipment: {equipment}",
            *_limitations_lines(profile, contraindications),
            *_weak_point_lines(weak_points, correction_exercises),
            "",
            "STRUCTURE:",
            '- The first exercise is the anchor lift: tier "Anchor", isAnchorLift true. No other exercise is an anchor.',
            '- Then Primary and Secondary lifts, then Accessory work, in that order; non-anchors set isAnchorLift false.',
            '- Reps as "6-8" or a number, RPE as "@8" or "7-8", rest as "2-3min" or "90-120s".',
            f'- This is a training day: isRestDay false, dayOfWeek "{day_of_week.value}".',
            "",
            *SESSION_GUIDELINES,
            "",
            JSON_ONLY,
        ]
    )


def build_narrative_prompt(
    *,
    profile: UserProfile,
    scaffold: ProgramScaffold,
    session_summary: Sequence[str] = (),
) -> str:
    """Compose prompt for the coach intro and general advice stage."""
    structure = json.dumps(scaffold.model_dump(mode="json", by_alias=True), indent=2, sort_keys=True)
    return _join_lines(
        [
            COACH_PERSONA,
            "Write the motivational and educational text for a fully designed training program."
            " Return a JSON object with only coachIntro and generalAdvice.",
            "",
            "USER PROFILE:",
            _profile_json(profile),
            "",
            "PROGRAM STRUCTURE:",
            structure,
            "",
            "SESSIONS:" if session_summary else None,
            _format_list(session_summary) if session_summary else None,
            "",
            "CONTENT REQUIREMENTS:",
            f"- coachIntro: personal introduction to {profile.name}, referencing the goal"
            f' "{profile.primary_goal}", the {profile.experience_level.value.lower()} experience level and the'
            f" {profile.training_frequency_days}-day schedule; under 150 words.",
            f'- generalAdvice: start with "Here\'s the game plan, {profile.name}..." and explain the periodization,'
            " how the phases work together, recovery and progression; about 200-250 words.",
            "",
            *NARRATIVE_GUIDELINES,
            "",
            JSON_ONLY,
        ]
    )
