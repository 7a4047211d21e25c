from __future__ import annotations

from typing import Any

from ..schemas.program import DayOfWeek, ExerciseTier, PhaseType, ProgressionStrategy

_PHASE_TYPES = [p.value for p in PhaseType]
_STRATEGIES = [s.value for s in ProgressionStrategy]
_DAYS = [d.value for d in DayOfWeek]
_TIERS = [t.value for t in ExerciseTier]

PROGRAM_SCAFFOLD_SCHEMA: dict[str, Any] = {
    "type": "object",
    "properties": {
        "programName": {"type": "string"},
        "description": {"type": "string"},
        "durationWeeksTotal": {"type": "integer"},
        "periodizationModel": {"type": "string"},
        "phases": {
            "type": "array",
            "items": {
                "type": "object",
                "properties": {
                    "phaseName": {"type": "string"},
                    "phaseType": {"type": "string", "enum": _PHASE_TYPES},
                    "durationWeeks": {"type": "integer"},
                    "primaryGoal": {"type": "string"},
                    "weeks": {
                        "type": "array",
                        "items": {
                            "type": "object",
                            "properties": {
                                "weekNumber": {"type": "integer"},
                                "phaseWeek": {"type": "integer"},
                                "intensityFocus": {"type": "string"},
                                "progressionStrategy": {"type": "string", "enum": _STRATEGIES},
                                "weeklyVolumeLandmark": {"type": "string"},
                            },
                            "required": ["weekNumber", "phaseWeek", "intensityFocus", "progressionStrategy"],
                        },
                        "minItems": 1,
                    },
                },
                "required": ["phaseName", "phaseType", "durationWeeks", "primaryGoal", "weeks"],
            },
            "minItems": 1,
        },
    },
    "required": ["programName", "description", "durationWeeksTotal", "periodizationModel", "phases"],
}

_EXERCISE_SCHEMA: dict[str, Any] = {
    "type": "object",
    "properties": {
        "name": {"type": "string"},
        "tier": {"type": "string", "enum": _TIERS},
        "sets": {"type": "integer"},
        "reps": {"type": "string"},
        "rpe": {"type": "string"},
        "rest": {"type": "string"},
        "notes": {"type": "string"},
        "isAnchorLift": {"type": "boolean"},
    },
    "required": ["name", "tier", "sets", "reps", "rest", "isAnchorLift"],
}

WORKOUT_DAY_SCHEMA: dict[str, Any] = {
    "type": "object",
    "properties": {
        "dayOfWeek": {"type": "string", "enum": _DAYS},
        "focus": {"type": "string"},
        "isRestDay": {"type": "boolean"},
        "estimatedDuration": {"type": "string"},
        "exercises": {"type": "array", "items": _EXERCISE_SCHEMA, "minItems": 1},
    },
    "required": ["dayOfWeek", "focus", "isRestDay", "exercises"],
}

NARRATIVE_CONTENT_SCHEMA: dict[str, Any] = {
    "type": "object",
    "properties": {
        "coachIntro": {"type": "string"},
        "generalAdvice": {"type": "string"},
    },
    "required": ["coachIntro", "generalAdvice"],
}
