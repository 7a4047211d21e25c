"""Helpers for handing generated programs to persistence."""

from __future__ import annotations

from typing import Any

from ..schemas.user_profile import UserProfile
from .generation_pipeline import GenerationResult
from .volume_landmarks import landmarks_as_dict


def build_program_record(
    result: GenerationResult,
    *,
    user_id: str,
    profile: UserProfile,
    model_version: str,
) -> dict[str, Any]:
    """Build the JSON-ready row describing one generation run, successful or not."""
    program = result.program if result.success else None
    return {
        "user_id": user_id,
        "user_name": profile.name,
        "primary_goal": profile.primary_goal,
        "generation_status": "completed" if result.success else "failed",
        "generation_error": result.error,
        "program_details": program.model_dump(mode="json", by_alias=True, exclude_none=True) if program else None,
        "ai_model_version": model_version,
        "volume_landmarks": landmarks_as_dict(result.volume_landmarks) if result.volume_landmarks else None,
        "weak_point_analysis": (
            result.weak_point_analysis.model_dump(mode="json") if result.weak_point_analysis else None
        ),
        "periodization_model": result.periodization_model,
        "generation_metadata": result.metadata.model_dump(mode="json"),
        "validation_warnings": list(result.validation_warnings),
    }
