from __future__ import annotations

import math

from ..schemas.program import VolumeLandmarks
from ..schemas.user_profile import VOLUME_PARAMETER_BOUNDS, VolumeParameters

# Weekly working sets for an average intermediate lifter before individual adjustment.
MUSCLE_GROUP_BASE_VOLUMES: dict[str, tuple[int, int, int]] = {
    "chest": (8, 18, 26),
    "back": (10, 20, 30),
    "shoulders": (8, 16, 24),
    "arms": (6, 14, 22),
    "quads": (8, 16, 24),
    "hamstrings": (6, 12, 18),
    "glutes": (6, 12, 18),
    "calves": (8, 16, 25),
    "abs": (0, 16, 25),
}

PRIMARY_MUSCLE_GROUPS = ("chest", "back", "quads")


def _clamp(name: str, value: float) -> float:
    low, high = VOLUME_PARAMETER_BOUNDS[name]
    return max(low, min(high, float(value)))


def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def training_age_multiplier(training_age_years: float) -> float:
    """Linear from 1.0 to 1.8, capped after two years of training."""
    effective_age = min(_clamp("training_age_years", training_age_years), 2.0)
    return 1.0 + (effective_age / 2.0) * 0.8


def recovery_multiplier(recovery_capacity: float) -> float:
    capacity = _clamp("recovery_capacity", recovery_capacity)
    if capacity <= 3:
        return 0.7
    if capacity <= 7:
        return 1.0
    return 1.3


def stress_multiplier(stress_level: float) -> float:
    stress = _clamp("stress_level", stress_level)
    if stress <= 2:
        return 1.1
    if stress <= 4:
        return 1.0
    if stress <= 6:
        return 0.9
    if stress <= 8:
        return 0.7
    return 0.6


def landmark_multiplier(params: VolumeParameters) -> float:
    return (
        training_age_multiplier(params.training_age_years)
        * recovery_multiplier(params.recovery_capacity)
        * stress_multiplier(params.stress_level)
        * _clamp("volume_tolerance", params.volume_tolerance)
    )


def calculate_muscle_landmarks(muscle_group: str, params: VolumeParameters) -> VolumeLandmarks | None:
    base = MUSCLE_GROUP_BASE_VOLUMES.get(muscle_group.lower())
    if base is None:
        return None
    multiplier = landmark_multiplier(params)
    mev, mav, mrv = (_round_half_up(value * multiplier) for value in base)
    return VolumeLandmarks(mev=mev, mav=mav, mrv=mrv)


def calculate_all_muscle_landmarks(params: VolumeParameters) -> dict[str, VolumeLandmarks]:
    multiplier = landmark_multiplier(params)
    landmarks: dict[str, VolumeLandmarks] = {}
    for muscle_group, base in MUSCLE_GROUP_BASE_VOLUMES.items():
        mev, mav, mrv = (_round_half_up(value * multiplier) for value in base)
        landmarks[muscle_group] = VolumeLandmarks(mev=mev, mav=mav, mrv=mrv)
    return landmarks


def landmarks_as_dict(landmarks: dict[str, VolumeLandmarks]) -> dict[str, dict[str, int]]:
    return {muscle: value.model_dump(by_alias=True) for muscle, value in landmarks.items()}
