import pytest

from generation_service.schemas.program import (
    AutoregulationProtocol,
    MuscleVolume,
    VolumeLandmarks,
    WeakPoint,
    WeakPointIntervention,
)
from generation_service.services.profile_inference import default_autoregulation_protocol
from generation_service.services.program_validation import (
    validate_rpe_targets,
    validate_training_program,
    validate_volume_compliance,
    validate_weak_point_addressing,
)

LANDMARKS = {
    "chest": VolumeLandmarks(mev=8, mav=18, mrv=26),
    "quads": VolumeLandmarks(mev=8, mav=16, mrv=24),
    "calves": VolumeLandmarks(mev=8, mav=16, mrv=25),
}


def _protocol(**targets) -> AutoregulationProtocol:
    base = {
        "accumulation": {"min": 6, "max": 8, "target": 7},
        "intensification": {"min": 7, "max": 9, "target": 8},
        "realization": {"min": 8, "max": 10, "target": 9},
        "deload": {"min": 4, "max": 6, "target": 5},
    }
    base.update(targets)
    return AutoregulationProtocol.model_validate({"phaseRPETargets": base})


def _intervention(**overrides) -> WeakPointIntervention:
    values = {
        "target_area": WeakPoint.WEAK_HORIZONTAL_PRESS,
        "current_ratio": 0.4,
        "target_ratio": 0.8,
        "priority": "High",
        "intervention_exercises": ["Dumbbell Bench Press"],
        "weekly_volume": 6,
        "progression_protocol": "Add one set per week",
        "reassessment_period_weeks": 8,
        "expected_outcome": "Better bench to deadlift ratio",
    }
    values.update(overrides)
    return WeakPointIntervention(**values)


def test_program_without_autoregulation_is_flagged(program_document):
    result = validate_training_program(program_document)
    assert not result.is_valid
    assert result.violations == ["Autoregulation protocol is missing"]
    assert result.errors == []

    assert validate_training_program(program_document, require_autoregulation=False).is_valid


def test_structural_failures_are_reported_not_raised(program_document):
    program_document["durationWeeksTotal"] = 9
    result = validate_training_program(program_document)
    assert not result.is_valid
    assert result.errors and "does not match" in result.errors[0]


def test_complete_program_is_valid(program_document):
    program_document["autoregulationProtocol"] = default_autoregulation_protocol().model_dump(by_alias=True)
    program_document["volumeDistribution"] = {
        "chest": {"weeklyVolume": 14, "percentageOfMAV": 78},
        "quads": {"weeklyVolume": 12, "percentageOfMAV": 75},
        "calves": {"weeklyVolume": 8, "percentageOfMAV": 50},
    }
    result = validate_training_program(program_document, landmarks=LANDMARKS, weak_points=[])
    assert result.is_valid, result.violations


def test_rpe_targets_must_rise_through_phases():
    violations = validate_rpe_targets(_protocol(intensification={"min": 6, "max": 7, "target": 6.5}))
    assert any("must not decrease" in v for v in violations)


def test_deload_must_sit_below_accumulation():
    violations = validate_rpe_targets(_protocol(deload={"min": 6, "max": 8, "target": 7}))
    assert any("Deload RPE target 7" in v for v in violations)


@pytest.mark.parametrize(
    "target, expected",
    [
        ({"min": 5, "max": 9, "target": 7}, "wider than 3 points"),
        ({"min": 6, "max": 8, "target": 9}, "outside range"),
        ({"min": 8, "max": 6, "target": 7}, "above max"),
    ],
)
def test_rpe_band_rules(target, expected):
    violations = validate_rpe_targets(_protocol(accumulation=target))
    assert any(expected in v for v in violations)


def test_volume_compliance_rules():
    distribution = {
        "chest": MuscleVolume(weekly_volume=30, percentage_of_mav=115),
        "quads": MuscleVolume(weekly_volume=4, percentage_of_mav=25),
    }
    violations = validate_volume_compliance(distribution, LANDMARKS)
    assert "chest: weekly volume 30 exceeds MRV 26" in violations
    assert "chest: 115% of MAV exceeds 110%" in violations
    assert "quads: weekly volume 4 is below MEV 8" in violations
    assert "calves: no weekly volume prescribed" in violations


def test_below_mev_only_matters_for_primary_muscles():
    distribution = {
        "chest": MuscleVolume(weekly_volume=10, percentage_of_mav=55),
        "quads": MuscleVolume(weekly_volume=10, percentage_of_mav=62),
        "calves": MuscleVolume(weekly_volume=2, percentage_of_mav=12),
    }
    assert validate_volume_compliance(distribution, LANDMARKS) == []


def test_missing_distribution_is_a_violation():
    assert validate_volume_compliance(None, LANDMARKS) == ["Volume distribution is missing"]


def test_weak_point_coverage():
    violations = validate_weak_point_addressing(
        [_intervention()],
        [WeakPoint.WEAK_HORIZONTAL_PRESS, WeakPoint.WEAK_POSTERIOR_CHAIN],
    )
    assert violations == ["WEAK_POSTERIOR_CHAIN: no intervention addresses this weak point"]
    assert validate_weak_point_addressing(None, [WeakPoint.WEAK_POSTERIOR_CHAIN]) == [
        "Weak point interventions are missing"
    ]
    assert validate_weak_point_addressing(None, []) == []


def test_weak_point_dosing_rules():
    violations = validate_weak_point_addressing(
        [_intervention(weekly_volume=3, reassessment_period_weeks=10)],
        [WeakPoint.WEAK_HORIZONTAL_PRESS],
    )
    assert any("high priority needs at least 4" in v for v in violations)
    assert any("exceeds 8" in v for v in violations)

    low = validate_weak_point_addressing([_intervention(priority="Low", weekly_volume=1)], [])
    assert low == ["WEAK_HORIZONTAL_PRESS: weekly volume 1 is too low to drive change"]
