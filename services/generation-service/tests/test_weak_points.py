import pytest

from generation_service.schemas.program import Priority, WeakPoint
from generation_service.schemas.user_profile import StrengthProfile
from generation_service.services.weak_points import (
    WEAK_POINT_PROTOCOLS,
    correction_exercises,
    enhanced_weak_point_analysis,
    reassessment_period_weeks,
)


def test_balanced_lifter_has_no_issues():
    analysis = enhanced_weak_point_analysis(StrengthProfile(squat=180, bench=140, deadlift=200, overhead_press=95))
    assert analysis.issues == []
    assert analysis.primary_weak_points == []
    assert analysis.correction_exercises == []
    assert analysis.reassessment_period_weeks == 16
    assert analysis.ratios["bench_to_deadlift"] == 0.7


def test_issues_are_ordered_by_relative_deficit():
    analysis = enhanced_weak_point_analysis(StrengthProfile(squat=140, bench=80, deadlift=200, overhead_press=50))

    assert [issue.ratio_name for issue in analysis.issues] == ["bench_to_deadlift", "squat_to_deadlift"]
    bench, squat = analysis.issues
    assert bench.severity == Priority.HIGH
    assert bench.deficit == pytest.approx(0.3333, abs=1e-4)
    assert squat.severity == Priority.MODERATE
    assert analysis.primary_weak_points == [WeakPoint.WEAK_HORIZONTAL_PRESS, WeakPoint.WEAK_POSTERIOR_CHAIN]
    assert analysis.reassessment_period_weeks == 8
    assert analysis.correction_exercises[:4] == WEAK_POINT_PROTOCOLS[WeakPoint.WEAK_HORIZONTAL_PRESS]


def test_ratio_just_above_minimum_is_not_flagged():
    analysis = enhanced_weak_point_analysis(StrengthProfile(squat=160, bench=121, deadlift=200, overhead_press=73))
    assert analysis.issues == []


def test_reassessment_period_by_worst_severity():
    assert reassessment_period_weeks([Priority.MODERATE, Priority.HIGH]) == 8
    assert reassessment_period_weeks([Priority.MODERATE]) == 12
    assert reassessment_period_weeks([]) == 16


def test_correction_exercises_are_unique():
    exercises = correction_exercises([WeakPoint.WEAK_VERTICAL_PRESS, WeakPoint.WEAK_VERTICAL_PRESS])
    assert exercises == WEAK_POINT_PROTOCOLS[WeakPoint.WEAK_VERTICAL_PRESS]
    assert correction_exercises([WeakPoint.MOVEMENT_QUALITY]) == []


def test_weak_overhead_press_ranks_ahead_of_bench():
    analysis = enhanced_weak_point_analysis(StrengthProfile(squat=140, bench=100, deadlift=180, overhead_press=50))

    assert analysis.primary_weak_points == [WeakPoint.WEAK_VERTICAL_PRESS, WeakPoint.WEAK_HORIZONTAL_PRESS]
    assert [issue.severity for issue in analysis.issues] == [Priority.HIGH, Priority.MODERATE]
    assert analysis.ratios["overhead_to_bench"] == 0.5
    assert analysis.ratios["bench_to_deadlift"] == pytest.approx(0.556)
    assert "squat_to_deadlift" not in [issue.ratio_name for issue in analysis.issues]
    assert analysis.reassessment_period_weeks == 8
