from __future__ import annotations

from dataclasses import dataclass

from pydantic import BaseModel, Field

from ..schemas.program import Priority, WeakPoint
from ..schemas.user_profile import StrengthProfile


@dataclass(frozen=True)
class RatioStandard:
    numerator: str
    denominator: str
    minimum: float
    optimal: float
    weak_point: WeakPoint


STRENGTH_RATIO_STANDARDS: dict[str, RatioStandard] = {
    # Upper-body horizontal pressing against whole-body pulling strength.
    "bench_to_deadlift": RatioStandard("bench", "deadlift", 0.60, 0.80, WeakPoint.WEAK_HORIZONTAL_PRESS),
    # Quad-dominant against hip-dominant strength.
    "squat_to_deadlift": RatioStandard("squat", "deadlift", 0.75, 0.90, WeakPoint.WEAK_POSTERIOR_CHAIN),
    # Vertical against horizontal pressing.
    "overhead_to_bench": RatioStandard("overhead_press", "bench", 0.60, 0.75, WeakPoint.WEAK_VERTICAL_PRESS),
}

WEAK_POINT_PROTOCOLS: dict[WeakPoint, list[str]] = {
    WeakPoint.WEAK_POSTERIOR_CHAIN: [
        "Romanian Deadlifts",
        "Good Mornings",
        "Glute-Ham Raises",
        "Hip Thrusts",
    ],
    WeakPoint.WEAK_HORIZONTAL_PRESS: [
        "Dumbbell Bench Press",
        "Incline Barbell Press",
        "Weighted Dips",
        "Push-ups (Weighted or Variations)",
    ],
    WeakPoint.WEAK_VERTICAL_PRESS: [
        "Seated Dumbbell Press",
        "Arnold Press",
        "Lateral Raises",
        "Close-Grip Bench Press",
    ],
}

HIGH_SEVERITY_FACTOR = 0.9


class WeakPointIssue(BaseModel):
    ratio_name: str
    current_ratio: float
    standard_minimum: float
    standard_optimal: float
    deficit: float = Field(description="Relative shortfall below the minimum standard")
    severity: Priority
    weak_point: WeakPoint
    explanation: str
    recommendation: str


class WeakPointAnalysis(BaseModel):
    ratios: dict[str, float]
    issues: list[WeakPointIssue]
    correction_exercises: list[str]
    primary_weak_points: list[WeakPoint]
    reassessment_period_weeks: int


def reassessment_period_weeks(severities: list[Priority]) -> int:
    if Priority.HIGH in severities:
        return 8
    if Priority.MODERATE in severities:
        return 12
    return 16


def correction_exercises(weak_points: list[WeakPoint]) -> list[str]:
    exercises: list[str] = []
    for weak_point in weak_points:
        exercises.extend(WEAK_POINT_PROTOCOLS.get(weak_point, []))
    return list(dict.fromkeys(exercises))


def enhanced_weak_point_analysis(profile: StrengthProfile) -> WeakPointAnalysis:
    """Compare lift ratios against coaching standards.

    Issues are ordered by relative deficit, largest first, and the same order
    carries over to ``primary_weak_points`` and ``correction_exercises``.
    """
    lifts = profile.model_dump()
    ratios: dict[str, float] = {}
    issues: list[WeakPointIssue] = []

    for ratio_name, standard in STRENGTH_RATIO_STANDARDS.items():
        ratio = lifts[standard.numerator] / lifts[standard.denominator]
        ratios[ratio_name] = round(ratio, 3)
        if ratio >= standard.minimum:
            continue
        severity = Priority.HIGH if ratio < standard.minimum * HIGH_SEVERITY_FACTOR else Priority.MODERATE
        issues.append(
            WeakPointIssue(
                ratio_name=ratio_name,
                current_ratio=round(ratio, 2),
                standard_minimum=standard.minimum,
                standard_optimal=standard.optimal,
                deficit=round((standard.minimum - ratio) / standard.minimum, 4),
                severity=severity,
                weak_point=standard.weak_point,
                explanation=(
                    f"Your {ratio_name} ratio ({ratio:.2f}) is below the minimum standard of "
                    f"{standard.minimum:.2f}, suggesting a potential imbalance."
                ),
                recommendation=(
                    f"Bring the ratio toward {standard.optimal:.2f} with "
                    f"{', '.join(WEAK_POINT_PROTOCOLS[standard.weak_point][:2])}."
                ),
            )
        )

    issues.sort(key=lambda issue: issue.deficit, reverse=True)
    primary = list(dict.fromkeys(issue.weak_point for issue in issues))

    return WeakPointAnalysis(
        ratios=ratios,
        issues=issues,
        correction_exercises=correction_exercises(primary),
        primary_weak_points=primary,
        reassessment_period_weeks=reassessment_period_weeks([issue.severity for issue in issues]),
    )
