from __future__ import annotations

from dataclasses import dataclass
from typing import Literal

from ..schemas.program import WEEKDAYS, DayOfWeek

SplitType = Literal["full_body", "upper_lower", "push_pull_legs", "bro_split"]

_D = DayOfWeek

REST_DAY_PATTERNS: dict[int, frozenset[DayOfWeek]] = {
    1: frozenset(WEEKDAYS) - {_D.MONDAY},
    2: frozenset({_D.WEDNESDAY, _D.THURSDAY, _D.FRIDAY, _D.SATURDAY, _D.SUNDAY}),
    3: frozenset({_D.THURSDAY, _D.FRIDAY, _D.SATURDAY, _D.SUNDAY}),
    4: frozenset({_D.WEDNESDAY, _D.SATURDAY, _D.SUNDAY}),
    5: frozenset({_D.THURSDAY, _D.SUNDAY}),
    6: frozenset({_D.SUNDAY}),
    7: frozenset(),
}

_UPPER_LOWER = {
    _D.MONDAY: "Upper Body",
    _D.TUESDAY: "Lower Body",
    _D.THURSDAY: "Upper Body",
    _D.FRIDAY: "Lower Body",
}

_PUSH_PULL_LEGS = {
    _D.MONDAY: "Push (Chest, Shoulders, Triceps)",
    _D.TUESDAY: "Pull (Back, Biceps)",
    _D.WEDNESDAY: "Legs (Quads, Hamstrings, Glutes, Calves)",
    _D.THURSDAY: "Push (Chest, Shoulders, Triceps)",
    _D.FRIDAY: "Pull (Back, Biceps)",
    _D.SATURDAY: "Legs (Quads, Hamstrings, Glutes, Calves)",
}

_BRO_SPLIT = {
    _D.MONDAY: "Chest",
    _D.TUESDAY: "Back",
    _D.WEDNESDAY: "Shoulders",
    _D.THURSDAY: "Arms",
    _D.FRIDAY: "Legs",
}


@dataclass(frozen=True)
class DaySlot:
    day_index: int
    day_of_week: DayOfWeek
    is_rest_day: bool
    focus: str


def determine_split_type(training_days: int) -> SplitType:
    if training_days <= 3:
        return "full_body"
    if training_days == 4:
        return "upper_lower"
    if training_days in (5, 6):
        return "push_pull_legs"
    return "bro_split"


def is_rest_day(day_of_week: DayOfWeek, training_days: int) -> bool:
    return day_of_week in REST_DAY_PATTERNS.get(training_days, frozenset())


def workout_focus(day_of_week: DayOfWeek, split_type: SplitType) -> str:
    if split_type == "full_body":
        return "Full Body"
    if split_type == "upper_lower":
        return _UPPER_LOWER.get(day_of_week, "Rest")
    if split_type == "push_pull_legs":
        return _PUSH_PULL_LEGS.get(day_of_week, "Rest")
    return _BRO_SPLIT.get(day_of_week, "Rest")


def weekly_layout(training_days: int) -> list[DaySlot]:
    """Seven slots, Monday first. Training days whose split has no label fall back to full body."""
    split_type = determine_split_type(training_days)
    slots: list[DaySlot] = []
    for index, day in enumerate(WEEKDAYS):
        rest = is_rest_day(day, training_days)
        if rest:
            focus = "Rest"
        else:
            focus = workout_focus(day, split_type)
            if focus == "Rest":
                focus = "Full Body"
        slots.append(DaySlot(day_index=index, day_of_week=day, is_rest_day=rest, focus=focus))
    return slots
