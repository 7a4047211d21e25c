import copy
import sys
from pathlib import Path

import pytest
from fastapi.testclient import TestClient

# Ensure the service package is importable
SERVICE_ROOT = Path(__file__).resolve().parents[1]
if str(SERVICE_ROOT) not in sys.path:
    sys.path.insert(0, str(SERVICE_ROOT))

from generation_service.schemas.user_profile import UserProfile  # noqa: E402
from generation_service.services.response_schemas import (  # noqa: E402
    NARRATIVE_CONTENT_SCHEMA,
    PROGRAM_SCAFFOLD_SCHEMA,
    WORKOUT_DAY_SCHEMA,
)

TRAINING_DAYS_3 = ("Monday", "Tuesday", "Wednesday")
ALL_DAYS = ("Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday", "Sunday")
REGULAR_SETS = (4, 3, 3)
DELOAD_SETS = (2, 2, 1)


def scaffold_payload() -> dict:
    """Four weeks: three accumulation weeks and one deload week."""
    return {
        "programName": "Foundations",
        "description": "A four week introduction to structured strength training.",
        "durationWeeksTotal": 4,
        "periodizationModel": "Linear Progression Model",
        "phases": [
            {
                "phaseName": "Accumulation",
                "phaseType": "Accumulation",
                "durationWeeks": 3,
                "primaryGoal": "Build work capacity",
                "weeks": [
                    {
                        "weekNumber": n,
                        "phaseWeek": n,
                        "intensityFocus": "Moderate",
                        "progressionStrategy": "Linear",
                    }
                    for n in (1, 2, 3)
                ],
            },
            {
                "phaseName": "Deload",
                "phaseType": "Deload",
                "durationWeeks": 1,
                "primaryGoal": "Recover",
                "weeks": [
                    {
                        "weekNumber": 4,
                        "phaseWeek": 1,
                        "intensityFocus": "Light",
                        "progressionStrategy": "Autoregulated",
                    }
                ],
            },
        ],
    }


def exercises_payload(sets=REGULAR_SETS) -> list[dict]:
    anchor_sets, primary_sets, accessory_sets = sets
    return [
        {
            "name": "Barbell Back Squat",
            "sets": anchor_sets,
            "reps": "5",
            "rest": "3min",
            "rpe": "@8",
            "tier": "Anchor",
            "isAnchorLift": True,
        },
        {
            "name": "Romanian Deadlift",
            "sets": primary_sets,
            "reps": "8-10",
            "rest": "2min",
            "rpe": "7-8",
            "tier": "Primary",
            "category": "Compound",
        },
        {
            "name": "Plank",
            "sets": accessory_sets,
            "reps": "45s",
            "rest": "60s",
            "tier": "Accessory",
            "category": "Core",
        },
    ]


def session_payload(prompt: str) -> dict:
    sets = DELOAD_SETS if "of the Deload phase" in prompt else REGULAR_SETS
    return {
        "dayOfWeek": "Monday",
        "isRestDay": False,
        "exercises": exercises_payload(sets),
        "estimatedDuration": "60 minutes",
    }


def narrative_payload() -> dict:
    return {
        "coachIntro": "Welcome aboard. This block builds your base.",
        "generalAdvice": "Here's the game plan: train hard, sleep well and log every session.",
    }


STEP_BY_SCHEMA = {
    id(PROGRAM_SCAFFOLD_SCHEMA): "macro",
    id(WORKOUT_DAY_SCHEMA): "session",
    id(NARRATIVE_CONTENT_SCHEMA): "narrative",
}


class ScriptedProvider:
    """Answers by response schema; queued failures are served before the scripted answer."""

    model_name = "fake-gemini"

    def __init__(self, *, scaffold=None, session=None, narrative=None, failures=None):
        self.scaffold = scaffold or scaffold_payload()
        self.session = session or session_payload
        self.narrative = narrative or narrative_payload()
        self.failures = {step: list(items) for step, items in (failures or {}).items()}
        self.calls: list[str] = []
        self.prompts: list[str] = []

    async def generate_json(self, *, prompt, response_schema, temperature=0.4):
        step = STEP_BY_SCHEMA[id(response_schema)]
        self.calls.append(step)
        self.prompts.append(prompt)
        queued = self.failures.get(step)
        if queued:
            item = queued.pop(0)
            if isinstance(item, Exception):
                raise item
            return item
        if step == "macro":
            return copy.deepcopy(self.scaffold)
        if step == "session":
            return self.session(prompt)
        return copy.deepcopy(self.narrative)


def build_program_document() -> dict:
    """Camel-cased program matching the scripted provider's output for a 3-day profile."""
    phases = []
    for phase in scaffold_payload()["phases"]:
        sets = DELOAD_SETS if phase["phaseType"] == "Deload" else REGULAR_SETS
        weeks = []
        for week in phase["weeks"]:
            days = []
            for day in ALL_DAYS:
                if day in TRAINING_DAYS_3:
                    days.append(
                        {
                            "dayOfWeek": day,
                            "isRestDay": False,
                            "focus": "Full Body",
                            "exercises": exercises_payload(sets),
                        }
                    )
                else:
                    days.append({"dayOfWeek": day, "isRestDay": True, "focus": "Rest", "exercises": []})
            weeks.append({**week, "days": days})
        phases.append({**phase, "weeks": weeks})
    scaffold = scaffold_payload()
    return {
        "programName": scaffold["programName"],
        "description": scaffold["description"],
        "durationWeeksTotal": scaffold["durationWeeksTotal"],
        "periodizationModel": scaffold["periodizationModel"],
        **narrative_payload(),
        "phases": phases,
    }


@pytest.fixture()
def provider_factory():
    return ScriptedProvider


@pytest.fixture()
def provider():
    return ScriptedProvider()


@pytest.fixture()
def scaffold_document():
    return scaffold_payload()


@pytest.fixture()
def program_document():
    return build_program_document()


@pytest.fixture()
def beginner_profile():
    return UserProfile(
        name="Alex",
        age=30,
        experience_level="Beginner",
        primary_goal="General Fitness",
        training_frequency_days=3,
        session_duration="45-60 minutes",
        equipment=["Barbell", "Dumbbells"],
    )


@pytest.fixture()
def strength_profile_user():
    return UserProfile(
        name="Sam",
        age=34,
        experience_level="Intermediate",
        primary_goal="General Fitness",
        training_frequency_days=3,
        session_duration="60 minutes",
        equipment=["Barbell", "Dumbbells", "Cables"],
        injuries_limitations="Old knee injury",
        squat_1rm=140,
        bench_1rm=80,
        deadlift_1rm=200,
        overhead_press_1rm=50,
    )


@pytest.fixture()
def fast_config():
    from generation_service.services.generation_pipeline import GenerationConfig

    return GenerationConfig(retry_base_delay=0, call_timeout_seconds=5, pipeline_deadline_seconds=30)


@pytest.fixture()
def client(fast_config):
    from generation_service.dependencies import get_pipeline, get_tracker
    from generation_service.main import app
    from generation_service.services.generation_pipeline import GenerationPipeline
    from generation_service.services.read_after_write import ReadAfterWriteTracker

    state = {"provider": ScriptedProvider(), "tracker": ReadAfterWriteTracker()}

    app.dependency_overrides[get_pipeline] = lambda: GenerationPipeline(state["provider"], fast_config)
    app.dependency_overrides[get_tracker] = lambda: state["tracker"]

    with TestClient(app) as c:
        c.overrides = state
        yield c

    app.dependency_overrides.pop(get_pipeline, None)
    app.dependency_overrides.pop(get_tracker, None)
