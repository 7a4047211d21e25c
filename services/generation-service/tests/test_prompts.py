from generation_service.prompts import (
    build_macro_structure_prompt,
    build_narrative_prompt,
    build_session_detail_prompt,
)
from generation_service.schemas.program import DayOfWeek, PhaseType, ProgramScaffold, ProgressionStrategy, WeakPoint
from generation_service.services.profile_inference import infer_volume_parameters
from generation_service.services.volume_landmarks import calculate_all_muscle_landmarks


def _macro(profile):
    return build_macro_structure_prompt(
        profile=profile,
        periodization_model="Linear Progression Model",
        duration_weeks=4,
        landmarks=calculate_all_muscle_landmarks(infer_volume_parameters(profile)),
    )


def test_macro_prompt_carries_profile_and_landmarks(strength_profile_user):
    prompt = _macro(strength_profile_user)
    assert prompt.startswith("You are an elite exercise scientist and AI coach named Neural.")
    assert "- Total duration: exactly 4 weeks (durationWeeksTotal = 4)" in prompt
    assert "- chest: MEV 6, MAV 13, MRV 19 sets/week" in prompt
    assert "- IMPORTANT: account for limitations: Old knee injury" in prompt
    assert "- Equipment: Barbell, Dumbbells, Cables" in prompt
    assert "\n\nUSER PROFILE:\n" in prompt
    assert prompt.rstrip().endswith("no text before or after the JSON.")


def test_prompts_are_deterministic(beginner_profile):
    assert _macro(beginner_profile) == _macro(beginner_profile)


def test_macro_prompt_without_limitations(beginner_profile):
    assert "- No reported injuries or limitations" in _macro(beginner_profile)


def test_session_prompt_describes_the_slot(beginner_profile):
    prompt = build_session_detail_prompt(
        profile=beginner_profile,
        day_of_week=DayOfWeek.TUESDAY,
        focus="Full Body",
        week_number=2,
        phase_week=2,
        intensity_focus="Moderate",
        progression_strategy=ProgressionStrategy.LINEAR,
        phase_type=PhaseType.ACCUMULATION,
    )
    assert "- Day of week: Tuesday" in prompt
    assert "- Week number: 2 (week 2 of the Accumulation phase)" in prompt
    assert 'dayOfWeek "Tuesday"' in prompt
    assert 'tier "Anchor", isAnchorLift true' in prompt


def test_narrative_prompt_lists_sessions_only_when_given(beginner_profile, scaffold_document):
    scaffold = ProgramScaffold.model_validate(scaffold_document)

    bare = build_narrative_prompt(profile=beginner_profile, scaffold=scaffold)
    assert "SESSIONS:" not in bare
    assert "Here's the game plan, Alex..." in bare
    assert '"programName": "Foundations"' in bare

    with_sessions = build_narrative_prompt(
        profile=beginner_profile,
        scaffold=scaffold,
        session_summary=["- Week 1 Monday: Full Body (anchor: Barbell Back Squat)"],
    )
    assert "SESSIONS:\n- Week 1 Monday: Full Body (anchor: Barbell Back Squat)" in with_sessions


def test_macro_prompt_embeds_weak_points_and_contraindications(strength_profile_user):
    prompt = build_macro_structure_prompt(
        profile=strength_profile_user,
        periodization_model="Linear Progression Model",
        duration_weeks=4,
        landmarks=calculate_all_muscle_landmarks(infer_volume_parameters(strength_profile_user)),
        weak_points=[WeakPoint.WEAK_VERTICAL_PRESS],
        correction_exercises=["Seated Dumbbell Press", "Arnold Press"],
        contraindications=["Deep squats if painful"],
        autoregulation_notes="RPE Target Ranges:\n- Deload Phase: 4-6 RPE (target 5)",
    )
    assert "WEAK POINTS:\n- Weak Points: WEAK_VERTICAL_PRESS" in prompt
    assert "- Address weak points with: Seated Dumbbell Press, Arnold Press" in prompt
    assert "WEAK POINT INTERVENTION" in prompt
    assert "- Avoid or modify: Deep squats if painful" in prompt
    assert "AUTOREGULATION\nRPE Target Ranges:\n- Deload Phase: 4-6 RPE (target 5)" in prompt
    assert "Accumulation work sits at RPE 6-8" not in prompt


def test_macro_prompt_defaults_to_generic_guidance(beginner_profile):
    prompt = _macro(beginner_profile)
    assert "WEAK POINTS:" not in prompt
    assert "Avoid or modify" not in prompt
    assert "Accumulation work sits at RPE 6-8" in prompt


def test_session_prompt_lists_weak_points(strength_profile_user):
    prompt = build_session_detail_prompt(
        profile=strength_profile_user,
        day_of_week=DayOfWeek.MONDAY,
        focus="Full Body",
        week_number=1,
        phase_week=1,
        intensity_focus="Moderate",
        progression_strategy=ProgressionStrategy.LINEAR,
        phase_type=PhaseType.ACCUMULATION,
        weak_points=[WeakPoint.WEAK_HORIZONTAL_PRESS, WeakPoint.WEAK_POSTERIOR_CHAIN],
        correction_exercises=["Dumbbell Bench Press", "Romanian Deadlifts"],
        contraindications=["High-impact plyometrics"],
    )
    assert "- Weak Points: WEAK_HORIZONTAL_PRESS, WEAK_POSTERIOR_CHAIN" in prompt
    assert "- Address weak points with: Dumbbell Bench Press, Romanian Deadlifts" in prompt
    assert "- Avoid or modify: High-impact plyometrics" in prompt
