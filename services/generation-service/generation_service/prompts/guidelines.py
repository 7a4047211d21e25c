"""Static coaching guideline blocks embedded into generation prompts."""

from textwrap import dedent

VOLUME_FRAMEWORK = dedent(
    """
    VOLUME FRAMEWORK
    - MEV (Minimum Effective Volume): the least weekly work that still drives adaptation.
    - MAV (Maximum Adaptive Volume): the range where most growth happens.
    - MRV (Maximum Recoverable Volume): the ceiling before performance declines.
    - Start a block near MEV, climb toward MAV, never program past MRV.
    - Primary muscle groups (chest, back, quads) must reach at least MEV every week.
    """
).strip()

AUTOREGULATION = dedent(
    """
    AUTOREGULATION
    - Accumulation work sits at RPE 6-8, intensification at 7-9, realization at 8-10.
    - Deload work stays at RPE 4-6, always below the accumulation target.
    - Keep each phase's RPE band no wider than 3 points.
    - High readiness: add 2-5% load or 1-2 sets. Low readiness: cut volume 20-30%.
    """
).strip()

PERIODIZATION = dedent(
    """
    PERIODIZATION
    - Beginners: linear progression in 2-3 week blocks.
    - Intermediates: undulating or block periodization in 3-4 week blocks.
    - Advanced: block periodization with 4-6 week mesocycles.
    - Sequence phases as Accumulation -> Intensification -> Realization, or close a block with a Deload.
    - Phase durations must add up exactly to the total program length.
    """
).strip()

WEAK_POINT_INTERVENTION = dedent(
    """
    WEAK POINT INTERVENTION
    - Prioritise at most two weak points per block.
    - Program 2-3 targeted exercises per weak point, at least 4 weekly sets for high-priority areas.
    - Reassess strength ratios within 8 weeks.
    """
).strip()

FATIGUE_MANAGEMENT = dedent(
    """
    FATIGUE MANAGEMENT
    - Schedule a deload every 4-6 weeks or when performance stalls for two sessions.
    - Deload by cutting volume 40-50% while keeping movement patterns.
    - Keep deload days short: no more than 15 working sets per session.
    """
).strip()

EXERCISE_SELECTION = dedent(
    """
    EXERCISE SELECTION
    - Exactly one anchor lift per training day, placed first, tier "Anchor".
    - Follow with 2-3 Primary/Secondary compound lifts, then 2-4 Accessory movements.
    - 3-5 sets for compound lifts, 2-4 for accessories, never more than 8 sets of one exercise.
    - Only use equipment the athlete has access to.
    """
).strip()

COACHING_VOICE = dedent(
    """
    COACHING VOICE
    - Speak directly to the athlete, warm but precise.
    - Explain the why behind each phase in plain language.
    - Tie advice back to the athlete's goal and schedule.
    """
).strip()

MACRO_STRUCTURE_GUIDELINES = (VOLUME_FRAMEWORK, PERIODIZATION, FATIGUE_MANAGEMENT)
SESSION_GUIDELINES = (EXERCISE_SELECTION, AUTOREGULATION)
NARRATIVE_GUIDELINES = (COACHING_VOICE, PERIODIZATION)
