from __future__ import annotations

import asyncio
import logging
import time
from collections.abc import Callable, Iterable
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Literal, TypeVar

import structlog
from pydantic import BaseModel, Field

from ..config import Settings
from ..logging_config import GENERATION_LOG_LEVELS
from ..metrics import PROGRAM_GENERATION_SECONDS, TRAINING_PROGRAMS_GENERATED_TOTAL
from ..prompts import build_macro_structure_prompt, build_narrative_prompt, build_session_detail_prompt
from ..schemas.program import (
    WEEKDAYS,
    EnhancedTrainingProgram,
    NarrativeContent,
    ProgramScaffold,
    ScaffoldPhase,
    ScaffoldWeek,
    TrainingProgram,
    VolumeLandmarks,
    WeakPoint,
    WorkoutDay,
)
from ..schemas.user_profile import UserProfile
from .guardian import GuardianLayer, GuardianResult
from .llm_provider import GenAIUnavailableError, LLMProvider
from .profile_inference import (
    InjuryAssessment,
    autoregulation_notes,
    build_weak_point_interventions,
    default_autoregulation_protocol,
    infer_volume_parameters,
    parse_injury_limitations,
    program_duration_weeks,
    select_periodization_model,
)
from .program_validation import ProgramValidationResult, validate_training_program
from .response_schemas import NARRATIVE_CONTENT_SCHEMA, PROGRAM_SCAFFOLD_SCHEMA, WORKOUT_DAY_SCHEMA
from .structured_generation import ProviderError, StructuredResult, generate_with_retry
from .volume_landmarks import calculate_all_muscle_landmarks
from .weak_points import WeakPointAnalysis, enhanced_weak_point_analysis
from .weekly_schedule import DaySlot, weekly_layout

T = TypeVar("T", bound=BaseModel)


class PipelineStepError(RuntimeError):
    def __init__(self, step: str, cause: Exception) -> None:
        super().__init__(f"Failed to generate {step}: {cause}")
        self.step = step


class AssemblyError(RuntimeError):
    pass


class ProgramRejectedError(RuntimeError):
    def __init__(
        self,
        message: str,
        *,
        validation_result: GuardianResult,
        schema_validation: ProgramValidationResult,
    ) -> None:
        super().__init__(message)
        self.validation_result = validation_result
        self.schema_validation = schema_validation


class GenerationStage(str, Enum):
    NOT_STARTED = "NotStarted"
    MACRO_STRUCTURE_GENERATED = "MacroStructureGenerated"
    SESSIONS_GENERATED = "SessionsGenerated"
    NARRATIVE_GENERATED = "NarrativeGenerated"
    ASSEMBLED = "Assembled"
    VALIDATED = "Validated"
    SUCCEEDED = "Succeeded"
    FAILED = "Failed"


STAGE_NUMBERS = {
    GenerationStage.NOT_STARTED: 0,
    GenerationStage.MACRO_STRUCTURE_GENERATED: 1,
    GenerationStage.SESSIONS_GENERATED: 2,
    GenerationStage.NARRATIVE_GENERATED: 3,
    GenerationStage.ASSEMBLED: 4,
    GenerationStage.VALIDATED: 5,
}


class GenerationConfig(BaseModel):
    max_retries: int = Field(default=3, ge=0)
    enable_parallel_generation: bool = True
    validation_level: Literal["strict", "lenient"] = "strict"
    log_level: Literal["verbose", "normal", "minimal"] = "normal"
    call_timeout_seconds: float | None = Field(default=90.0, gt=0)
    pipeline_deadline_seconds: float | None = Field(default=600.0, gt=0)
    retry_base_delay: float = Field(default=1.0, ge=0)

    @classmethod
    def from_settings(cls, settings: Settings) -> GenerationConfig:
        return cls(
            max_retries=settings.genai_max_attempts,
            enable_parallel_generation=settings.generation_parallel,
            validation_level=settings.validation_level,
            log_level=settings.generation_log_level,
            call_timeout_seconds=settings.genai_call_timeout,
            pipeline_deadline_seconds=settings.pipeline_deadline_seconds,
            retry_base_delay=settings.genai_base_delay,
        )


class GenerationMetadata(BaseModel):
    steps_completed: int = 0
    llm_calls: int = 0
    retry_attempts: int = 0
    total_generation_time: float = 0.0
    stage: GenerationStage = GenerationStage.NOT_STARTED


class GenerationResult(BaseModel):
    success: bool
    program: EnhancedTrainingProgram | None = None
    validation_result: GuardianResult | None = None
    schema_validation: ProgramValidationResult | None = None
    validation_warnings: list[str] = Field(default_factory=list)
    error: str | None = None
    provider_unavailable: bool = False
    metadata: GenerationMetadata
    volume_landmarks: dict[str, VolumeLandmarks] = Field(default_factory=dict)
    weak_point_analysis: WeakPointAnalysis | None = None
    periodization_model: str | None = None


@dataclass(frozen=True)
class SessionJob:
    phase_index: int
    week_index: int
    phase: ScaffoldPhase
    week: ScaffoldWeek
    slot: DaySlot


@dataclass(frozen=True)
class SessionResult:
    """One filled day slot; the indices say where it belongs in the program."""

    phase_index: int
    week_index: int
    day_index: int
    day: WorkoutDay
    attempts: int = 0


@dataclass
class GenerationContext:
    profile: UserProfile
    landmarks: dict[str, VolumeLandmarks]
    weak_point_analysis: WeakPointAnalysis | None
    periodization_model: str
    duration_weeks: int
    injuries: InjuryAssessment = field(default_factory=InjuryAssessment)
    autoregulation_notes: str | None = None

    @property
    def weak_points(self) -> list[WeakPoint]:
        return self.weak_point_analysis.primary_weak_points if self.weak_point_analysis else []

    @property
    def correction_exercises(self) -> list[str]:
        return self.weak_point_analysis.correction_exercises if self.weak_point_analysis else []


@dataclass
class _RunState:
    metadata: GenerationMetadata = field(default_factory=GenerationMetadata)
    context: GenerationContext | None = None
    started_at: float = field(default_factory=time.perf_counter)

    def advance(self, stage: GenerationStage) -> None:
        self.metadata.stage = stage
        self.metadata.steps_completed = STAGE_NUMBERS[stage]


def check_scaffold(scaffold: ProgramScaffold) -> ProgramScaffold:
    """Week numbers must run 1..N across the whole program."""
    expected = 1
    for phase in scaffold.phases:
        for week in phase.weeks:
            if week.week_number != expected:
                raise ValueError(f"Week numbering must be sequential: expected {expected}, got {week.week_number}")
            expected += 1
    return scaffold


def session_check(slot: DaySlot) -> Callable[[WorkoutDay], WorkoutDay]:
    def check(day: WorkoutDay) -> WorkoutDay:
        if day.is_rest_day:
            raise ValueError(f"{slot.day_of_week.value} is a training day but the response is a rest day")
        updates: dict[str, Any] = {"day_of_week": slot.day_of_week}
        if not day.focus:
            updates["focus"] = slot.focus
        return day.model_copy(update=updates)

    return check


def collect_anchor_lifts(program: TrainingProgram) -> list[str]:
    names = (
        exercise.name
        for phase in program.phases
        for week in phase.weeks
        for day in week.days
        for exercise in day.exercises
        if exercise.is_anchor
    )
    return list(dict.fromkeys(names))


def calculate_volume_progression(program: TrainingProgram) -> str:
    parts = []
    for phase in program.phases:
        weekly = [sum(exercise.sets for day in week.days for exercise in day.exercises) for week in phase.weeks]
        average = sum(weekly) / len(weekly) if weekly else 0.0
        parts.append(f"{phase.phase_name}: {average:.1f} sets/week")
    return ", ".join(parts)


def assemble_program(
    scaffold: ProgramScaffold,
    narrative: NarrativeContent,
    sessions: Iterable[SessionResult],
) -> TrainingProgram:
    """Merge per-day results into the scaffold.

    Results may arrive in any order. Every slot must be filled exactly once.
    """
    slots: dict[tuple[int, int, int], WorkoutDay] = {}
    for result in sessions:
        key = (result.phase_index, result.week_index, result.day_index)
        if key in slots:
            raise AssemblyError(f"Duplicate session for phase {key[0] + 1}, week {key[1] + 1}, day {key[2] + 1}")
        slots[key] = result.day

    missing: list[str] = []
    phases: list[dict[str, Any]] = []
    for phase_idx, phase in enumerate(scaffold.phases):
        weeks: list[dict[str, Any]] = []
        for week_idx, week in enumerate(phase.weeks):
            days = []
            for day_idx, weekday in enumerate(WEEKDAYS):
                day = slots.pop((phase_idx, week_idx, day_idx), None)
                if day is None:
                    missing.append(f"phase {phase_idx + 1} week {week.week_number} {weekday.value}")
                    continue
                days.append(day.model_dump())
            weeks.append(
                {
                    "week_number": week.week_number,
                    "phase_week": week.phase_week or week_idx + 1,
                    "progression_strategy": week.progression_strategy,
                    "intensity_focus": week.intensity_focus,
                    "weekly_volume_landmark": week.weekly_volume_landmark,
                    "days": days,
                }
            )
        phases.append(
            {
                "phase_name": phase.phase_name,
                "phase_type": phase.phase_type,
                "duration_weeks": phase.duration_weeks,
                "primary_goal": phase.primary_goal,
                "weeks": weeks,
            }
        )

    if missing:
        raise AssemblyError(f"Missing sessions for {len(missing)} slot(s): {', '.join(missing[:5])}")
    if slots:
        raise AssemblyError(f"Sessions returned for {len(slots)} slot(s) outside the scaffold")

    program = TrainingProgram.model_validate(
        {
            "program_name": scaffold.program_name,
            "description": scaffold.description,
            "duration_weeks_total": scaffold.duration_weeks_total,
            "periodization_model": scaffold.periodization_model,
            "coach_intro": narrative.coach_intro,
            "general_advice": narrative.general_advice,
            "phases": phases,
        }
    )
    return program.model_copy(
        update={
            "anchor_lifts": collect_anchor_lifts(program),
            "total_volume_progression": calculate_volume_progression(program),
        }
    )


class GenerationPipeline:
    """Macro-structure, sessions, narrative, assembly, validation.

    One instance may serve many requests; every run keeps its own state.
    """

    def __init__(
        self,
        provider: LLMProvider,
        config: GenerationConfig | None = None,
        guardian: GuardianLayer | None = None,
    ) -> None:
        self.provider = provider
        self.config = config or GenerationConfig()
        self.guardian = guardian or GuardianLayer()
        self._min_log_level = GENERATION_LOG_LEVELS[self.config.log_level]
        self._logger = structlog.get_logger(__name__)

    def _log(self, level: int, event: str, **kwargs: Any) -> None:
        if level >= self._min_log_level:
            self._logger.log(level, event, **kwargs)

    async def generate_program(self, profile: UserProfile) -> GenerationResult:
        run = _RunState()
        self._log(logging.INFO, "program_generation_started", user=profile.name, parallel=self.config.enable_parallel_generation)
        try:
            result = await asyncio.wait_for(self._run(profile, run), timeout=self.config.pipeline_deadline_seconds)
        except Exception as exc:
            result = self._failure(run, exc)
        result.metadata.total_generation_time = round(time.perf_counter() - run.started_at, 3)

        TRAINING_PROGRAMS_GENERATED_TOTAL.labels(status="succeeded" if result.success else "failed").inc()
        PROGRAM_GENERATION_SECONDS.observe(result.metadata.total_generation_time)
        self._log(
            logging.INFO if result.success else logging.WARNING,
            "program_generation_finished",
            success=result.success,
            error=result.error,
            steps_completed=result.metadata.steps_completed,
            llm_calls=result.metadata.llm_calls,
            retry_attempts=result.metadata.retry_attempts,
            seconds=result.metadata.total_generation_time,
        )
        return result

    def _failure(self, run: _RunState, exc: Exception) -> GenerationResult:
        if isinstance(exc, TimeoutError):
            message = f"Generation exceeded the deadline of {self.config.pipeline_deadline_seconds}s"
        else:
            message = str(exc) or type(exc).__name__
        self._log(logging.ERROR, "program_generation_failed", error=message, stage=run.metadata.stage.value)
        run.metadata.stage = GenerationStage.FAILED
        context = run.context
        rejected = exc if isinstance(exc, ProgramRejectedError) else None
        return GenerationResult(
            success=False,
            error=message,
            provider_unavailable=isinstance(exc.__cause__ or exc, GenAIUnavailableError),
            metadata=run.metadata,
            validation_result=rejected.validation_result if rejected else None,
            schema_validation=rejected.schema_validation if rejected else None,
            volume_landmarks=context.landmarks if context else {},
            weak_point_analysis=context.weak_point_analysis if context else None,
            periodization_model=context.periodization_model if context else None,
        )

    def build_context(self, profile: UserProfile) -> GenerationContext:
        landmarks = calculate_all_muscle_landmarks(infer_volume_parameters(profile))
        strength = profile.strength_profile()
        analysis = None
        if strength is None:
            self._log(logging.INFO, "weak_point_analysis_skipped", missing=profile.missing_one_rep_maxes())
        else:
            analysis = enhanced_weak_point_analysis(strength)
            self._log(
                logging.DEBUG,
                "weak_point_analysis_complete",
                weak_points=[wp.value for wp in analysis.primary_weak_points],
            )
        return GenerationContext(
            profile=profile,
            landmarks=landmarks,
            weak_point_analysis=analysis,
            periodization_model=select_periodization_model(profile),
            duration_weeks=program_duration_weeks(profile),
            injuries=parse_injury_limitations(profile.injuries_limitations),
            autoregulation_notes=autoregulation_notes(profile),
        )

    async def _run(self, profile: UserProfile, run: _RunState) -> GenerationResult:
        context = self.build_context(profile)
        run.context = context

        scaffold = await self._generate_macro_structure(context, run)
        run.advance(GenerationStage.MACRO_STRUCTURE_GENERATED)
        self._log(logging.INFO, "macro_structure_generated", phases=len(scaffold.phases), weeks=scaffold.duration_weeks_total)

        sessions = await self._generate_sessions(context, scaffold, run)
        run.advance(GenerationStage.SESSIONS_GENERATED)
        self._log(logging.INFO, "sessions_generated", slots=len(sessions))

        narrative = await self._generate_narrative(context, scaffold, sessions, run)
        run.advance(GenerationStage.NARRATIVE_GENERATED)

        program = self._finalize(context, assemble_program(scaffold, narrative, sessions))
        run.advance(GenerationStage.ASSEMBLED)
        self._log(logging.INFO, "program_assembled", anchor_lifts=program.anchor_lifts)

        guardian_result = self.guardian.validate_program(program.model_dump(mode="json", by_alias=True))
        schema_result = validate_training_program(
            program,
            weak_points=context.weak_point_analysis.primary_weak_points if context.weak_point_analysis else None,
        )
        run.advance(GenerationStage.VALIDATED)
        warnings = self._review(guardian_result, schema_result)

        run.metadata.stage = GenerationStage.SUCCEEDED
        return GenerationResult(
            success=True,
            program=program,
            validation_result=guardian_result,
            schema_validation=schema_result,
            validation_warnings=warnings,
            metadata=run.metadata,
            volume_landmarks=context.landmarks,
            weak_point_analysis=context.weak_point_analysis,
            periodization_model=context.periodization_model,
        )

    def _finalize(self, context: GenerationContext, program: TrainingProgram) -> EnhancedTrainingProgram:
        interventions = (
            build_weak_point_interventions(context.weak_point_analysis) if context.weak_point_analysis else None
        )
        return EnhancedTrainingProgram(
            **program.model_dump(),
            autoregulation_protocol=default_autoregulation_protocol(),
            weak_point_interventions=interventions,
        )

    def _review(self, guardian_result: GuardianResult, schema_result: ProgramValidationResult) -> list[str]:
        """Accept or reject the validated program; returns the findings carried forward."""
        findings = (
            [f"{error.severity.value}: {error.message}" for error in guardian_result.errors]
            + [f"WARNING: {warning.message}" for warning in guardian_result.warnings]
            + [f"SCHEMA: {violation}" for violation in schema_result.violations + schema_result.errors]
        )
        if guardian_result.is_valid and schema_result.is_valid:
            return findings

        critical = guardian_result.critical_errors
        if self.config.validation_level == "strict" or critical:
            reasons = [error.message for error in critical] or (
                [error.message for error in guardian_result.errors] + schema_result.violations + schema_result.errors
            )
            raise ProgramRejectedError(
                "Validation failed: " + "; ".join(reasons),
                validation_result=guardian_result,
                schema_validation=schema_result,
            )

        self._log(logging.WARNING, "program_accepted_with_warnings", findings=len(findings))
        return findings

    async def _call(
        self,
        run: _RunState,
        *,
        step: str,
        prompt: str,
        response_model: type[T],
        response_schema: dict[str, Any],
        temperature: float = 0.4,
        check: Callable[[T], T] | None = None,
    ) -> StructuredResult[T]:
        run.metadata.llm_calls += 1
        try:
            structured = await generate_with_retry(
                self.provider,
                prompt=prompt,
                response_model=response_model,
                response_schema=response_schema,
                max_retries=self.config.max_retries,
                call_timeout=self.config.call_timeout_seconds,
                base_delay=self.config.retry_base_delay,
                temperature=temperature,
                step=step,
                check=check,
            )
        except ProviderError as exc:
            run.metadata.retry_attempts += exc.attempts - 1
            raise
        run.metadata.retry_attempts += structured.retries
        self._log(logging.DEBUG, "structured_call_complete", step=step, attempts=structured.attempts)
        return structured

    async def _generate_macro_structure(self, context: GenerationContext, run: _RunState) -> ProgramScaffold:
        prompt = build_macro_structure_prompt(
            profile=context.profile,
            periodization_model=context.periodization_model,
            duration_weeks=context.duration_weeks,
            landmarks=context.landmarks,
            weak_points=context.weak_points,
            correction_exercises=context.correction_exercises,
            contraindications=context.injuries.contraindications,
            autoregulation_notes=context.autoregulation_notes,
        )
        try:
            structured = await self._call(
                run,
                step="macro_structure",
                prompt=prompt,
                response_model=ProgramScaffold,
                response_schema=PROGRAM_SCAFFOLD_SCHEMA,
                temperature=0.3,
                check=check_scaffold,
            )
        except Exception as exc:
            raise PipelineStepError("macro-structure", exc) from exc
        return structured.value

    def session_jobs(self, profile: UserProfile, scaffold: ProgramScaffold) -> tuple[list[SessionJob], list[SessionResult]]:
        """Split the scaffold into provider jobs for training days and local rest days."""
        layout = weekly_layout(profile.training_frequency_days)
        jobs: list[SessionJob] = []
        rest_days: list[SessionResult] = []
        for phase_idx, phase in enumerate(scaffold.phases):
            for week_idx, week in enumerate(phase.weeks):
                for slot in layout:
                    if slot.is_rest_day:
                        rest_days.append(
                            SessionResult(
                                phase_index=phase_idx,
                                week_index=week_idx,
                                day_index=slot.day_index,
                                day=WorkoutDay.rest(slot.day_of_week, slot.focus),
                            )
                        )
                    else:
                        jobs.append(SessionJob(phase_idx, week_idx, phase, week, slot))
        return jobs, rest_days

    async def _generate_session(self, context: GenerationContext, job: SessionJob, run: _RunState) -> SessionResult:
        prompt = build_session_detail_prompt(
            profile=context.profile,
            day_of_week=job.slot.day_of_week,
            focus=job.slot.focus,
            week_number=job.week.week_number,
            phase_week=job.week.phase_week or job.week_index + 1,
            intensity_focus=job.week.intensity_focus,
            progression_strategy=job.week.progression_strategy,
            phase_type=job.phase.phase_type,
            weak_points=context.weak_points,
            correction_exercises=context.correction_exercises,
            contraindications=context.injuries.contraindications,
        )
        structured = await self._call(
            run,
            step="session",
            prompt=prompt,
            response_model=WorkoutDay,
            response_schema=WORKOUT_DAY_SCHEMA,
            check=session_check(job.slot),
        )
        return SessionResult(
            phase_index=job.phase_index,
            week_index=job.week_index,
            day_index=job.slot.day_index,
            day=structured.value,
            attempts=structured.attempts,
        )

    async def _generate_sessions(
        self,
        context: GenerationContext,
        scaffold: ProgramScaffold,
        run: _RunState,
    ) -> list[SessionResult]:
        jobs, results = self.session_jobs(context.profile, scaffold)
        self._log(
            logging.DEBUG,
            "session_fan_out",
            training_days=len(jobs),
            rest_days=len(results),
            parallel=self.config.enable_parallel_generation,
        )
        try:
            if self.config.enable_parallel_generation:
                try:
                    async with asyncio.TaskGroup() as group:
                        tasks = [group.create_task(self._generate_session(context, job, run)) for job in jobs]
                except ExceptionGroup as group_error:
                    raise group_error.exceptions[0] from None
                results.extend(task.result() for task in tasks)
            else:
                for job in jobs:
                    results.append(await self._generate_session(context, job, run))
        except Exception as exc:
            raise PipelineStepError("workout sessions", exc) from exc
        return results

    async def _generate_narrative(
        self,
        context: GenerationContext,
        scaffold: ProgramScaffold,
        sessions: list[SessionResult],
        run: _RunState,
    ) -> NarrativeContent:
        summary = []
        for result in sorted(sessions, key=lambda r: (r.phase_index, r.week_index, r.day_index)):
            if result.day.is_rest_day:
                continue
            week = scaffold.phases[result.phase_index].weeks[result.week_index]
            anchor = result.day.exercises[0].name
            summary.append(f"- Week {week.week_number} {result.day.day_of_week.value}: {result.day.focus} (anchor: {anchor})")

        prompt = build_narrative_prompt(profile=context.profile, scaffold=scaffold, session_summary=summary)
        try:
            structured = await self._call(
                run,
                step="narrative",
                prompt=prompt,
                response_model=NarrativeContent,
                response_schema=NARRATIVE_CONTENT_SCHEMA,
                temperature=0.7,
            )
        except Exception as exc:
            raise PipelineStepError("narrative content", exc) from exc
        return structured.value
