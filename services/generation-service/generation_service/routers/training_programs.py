from dataclasses import asdict
from typing import Any
from uuid import uuid4

import structlog
from fastapi import APIRouter, Body, Depends, HTTPException, status

from ..dependencies import get_current_user_id, get_pipeline, get_tracker
from ..schemas.responses import (
    GenerationResponse,
    ProgramValidationResponse,
    ReadRoutingResponse,
    ReplicationResponse,
    TrackerStatsResponse,
)
from ..schemas.user_profile import UserProfile
from ..services.generation_pipeline import GenerationPipeline
from ..services.guardian import GuardianLayer
from ..services.program_records import build_program_record
from ..services.program_validation import validate_training_program
from ..services.read_after_write import ReadAfterWriteTracker

router = APIRouter()

logger = structlog.get_logger(__name__)


@router.post("/generate", response_model=GenerationResponse, status_code=status.HTTP_201_CREATED)
async def generate_training_program(
    profile: UserProfile,
    user_id: str = Depends(get_current_user_id),
    pipeline: GenerationPipeline = Depends(get_pipeline),
    tracker: ReadAfterWriteTracker = Depends(get_tracker),
):
    result = await pipeline.generate_program(profile)
    if not result.success:
        logger.warning("training_program_generation_rejected", user_id=user_id, error=result.error)
        if result.provider_unavailable:
            raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=result.error)
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=result.error)

    record = build_program_record(
        result,
        user_id=user_id,
        profile=profile,
        model_version=pipeline.provider.model_name,
    )
    program_id = str(uuid4())
    tracker.record_write(program_id, user_id, source="creation")
    logger.info("training_program_generated", user_id=user_id, program_id=program_id)
    return GenerationResponse(
        program_id=program_id,
        record=record,
        read_from_primary=tracker.should_read_from_primary(program_id, user_id),
    )


@router.post("/validate", response_model=ProgramValidationResponse)
async def validate_program_document(document: dict[str, Any] = Body(...)):
    guardian = GuardianLayer().validate_program(document)
    schema_validation = validate_training_program(document, require_autoregulation=False)
    return ProgramValidationResponse(
        is_valid=guardian.is_valid and schema_validation.is_valid,
        guardian=guardian,
        schema_validation=schema_validation,
    )


@router.get("/read-routing/stats", response_model=TrackerStatsResponse)
async def read_routing_stats(tracker: ReadAfterWriteTracker = Depends(get_tracker)):
    return TrackerStatsResponse(**asdict(tracker.stats()))


@router.get("/{program_id}/read-routing", response_model=ReadRoutingResponse)
async def read_routing(
    program_id: str,
    user_id: str = Depends(get_current_user_id),
    tracker: ReadAfterWriteTracker = Depends(get_tracker),
):
    primary = tracker.should_read_from_primary(program_id, user_id)
    return ReadRoutingResponse(
        program_id=program_id,
        read_from_primary=primary,
        database="primary" if primary else "replica",
    )


@router.post("/{program_id}/replicated", response_model=ReplicationResponse)
async def mark_replicated(program_id: str, tracker: ReadAfterWriteTracker = Depends(get_tracker)):
    if not tracker.mark_as_replicated(program_id):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Program is not tracked")
    return ReplicationResponse(program_id=program_id, replicated=True)
