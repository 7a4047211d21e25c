from __future__ import annotations

from typing import Any, Literal

from pydantic import BaseModel

from ..services.guardian import GuardianResult
from ..services.program_validation import ProgramValidationResult


class GenerationResponse(BaseModel):
    program_id: str
    record: dict[str, Any]
    read_from_primary: bool


class ProgramValidationResponse(BaseModel):
    is_valid: bool
    guardian: GuardianResult
    schema_validation: ProgramValidationResult


class ReadRoutingResponse(BaseModel):
    program_id: str
    read_from_primary: bool
    database: Literal["primary", "replica"]


class ReplicationResponse(BaseModel):
    program_id: str
    replicated: bool


class TrackerStatsResponse(BaseModel):
    tracked: int
    pending: int
    replicated: int
    max_entries: int
    evictions: int
    cleanups: int
    oldest_age_seconds: float | None = None
