import json

from generation_service.services.generation_pipeline import GenerationMetadata, GenerationPipeline, GenerationResult
from generation_service.services.program_records import build_program_record


async def test_completed_record(provider, strength_profile_user, fast_config):
    result = await GenerationPipeline(provider, fast_config).generate_program(strength_profile_user)
    record = build_program_record(result, user_id="user-1", profile=strength_profile_user, model_version="gemini-x")

    assert record["generation_status"] == "completed"
    assert record["generation_error"] is None
    assert record["ai_model_version"] == "gemini-x"
    details = record["program_details"]
    assert details["programName"] == "Foundations"
    assert details["autoregulationProtocol"]["phaseRPETargets"]["deload"]["target"] == 5
    assert details["weakPointInterventions"][0]["targetArea"] == "WEAK_HORIZONTAL_PRESS"
    assert record["volume_landmarks"]["chest"] == {"MEV": 6, "MAV": 13, "MRV": 19}
    assert record["weak_point_analysis"]["primary_weak_points"][0] == "WEAK_HORIZONTAL_PRESS"
    assert record["periodization_model"] == "Linear Progression Model"
    assert record["generation_metadata"]["stage"] == "Succeeded"
    assert record["validation_warnings"] == []
    json.dumps(record)


def test_failed_record(beginner_profile):
    result = GenerationResult(
        success=False,
        error="Failed to generate macro-structure: boom",
        metadata=GenerationMetadata(llm_calls=1, retry_attempts=2, stage="Failed"),
    )
    record = build_program_record(result, user_id="user-2", profile=beginner_profile, model_version="gemini-x")

    assert record["generation_status"] == "failed"
    assert record["generation_error"] == "Failed to generate macro-structure: boom"
    assert record["program_details"] is None
    assert record["volume_landmarks"] is None
    assert record["weak_point_analysis"] is None
    assert record["generation_metadata"]["retry_attempts"] == 2
