from .program_generation import (
    build_macro_structure_prompt,
    build_narrative_prompt,
    build_session_detail_prompt,
)

__all__ = [
    "build_macro_structure_prompt",
    "build_narrative_prompt",
    "build_session_detail_prompt",
]
