"""Curation services"""

from .parser import CurationOutput, extract_json_object, parse_curation_output
from .prompts import build_system_prompt, build_user_prompt
from .curator import ChatCurator, build_curator, response_text
from .deep_research import DeepResearchCurator

__all__ = [
    "CurationOutput",
    "extract_json_object",
    "parse_curation_output",
    "build_system_prompt",
    "build_user_prompt",
    "ChatCurator",
    "build_curator",
    "response_text",
    "DeepResearchCurator",
]
