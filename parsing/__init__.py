"""Parsing module: prompts and completion-to-Lead parsing."""

from parsing.fallback import extract_fallback_leads
from parsing.intent import contains_drive_link, is_lead_extraction_query, wants_leads
from parsing.parser import ResultParser, decode_json
from parsing.prompts import (
    LEAD_EXTRACTION_PROMPT,
    LEAD_EXTRACTION_SYSTEM_INSTRUCTION,
    WEBSITE_ANALYSIS_PROMPT,
    build_prompt,
    targeted_prompt,
    website_prompt,
)

__all__ = [
    "LEAD_EXTRACTION_PROMPT",
    "LEAD_EXTRACTION_SYSTEM_INSTRUCTION",
    "WEBSITE_ANALYSIS_PROMPT",
    "ResultParser",
    "build_prompt",
    "contains_drive_link",
    "decode_json",
    "extract_fallback_leads",
    "is_lead_extraction_query",
    "targeted_prompt",
    "wants_leads",
    "website_prompt",
]
