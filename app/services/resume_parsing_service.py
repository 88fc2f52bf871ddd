"""
Resume Parsing Service - structured data from resume text using Gemini.

AI OUTPUT -> VALIDATED -> STORED ON THE RESUME -> MERGED INTO THE PROFILE

If the model call fails or returns garbage, the caller still gets a
well-formed (empty) result so the upload flow never breaks on AI errors.
"""

import logging
from typing import Any, Dict, List

from app.core.config import get_settings
from app.services.gemini_client import GeminiClient, get_gemini_client

logger = logging.getLogger(__name__)

settings = get_settings()

RESUME_SYSTEM_PROMPT = """You are a resume parser. Extract information and return ONLY valid JSON.
Output format:
{
  "fullName": "string",
  "email": "string",
  "contactNumber": "string",
  "title": "current or desired job title",
  "skills": ["skill1", "skill2"],
  "certifications": ["certification name"],
  "education": [{"degree": "string", "institution": "string", "year": "string"}],
  "experience": [{"position": "string", "company": "string", "duration": "string", "description": "string"}],
  "summary": "2-3 sentence professional summary"
}
Use empty strings or empty arrays for anything not present.
Return ONLY the JSON, no explanation."""


# ============================================================
# JSON VALIDATION HELPERS
# ============================================================

def _clean_str(value: Any) -> str:
    if value is None:
        return ""
    return str(value).strip()


def _clean_str_list(values: Any) -> List[str]:
    if not isinstance(values, list):
        return []
    cleaned = []
    for v in values:
        # certifications sometimes come back as {"name": ...}
        if isinstance(v, dict):
            v = v.get("name")
        s = _clean_str(v)
        if s:
            cleaned.append(s)
    return cleaned


def empty_analysis() -> Dict[str, Any]:
    """The fallback result: right shape, no data."""
    return {
        "fullName": "",
        "email": "",
        "contactNumber": "",
        "title": "",
        "skills": [],
        "certifications": [],
        "education": [],
        "experience": [],
        "summary": "",
    }


def validate_parsed_resume(data: dict) -> dict:
    """
    Validate and sanitize parsed resume data.
    Ensures all fields exist with correct types; drops blank entries.
    """
    if not isinstance(data, dict):
        return empty_analysis()

    validated = empty_analysis()
    for field in ("fullName", "email", "contactNumber", "title", "summary"):
        validated[field] = _clean_str(data.get(field))

    validated["skills"] = _clean_str_list(data.get("skills"))
    validated["certifications"] = _clean_str_list(data.get("certifications"))

    # Education only counts with a degree or an institution
    for edu in data.get("education") or []:
        if not isinstance(edu, dict):
            continue
        entry = {
            "degree": _clean_str(edu.get("degree")),
            "institution": _clean_str(edu.get("institution")),
            "year": _clean_str(edu.get("year")),
        }
        if entry["degree"] or entry["institution"]:
            validated["education"].append(entry)

    # Experience only counts with a position or a company
    for exp in data.get("experience") or []:
        if not isinstance(exp, dict):
            continue
        entry = {
            "position": _clean_str(exp.get("position")),
            "company": _clean_str(exp.get("company")),
            "duration": _clean_str(exp.get("duration")),
            "description": _clean_str(exp.get("description")),
        }
        if entry["position"] or entry["company"]:
            validated["experience"].append(entry)

    return validated


def has_data(analysis: dict) -> bool:
    """True when the analysis holds anything worth merging."""
    return any(analysis.get(k) for k in empty_analysis())


# ============================================================
# RESUME PARSING SERVICE
# ============================================================

class ResumeParsingService:
    """
    Turns extracted resume text into the structured analysis dict.
    """

    def __init__(self, ai_client: GeminiClient = None):
        self.ai_client = ai_client or get_gemini_client()

    def analyze_resume(self, resume_text: str) -> Dict[str, Any]:
        """
        Parse resume text. Never raises: any failure returns empty_analysis().
        """
        if not resume_text or not resume_text.strip():
            return empty_analysis()

        text = resume_text[:settings.resume_text_limit]
        try:
            parsed = self.ai_client.complete_json(
                RESUME_SYSTEM_PROMPT, text, max_tokens=2048, temperature=0.1
            )
        except Exception as e:
            logger.error("Resume analysis failed, using empty analysis: %s", e)
            return empty_analysis()

        validated = validate_parsed_resume(parsed)
        logger.info(
            "Resume analyzed: %d skills, %d education, %d experience entries",
            len(validated["skills"]), len(validated["education"]), len(validated["experience"])
        )
        return validated


# Factory function
def get_resume_parser() -> ResumeParsingService:
    return ResumeParsingService()
