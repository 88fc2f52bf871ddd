"""
Gemini API Client

Gemini exposes an OpenAI-compatible endpoint, so we use the openai library
with base_url pointed at it.

AI is used for:
- resume parsing (text -> structured JSON)
- exam question generation (see exam_service, which rotates keys/models)
- free-text answer evaluation
"""
import json
import logging
import re
from typing import Optional, Union

from openai import OpenAI
from app.core.config import get_settings

logger = logging.getLogger(__name__)

settings = get_settings()

_TRAILING_COMMA = re.compile(r",\s*([}\]])")


class GeminiClient:
    """
    Wrapper for one Gemini API key / model pair.
    """

    def __init__(self, api_key: str = None, model: str = None, client: OpenAI = None):
        self.client = client or OpenAI(
            api_key=api_key or settings.gemini_api_key,
            base_url=settings.gemini_base_url,
            # exam_service does its own key/model fallback
            max_retries=0,
            timeout=60.0,
        )
        self.model = model or settings.gemini_resume_model

    def _call_api(
        self,
        system_prompt: str,
        user_content: str,
        max_tokens: int = 1024,
        temperature: float = 0.1,
        model: str = None,
        **extra,
    ) -> str:
        """
        Internal method to call the chat completions API.
        Returns raw text response.
        """
        response = self.client.chat.completions.create(
            model=model or self.model,
            messages=[
                {"role": "system", "content": system_prompt},
                {"role": "user", "content": user_content}
            ],
            max_tokens=max_tokens,
            temperature=temperature,
            **extra
        )
        content = response.choices[0].message.content
        if not content:
            raise ValueError("Empty response from Gemini")
        return content

    @staticmethod
    def _extract_json(text: str) -> Union[dict, list]:
        """
        Extract JSON from API response.
        Handles markdown code fences, chatter around the object,
        and trailing commas.
        """
        text = text.strip()
        if text.startswith("```json"):
            text = text[7:]
        if text.startswith("```"):
            text = text[3:]
        if text.endswith("```"):
            text = text[:-3]
        text = text.strip()

        # Keep only the outermost object / array
        start_obj, end_obj = text.find("{"), text.rfind("}")
        start_arr, end_arr = text.find("["), text.rfind("]")
        if start_obj != -1 and end_obj > start_obj and (start_arr == -1 or start_obj < start_arr):
            text = text[start_obj:end_obj + 1]
        elif start_arr != -1 and end_arr > start_arr:
            text = text[start_arr:end_arr + 1]

        text = _TRAILING_COMMA.sub(r"\1", text)
        return json.loads(text)

    def complete_json(self, system_prompt: str, user_content: str, max_tokens: int = 2048,
                      temperature: float = 0.1) -> Union[dict, list]:
        response = self._call_api(system_prompt, user_content, max_tokens=max_tokens,
                                  temperature=temperature)
        return self._extract_json(response)


# Singleton instance
_gemini_client: Optional[GeminiClient] = None


def get_gemini_client() -> GeminiClient:
    """Get or create the resume-parsing Gemini client (singleton pattern)"""
    global _gemini_client
    if _gemini_client is None:
        _gemini_client = GeminiClient()
    return _gemini_client
