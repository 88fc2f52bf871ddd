"""
ML Service Client - HTTP calls to the Python ML microservice.

Endpoints used:
- POST /internal-analyze                -> skill gap analysis
- POST /api/recommendations/generate    -> course recommendations

All of the gap / recommendation logic lives in that service; this client
only ships JSON back and forth.
"""
import logging
from typing import Any, Dict, Optional

import httpx

from app.core.config import get_settings
from app.core.exceptions import ExternalServiceError

logger = logging.getLogger(__name__)

settings = get_settings()


class MLServiceError(ExternalServiceError):
    """The ML service was unreachable or answered with an error."""


class MLServiceClient:

    ANALYZE_PATH = "/internal-analyze"
    RECOMMEND_PATH = "/api/recommendations/generate"

    def __init__(self, base_url: str = None, timeout: float = None,
                 transport: Optional[httpx.BaseTransport] = None):
        self.client = httpx.Client(
            base_url=(base_url or settings.ml_service_url).rstrip("/"),
            timeout=timeout or settings.ml_service_timeout,
            transport=transport,
        )

    def _post(self, path: str, payload: Dict[str, Any]) -> Dict[str, Any]:
        try:
            response = self.client.post(path, json=payload)
        except httpx.TimeoutException as e:
            logger.error("ML service timeout on %s: %s", path, e)
            raise MLServiceError("ML service timeout") from e
        except httpx.HTTPError as e:
            logger.error("ML service unreachable on %s: %s", path, e)
            raise MLServiceError("ML service unavailable") from e

        if response.status_code >= 400:
            logger.error("ML service %s returned %d: %s", path, response.status_code, response.text[:500])
            raise MLServiceError(f"ML service returned {response.status_code}")

        try:
            body = response.json()
        except ValueError as e:
            raise MLServiceError("ML service returned invalid JSON") from e

        if not isinstance(body, dict):
            raise MLServiceError("ML service returned an unexpected payload")
        return body

    def analyze_skill_gap(self, payload: Dict[str, Any]) -> Dict[str, Any]:
        logger.info("Requesting skill gap analysis for user %s, role %s",
                    payload.get("user_id"), payload.get("job_role"))
        return self._post(self.ANALYZE_PATH, payload)

    def generate_recommendations(self, payload: Dict[str, Any]) -> Dict[str, Any]:
        logger.info("Requesting course recommendations for user %s", payload.get("user_id"))
        return self._post(self.RECOMMEND_PATH, payload)

    def close(self) -> None:
        self.client.close()


# Singleton instance
_ml_client: Optional[MLServiceClient] = None


def get_ml_client() -> MLServiceClient:
    """Get or create the ML service client (singleton pattern)"""
    global _ml_client
    if _ml_client is None:
        _ml_client = MLServiceClient()
    return _ml_client


def close_ml_client() -> None:
    global _ml_client
    if _ml_client is not None:
        _ml_client.close()
        _ml_client = None
