"""
Domain errors raised by services.

Routes either let these propagate (main.py maps them to HTTP responses)
or raise HTTPException directly for request-level problems.
"""


class WorkSkillError(Exception):
    """Base class for service errors."""
    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class NotFoundError(WorkSkillError):
    status_code = 404


class ValidationError(WorkSkillError):
    status_code = 400


class ExternalServiceError(WorkSkillError):
    """An upstream service (ML service, AI API) failed."""
    status_code = 502
