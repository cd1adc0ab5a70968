# errors.py
from typing import Any, Dict, Optional


class CallAnalysisError(Exception):
    """Base error; carries the HTTP status and the message shown to the caller."""

    status_code = 500

    def __init__(self, message: str, details: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.details = details

    def to_dict(self) -> Dict[str, Any]:
        body = {"error": self.message}
        if self.details:
            body["details"] = self.details
        return body


class ClientInputError(CallAnalysisError):
    status_code = 400


class ConfigurationError(CallAnalysisError):
    status_code = 500


class InternalError(CallAnalysisError):
    status_code = 500


class ExternalServiceError(CallAnalysisError):
    status_code = 502

    def __init__(
        self,
        message: str,
        details: Optional[str] = None,
        service: str = "",
        upstream_status: Optional[int] = None,
    ):
        super().__init__(message, details)
        self.service = service
        self.upstream_status = upstream_status


class RateLimitError(ExternalServiceError):
    # Quota exhausted or too many requests upstream
    status_code = 429


class TranscriptionError(ExternalServiceError):
    pass


class TranscriptionRateLimitError(TranscriptionError, RateLimitError):
    pass


class CompletionError(ExternalServiceError):
    pass


class CompletionRateLimitError(CompletionError, RateLimitError):
    pass
