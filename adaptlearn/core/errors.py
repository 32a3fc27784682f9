from typing import Optional


class AdaptError(RuntimeError):
    ...


class ConfigurationError(AdaptError):
    """No AI credential is configured."""


class LLMServiceError(AdaptError):
    """The text-generation backend failed.

    `status_code` is the HTTP status reported by the backend, or None when
    the request never got a response (connection failure).
    """

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class TransientServiceError(LLMServiceError):
    """Backend over capacity, rate limited or timed out. Worth retrying later."""


class MalformedResponseError(AdaptError):
    """Model output could not be parsed into the expected structure."""


class RenderError(AdaptError):
    ...


class ApiError(AdaptError):
    """Errors that are reported to the HTTP caller as `{"error": ...}`."""

    status_code = 400

    def __init__(self, message: str, status_code: Optional[int] = None, details: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.details = details
        if status_code is not None:
            self.status_code = status_code


class ExtractionError(ApiError):
    ...


class InvalidRequestError(ApiError):
    ...
