"""
Error taxonomy for the VidChat backend.

Every error carries a human-readable message and the HTTP status the API
layer answers with.
"""


class VidChatError(Exception):
    """Base class for errors surfaced to API clients."""

    status_code = 500

    def __init__(self, message: str, status_code: int = None):
        super().__init__(message)
        self.message = message
        if status_code is not None:
            self.status_code = status_code


class InvalidInputError(VidChatError):
    status_code = 400


class AuthenticationError(VidChatError):
    status_code = 401


class ForbiddenError(VidChatError):
    status_code = 403


class NotFoundError(VidChatError):
    status_code = 404


class VideoFetchError(VidChatError):
    """Video platform unreachable or video missing."""
    status_code = 500


class GenerationError(VidChatError):
    """LLM provider failed for a reason other than being busy."""
    status_code = 500


class GenerationTimeoutError(GenerationError):
    """LLM provider timed out or reported itself busy; the user should retry."""
    status_code = 503


class WebSearchError(VidChatError):
    status_code = 500


class RateLimitError(VidChatError):
    """Too many requests from one caller inside the limit window."""
    status_code = 429

    def __init__(self, message: str, retry_after: str = None):
        super().__init__(message)
        self.retry_after = retry_after
