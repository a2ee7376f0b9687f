"""Typed failures raised by the request handlers.

Each error knows its HTTP status, a machine-readable category for client
branching (upgrade modal vs retry button), and the human-readable message
shown to the user. The FastAPI exception handler in ``main.py`` turns
them into ``ErrorResponse`` JSON.
"""

from __future__ import annotations


class RoomReviveError(Exception):
    status_code: int = 500
    category: str = "internal_error"
    retryable: bool = False
    default_message: str = "An unexpected error occurred"

    def __init__(self, message: str | None = None, *, details: str | None = None) -> None:
        self.message = message or self.default_message
        self.details = details
        super().__init__(self.message)


# --- input validation (nothing reserved, nothing called) ---


class InvalidImageError(RoomReviveError):
    status_code = 400
    category = "invalid_image"
    default_message = "Invalid image format. Please upload a valid image."


class ImageTooLargeError(RoomReviveError):
    status_code = 400
    category = "image_too_large"
    default_message = "Image too large. Maximum 10MB allowed."


class InvalidStyleError(RoomReviveError):
    status_code = 400
    category = "invalid_style"
    default_message = "Please choose one of the available design styles."


class UnauthorizedError(RoomReviveError):
    status_code = 401
    category = "unauthorized"
    default_message = "Please sign in to continue"


# --- ledger ---


class CreditsExhaustedError(RoomReviveError):
    status_code = 402
    category = "credits_exhausted"
    default_message = "You've used all your redesign credits. Upgrade your plan to continue."


# --- provider outcomes ---


class RateLimitedError(RoomReviveError):
    status_code = 429
    category = "rate_limited"
    retryable = True
    default_message = "Rate limit exceeded. Please try again in a moment."


class QuotaExceededError(RoomReviveError):
    status_code = 402
    category = "quota_exceeded"
    default_message = "Usage limit reached. Please add credits to continue."


class ProviderError(RoomReviveError):
    status_code = 500
    category = "provider_error"
    retryable = True
    default_message = "The image service failed to process your request. Please try again."


class ContentRejectedError(RoomReviveError):
    status_code = 400
    category = "content_rejected"
    default_message = (
        "Please upload an interior room photo. "
        "The AI needs to see the inside of a room to redesign it."
    )


class ProviderTransientError(RoomReviveError):
    status_code = 503
    category = "provider_transient_failure"
    retryable = True
    default_message = "Image generation temporarily unavailable. Please try again."


class AnalysisParseError(RoomReviveError):
    """The analysis text could not be read as a RoomAnalysis object.

    ``details`` carries the raw model output for diagnosis.
    """

    status_code = 500
    category = "analysis_parse_error"
    retryable = True
    default_message = "Failed to parse room analysis. Please try again."
