"""Classification of a single generation attempt.

All knowledge about how the gateway signals failure lives here, including
the free-text heuristic: when a 2xx response carries no image, the model
either refused (the photo is not a room) or believed it produced a result
that the gateway dropped. The two are told apart only by the wording of
the accompanying text. If the provider changes its phrasing, this is the
one place to update, and ``tests/test_classify.py`` is the table to extend.
"""

from __future__ import annotations

from enum import StrEnum

from roomrevive.utils.gateway import GatewayResult


class GenerationOutcome(StrEnum):
    SUCCEEDED = "succeeded"
    RATE_LIMITED = "rate_limited"
    QUOTA_EXCEEDED = "quota_exceeded"
    PROVIDER_ERROR = "provider_error"
    CONTENT_REJECTED = "content_rejected"
    TRANSIENT_FAILURE = "provider_transient_failure"


# Phrases that mean "the model thinks it returned an image"
SUCCESS_CLAIM_MARKERS: tuple[str, ...] = ("here's", "here’s", "transformed")


def text_claims_result(text: str) -> bool:
    lowered = text.lower()
    return any(marker in lowered for marker in SUCCESS_CLAIM_MARKERS)


def classify_status(status_code: int) -> GenerationOutcome | None:
    """Outcome implied by the HTTP status alone, or None for 2xx."""
    if 200 <= status_code < 300:
        return None
    if status_code == 429:
        return GenerationOutcome.RATE_LIMITED
    if status_code == 402:
        return GenerationOutcome.QUOTA_EXCEEDED
    return GenerationOutcome.PROVIDER_ERROR


def classify_generation(result: GatewayResult) -> GenerationOutcome:
    by_status = classify_status(result.status_code)
    if by_status is not None:
        return by_status
    if result.image_url:
        return GenerationOutcome.SUCCEEDED
    if text_claims_result(result.text):
        return GenerationOutcome.TRANSIENT_FAILURE
    return GenerationOutcome.CONTENT_REJECTED
