"""Outcome classification table.

When the provider changes how it signals refusals or dropped images, add
the new response here first.
"""

import pytest

from roomrevive.handlers.classify import (
    GenerationOutcome,
    classify_generation,
    classify_status,
    text_claims_result,
)
from roomrevive.utils.gateway import GatewayResult

IMG = "data:image/png;base64,AAAA"

CASES = [
    # (status, image, text, expected)
    (200, IMG, "", GenerationOutcome.SUCCEEDED),
    (200, IMG, "Here's your redesigned room!", GenerationOutcome.SUCCEEDED),
    (200, IMG, "I can't see a room here", GenerationOutcome.SUCCEEDED),
    (201, IMG, "", GenerationOutcome.SUCCEEDED),
    (200, None, "Here's your redesigned room!", GenerationOutcome.TRANSIENT_FAILURE),
    (200, None, "Here’s the new look", GenerationOutcome.TRANSIENT_FAILURE),
    (200, None, "I have TRANSFORMED the space.", GenerationOutcome.TRANSIENT_FAILURE),
    (200, None, "I can't see a room here", GenerationOutcome.CONTENT_REJECTED),
    (200, None, "This appears to be a photo of a cat.", GenerationOutcome.CONTENT_REJECTED),
    (200, None, "", GenerationOutcome.CONTENT_REJECTED),
    (429, None, "", GenerationOutcome.RATE_LIMITED),
    (429, IMG, "Here's your room", GenerationOutcome.RATE_LIMITED),
    (402, None, "", GenerationOutcome.QUOTA_EXCEEDED),
    (400, None, "", GenerationOutcome.PROVIDER_ERROR),
    (401, None, "", GenerationOutcome.PROVIDER_ERROR),
    (500, None, "", GenerationOutcome.PROVIDER_ERROR),
    (502, None, "Here's your room", GenerationOutcome.PROVIDER_ERROR),
    (503, IMG, "", GenerationOutcome.PROVIDER_ERROR),
]


@pytest.mark.parametrize(("status", "image", "text", "expected"), CASES)
def test_classify_generation(status, image, text, expected):
    """Each provider response maps to exactly one outcome."""
    result = GatewayResult(status_code=status, image_url=image, text=text)
    assert classify_generation(result) is expected


class TestClassifyStatus:
    def test_success_range_defers(self):
        """2xx says nothing on its own; the body decides."""
        assert classify_status(200) is None
        assert classify_status(299) is None

    def test_status_precedence_over_body(self):
        """429 and 402 win regardless of body contents."""
        assert classify_status(429) is GenerationOutcome.RATE_LIMITED
        assert classify_status(402) is GenerationOutcome.QUOTA_EXCEEDED

    @pytest.mark.parametrize("status", [300, 400, 404, 418, 500, 504])
    def test_other_statuses_are_provider_errors(self, status):
        """Anything not 2xx, 402 or 429 is a plain provider error."""
        assert classify_status(status) is GenerationOutcome.PROVIDER_ERROR


class TestTextClaimsResult:
    @pytest.mark.parametrize(
        "text",
        ["Here's the room", "HERE'S IT", "here’s your design", "Transformed!"],
    )
    def test_markers(self, text):
        """Phrases that mean the model thinks it produced an image."""
        assert text_claims_result(text)

    @pytest.mark.parametrize("text", ["", "Sorry, I can't help", "Here is a room"])
    def test_non_markers(self, text):
        """Refusals and neutral phrasing are not claims."""
        assert not text_claims_result(text)


def test_outcome_values_are_error_categories():
    """Non-success outcome values double as client error categories."""
    assert GenerationOutcome.TRANSIENT_FAILURE.value == "provider_transient_failure"
    assert GenerationOutcome.CONTENT_REJECTED.value == "content_rejected"
