"""Room analysis handler: read-only, never touches the credits ledger.

Sends the photo with a fixed instruction asking for a strict JSON object
and validates the reply into ``RoomAnalysis``. Models often wrap JSON in
markdown fences despite being told not to, so those are stripped first.
Anything that still fails to parse is reported with the raw text rather
than papered over.
"""

from __future__ import annotations

import asyncio
import json
import re

import structlog
from pydantic import ValidationError

from roomrevive.errors import (
    AnalysisParseError,
    ProviderError,
    ProviderTransientError,
    QuotaExceededError,
    RateLimitedError,
)
from roomrevive.handlers.classify import GenerationOutcome, classify_status
from roomrevive.handlers.credit_gate import CreditGate
from roomrevive.handlers.validation import validate_image
from roomrevive.models.contracts import AnalyzeRoomRequest, AnalyzeRoomResult, RoomAnalysis
from roomrevive.utils.gateway import AIGatewayClient, GatewayUnavailableError

log = structlog.get_logger("analyze_room")

ANALYSIS_PROMPT = """Analyze this room image and provide a detailed JSON response with the following structure. Be specific and accurate:

{
  "roomType": "living room" | "bedroom" | "kitchen" | "bathroom" | "dining room" | "home office" | "nursery" | "other",
  "currentStyle": "modern" | "traditional" | "industrial" | "bohemian" | "minimalist" | "scandinavian" | "mid-century" | "coastal" | "farmhouse" | "eclectic" | "unknown",
  "colorPalette": {
    "dominant": "the main color you see (e.g., 'warm beige', 'soft gray', 'white')",
    "accent": ["2-3 accent colors present"],
    "suggested": ["3-4 colors that would complement this space"]
  },
  "furniture": {
    "detected": ["list of furniture items you can see in the room"],
    "suggestions": ["4-6 furniture pieces that would enhance this space based on the room type and style"]
  },
  "lighting": "description of lighting quality (e.g., 'natural light from large windows', 'warm artificial lighting', 'dim and needs improvement')",
  "recommendations": ["5-7 specific actionable design recommendations to improve this space"]
}

Respond ONLY with valid JSON, no additional text or markdown formatting."""  # noqa: E501

SUCCESS_MESSAGE = "Room analyzed successfully!"

_FENCE_RE = re.compile(r"^```(?:json|JSON)?\s*|\s*```$")


def strip_code_fences(text: str) -> str:
    return _FENCE_RE.sub("", text.strip()).strip()


def parse_analysis(text: str) -> RoomAnalysis:
    """Parse model output into RoomAnalysis or raise AnalysisParseError."""
    if not text.strip():
        raise AnalysisParseError("Failed to analyze room. Please try again.", details="")
    cleaned = strip_code_fences(text)
    try:
        data = json.loads(cleaned)
    except json.JSONDecodeError as exc:
        log.warning("analysis_json_invalid", error=str(exc), raw=text[:300])
        raise AnalysisParseError(details=text) from exc
    try:
        return RoomAnalysis.model_validate(data)
    except ValidationError as exc:
        log.warning("analysis_shape_invalid", errors=exc.error_count(), raw=text[:300])
        raise AnalysisParseError(details=text) from exc


class RoomAnalysisOrchestrator:
    def __init__(self, gateway: AIGatewayClient, gate: CreditGate, max_image_bytes: int) -> None:
        self.gateway = gateway
        # Only the identity half of the gate is used here
        self.gate = gate
        self.max_image_bytes = max_image_bytes

    async def analyze(self, token: str | None, request: AnalyzeRoomRequest) -> AnalyzeRoomResult:
        image = await asyncio.to_thread(validate_image, request.image, self.max_image_bytes)
        user_id = await self.gate.authenticate(token)
        log.info("analysis_start", user_id=user_id)

        try:
            result = await self.gateway.describe_image(ANALYSIS_PROMPT, image)
        except GatewayUnavailableError as exc:
            raise ProviderTransientError(details=str(exc)) from exc

        outcome = classify_status(result.status_code)
        if outcome is GenerationOutcome.RATE_LIMITED:
            raise RateLimitedError()
        if outcome is GenerationOutcome.QUOTA_EXCEEDED:
            raise QuotaExceededError("AI usage limit reached. Please try again later.")
        if outcome is not None:
            raise ProviderError(details=f"AI gateway error: {result.status_code}")

        analysis = parse_analysis(result.text)
        log.info(
            "analysis_done",
            user_id=user_id,
            room_type=analysis.room_type,
            recommendations=len(analysis.recommendations),
        )
        return AnalyzeRoomResult(analysis=analysis, message=SUCCESS_MESSAGE)
