"""Redesign handler: one credit-gated generation attempt.

    Received → Validated → CreditReserved → ProviderCalled
        → Succeeded
        → ContentRejected / ProviderFailed → Refunded

Validation failures and ledger denial happen before anything is charged
or called. Once a credit is reserved, every path that does not end in a
generated image refunds it exactly once. There is no retry: a failed
attempt is resubmitted by the client and costs a fresh credit.
"""

from __future__ import annotations

import asyncio

import structlog

from roomrevive.errors import (
    ContentRejectedError,
    ProviderError,
    ProviderTransientError,
    QuotaExceededError,
    RateLimitedError,
    RoomReviveError,
)
from roomrevive.handlers.classify import GenerationOutcome, classify_generation
from roomrevive.handlers.credit_gate import CreditGate
from roomrevive.handlers.prompts import build_redesign_prompt
from roomrevive.handlers.validation import validate_image, validate_style
from roomrevive.models.contracts import RedesignRequest, RedesignResult
from roomrevive.utils.gateway import AIGatewayClient, GatewayResult, GatewayUnavailableError

logger = structlog.get_logger()

DEFAULT_SUCCESS_MESSAGE = "Room redesigned successfully!"


def outcome_to_error(outcome: GenerationOutcome, result: GatewayResult) -> RoomReviveError:
    """Map a non-success outcome to the error returned to the client."""
    if outcome is GenerationOutcome.RATE_LIMITED:
        return RateLimitedError()
    if outcome is GenerationOutcome.QUOTA_EXCEEDED:
        return QuotaExceededError()
    if outcome is GenerationOutcome.CONTENT_REJECTED:
        return ContentRejectedError(details=result.text or None)
    if outcome is GenerationOutcome.TRANSIENT_FAILURE:
        return ProviderTransientError(
            details=(
                "The AI processed your image but couldn't generate the result. "
                "This is usually temporary."
            )
        )
    return ProviderError(details=f"AI gateway error: {result.status_code}")


class RedesignOrchestrator:
    def __init__(
        self,
        gateway: AIGatewayClient,
        gate: CreditGate,
        max_image_bytes: int,
    ) -> None:
        self.gateway = gateway
        self.gate = gate
        self.max_image_bytes = max_image_bytes

    async def redesign(self, token: str | None, request: RedesignRequest) -> RedesignResult:
        # Validated
        image = await asyncio.to_thread(validate_image, request.image, self.max_image_bytes)
        style = validate_style(request.style)
        user_id = await self.gate.authenticate(token)
        log = logger.bind(user_id=user_id, style=style)

        # CreditReserved
        await self.gate.reserve(user_id)

        try:
            prompt = build_redesign_prompt(style, request.customizations)
            log.info("redesign_provider_call", prompt_len=len(prompt))
            # ProviderCalled
            result = await self.gateway.generate_image(prompt, image)
        except GatewayUnavailableError as exc:
            await self.gate.refund(user_id, reason="gateway_unavailable")
            raise ProviderTransientError(details=str(exc)) from exc
        except BaseException:
            # Unexpected failure (or cancellation) after the credit was taken
            await self.gate.refund(user_id, reason="unexpected_error")
            raise

        outcome = classify_generation(result)
        log.info("redesign_classified", outcome=outcome.value, status=result.status_code)

        if outcome is not GenerationOutcome.SUCCEEDED:
            await self.gate.refund(user_id, reason=outcome.value)
            raise outcome_to_error(outcome, result)

        await self.gate.record_success(user_id)
        return RedesignResult(
            redesigned_image=result.image_url or "",
            message=result.text or DEFAULT_SUCCESS_MESSAGE,
        )
