"""Credit ledger gate: identity check plus one-credit reservation."""

from __future__ import annotations

import structlog

from roomrevive.errors import CreditsExhaustedError
from roomrevive.handlers.validation import require_token
from roomrevive.stores.credits import CreditLedger
from roomrevive.utils.auth import IdentityResolver

logger = structlog.get_logger()


class CreditGate:
    def __init__(self, identity: IdentityResolver, ledger: CreditLedger) -> None:
        self.identity = identity
        self.ledger = ledger

    async def authenticate(self, token: str | None) -> str:
        """Resolve the caller, raising UnauthorizedError on a missing/bad token.

        The identity is bound into the logging context for the rest of the
        request, so boundary error logs carry it.
        """
        user_id = await self.identity.resolve(require_token(token))
        structlog.contextvars.bind_contextvars(user_id=user_id)
        return user_id

    async def reserve(self, user_id: str) -> None:
        """Consume one credit or raise CreditsExhaustedError (no mutation on denial)."""
        if not await self.ledger.try_consume_one(user_id):
            logger.info("credit_reservation_denied", user_id=user_id)
            raise CreditsExhaustedError()
        logger.info("credit_reserved", user_id=user_id)

    async def refund(self, user_id: str, reason: str) -> None:
        """Return a reserved credit. Never raises; the original failure wins."""
        try:
            await self.ledger.refund_one(user_id)
        except Exception:
            logger.error("credit_refund_failed", user_id=user_id, reason=reason, exc_info=True)
            return
        logger.info("credit_refunded", user_id=user_id, reason=reason)

    async def record_success(self, user_id: str) -> None:
        try:
            await self.ledger.increment_total_redesigns(user_id)
        except Exception:
            # The image is already generated and paid for; don't fail the request
            logger.error("total_redesigns_increment_failed", user_id=user_id, exc_info=True)
