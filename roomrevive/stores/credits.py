"""Usage-credit ledger.

Two backings behind one interface: PostgreSQL via SQLAlchemy (production)
and an in-process dict (development, tests). Both guarantee that
``try_consume_one`` never lets two concurrent calls spend the same credit
and that ``credits_remaining`` never goes below zero.

Every balance change is expressed as a relative update (``x = x - 1``,
``x = x + 1``) applied by the store itself. A balance read by the caller
is never written back.
"""

from __future__ import annotations

import asyncio
from collections import defaultdict
from dataclasses import dataclass
from typing import Protocol

import structlog
from sqlalchemy import select, update
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from roomrevive.models.contracts import Tier, UsageCredits
from roomrevive.models.db import UserCreditsRow

logger = structlog.get_logger()

# Tier → features that tier unlocks beyond the basics
_NON_FREE_FEATURES = frozenset({"hd-images", "no-watermark"})
_PRO_FEATURES = frozenset(
    {"save-designs", "compare-options", "commercial-use", "priority-processing"}
)
ALL_FEATURES = _NON_FREE_FEATURES | _PRO_FEATURES


def can_use_feature(tier: Tier, feature: str) -> bool:
    if feature in _NON_FREE_FEATURES:
        return tier != Tier.FREE
    if feature in _PRO_FEATURES:
        return tier == Tier.PRO
    return True


def unlocked_features(tier: Tier) -> list[str]:
    return sorted(f for f in ALL_FEATURES if can_use_feature(tier, f))


@dataclass(frozen=True)
class CreditDefaults:
    """Record created the first time an identity is seen."""

    tier: Tier = Tier.FREE
    credits: int = 3
    monthly_limit: int = 3


class CreditLedger(Protocol):
    async def get_or_create(self, user_id: str) -> UsageCredits: ...

    async def try_consume_one(self, user_id: str) -> bool: ...

    async def refund_one(self, user_id: str) -> None: ...

    async def increment_total_redesigns(self, user_id: str) -> None: ...


class InMemoryCreditLedger:
    """Per-identity ``asyncio.Lock`` makes check-and-decrement atomic."""

    def __init__(self, defaults: CreditDefaults | None = None) -> None:
        self.defaults = defaults or CreditDefaults()
        self._records: dict[str, UsageCredits] = {}
        self._locks: defaultdict[str, asyncio.Lock] = defaultdict(asyncio.Lock)

    def _ensure(self, user_id: str) -> UsageCredits:
        record = self._records.get(user_id)
        if record is None:
            record = UsageCredits(
                user_id=user_id,
                tier=self.defaults.tier,
                credits_remaining=self.defaults.credits,
                credits_monthly_limit=self.defaults.monthly_limit,
            )
            self._records[user_id] = record
            logger.info("credits_record_created", user_id=user_id, tier=record.tier)
        return record

    def put(self, credits: UsageCredits) -> None:
        """Seed or replace a record (billing sync, tests)."""
        self._records[credits.user_id] = credits.model_copy()

    async def get_or_create(self, user_id: str) -> UsageCredits:
        async with self._locks[user_id]:
            return self._ensure(user_id).model_copy()

    async def try_consume_one(self, user_id: str) -> bool:
        async with self._locks[user_id]:
            record = self._ensure(user_id)
            if record.is_unlimited:
                return True
            if record.credits_remaining <= 0:
                return False
            record.credits_remaining -= 1
            return True

    async def refund_one(self, user_id: str) -> None:
        async with self._locks[user_id]:
            record = self._ensure(user_id)
            if record.is_unlimited:
                return
            # Uncapped: top-ups and downgrades can leave the balance above the limit
            record.credits_remaining += 1

    async def increment_total_redesigns(self, user_id: str) -> None:
        async with self._locks[user_id]:
            self._ensure(user_id).total_redesigns += 1


def _to_contract(row: UserCreditsRow) -> UsageCredits:
    return UsageCredits(
        user_id=row.user_id,
        tier=Tier(row.tier),
        credits_remaining=row.credits_remaining,
        credits_monthly_limit=row.credits_monthly_limit,
        total_redesigns=row.total_redesigns,
        subscription_started_at=row.subscription_started_at,
        subscription_ends_at=row.subscription_ends_at,
    )


class SqlCreditLedger:
    """PostgreSQL ledger. Each mutation is one conditional UPDATE."""

    def __init__(
        self,
        sessions: async_sessionmaker[AsyncSession],
        defaults: CreditDefaults | None = None,
    ) -> None:
        self._sessions = sessions
        self.defaults = defaults or CreditDefaults()

    async def _ensure_row(self, session: AsyncSession, user_id: str) -> None:
        # Concurrent first requests race here; ON CONFLICT keeps one row.
        stmt = (
            pg_insert(UserCreditsRow)
            .values(
                user_id=user_id,
                tier=self.defaults.tier.value,
                credits_remaining=self.defaults.credits,
                credits_monthly_limit=self.defaults.monthly_limit,
                total_redesigns=0,
            )
            .on_conflict_do_nothing(index_elements=[UserCreditsRow.user_id])
        )
        await session.execute(stmt)

    async def get_or_create(self, user_id: str) -> UsageCredits:
        async with self._sessions() as session, session.begin():
            await self._ensure_row(session, user_id)
            row = (
                await session.execute(
                    select(UserCreditsRow).where(UserCreditsRow.user_id == user_id)
                )
            ).scalar_one()
            return _to_contract(row)

    async def try_consume_one(self, user_id: str) -> bool:
        async with self._sessions() as session, session.begin():
            await self._ensure_row(session, user_id)
            tier = (
                await session.execute(
                    select(UserCreditsRow.tier).where(UserCreditsRow.user_id == user_id)
                )
            ).scalar_one()
            if tier == Tier.PRO.value:
                return True

            remaining = (
                await session.execute(
                    update(UserCreditsRow)
                    .where(
                        UserCreditsRow.user_id == user_id,
                        UserCreditsRow.credits_remaining > 0,
                    )
                    .values(credits_remaining=UserCreditsRow.credits_remaining - 1)
                    .returning(UserCreditsRow.credits_remaining)
                    .execution_options(synchronize_session=False)
                )
            ).scalar_one_or_none()
            return remaining is not None

    async def refund_one(self, user_id: str) -> None:
        async with self._sessions() as session, session.begin():
            await session.execute(
                update(UserCreditsRow)
                .where(
                    UserCreditsRow.user_id == user_id,
                    UserCreditsRow.tier != Tier.PRO.value,
                )
                .values(credits_remaining=UserCreditsRow.credits_remaining + 1)
                .execution_options(synchronize_session=False)
            )

    async def increment_total_redesigns(self, user_id: str) -> None:
        async with self._sessions() as session, session.begin():
            await session.execute(
                update(UserCreditsRow)
                .where(UserCreditsRow.user_id == user_id)
                .values(total_redesigns=UserCreditsRow.total_redesigns + 1)
                .execution_options(synchronize_session=False)
            )
