"""Redesign history: saved before/after pairs, scoped per user.

The redesign handler does not write here; the web client saves results it
wants to keep. Swap between the SQL and in-memory backings with
``settings.use_database`` without touching the handlers.
"""

from __future__ import annotations

import uuid
from datetime import UTC, datetime
from typing import Protocol

import structlog
from sqlalchemy import delete, select, update
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from roomrevive.models.contracts import RedesignHistoryItem, SaveRedesignRequest
from roomrevive.models.db import RedesignHistoryRow

logger = structlog.get_logger()

DEFAULT_LIMIT = 20


class HistoryStore(Protocol):
    async def save(self, user_id: str, item: SaveRedesignRequest) -> RedesignHistoryItem: ...

    async def list(
        self, user_id: str, *, limit: int = DEFAULT_LIMIT, favorites_only: bool = False
    ) -> list[RedesignHistoryItem]: ...

    async def set_favorite(self, user_id: str, item_id: uuid.UUID, is_favorite: bool) -> bool: ...

    async def delete(self, user_id: str, item_id: uuid.UUID) -> bool: ...


class InMemoryHistoryStore:
    def __init__(self) -> None:
        self._items: dict[uuid.UUID, RedesignHistoryItem] = {}

    async def save(self, user_id: str, item: SaveRedesignRequest) -> RedesignHistoryItem:
        now = datetime.now(UTC)
        record = RedesignHistoryItem(
            id=uuid.uuid4(),
            user_id=user_id,
            original_image_url=item.original_image_url,
            redesigned_image_url=item.redesigned_image_url,
            style=item.style,
            customizations=dict(item.customizations),
            is_favorite=item.is_favorite,
            created_at=now,
            updated_at=now,
        )
        self._items[record.id] = record
        return record.model_copy()

    async def list(
        self, user_id: str, *, limit: int = DEFAULT_LIMIT, favorites_only: bool = False
    ) -> list[RedesignHistoryItem]:
        mine = [
            i
            for i in self._items.values()
            if i.user_id == user_id and (i.is_favorite or not favorites_only)
        ]
        mine.sort(key=lambda i: i.created_at, reverse=True)
        return [i.model_copy() for i in mine[:limit]]

    async def set_favorite(self, user_id: str, item_id: uuid.UUID, is_favorite: bool) -> bool:
        item = self._items.get(item_id)
        if item is None or item.user_id != user_id:
            return False
        item.is_favorite = is_favorite
        item.updated_at = datetime.now(UTC)
        return True

    async def delete(self, user_id: str, item_id: uuid.UUID) -> bool:
        item = self._items.get(item_id)
        if item is None or item.user_id != user_id:
            return False
        del self._items[item_id]
        return True


def _to_contract(row: RedesignHistoryRow) -> RedesignHistoryItem:
    return RedesignHistoryItem(
        id=row.id,
        user_id=row.user_id,
        original_image_url=row.original_image_url,
        redesigned_image_url=row.redesigned_image_url,
        style=row.style,
        customizations=row.customizations or {},
        is_favorite=row.is_favorite,
        created_at=row.created_at,
        updated_at=row.updated_at,
    )


class SqlHistoryStore:
    def __init__(self, sessions: async_sessionmaker[AsyncSession]) -> None:
        self._sessions = sessions

    async def save(self, user_id: str, item: SaveRedesignRequest) -> RedesignHistoryItem:
        async with self._sessions() as session, session.begin():
            row = RedesignHistoryRow(
                user_id=user_id,
                original_image_url=item.original_image_url,
                redesigned_image_url=item.redesigned_image_url,
                style=item.style,
                customizations=dict(item.customizations),
                is_favorite=item.is_favorite,
            )
            session.add(row)
            await session.flush()
            await session.refresh(row)
            logger.info("history_saved", user_id=user_id, history_id=str(row.id))
            return _to_contract(row)

    async def list(
        self, user_id: str, *, limit: int = DEFAULT_LIMIT, favorites_only: bool = False
    ) -> list[RedesignHistoryItem]:
        stmt = select(RedesignHistoryRow).where(RedesignHistoryRow.user_id == user_id)
        if favorites_only:
            stmt = stmt.where(RedesignHistoryRow.is_favorite.is_(True))
        stmt = stmt.order_by(RedesignHistoryRow.created_at.desc()).limit(limit)
        async with self._sessions() as session:
            rows = (await session.execute(stmt)).scalars().all()
        return [_to_contract(r) for r in rows]

    async def set_favorite(self, user_id: str, item_id: uuid.UUID, is_favorite: bool) -> bool:
        async with self._sessions() as session, session.begin():
            result = await session.execute(
                update(RedesignHistoryRow)
                .where(RedesignHistoryRow.id == item_id, RedesignHistoryRow.user_id == user_id)
                .values(is_favorite=is_favorite)
                .execution_options(synchronize_session=False)
            )
            return result.rowcount > 0

    async def delete(self, user_id: str, item_id: uuid.UUID) -> bool:
        async with self._sessions() as session, session.begin():
            result = await session.execute(
                delete(RedesignHistoryRow)
                .where(RedesignHistoryRow.id == item_id, RedesignHistoryRow.user_id == user_id)
                .execution_options(synchronize_session=False)
            )
            return result.rowcount > 0
