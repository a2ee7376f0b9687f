"""Tests for the in-memory redesign history store."""

import asyncio
import uuid

import pytest

from roomrevive.models.contracts import SaveRedesignRequest
from roomrevive.stores.history import InMemoryHistoryStore


def _item(style: str = "modern", favorite: bool = False) -> SaveRedesignRequest:
    return SaveRedesignRequest(
        original_image_url="https://cdn.test/before.jpg",
        redesigned_image_url="data:image/png;base64,AAAA",
        style=style,
        customizations={"wallColor": "sage"},
        is_favorite=favorite,
    )


@pytest.fixture
def store() -> InMemoryHistoryStore:
    return InMemoryHistoryStore()


class TestSaveAndList:
    @pytest.mark.asyncio
    async def test_save_assigns_id_and_timestamps(self, store):
        """Saving fills in id, owner and matching timestamps."""
        saved = await store.save("u1", _item())
        assert isinstance(saved.id, uuid.UUID)
        assert saved.user_id == "u1"
        assert saved.created_at == saved.updated_at
        assert saved.customizations == {"wallColor": "sage"}

    @pytest.mark.asyncio
    async def test_newest_first(self, store):
        """Listing is newest first."""
        for style in ("modern", "coastal", "japanese"):
            await store.save("u1", _item(style))
            await asyncio.sleep(0.001)
        items = await store.list("u1")
        assert [i.style for i in items] == ["japanese", "coastal", "modern"]

    @pytest.mark.asyncio
    async def test_limit(self, store):
        """Limit caps the page size."""
        for _ in range(5):
            await store.save("u1", _item())
        assert len(await store.list("u1", limit=2)) == 2

    @pytest.mark.asyncio
    async def test_scoped_per_user(self, store):
        """One user never sees another user's history."""
        await store.save("u1", _item())
        assert await store.list("u2") == []

    @pytest.mark.asyncio
    async def test_favorites_only(self, store):
        """Favorites filter drops the rest."""
        await store.save("u1", _item("modern"))
        await store.save("u1", _item("coastal", favorite=True))
        items = await store.list("u1", favorites_only=True)
        assert [i.style for i in items] == ["coastal"]


class TestFavoriteAndDelete:
    @pytest.mark.asyncio
    async def test_set_favorite(self, store):
        """Favoriting flips the flag and touches updated_at."""
        saved = await store.save("u1", _item())
        assert await store.set_favorite("u1", saved.id, True)
        (item,) = await store.list("u1")
        assert item.is_favorite
        assert item.updated_at >= item.created_at

    @pytest.mark.asyncio
    async def test_other_users_item_is_not_found(self, store):
        """Another user's item looks missing for both update and delete."""
        saved = await store.save("u1", _item())
        assert not await store.set_favorite("u2", saved.id, True)
        assert not await store.delete("u2", saved.id)
        assert len(await store.list("u1")) == 1

    @pytest.mark.asyncio
    async def test_delete(self, store):
        """Delete removes the item once; a second delete finds nothing."""
        saved = await store.save("u1", _item())
        assert await store.delete("u1", saved.id)
        assert await store.list("u1") == []
        assert not await store.delete("u1", saved.id)

    @pytest.mark.asyncio
    async def test_unknown_id(self, store):
        """Unknown ids are reported as not found."""
        assert not await store.set_favorite("u1", uuid.uuid4(), True)
