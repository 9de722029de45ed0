"""
Tests for the in-memory room store.
"""

import asyncio

import pytest

from lexio_engine.engine import create_room
from lexio_engine.store import RoomStore, new_room_id


def test_room_ids_are_short_and_upper_case():
    room_id = new_room_id()
    assert len(room_id) == 6
    assert room_id == room_id.upper()


def test_save_get_delete():
    store = RoomStore()
    store.save(create_room("ROOM01"))

    assert "ROOM01" in store
    assert len(store) == 1
    assert store.get("ROOM01").id == "ROOM01"

    store.delete("ROOM01")
    assert store.get("ROOM01") is None
    assert store.room_ids() == []


@pytest.mark.asyncio
async def test_room_lock_serializes_transitions():
    store = RoomStore()
    store.save(create_room("ROOM01"))
    order = []

    async def bump(tag):
        async with store.guard("ROOM01"):
            state = store.get("ROOM01")
            order.append(f"{tag}-start")
            await asyncio.sleep(0.01)
            state.version += 1
            store.save(state)
            order.append(f"{tag}-end")

    await asyncio.gather(bump("a"), bump("b"))

    assert store.get("ROOM01").version == 2
    assert order == ["a-start", "a-end", "b-start", "b-end"]


def test_delete_drops_an_idle_lock():
    store = RoomStore()
    store.save(create_room("ROOM01"))
    lock = store.lock("ROOM01")

    store.delete("ROOM01")
    assert store.lock("ROOM01") is not lock


@pytest.mark.asyncio
async def test_lock_held_during_delete_survives_until_release():
    store = RoomStore()
    store.save(create_room("ROOM01"))
    lock = store.lock("ROOM01")

    async with store.guard("ROOM01"):
        store.delete("ROOM01")
        assert store.lock("ROOM01") is lock
        assert lock.locked()

    assert not lock.locked()
    assert store.lock("ROOM01") is not lock


@pytest.mark.asyncio
async def test_guard_keeps_the_lock_of_a_live_room():
    store = RoomStore()
    store.save(create_room("ROOM01"))
    lock = store.lock("ROOM01")

    async with store.guard("ROOM01"):
        pass

    assert store.lock("ROOM01") is lock
