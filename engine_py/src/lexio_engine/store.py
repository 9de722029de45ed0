"""
In-memory room repository.

The engine never touches this registry; the server layer owns a RoomStore and
hands individual GameState objects to the engine.
"""

import asyncio
import logging
import uuid
from collections import defaultdict
from contextlib import asynccontextmanager
from typing import Dict, List, Optional

from .models import GameState

logger = logging.getLogger(__name__)


def new_room_id() -> str:
    return uuid.uuid4().hex[:6].upper()


class RoomStore:
    """Holds one authoritative GameState per room and one lock per room."""

    def __init__(self):
        self._rooms: Dict[str, GameState] = {}
        self._locks: Dict[str, asyncio.Lock] = defaultdict(asyncio.Lock)

    def lock(self, room_id: str) -> asyncio.Lock:
        """Lock serializing every transition applied to room_id."""
        return self._locks[room_id]

    @asynccontextmanager
    async def guard(self, room_id: str):
        """Hold the room lock; a deleted room's lock is pruned on the way out."""
        try:
            async with self.lock(room_id):
                yield
        finally:
            self.prune_lock(room_id)

    def get(self, room_id: str) -> Optional[GameState]:
        return self._rooms.get(room_id)

    def save(self, state: GameState):
        self._rooms[state.id] = state

    def delete(self, room_id: str):
        """Drop a room. A lock still held stays until prune_lock runs after its release."""
        self._rooms.pop(room_id, None)
        self.prune_lock(room_id)
        logger.info(f"Room {room_id} removed")

    def prune_lock(self, room_id: str):
        """Forget the lock of a deleted room once nobody holds it."""
        lock = self._locks.get(room_id)
        if lock is not None and room_id not in self._rooms and not lock.locked():
            del self._locks[room_id]

    def room_ids(self) -> List[str]:
        return list(self._rooms)

    def __contains__(self, room_id: str) -> bool:
        return room_id in self._rooms

    def __len__(self) -> int:
        return len(self._rooms)
