"""
Disconnect grace periods.

A dropped connection only marks the player disconnected. Cleanup runs after a
grace window unless a player with the same name rejoins the room first.
"""

import logging
from typing import Callable, Dict, Optional, Tuple

from .constants import DISCONNECT_GRACE_SECONDS
from .engine import ActionResult
from .errors import PLAYER_NOT_FOUND, ROOM_NOT_FOUND
from .rooms import RoomRegistry
from .scheduling import AsyncioScheduler, Cancellable, Scheduler

logger = logging.getLogger(__name__)

GraceKey = Tuple[str, str]
ExpiryListener = Callable[[str, ActionResult], None]


class PendingGrace:
    def __init__(self, player_id: str):
        self.player_id = player_id
        self.handle: Optional[Cancellable] = None

    def cancel(self):
        if self.handle is not None:
            self.handle.cancel()
            self.handle = None


class DisconnectGraceCoordinator:
    """Holds one deferred cleanup per (room code, player name)."""

    def __init__(
        self,
        registry: RoomRegistry,
        scheduler: Optional[Scheduler] = None,
        grace_seconds: float = DISCONNECT_GRACE_SECONDS,
        on_expired: Optional[ExpiryListener] = None,
    ):
        self.registry = registry
        self.scheduler = scheduler or AsyncioScheduler()
        self.grace_seconds = grace_seconds
        self.on_expired = on_expired
        self.pending: Dict[GraceKey, PendingGrace] = {}

    @staticmethod
    def _key(room_code: str, name: str) -> GraceKey:
        return room_code.upper(), name.strip()

    def is_pending(self, room_code: str, name: str) -> bool:
        return self._key(room_code, name) in self.pending

    def cancel(self, room_code: str, name: str) -> bool:
        entry = self.pending.pop(self._key(room_code, name), None)
        if entry is None:
            return False
        entry.cancel()
        logger.info(f"[{room_code}] Grace period cancelled for {name}")
        return True

    def join(self, room_code: str, player_id: str, name: str) -> ActionResult:
        """Join a room; a successful reconnection cancels the pending cleanup for that name."""
        engine = self.registry.get_room(room_code)
        if engine is None:
            return ActionResult.fail(ROOM_NOT_FOUND, "Room not found")
        result = engine.add_player(player_id, name)
        if result.success and result.extra.get('reconnected'):
            self.cancel(engine.room_code, name.strip())
        return result

    def player_disconnected(self, room_code: str, player_id: str) -> ActionResult:
        engine = self.registry.get_room(room_code)
        if engine is None:
            return ActionResult.fail(ROOM_NOT_FOUND, "Room not found")

        # a stale connection whose player already reconnected is not tracked any more
        result = engine.mark_disconnected(player_id)
        if not result.success:
            return result

        name = result.extra['name']
        key = self._key(engine.room_code, name)
        previous = self.pending.pop(key, None)
        if previous is not None:
            previous.cancel()

        entry = PendingGrace(player_id)
        entry.handle = self.scheduler.call_later(
            self.grace_seconds, lambda: self._expire(key, entry)
        )
        self.pending[key] = entry
        logger.info(f"[{engine.room_code}] {name} disconnected, {self.grace_seconds}s grace period started")
        return result

    def player_left(self, room_code: str, player_id: str) -> ActionResult:
        """Explicit leave: remove the player now and drop the room once it is empty."""
        engine = self.registry.get_room(room_code)
        if engine is None:
            return ActionResult.fail(ROOM_NOT_FOUND, "Room not found")

        player = engine.state.find_player(player_id)
        if player is None:
            return ActionResult.fail(PLAYER_NOT_FOUND, "Player not found")
        self.cancel(engine.room_code, player.name)

        result = engine.remove_player(player_id)
        if result.success and result.extra.get('remaining_players') == 0:
            self.registry.remove_room(engine.room_code)
        return result

    def close(self):
        for entry in self.pending.values():
            entry.cancel()
        self.pending.clear()

    def _expire(self, key: GraceKey, entry: PendingGrace):
        if self.pending.get(key) is not entry:
            return
        del self.pending[key]

        room_code, name = key
        engine = self.registry.get_room(room_code)
        if engine is None:
            return

        result = engine.expire_disconnected(name)
        if not result.success or not result.extra.get('expired'):
            return

        logger.info(f"[{room_code}] Grace period expired for {name}")
        if result.extra.get('all_disconnected'):
            logger.info(f"[{room_code}] Every player is gone, removing room")
            self.registry.remove_room(room_code)

        if self.on_expired is not None:
            self.on_expired(room_code, result)
