"""
Room registry: maps short room codes to round engines.
"""

import logging
import random
import threading
from typing import Callable, Dict, Iterator, Optional, Tuple

from .constants import ROOM_CODE_CHARS, ROOM_CODE_LENGTH
from .engine import RoundEngine
from .errors import GameError

logger = logging.getLogger(__name__)

EngineFactory = Callable[[str], RoundEngine]


def generate_room_code(
    length: int = ROOM_CODE_LENGTH,
    chars: str = ROOM_CODE_CHARS,
    rng: Optional[random.Random] = None,
) -> str:
    rng = rng or random
    return ''.join(rng.choice(chars) for _ in range(length))


class RoomRegistry:
    """Owns every live room. Construct one per process and pass it around."""

    def __init__(
        self,
        engine_factory: Optional[EngineFactory] = None,
        code_factory: Callable[[], str] = generate_room_code,
    ):
        self.engine_factory = engine_factory or RoundEngine
        self.code_factory = code_factory
        self.rooms: Dict[str, RoundEngine] = {}
        self._lock = threading.Lock()

    def create_room(self, creator_name: str, player_id: str) -> Tuple[str, RoundEngine]:
        """Create a room with a fresh code and the creator as its first player."""
        with self._lock:
            room_code = self.code_factory().upper()
            while room_code in self.rooms:
                room_code = self.code_factory().upper()

            engine = self.engine_factory(room_code)
            result = engine.add_player(player_id, creator_name)
            if not result.success:
                engine.close()
                raise GameError(result.code, result.message)
            self.rooms[room_code] = engine

        logger.info(f"Room {room_code} created by {creator_name} ({len(self.rooms)} live rooms)")
        return room_code, engine

    def get_room(self, room_code: Optional[str]) -> Optional[RoundEngine]:
        if not room_code:
            return None
        return self.rooms.get(room_code.upper())

    def remove_room(self, room_code: Optional[str]):
        if not room_code:
            return
        with self._lock:
            engine = self.rooms.pop(room_code.upper(), None)
        if engine is not None:
            engine.close()
            logger.info(f"Room {room_code} removed")

    def __contains__(self, room_code: str) -> bool:
        return self.get_room(room_code) is not None

    def __len__(self) -> int:
        return len(self.rooms)

    def __iter__(self) -> Iterator[str]:
        return iter(list(self.rooms))
