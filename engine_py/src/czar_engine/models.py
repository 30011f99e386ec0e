"""Game models and data structures"""

import uuid
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from .constants import DEFAULT_TIMER_SECONDS, PHASE_LOBBY, SWAPS_PER_ROUND


@dataclass(frozen=True)
class Card:
    id: str
    text: str
    pick: Optional[int] = None  # prompt cards only

    def to_dict(self) -> Dict[str, Any]:
        data = {'id': self.id, 'text': self.text}
        if self.pick is not None:
            data['pick'] = self.pick
        return data


@dataclass
class Pack:
    """A named collection of raw prompt and answer card records."""
    id: str
    name: str
    prompt_cards: List[Dict[str, Any]] = field(default_factory=list)
    answer_cards: List[Dict[str, Any]] = field(default_factory=list)
    is_custom: bool = False


@dataclass
class Player:
    id: str  # connection handle, replaced on reconnect
    name: str
    color: str
    key: str = field(default_factory=lambda: uuid.uuid4().hex)  # permanent within the room
    hand: List[Card] = field(default_factory=list)
    score: int = 0
    connected: bool = True
    swaps_remaining: int = SWAPS_PER_ROUND

    def has_card(self, card_id: str) -> bool:
        return any(card.id == card_id for card in self.hand)


@dataclass
class Submission:
    player_key: str
    player_id: str  # connection id of the submitter, kept in step with reconnects
    cards: List[Card] = field(default_factory=list)
    auto: bool = False


@dataclass
class TimerState:
    enabled: bool = True
    duration_seconds: int = DEFAULT_TIMER_SECONDS
    remaining_seconds: int = DEFAULT_TIMER_SECONDS
    running: bool = False

    def reset(self):
        self.running = False
        self.remaining_seconds = self.duration_seconds


@dataclass
class RoomState:
    room_code: str
    phase: str = PHASE_LOBBY  # lobby|playing|judging|roundEnd|gameOver
    players: List[Player] = field(default_factory=list)  # join order
    current_round: int = 0
    current_prompt_card: Optional[Card] = None
    czar_key: Optional[str] = None
    submissions: Dict[str, Submission] = field(default_factory=dict)  # player key -> submission
    round_winner_id: Optional[str] = None
    selected_pack_ids: List[str] = field(default_factory=list)
    prompt_deck: List[Card] = field(default_factory=list)
    prompt_discard: List[Card] = field(default_factory=list)
    answer_deck: List[Card] = field(default_factory=list)
    discard_pile: List[Card] = field(default_factory=list)
    prompt_card_traded: bool = False
    timer: TimerState = field(default_factory=TimerState)
    final_winner: Optional[Dict[str, Any]] = None
    final_leaderboard: List[Dict[str, Any]] = field(default_factory=list)

    @property
    def game_started(self) -> bool:
        return self.phase != PHASE_LOBBY

    def find_player(self, player_id: Optional[str]) -> Optional[Player]:
        for player in self.players:
            if player.id == player_id:
                return player
        return None

    def find_player_by_name(self, name: str) -> Optional[Player]:
        for player in self.players:
            if player.name == name:
                return player
        return None

    def find_player_by_key(self, key: Optional[str]) -> Optional[Player]:
        for player in self.players:
            if player.key == key:
                return player
        return None

    @property
    def czar(self) -> Optional[Player]:
        return self.find_player_by_key(self.czar_key)

    @property
    def current_czar_id(self) -> Optional[str]:
        czar = self.czar
        return czar.id if czar else None

    def submission_for(self, player_id: Optional[str]) -> Optional[Submission]:
        for submission in self.submissions.values():
            if submission.player_id == player_id:
                return submission
        return None
