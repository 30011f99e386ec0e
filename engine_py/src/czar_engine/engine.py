"""Round engine: per-room game state and phase transitions"""

import logging
import threading
from typing import Any, Callable, Dict, List, Optional, Sequence

from pydantic import ValidationError

from .constants import (
    DEFAULT_PACK_ID, PHASE_GAME_OVER, PHASE_JUDGING, PHASE_LOBBY, PHASE_PLAYING,
    PHASE_ROUND_END, TIMER_EXPIRED, TIMER_TICK, TIMER_TICK_SECONDS, color_for_index
)
from .errors import (
    ALREADY_JOINED, GAME_ALREADY_STARTED, GAME_NOT_STARTED, GAME_OVER, INVALID_NAME,
    INVALID_SETTINGS, NOT_ENOUGH_PLAYERS, NOT_ROUND_END, PLAYER_NOT_FOUND, ROOM_FULL,
    GameError
)
from .models import Card, Player, RoomState, Submission, TimerState
from .packs import StaticPackSource, list_available_packs
from .ranking import build_leaderboard, reached_winning_score, top_entry
from .rules import RuleConfig, default_rules
from .scheduling import AsyncioScheduler, Scheduler
from .serialization import sanitize_state, serialize_cards, serialize_submissions
from .shuffle import Shuffler, build_decks, deal, shuffle_deck
from .validate import (
    ValidationResult, validate_prompt_trade, validate_submission, validate_swap,
    validate_timer_toggle, validate_winner_selection
)

logger = logging.getLogger(__name__)

TimerListener = Callable[['RoundEngine', str], None]


class ActionResult:
    """Outcome of an engine operation, shaped for the transport layer."""

    def __init__(
        self,
        success: bool,
        message: Optional[str] = None,
        code: Optional[str] = None,
        **extra: Any
    ):
        self.success = success
        self.message = message
        self.code = code
        self.extra = extra

    @classmethod
    def ok(cls, message: Optional[str] = None, **extra: Any) -> 'ActionResult':
        return cls(True, message, None, **extra)

    @classmethod
    def fail(cls, code: str, message: str) -> 'ActionResult':
        return cls(False, message, code)

    @classmethod
    def from_validation(cls, validation: ValidationResult) -> 'ActionResult':
        return cls.fail(validation.error_code, validation.error_message)

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {'success': self.success}
        if self.message is not None:
            data['message'] = self.message
        if self.code is not None:
            data['code'] = self.code
        data.update(self.extra)
        return data

    def __repr__(self):
        return f"ActionResult({self.to_dict()!r})"


class RoundEngine:
    """
    Owns one room's game: membership, dealing, submissions, judging, scoring,
    the optional round countdown, swaps and prompt trades.

    Players are addressed by their current connection id. Each player also has a
    permanent key, so the Czar role and submissions follow a player across
    reconnections.
    """

    def __init__(
        self,
        room_code: str,
        rules: Optional[RuleConfig] = None,
        pack_source=None,
        scheduler: Optional[Scheduler] = None,
        shuffle: Shuffler = shuffle_deck,
        on_timer_event: Optional[TimerListener] = None,
    ):
        self.rules = rules or default_rules
        self.pack_source = pack_source or StaticPackSource()
        self.scheduler = scheduler or AsyncioScheduler()
        self.on_timer_event = on_timer_event
        self._shuffle = shuffle
        self._lock = threading.RLock()
        self._timer_handle = None
        self._name_colors: Dict[str, str] = {}
        self.state = RoomState(
            room_code=room_code,
            selected_pack_ids=[DEFAULT_PACK_ID],
            timer=TimerState(
                enabled=self.rules.timer_enabled,
                duration_seconds=self.rules.timer_duration,
                remaining_seconds=self.rules.timer_duration,
            ),
        )

    # Read-only helpers

    @property
    def room_code(self) -> str:
        return self.state.room_code

    @property
    def phase(self) -> str:
        return self.state.phase

    @property
    def players(self) -> List[Player]:
        return self.state.players

    @property
    def game_started(self) -> bool:
        return self.state.game_started

    @property
    def current_czar_id(self) -> Optional[str]:
        return self.state.current_czar_id

    @property
    def timer(self) -> TimerState:
        return self.state.timer

    # Membership

    def add_player(self, player_id: str, name: str) -> ActionResult:
        """Register a player, or rebind an existing name to a new connection."""
        with self._lock:
            state = self.state
            name = (name or '').strip()
            if not name:
                return ActionResult.fail(INVALID_NAME, "Player name is required")

            if state.find_player(player_id):
                return ActionResult.fail(ALREADY_JOINED, "Already joined")

            existing = state.find_player_by_name(name)
            if existing:
                old_id = existing.id
                existing.id = player_id
                existing.connected = True
                submission = state.submissions.get(existing.key)
                if submission:
                    submission.player_id = player_id
                if state.round_winner_id is not None and state.round_winner_id == old_id:
                    state.round_winner_id = player_id
                logger.info(f"[{state.room_code}] {name} reconnected ({old_id} -> {player_id})")
                return ActionResult.ok("Reconnected", reconnected=True, player_id=player_id)

            if len(state.players) >= self.rules.max_players:
                return ActionResult.fail(ROOM_FULL, "Room is full")

            player = Player(
                id=player_id,
                name=name,
                color=self._color_for(name),
                swaps_remaining=self.rules.swaps_per_round,
            )
            state.players.append(player)

            if state.game_started and state.phase != PHASE_GAME_OVER:
                player.hand = self._deal(self.rules.hand_size)

            logger.info(f"[{state.room_code}] {name} joined ({len(state.players)} players)")
            return ActionResult.ok("Joined", reconnected=False, player_id=player_id)

    def remove_player(self, player_id: str) -> ActionResult:
        """Delete a player outright (explicit leave)."""
        with self._lock:
            state = self.state
            player = state.find_player(player_id)
            if player is None:
                return ActionResult.fail(PLAYER_NOT_FOUND, "Player not found")

            was_czar = player.key == state.czar_key
            state.players.remove(player)
            state.discard_pile.extend(player.hand)
            player.hand = []

            if player.key in state.submissions and state.phase in (PHASE_PLAYING, PHASE_JUDGING):
                if not self.rules.keep_departed_submissions:
                    del state.submissions[player.key]

            if was_czar:
                if not state.players:
                    state.czar_key = None
                    self._stop_timer()
                elif state.game_started and state.phase != PHASE_GAME_OVER:
                    connected = [p for p in state.players if p.connected]
                    self._install_czar(connected[0] if connected else state.players[0])

            self._after_membership_change()
            logger.info(f"[{state.room_code}] {player.name} left ({len(state.players)} players)")
            return ActionResult.ok(
                "Left",
                name=player.name,
                was_czar=was_czar,
                remaining_players=len(state.players),
            )

    def mark_disconnected(self, player_id: str) -> ActionResult:
        """Flag a player as disconnected without removing them."""
        with self._lock:
            player = self.state.find_player(player_id)
            if player is None:
                return ActionResult.fail(PLAYER_NOT_FOUND, "Player not found")
            player.connected = False
            self._after_membership_change()
            logger.info(f"[{self.room_code}] {player.name} disconnected")
            return ActionResult.ok("Disconnected", name=player.name)

    def expire_disconnected(self, name: str) -> ActionResult:
        """
        Finish a disconnect once its grace period ran out.

        Does nothing if the player reconnected in the meantime. Otherwise hands the
        Czar role to the first connected player if the departed player held it.
        """
        with self._lock:
            state = self.state
            player = state.find_player_by_name(name)
            if player is None:
                return ActionResult.fail(PLAYER_NOT_FOUND, "Player not found")

            if player.connected:
                return ActionResult.ok("Player reconnected", expired=False, all_disconnected=False)

            czar_reassigned = None
            if player.key == state.czar_key and state.game_started and state.phase != PHASE_GAME_OVER:
                connected = [p for p in state.players if p.connected]
                if connected:
                    self._install_czar(connected[0])
                    czar_reassigned = connected[0].id
                    logger.info(f"[{state.room_code}] Reassigned Czar from {name} to {connected[0].name}")
                    self._after_membership_change()

            all_disconnected = all(not p.connected for p in state.players)
            if all_disconnected:
                self._stop_timer()
            return ActionResult.ok(
                "Grace period expired",
                expired=True,
                czar_reassigned=czar_reassigned,
                all_disconnected=all_disconnected,
            )

    # Lobby

    def update_settings(
        self,
        packs: Optional[Sequence[str]] = None,
        timer_enabled: Optional[bool] = None,
        timer_duration: Optional[int] = None,
    ) -> ActionResult:
        with self._lock:
            state = self.state
            if timer_duration is not None:
                try:
                    RuleConfig(**{**self.rules.model_dump(), 'timer_duration': timer_duration})
                except ValidationError:
                    return ActionResult.fail(INVALID_SETTINGS, f"Invalid timer duration: {timer_duration}")

            if packs is not None:
                state.selected_pack_ids = [str(p) for p in packs]
            if timer_enabled is not None:
                state.timer.enabled = bool(timer_enabled)
                if not state.timer.enabled:
                    self._stop_timer()
            if timer_duration is not None:
                state.timer.duration_seconds = int(timer_duration)
                if state.phase == PHASE_LOBBY:
                    state.timer.remaining_seconds = int(timer_duration)
            return ActionResult.ok("Settings updated")

    def start_game(self, pack_ids: Optional[Sequence[str]] = None) -> ActionResult:
        with self._lock:
            state = self.state
            if state.game_started:
                return ActionResult.fail(GAME_ALREADY_STARTED, "Game already started")

            if len(state.players) < self.rules.min_players:
                return ActionResult.fail(
                    NOT_ENOUGH_PLAYERS,
                    f"Need at least {self.rules.min_players} players to start"
                )

            packs = list(pack_ids or state.selected_pack_ids or [DEFAULT_PACK_ID])
            try:
                prompt_deck, answer_deck = build_decks(
                    packs,
                    self.pack_source.list_built_in_packs(),
                    self.pack_source.list_custom_decks(),
                    self._shuffle,
                )
            except GameError as e:
                return ActionResult.fail(e.code, e.message)

            state.selected_pack_ids = packs
            state.prompt_deck = prompt_deck
            state.answer_deck = answer_deck
            state.prompt_discard = []
            state.discard_pile = []
            state.current_round = 0

            for player in state.players:
                player.hand = self._deal(self.rules.hand_size)
                player.score = 0
                player.swaps_remaining = self.rules.swaps_per_round

            logger.info(
                f"[{state.room_code}] Starting game with {len(prompt_deck)} prompt and "
                f"{len(answer_deck)} answer cards"
            )
            self._begin_round(state.players[0])
            return ActionResult.ok("Game started")

    # Round play

    def submit_card(self, player_id: str, card_ids: Sequence[Any]) -> ActionResult:
        """Submit answer cards for the current prompt card."""
        with self._lock:
            state = self.state
            card_ids = [str(card_id) for card_id in card_ids]
            validation = validate_submission(state, player_id, card_ids)
            if not validation.valid:
                logger.debug(f"[{state.room_code}] Submission rejected: {validation.error_message}")
                return ActionResult.from_validation(validation)

            player = validation.player
            cards = self._take_from_hand(player, card_ids)
            state.submissions[player.key] = Submission(player.key, player.id, cards)
            state.discard_pile.extend(cards)

            all_in = self._check_all_submitted()
            return ActionResult.ok("Cards submitted", phase=state.phase, all_submitted=all_in)

    def swap_cards(self, player_id: str, card_ids: Sequence[Any]) -> ActionResult:
        """Trade hand cards for fresh ones, limited per round."""
        with self._lock:
            state = self.state
            card_ids = [str(card_id) for card_id in card_ids]
            validation = validate_swap(state, player_id, card_ids)
            if not validation.valid:
                return ActionResult.from_validation(validation)

            player = validation.player
            removed = self._take_from_hand(player, card_ids)
            # draw before discarding so a swapped card can't come straight back
            player.hand.extend(self._deal(len(removed)))
            state.discard_pile.extend(removed)
            player.swaps_remaining -= len(removed)

            return ActionResult.ok(
                "Cards swapped",
                hand=serialize_cards(player.hand),
                swaps_remaining=player.swaps_remaining,
            )

    def trade_prompt_card(self, czar_id: str) -> ActionResult:
        """Let the Czar exchange the prompt card once per round."""
        with self._lock:
            state = self.state
            validation = validate_prompt_trade(state, czar_id)
            if not validation.valid:
                return ActionResult.from_validation(validation)

            if state.current_prompt_card:
                state.prompt_discard.append(state.current_prompt_card)
            state.current_prompt_card = state.prompt_deck.pop()
            state.prompt_card_traded = True
            return ActionResult.ok("Prompt card traded", prompt_card=state.current_prompt_card.to_dict())

    def toggle_timer(self, czar_id: str) -> ActionResult:
        """Start or pause the round countdown."""
        with self._lock:
            state = self.state
            validation = validate_timer_toggle(state, czar_id)
            if not validation.valid:
                return ActionResult.from_validation(validation)

            timer = state.timer
            if timer.running:
                self._cancel_timer_handle()
                timer.running = False
            else:
                if timer.remaining_seconds <= 0:
                    timer.remaining_seconds = timer.duration_seconds
                timer.running = True
                self._arm_timer()
            return ActionResult.ok(
                "Timer started" if timer.running else "Timer paused",
                running=timer.running,
                remaining=timer.remaining_seconds,
            )

    def select_winner(self, czar_id: str, winner_id: str) -> ActionResult:
        with self._lock:
            state = self.state
            validation = validate_winner_selection(state, czar_id, winner_id)
            if not validation.valid:
                return ActionResult.from_validation(validation)

            submission = state.submission_for(winner_id)
            winner = state.find_player_by_key(submission.player_key)
            state.round_winner_id = winner_id
            state.phase = PHASE_ROUND_END

            game_over = False
            winner_info = None
            if winner:
                winner.score += 1
                winner_info = {'id': winner.id, 'name': winner.name, 'score': winner.score}
                game_over = reached_winning_score(winner, self.rules.winning_score)
            logger.info(f"[{state.room_code}] Round {state.current_round} won by {winner.name if winner else winner_id}")

            if game_over:
                self._finish_game()
            return ActionResult.ok(
                "Winner selected",
                game_over=game_over,
                winner=winner_info,
                round_winner_id=winner_id,
            )

    def next_round(self) -> ActionResult:
        with self._lock:
            state = self.state
            if state.phase != PHASE_ROUND_END:
                return ActionResult.fail(NOT_ROUND_END, "Not at round end")
            if not state.players:
                return ActionResult.fail(PLAYER_NOT_FOUND, "No players left")

            for submission in state.submissions.values():
                player = state.find_player_by_key(submission.player_key)
                if player:
                    player.hand.extend(self._deal(len(submission.cards)))

            for player in state.players:
                player.swaps_remaining = self.rules.swaps_per_round

            if state.current_prompt_card:
                state.prompt_discard.append(state.current_prompt_card)
                state.current_prompt_card = None

            index = next(
                (i for i, p in enumerate(state.players) if p.key == state.czar_key), -1
            )
            count = len(state.players)
            rotation = [state.players[(index + step) % count] for step in range(1, count + 1)]
            # disconnected players are passed over while anyone is connected
            next_czar = next((p for p in rotation if p.connected), rotation[0])

            started = self._begin_round(next_czar)
            return ActionResult.ok(
                "Next round" if started else "Out of prompt cards",
                game_over=not started,
            )

    def force_end_game(self) -> ActionResult:
        with self._lock:
            state = self.state
            if not state.game_started:
                return ActionResult.fail(GAME_NOT_STARTED, "Game has not started")
            if state.phase == PHASE_GAME_OVER:
                return ActionResult.fail(GAME_OVER, "Game is already over")

            self._finish_game()
            return ActionResult.ok(
                "Game ended",
                game_over=True,
                winner=state.final_winner,
                leaderboard=list(state.final_leaderboard),
            )

    # Projections

    def get_game_state(self) -> Dict[str, Any]:
        with self._lock:
            available = None
            if self.state.phase == PHASE_LOBBY:
                available = list_available_packs(self.pack_source)
            return sanitize_state(self.state, available, self._shuffle)

    def get_submissions(self) -> List[Dict[str, Any]]:
        """Submissions with player ids, re-shuffled on every call."""
        with self._lock:
            return serialize_submissions(list(self.state.submissions.values()), self._shuffle)

    def get_player_hand(self, player_id: str) -> List[Dict[str, Any]]:
        with self._lock:
            player = self.state.find_player(player_id)
            return serialize_cards(player.hand) if player else []

    def get_available_packs(self) -> List[Dict[str, Any]]:
        return list_available_packs(self.pack_source)

    def close(self):
        """Stop background activity; the room is going away."""
        with self._lock:
            self._stop_timer()

    # Internals

    def _color_for(self, name: str) -> str:
        color = self._name_colors.get(name)
        if color is None:
            color = color_for_index(len(self._name_colors))
            self._name_colors[name] = color
        return color

    def _deal(self, count: int) -> List[Card]:
        return deal(self.state.answer_deck, self.state.discard_pile, count, self._shuffle)

    @staticmethod
    def _take_from_hand(player: Player, card_ids: List[str]) -> List[Card]:
        by_id = {card.id: card for card in player.hand}
        taken = [by_id[card_id] for card_id in card_ids]
        wanted = set(card_ids)
        player.hand = [card for card in player.hand if card.id not in wanted]
        return taken

    def _begin_round(self, czar: Player) -> bool:
        """Draw the next prompt card and open a round; ends the game when none are left."""
        state = self.state
        self._stop_timer()
        if not state.prompt_deck:
            logger.info(f"[{state.room_code}] Prompt deck exhausted")
            self._finish_game()
            return False

        state.current_prompt_card = state.prompt_deck.pop()
        state.current_round += 1
        state.submissions.clear()
        state.round_winner_id = None
        state.prompt_card_traded = False
        state.timer.reset()
        state.czar_key = czar.key
        state.phase = PHASE_PLAYING
        logger.info(f"[{state.room_code}] Round {state.current_round} started, Czar is {czar.name}")
        return True

    def _install_czar(self, player: Player):
        """Hand the Czar role over, withdrawing any submission the player has on file."""
        state = self.state
        state.czar_key = player.key
        submission = state.submissions.pop(player.key, None)
        if submission is None:
            return
        for card in submission.cards:
            for i, discarded in enumerate(state.discard_pile):
                if discarded.id == card.id:
                    player.hand.append(state.discard_pile.pop(i))
                    break

    def _check_all_submitted(self) -> bool:
        """Move to judging once every connected non-Czar player has submitted."""
        state = self.state
        if state.phase != PHASE_PLAYING or not state.submissions:
            return False
        waiting = [
            p for p in state.players
            if p.connected and p.key != state.czar_key and p.key not in state.submissions
        ]
        if waiting:
            return False
        self._stop_timer()
        state.phase = PHASE_JUDGING
        logger.info(f"[{state.room_code}] All submissions in, judging")
        return True

    def _after_membership_change(self):
        state = self.state
        if state.phase == PHASE_PLAYING:
            self._check_all_submitted()
        elif state.phase == PHASE_JUDGING and not state.submissions:
            self._end_round_without_winner()

    def _end_round_without_winner(self):
        self._stop_timer()
        self.state.round_winner_id = None
        self.state.phase = PHASE_ROUND_END
        logger.info(f"[{self.room_code}] Round {self.state.current_round} ended with no submissions")

    def _finish_game(self):
        state = self.state
        self._stop_timer()
        state.phase = PHASE_GAME_OVER
        state.final_leaderboard = build_leaderboard(state.players)
        state.final_winner = top_entry(state.final_leaderboard)
        logger.info(
            f"[{state.room_code}] Game over, winner: "
            f"{state.final_winner['name'] if state.final_winner else 'none'}"
        )

    # Timer

    def _arm_timer(self):
        self._cancel_timer_handle()
        self._timer_handle = self.scheduler.call_later(TIMER_TICK_SECONDS, self._on_timer_tick)

    def _cancel_timer_handle(self):
        if self._timer_handle is not None:
            self._timer_handle.cancel()
            self._timer_handle = None

    def _stop_timer(self):
        self._cancel_timer_handle()
        self.state.timer.running = False

    def _on_timer_tick(self):
        event = None
        with self._lock:
            self._timer_handle = None
            timer = self.state.timer
            if not timer.running:
                return
            if self.state.phase != PHASE_PLAYING:
                timer.running = False
                return

            timer.remaining_seconds = max(0, timer.remaining_seconds - 1)
            if timer.remaining_seconds == 0:
                timer.running = False
                self._expire_round()
                event = TIMER_EXPIRED
            else:
                self._arm_timer()
                event = TIMER_TICK

        if self.on_timer_event is not None:
            self.on_timer_event(self, event)

    def _expire_round(self):
        """Auto-submit for connected players still owing cards, then judge."""
        state = self.state
        pick = state.current_prompt_card.pick if state.current_prompt_card else 1
        for player in state.players:
            if not player.connected or player.key == state.czar_key or player.key in state.submissions:
                continue
            if len(player.hand) < pick:
                continue
            chosen = [card.id for card in self._shuffle(player.hand)[:pick]]
            cards = self._take_from_hand(player, chosen)
            state.submissions[player.key] = Submission(player.key, player.id, cards, auto=True)
            state.discard_pile.extend(cards)

        logger.info(f"[{state.room_code}] Timer expired in round {state.current_round}")
        if state.submissions:
            state.phase = PHASE_JUDGING
        else:
            self._end_round_without_winner()
