"""
Validation of player actions against the room state.

Validators never mutate state; the engine applies an action only after its
validator reports success.
"""

from typing import List, Optional

from .constants import PHASE_JUDGING, PHASE_PLAYING
from .errors import (
    ALREADY_SUBMITTED, ALREADY_TRADED, CARD_NOT_IN_HAND, CZAR_CANNOT_SUBMIT, CZAR_CANNOT_SWAP,
    DUPLICATE_CARD, INVALID_WINNER, NO_CARDS_SELECTED, NO_PROMPT_CARDS, NOT_CZAR,
    NOT_JUDGING_PHASE, NOT_PLAYING_PHASE, PLAYER_NOT_FOUND, TIMER_DISABLED,
    TOO_MANY_SWAPS, WRONG_CARD_COUNT
)
from .models import Player, RoomState


class ValidationResult:
    """Result of validating a player action."""

    def __init__(
        self,
        valid: bool,
        error_code: Optional[str] = None,
        error_message: Optional[str] = None,
        player: Optional[Player] = None
    ):
        self.valid = valid
        self.error_code = error_code
        self.error_message = error_message
        self.player = player

    @classmethod
    def success(cls, player: Optional[Player] = None) -> 'ValidationResult':
        """Create a successful validation result."""
        return cls(valid=True, player=player)

    @classmethod
    def error(cls, error_code: str, error_message: str) -> 'ValidationResult':
        """Create an error validation result."""
        return cls(valid=False, error_code=error_code, error_message=error_message)


def validate_ownership(player: Player, card_ids: List[str]) -> ValidationResult:
    """Check the ids are distinct and all currently in the player's hand."""
    if len(set(card_ids)) != len(card_ids):
        return ValidationResult.error(DUPLICATE_CARD, "The same card was selected twice")
    for card_id in card_ids:
        if not player.has_card(card_id):
            return ValidationResult.error(CARD_NOT_IN_HAND, f"Card {card_id} not in hand")
    return ValidationResult.success(player)


def validate_submission(state: RoomState, player_id: str, card_ids: List[str]) -> ValidationResult:
    """
    Validate a card submission.

    Args:
        state: Current room state
        player_id: Connection id of the submitting player
        card_ids: Ids of the answer cards being submitted

    Returns:
        ValidationResult carrying the submitting player on success
    """
    if state.phase != PHASE_PLAYING:
        return ValidationResult.error(NOT_PLAYING_PHASE, "Not in playing phase")

    player = state.find_player(player_id)
    if player is None:
        return ValidationResult.error(PLAYER_NOT_FOUND, "Player not found")

    if player.key == state.czar_key:
        return ValidationResult.error(CZAR_CANNOT_SUBMIT, "Czar cannot submit cards")

    if player.key in state.submissions:
        return ValidationResult.error(ALREADY_SUBMITTED, "Already submitted")

    required = state.current_prompt_card.pick if state.current_prompt_card else 1
    if len(card_ids) != required:
        return ValidationResult.error(WRONG_CARD_COUNT, f"Must select {required} cards")

    return validate_ownership(player, card_ids)


def validate_swap(state: RoomState, player_id: str, card_ids: List[str]) -> ValidationResult:
    """Validate a hand swap. Submissions on file are not re-checked."""
    if state.phase != PHASE_PLAYING:
        return ValidationResult.error(NOT_PLAYING_PHASE, "Can only swap cards during the playing phase")

    player = state.find_player(player_id)
    if player is None:
        return ValidationResult.error(PLAYER_NOT_FOUND, "Player not found")

    if player.key == state.czar_key:
        return ValidationResult.error(CZAR_CANNOT_SWAP, "Czar cannot swap cards")

    if not card_ids:
        return ValidationResult.error(NO_CARDS_SELECTED, "No cards selected")

    if len(card_ids) > player.swaps_remaining:
        return ValidationResult.error(
            TOO_MANY_SWAPS,
            f"Only {player.swaps_remaining} swaps remaining this round"
        )

    return validate_ownership(player, card_ids)


def validate_winner_selection(state: RoomState, czar_id: str, winner_id: str) -> ValidationResult:
    """Validate the Czar's pick of the round winner."""
    if state.phase != PHASE_JUDGING:
        return ValidationResult.error(NOT_JUDGING_PHASE, "Not in judging phase")

    if czar_id is None or czar_id != state.current_czar_id:
        return ValidationResult.error(NOT_CZAR, "Only czar can select winner")

    if state.submission_for(winner_id) is None:
        return ValidationResult.error(INVALID_WINNER, "Invalid winner")

    return ValidationResult.success(state.czar)


def validate_prompt_trade(state: RoomState, czar_id: str) -> ValidationResult:
    """Validate a prompt card trade."""
    if czar_id is None or czar_id != state.current_czar_id:
        return ValidationResult.error(NOT_CZAR, "Only Czar can trade the prompt card")

    if state.phase != PHASE_PLAYING:
        return ValidationResult.error(NOT_PLAYING_PHASE, "Can only trade during the playing phase")

    if state.prompt_card_traded:
        return ValidationResult.error(ALREADY_TRADED, "Prompt card already traded this round")

    if not state.prompt_deck:
        return ValidationResult.error(NO_PROMPT_CARDS, "No prompt cards left to trade for")

    return ValidationResult.success(state.czar)


def validate_timer_toggle(state: RoomState, czar_id: str) -> ValidationResult:
    """Validate a timer start/pause request."""
    if czar_id is None or czar_id != state.current_czar_id:
        return ValidationResult.error(NOT_CZAR, "Only Czar can control the timer")

    if state.phase != PHASE_PLAYING:
        return ValidationResult.error(NOT_PLAYING_PHASE, "Timer only runs during the playing phase")

    if not state.timer.enabled:
        return ValidationResult.error(TIMER_DISABLED, "Timer is disabled for this room")

    return ValidationResult.success(state.czar)
