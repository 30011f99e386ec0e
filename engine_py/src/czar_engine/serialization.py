"""
State serialization and sanitization utilities.
"""

from typing import Any, Callable, Dict, List, Optional, Sequence

from .constants import PHASE_JUDGING, PHASE_ROUND_END
from .models import Card, Player, RoomState, Submission
from .shuffle import shuffle_deck

REVEAL_PHASES = (PHASE_JUDGING, PHASE_ROUND_END)


def serialize_cards(cards: Sequence[Card]) -> List[Dict[str, Any]]:
    return [card.to_dict() for card in cards]


def serialize_player(state: RoomState, player: Player) -> Dict[str, Any]:
    """Public view of a player: no hand contents."""
    return {
        'id': player.id,
        'name': player.name,
        'score': player.score,
        'connected': player.connected,
        'color': player.color,
        'swaps_remaining': player.swaps_remaining,
        'hand_count': len(player.hand),
        'is_czar': player.key == state.czar_key,
        'has_submitted': player.key in state.submissions,
    }


def serialize_submissions(
    submissions: Sequence[Submission],
    shuffle: Callable[[Sequence[Any]], List[Any]] = shuffle_deck,
) -> List[Dict[str, Any]]:
    """Submissions with player ids, in a fresh random order on every call."""
    entries = [
        {'player_id': s.player_id, 'cards': serialize_cards(s.cards)}
        for s in submissions
    ]
    return shuffle(entries)


def _redacted_submissions(
    state: RoomState,
    shuffle: Callable[[Sequence[Any]], List[Any]],
) -> List[Dict[str, Any]]:
    entries = []
    for submission in state.submissions.values():
        entry: Dict[str, Any] = {'cards': serialize_cards(submission.cards)}
        if state.round_winner_id is not None:
            entry['winner'] = submission.player_id == state.round_winner_id
        entries.append(entry)
    return shuffle(entries)


def sanitize_state(
    state: RoomState,
    available_packs: Optional[List[Dict[str, Any]]] = None,
    shuffle: Callable[[Sequence[Any]], List[Any]] = shuffle_deck,
) -> Dict[str, Any]:
    """
    Project room state into a dict safe to broadcast to every player.

    Hands are never included. Submissions appear only while they are being
    judged or revealed, without player ids.
    """
    prompt = state.current_prompt_card
    sanitized = {
        'room_code': state.room_code,
        'phase': state.phase,
        'game_started': state.game_started,
        'current_round': state.current_round,
        'current_prompt_card': prompt.to_dict() if prompt else None,
        'current_czar_id': state.current_czar_id,
        'round_winner_id': state.round_winner_id,
        'players': [serialize_player(state, p) for p in state.players],
        'submission_count': len(state.submissions),
        'selected_packs': list(state.selected_pack_ids),
        'prompt_card_traded': state.prompt_card_traded,
        'timer': {
            'enabled': state.timer.enabled,
            'duration': state.timer.duration_seconds,
            'remaining': state.timer.remaining_seconds,
            'running': state.timer.running,
        },
        'final_winner': state.final_winner,
        'final_leaderboard': list(state.final_leaderboard),
    }

    if state.phase in REVEAL_PHASES:
        sanitized['submissions'] = _redacted_submissions(state, shuffle)

    if available_packs is not None:
        sanitized['available_packs'] = available_packs

    return sanitized
