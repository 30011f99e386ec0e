# engine_py/src/czar_engine/ranking.py

from typing import Any, Dict, List, Optional, Sequence

from .models import Player


def build_leaderboard(players: Sequence[Player]) -> List[Dict[str, Any]]:
    """
    Rank players by score, highest first.

    Players on equal scores keep their join order.

    Args:
        players: Tracked players in join order.

    Returns:
        Leaderboard entries with id, name, score and color.
    """
    ordered = sorted(players, key=lambda p: p.score, reverse=True)
    return [
        {'id': p.id, 'name': p.name, 'score': p.score, 'color': p.color}
        for p in ordered
    ]


def top_entry(leaderboard: List[Dict[str, Any]]) -> Optional[Dict[str, Any]]:
    return leaderboard[0] if leaderboard else None


def reached_winning_score(player: Player, winning_score: int) -> bool:
    return player.score >= winning_score
