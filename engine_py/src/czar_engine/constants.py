"""Game constants and utilities"""

from typing import List

MIN_PLAYERS = 3
MAX_PLAYERS = 10
WINNING_SCORE = 5
HAND_SIZE = 10
SWAPS_PER_ROUND = 3

DEFAULT_TIMER_SECONDS = 60
TIMER_TICK_SECONDS = 1.0
DISCONNECT_GRACE_SECONDS = 30.0

ROOM_CODE_LENGTH = 4
ROOM_CODE_CHARS = 'ABCDEFGHJKLMNPQRSTUVWXYZ23456789'

DEFAULT_PACK_ID = 'base'

# Phases
PHASE_LOBBY = 'lobby'
PHASE_PLAYING = 'playing'
PHASE_JUDGING = 'judging'
PHASE_ROUND_END = 'roundEnd'
PHASE_GAME_OVER = 'gameOver'

# Timer events reported to listeners
TIMER_TICK = 'tick'
TIMER_EXPIRED = 'expired'

# Neon palette, handed out round-robin per distinct player name
PLAYER_COLORS: List[str] = [
    'hsl(0, 100%, 60%)',
    'hsl(20, 100%, 55%)',
    'hsl(40, 100%, 50%)',
    'hsl(60, 100%, 50%)',
    'hsl(80, 100%, 50%)',
    'hsl(100, 100%, 50%)',
    'hsl(120, 100%, 50%)',
    'hsl(140, 100%, 50%)',
    'hsl(160, 100%, 50%)',
    'hsl(180, 100%, 50%)',
    'hsl(200, 100%, 55%)',
    'hsl(220, 100%, 60%)',
    'hsl(240, 100%, 65%)',
    'hsl(260, 100%, 65%)',
    'hsl(280, 100%, 60%)',
    'hsl(300, 100%, 55%)',
    'hsl(320, 100%, 55%)',
    'hsl(340, 100%, 60%)',
]


def color_for_index(index: int) -> str:
    return PLAYER_COLORS[index % len(PLAYER_COLORS)]
