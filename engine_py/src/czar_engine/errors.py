# engine_py/src/czar_engine/errors.py

class GameError(Exception):
    """Base exception for game-related errors."""
    def __init__(self, code: str, message: str):
        self.code = code
        self.message = message
        super().__init__(f"[{code}] {message}")

# Specific error codes
NOT_PLAYING_PHASE = "NOT_PLAYING_PHASE"
NOT_JUDGING_PHASE = "NOT_JUDGING_PHASE"
NOT_ROUND_END = "NOT_ROUND_END"
CZAR_CANNOT_SUBMIT = "CZAR_CANNOT_SUBMIT"
CZAR_CANNOT_SWAP = "CZAR_CANNOT_SWAP"
ALREADY_SUBMITTED = "ALREADY_SUBMITTED"
WRONG_CARD_COUNT = "WRONG_CARD_COUNT"
CARD_NOT_IN_HAND = "CARD_NOT_IN_HAND"
DUPLICATE_CARD = "DUPLICATE_CARD"
NOT_CZAR = "NOT_CZAR"
INVALID_WINNER = "INVALID_WINNER"
TOO_MANY_SWAPS = "TOO_MANY_SWAPS"
NO_CARDS_SELECTED = "NO_CARDS_SELECTED"
ALREADY_TRADED = "ALREADY_TRADED"
NO_PROMPT_CARDS = "NO_PROMPT_CARDS"
TIMER_DISABLED = "TIMER_DISABLED"
GAME_ALREADY_STARTED = "GAME_ALREADY_STARTED"
GAME_NOT_STARTED = "GAME_NOT_STARTED"
GAME_OVER = "GAME_OVER"
NOT_ENOUGH_PLAYERS = "NOT_ENOUGH_PLAYERS"
ROOM_FULL = "ROOM_FULL"
ALREADY_JOINED = "ALREADY_JOINED"
PLAYER_NOT_FOUND = "PLAYER_NOT_FOUND"
NO_CARDS_IN_PACKS = "NO_CARDS_IN_PACKS"
ROOM_NOT_FOUND = "ROOM_NOT_FOUND"
INVALID_NAME = "INVALID_NAME"
INVALID_SETTINGS = "INVALID_SETTINGS"
