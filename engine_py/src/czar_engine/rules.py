"""
Game rule configuration and validation.
"""

from pydantic import BaseModel, Field, field_validator

from .constants import (
    DEFAULT_TIMER_SECONDS, DISCONNECT_GRACE_SECONDS, HAND_SIZE, MAX_PLAYERS,
    MIN_PLAYERS, SWAPS_PER_ROUND, WINNING_SCORE
)


class RuleConfig(BaseModel):
    """Configuration for game rules and settings."""

    min_players: int = Field(
        default=MIN_PLAYERS,
        ge=2,
        le=10,
        description="Minimum number of players required to start"
    )
    max_players: int = Field(
        default=MAX_PLAYERS,
        ge=2,
        le=20,
        description="Maximum number of players allowed in a room"
    )
    hand_size: int = Field(
        default=HAND_SIZE,
        ge=1,
        le=20,
        description="Number of answer cards each player holds"
    )
    winning_score: int = Field(
        default=WINNING_SCORE,
        ge=1,
        description="Score that ends the game"
    )
    swaps_per_round: int = Field(
        default=SWAPS_PER_ROUND,
        ge=0,
        description="Answer cards a player may swap each round"
    )
    timer_enabled: bool = Field(
        default=True,
        description="Whether the Czar may run a round countdown"
    )
    timer_duration: int = Field(
        default=DEFAULT_TIMER_SECONDS,
        ge=5,
        le=600,
        description="Round countdown length in seconds"
    )
    grace_seconds: float = Field(
        default=DISCONNECT_GRACE_SECONDS,
        ge=0,
        description="Seconds a disconnected player may take to reconnect"
    )
    keep_departed_submissions: bool = Field(
        default=False,
        description="Keep a departing player's submission judgeable"
    )

    @field_validator('max_players')
    @classmethod
    def validate_max_players(cls, v, info):
        """Validate maximum players doesn't fall below minimum."""
        min_players = info.data.get('min_players', MIN_PLAYERS)
        if v < min_players:
            raise ValueError(f'max_players ({v}) must be >= min_players ({min_players})')
        return v


# Default configuration instance
default_rules = RuleConfig()


def create_rules(**overrides) -> RuleConfig:
    """Create a RuleConfig with optional overrides."""
    config_dict = default_rules.model_dump()
    config_dict.update(overrides)
    return RuleConfig(**config_dict)
