"""
Game rule configuration and validation.
"""

from pydantic import BaseModel, Field, field_validator


class RuleConfig(BaseModel):
    """Configuration for game rules and settings."""

    min_players: int = Field(
        default=3,
        ge=3,
        le=5,
        description="Minimum number of active seats required to start"
    )
    max_players: int = Field(
        default=5,
        ge=3,
        le=5,
        description="Maximum number of seats (humans and AI) in a room"
    )
    starting_score: int = Field(
        default=100,
        ge=0,
        description="Score every seat starts the first round with"
    )
    auto_fill_bots: bool = Field(
        default=True,
        description="Automatically fill empty seats with AI players when starting"
    )
    bot_delay: float = Field(
        default=1.5,
        ge=0,
        le=10,
        description="Seconds to wait before an AI seat acts"
    )
    ai_full_five_card_search: bool = Field(
        default=False,
        description="Let AI seats answer five-card piles with any five-card hand, not just flushes"
    )

    @field_validator('max_players')
    @classmethod
    def validate_max_players(cls, v, info):
        """Validate maximum players doesn't fall below minimum."""
        min_players = info.data.get('min_players', 3)
        if v < min_players:
            raise ValueError(f'max_players ({v}) must be >= min_players ({min_players})')
        return v

    def validate_player_count(self, player_count: int) -> bool:
        """Check if a player count is valid for this configuration."""
        return self.min_players <= player_count <= self.max_players


# Default configuration instance
default_rules = RuleConfig()


def create_rules(**overrides) -> RuleConfig:
    """Create a RuleConfig with optional overrides."""
    config_dict = default_rules.model_dump()
    config_dict.update(overrides)
    return RuleConfig(**config_dict)
