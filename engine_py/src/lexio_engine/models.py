"""Game models and data structures"""

from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING, Dict, List, Optional

from .rules import RuleConfig, default_rules

if TYPE_CHECKING:
    from .hands import Hand


class Suit(str, Enum):
    CLOUD = "cloud"
    STAR = "star"
    MOON = "moon"
    SUN = "sun"


@dataclass(frozen=True)
class Card:
    suit: Suit
    rank: int  # 1..15, play order is 3 < 4 < ... < 15 < 1 < 2

    @property
    def id(self) -> str:
        return f"{self.suit.value}-{self.rank}"

    @classmethod
    def from_id(cls, card_id: str) -> "Card":
        """Parse a wire id such as ``cloud-3``."""
        suit, sep, rank = card_id.partition("-")
        if not sep:
            raise ValueError(f"Invalid card id: {card_id}")
        try:
            return cls(Suit(suit), int(rank))
        except ValueError:
            raise ValueError(f"Invalid card id: {card_id}")

    def __str__(self) -> str:
        return self.id


@dataclass
class Player:
    id: str
    name: str
    seat: int
    hand: List[Card] = field(default_factory=list)  # private to the owner
    is_host: bool = False
    is_ai: bool = False
    is_active: bool = True  # False once the player has left

    @property
    def card_count(self) -> int:
        return len(self.hand)


@dataclass
class Pile:
    cards: List[Card]
    owner: int  # seat index of the player who made the play
    hand: "Hand"


@dataclass
class GameState:
    id: str
    version: int = 0
    phase: str = 'waiting'  # waiting|playing|finished
    players: List[Player] = field(default_factory=list)
    current_turn: Optional[int] = None
    pile: Optional[Pile] = None
    consecutive_passes: int = 0
    scores: Dict[int, int] = field(default_factory=dict)
    round: int = 1
    log: List[str] = field(default_factory=list)
    seat_limit: int = 4
    max_rank: Optional[int] = None
    winner: Optional[int] = None
    last_settlement: Dict[int, int] = field(default_factory=dict)
    rule_config: RuleConfig = field(default_factory=lambda: default_rules.model_copy())

    def active_seats(self) -> List[int]:
        return [p.seat for p in self.players if p.is_active]

    def active_count(self) -> int:
        return sum(1 for p in self.players if p.is_active)

    def get_player(self, player_id: str) -> Optional[Player]:
        return next((p for p in self.players if p.id == player_id), None)

    def host(self) -> Optional[Player]:
        return next((p for p in self.players if p.is_host and p.is_active), None)

    def increment_version(self):
        self.version += 1
