"""Game constants and utilities"""

from .models import Card, Suit

RANK_ORDER = [3, 4, 5, 6, 7, 8, 9, 10, 11, 12, 13, 14, 15, 1, 2]
SUIT_ORDER = [Suit.CLOUD, Suit.STAR, Suit.MOON, Suit.SUN]

# Highest rank in the deck for each supported seat count
MAX_RANK_BY_SEATS = {3: 9, 4: 13, 5: 15}
MIN_SEATS = 3
MAX_SEATS = 5

STARTING_CARD = Card(Suit.CLOUD, 3)

# Game phases
PHASE_WAITING = 'waiting'
PHASE_PLAYING = 'playing'
PHASE_FINISHED = 'finished'

# Hand categories
SINGLE = 1
PAIR = 2
TRIPLE = 3
STRAIGHT = 4
FLUSH = 5
FULL_HOUSE = 6
FOUR_OF_A_KIND = 7
STRAIGHT_FLUSH = 8

HAND_NAMES = {
    SINGLE: "Single",
    PAIR: "Pair",
    TRIPLE: "Triple",
    STRAIGHT: "Straight",
    FLUSH: "Flush",
    FULL_HOUSE: "Full House",
    FOUR_OF_A_KIND: "Four of a Kind",
    STRAIGHT_FLUSH: "Straight Flush",
}

LEGAL_HAND_SIZES = (1, 2, 3, 5)

# Straight types, strongest first
STRAIGHT_ONE_AND_TWO = 'one_and_two'   # 1-2-3-4-5
STRAIGHT_TWO_ONLY = 'two_only'         # 2-3-4-5-6
STRAIGHT_ONE_AT_END = 'one_at_end'     # e.g. 10-11-12-13-1
STRAIGHT_NORMAL = 'normal'

STRAIGHT_TYPE_STRENGTH = {
    STRAIGHT_NORMAL: 0,
    STRAIGHT_ONE_AT_END: 1,
    STRAIGHT_TWO_ONLY: 2,
    STRAIGHT_ONE_AND_TWO: 3,
}

# AI strategies
STRATEGY_AGGRESSIVE_FINISH = 'aggressive_finish'
STRATEGY_DESPERATE_CATCH_UP = 'desperate_catch_up'
STRATEGY_MAINTAIN_LEAD = 'maintain_lead'
STRATEGY_CATCH_UP = 'catch_up'
STRATEGY_BALANCED = 'balanced'
STRATEGY_POWER_PLAY = 'power_play'
STRATEGY_COMBO_SETUP = 'combo_setup'
STRATEGY_CONSERVATIVE = 'conservative'

AI_NAMES = [
    "Lexio Master", "Card Prodigy", "Strategist", "Risk Taker",
    "Poker Face", "Bluff King", "Card Shark", "Game Guru",
    "Iron Hand", "Card Wizard", "Tactician", "Game Engine",
]
