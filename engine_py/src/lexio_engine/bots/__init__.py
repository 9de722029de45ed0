"""
AI players for Lexio.
"""

from .base import BaseBot, BotAction
from .strategic import StrategicBot

__all__ = ["BaseBot", "BotAction", "StrategicBot"]
