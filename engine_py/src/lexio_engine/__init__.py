"""
Lexio card game engine.
"""

__version__ = "1.0.0"
