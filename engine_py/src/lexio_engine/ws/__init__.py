"""
WebSocket server and event handling for Lexio rooms.
"""

from .server import app

__all__ = ["app"]
