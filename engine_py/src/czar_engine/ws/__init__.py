"""
WebSocket server and event handling for the party card game.
"""

from .server import app, create_app

__all__ = ["app", "create_app"]
