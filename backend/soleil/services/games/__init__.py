"""Game domain services: roster, scoring, round scheduling and the session.

This package holds the game mechanics; socket handlers and HTTP routes
import from here, keeping transport concerns separated from the rules.
"""
from .session import GameSession

__all__ = ['GameSession']
