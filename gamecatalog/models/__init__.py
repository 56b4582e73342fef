"""
Models package

- game.py: catalog rows, leaves and aggregates
- library.py: per-user ownership records
- user.py: catalog users (identity only, credentials live elsewhere)
"""

from .game import Game, GameKind, Console, Region
from .library import Library
from .user import User

__all__ = [
    "Game",
    "GameKind",
    "Console",
    "Region",
    "Library",
    "User",
]
