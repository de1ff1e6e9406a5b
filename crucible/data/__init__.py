"""
Built-in game data.
"""

from .recipes import RECIPES

__all__ = ["RECIPES"]
