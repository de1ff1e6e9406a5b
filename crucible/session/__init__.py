"""
Session Module - One playable sandbox.

A session ties the engine, input handling and persistence together:
- Restored from local storage when it starts
- Reconciled with the progress server without blocking play
- Written back on every change
"""

from .game import AlchemySession

__all__ = [
    "AlchemySession",
]
