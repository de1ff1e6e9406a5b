"""
Interaction Module - Pointer gestures on the table and palette.
"""

from .gesture import GestureEngine, GestureState, GestureResult, Transition

__all__ = [
    "GestureEngine",
    "GestureState",
    "GestureResult",
    "Transition",
]
