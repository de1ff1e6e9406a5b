"""
Palette Module - The spawn palette of discovered elements.
"""

from .paginator import Paginator

__all__ = ["Paginator"]
