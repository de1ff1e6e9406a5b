"""
Crucible - Element Combination Engine

A deterministic, headless engine for "combine elements to discover new ones"
sandboxes. Rendering is left to the host; the engine provides:
- Table state (live tokens on a 2D surface)
- Gesture classification (drag, spawn, swipe, tap)
- Recipe resolution (merge, reject, explode)
- Palette pagination and filtering
- Local/remote progress reconciliation
"""

__version__ = "0.1.0"
