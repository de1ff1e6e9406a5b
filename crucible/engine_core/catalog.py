"""
Recipe Catalog - Static pair -> outputs lookup.

The catalog is read-only input to the merge resolver:
- Keys are unordered pairs (frozenset), so lookup is symmetric
- A self-combination (a == b) is a one-element frozenset
- Output lists keep their order (spawn order, discovery order)

No validation of game content happens here beyond structural parsing.
"""

from __future__ import annotations
from pathlib import Path
from typing import Any, Iterable, Mapping
import json
import logging

from ..config import PRIMITIVES
from ..errors import CatalogError

logger = logging.getLogger(__name__)


def make_key(a: str, b: str) -> frozenset[str]:
    """Unordered key for a pair of element names."""
    return frozenset((a, b))


def format_key(key: frozenset[str]) -> str:
    """Render a pair key as "a+b"; a self-combination prints as "a+a"."""
    names = sorted(key)
    if len(names) == 1:
        names = names * 2
    return "+".join(names)


def _parse_key(raw: Any) -> frozenset[str]:
    if isinstance(raw, frozenset):
        names = list(raw)
    elif isinstance(raw, tuple):
        names = list(raw)
    elif isinstance(raw, str):
        names = [part.strip() for part in raw.split("+")]
    else:
        raise CatalogError(f"Unsupported recipe key: {raw!r}")

    if len(names) not in (1, 2) or not all(isinstance(n, str) and n for n in names):
        raise CatalogError(f"Recipe key must name one or two elements: {raw!r}")
    return frozenset(names)


class RecipeCatalog:
    """
    Symmetric recipe lookup.

    Usage:
        catalog = RecipeCatalog.from_dict({"water+air": ["steam"]})
        catalog.resolve("air", "water")  # ("steam",)
    """

    def __init__(self, recipes: Mapping[Any, Iterable[str]] | None = None):
        self._recipes: dict[frozenset[str], tuple[str, ...]] = {}
        for raw_key, outputs in (recipes or {}).items():
            key = _parse_key(raw_key)
            if isinstance(outputs, str):
                raise CatalogError(f"Outputs for {raw_key!r} must be a list, got a string")
            result = tuple(outputs)
            if not result:
                raise CatalogError(f"Recipe {raw_key!r} has no outputs")
            if key in self._recipes:
                logger.warning("Duplicate recipe for %s; last definition wins", format_key(key))
            self._recipes[key] = result

    def __len__(self) -> int:
        return len(self._recipes)

    def __iter__(self):
        return iter(self._recipes.items())

    def resolve(self, a: str, b: str) -> tuple[str, ...] | None:
        """Outputs for the pair, or None when the pair does not combine."""
        return self._recipes.get(make_key(a, b))

    def has_recipe(self, a: str, b: str) -> bool:
        return make_key(a, b) in self._recipes

    def is_explosive(self, a: str, b: str) -> bool:
        """A recipe is explosive when it gives back one of its own inputs."""
        outputs = self.resolve(a, b)
        if not outputs:
            return False
        return any(name in (a, b) for name in outputs)

    def elements(self) -> list[str]:
        """Primitives plus every output in first-seen order."""
        seen: list[str] = list(PRIMITIVES)
        for outputs in self._recipes.values():
            for name in outputs:
                if name not in seen:
                    seen.append(name)
        return seen

    def reachable(self, start: Iterable[str] = PRIMITIVES) -> list[str]:
        """
        Every name obtainable from `start` by repeated combination.

        Order is discovery order of a breadth-first sweep: each round tries
        all known pairs in catalog order and appends new outputs.
        """
        known: list[str] = list(dict.fromkeys(start))
        grew = True
        while grew:
            grew = False
            for key, outputs in self._recipes.items():
                if not key <= set(known):
                    continue
                for name in outputs:
                    if name not in known:
                        known.append(name)
                        grew = True
        return known

    def to_dict(self) -> dict[str, list[str]]:
        """Serialize with "a+b" string keys (names sorted for stability)."""
        return {format_key(key): list(outputs) for key, outputs in self._recipes.items()}

    @classmethod
    def from_dict(cls, data: Mapping[str, Iterable[str]]) -> RecipeCatalog:
        if not isinstance(data, Mapping):
            raise CatalogError("Recipe table must be a JSON object")
        return cls(data)

    @classmethod
    def from_json(cls, path: str | Path) -> RecipeCatalog:
        """Load a {"a+b": ["out", ...]} table from disk."""
        try:
            with open(path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            raise CatalogError(f"Failed to load recipes from {path}: {e}") from e
        catalog = cls.from_dict(data)
        logger.info("Loaded %d recipes from %s", len(catalog), path)
        return catalog


def default_catalog() -> RecipeCatalog:
    """The built-in recipe table."""
    from ..data.recipes import RECIPES
    return RecipeCatalog(RECIPES)
