"""
Built-in recipe table.

Keys are unordered pairs; the order written here carries no meaning.
Output order does: it decides spawn order, discovery order and the
bounce-apart angle of each product.
"""

RECIPES: dict[frozenset[str], tuple[str, ...]] = {
    frozenset({"water", "air"}): ("steam",),
    frozenset({"air", "fire"}): ("energy",),
    frozenset({"air", "earth"}): ("dust",),
    frozenset({"earth", "fire"}): ("lava",),
    frozenset({"water", "earth"}): ("swamp",),
    frozenset({"water", "fire"}): ("alcohol",),
    frozenset({"water", "lava"}): ("steam", "stone"),
    frozenset({"air", "stone"}): ("sand",),
    frozenset({"water", "stone"}): ("sand",),
    frozenset({"stone", "fire"}): ("metal",),
}
