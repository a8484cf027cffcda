"""Exception types raised by looptile.

Every error indicates either a contract violation by the caller or a
structurally invalid IR. None of them is handled inside the library.
"""

__all__ = [
    "LoopTileError",
    "ShapeMismatchError",
    "AmbiguousRefinementError",
    "UnknownBufferError",
    "InvalidNestError",
]


class LoopTileError(Exception):
    """Base class for all looptile errors."""


class ShapeMismatchError(LoopTileError, ValueError):
    """Tile shape arity does not match the block, or a tile size is below 1."""


class AmbiguousRefinementError(LoopTileError, ValueError):
    """Sibling blocks refine the same buffer at different offsets with no parent refinement."""


class UnknownBufferError(LoopTileError, LookupError):
    """A buffer required to be accessed has no access pattern in the queried subtree."""


class InvalidNestError(LoopTileError, ValueError):
    """The loop nest violates a structural invariant (shadowing, unknown names, bad ranges)."""
