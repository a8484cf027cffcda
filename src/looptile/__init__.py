"""looptile - loop tiling and buffer access analysis for tensor kernels.

Pipeline: loop nest IR -> apply_tile (caller-chosen shape) -> compute_access per buffer

Subpackages:
    ir: Affine maps, blocks, the LoopNest arena and a contraction builder
    tiling: Splits a block's loops into outer/inner levels
    analysis: Flattens a buffer's addressing into AccessPatterns and evaluates them
    utils: Logging configuration
"""

from looptile.analysis import AccessConstraint, AccessIndex, AccessPattern, compute_access, require_access
from looptile.errors import (
    AmbiguousRefinementError,
    InvalidNestError,
    LoopTileError,
    ShapeMismatchError,
    UnknownBufferError,
)
from looptile.ir import AffineMap, Block, Constraint, IndexVariable, LeafOp, LoopNest, Refinement, build_contraction
from looptile.tiling import apply_tile

__all__ = [
    "AccessConstraint",
    "AccessIndex",
    "AccessPattern",
    "AffineMap",
    "AmbiguousRefinementError",
    "Block",
    "Constraint",
    "IndexVariable",
    "InvalidNestError",
    "LeafOp",
    "LoopNest",
    "LoopTileError",
    "Refinement",
    "ShapeMismatchError",
    "UnknownBufferError",
    "apply_tile",
    "build_contraction",
    "compute_access",
    "require_access",
]
