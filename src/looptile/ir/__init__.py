"""Loop-nest IR: affine maps, blocks, the LoopNest arena and a contraction builder."""

from looptile.ir.affine import AffineMap, Constraint, split_term
from looptile.ir.builder import build_contraction, row_major_access
from looptile.ir.nest import LoopNest
from looptile.ir.types import (
    READ,
    READWRITE,
    WRITE,
    Block,
    Direction,
    IndexVariable,
    LeafOp,
    NestedBlock,
    Refinement,
    Statement,
)

__all__ = [
    "READ",
    "READWRITE",
    "WRITE",
    "AffineMap",
    "Block",
    "Constraint",
    "Direction",
    "IndexVariable",
    "LeafOp",
    "LoopNest",
    "NestedBlock",
    "Refinement",
    "Statement",
    "build_contraction",
    "row_major_access",
    "split_term",
]
