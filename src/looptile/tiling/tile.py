"""Tiling engine: split every loop of a block into an outer/inner pair.

``apply_tile`` is a pure transform. It clones the nest, turns the target
block into the outer (tile-count) level and moves its body into a new inner
(within-tile) block. Every affine map in the moved subtree is rewritten so
that it evaluates to the same address under ``v = T*v_o + v_i``.

The outer range is a ceiling division, so the last outer step of a
non-dividing tile over-runs the original range by up to ``T - 1``. The
engine never shrinks the inner range; it records a guard
``T*v_o + v_i < R`` on the inner block instead.
"""

import logging
from collections.abc import Sequence

from looptile.errors import ShapeMismatchError
from looptile.ir import AffineMap, Block, Constraint, IndexVariable, LoopNest

logger = logging.getLogger(__name__)

OUTER_SUFFIX = "_o"
INNER_SUFFIX = "_i"
INNER_BLOCK_SUFFIX = "_inner"


def _fresh_name(base: str, taken: set[str]) -> str:
    """Return ``base`` or ``base<N>``, whichever is first unused, and reserve it."""
    name = base
    counter = 1
    while name in taken:
        name = f"{base}{counter}"
        counter += 1
    taken.add(name)
    return name


def split_index(var: IndexVariable, tile: int, taken: set[str]) -> tuple[IndexVariable, IndexVariable]:
    """Split one index variable into its outer and inner halves.

    Args:
        var: Variable with range ``R`` and base stride ``S``.
        tile: Tile size ``T``, at least 1.
        taken: Names already used in the nest; the new names are added to it.

    Returns:
        Tuple of (outer, inner). Outer has range ``ceil(R/T)`` and base stride
        ``S*T``; inner has range ``T`` and base stride ``S``. Both keep the
        lineage ``dim`` of ``var``.
    """
    outer = IndexVariable(
        name=_fresh_name(var.name + OUTER_SUFFIX, taken),
        range=-(-var.range // tile),
        base_stride=var.base_stride * tile,
        dim=var.dim,
    )
    inner = IndexVariable(
        name=_fresh_name(var.name + INNER_SUFFIX, taken), range=tile, base_stride=var.base_stride, dim=var.dim
    )
    return outer, inner


def _rewrite_block(block: Block, splits: list[tuple[str, int, str, str]]) -> None:
    """Rewrite every refinement and constraint of ``block`` across the given splits."""
    for buffer, refinement in block.refinements.items():
        for split in splits:
            refinement = refinement.split(*split)
        block.refinements[buffer] = refinement
    constraints = []
    for constraint in block.constraints:
        for split in splits:
            constraint = constraint.split(*split)
        constraints.append(constraint)
    block.constraints = constraints


def apply_tile(nest: LoopNest, block_id: int, tile_shape: Sequence[int]) -> LoopNest:
    """Tile a block's loops by the given shape.

    Args:
        nest: Nest holding the block. Not modified.
        block_id: Id of the block to tile.
        tile_shape: One tile size per index variable, in declaration order.

    Returns:
        A new nest where ``block_id`` holds only the outer variables and a
        single nested inner block. The inner block keeps the same body,
        the inner variables, the rewritten refinements and constraints, and
        one guard per non-dividing tile. The inner block is the last block
        added to the nest.

    Raises:
        ShapeMismatchError: If the tile shape length differs from the number
            of index variables or a tile size is below 1.
    """
    block = nest.block(block_id)
    tile_shape = list(tile_shape)
    if len(tile_shape) != len(block.index_vars):
        raise ShapeMismatchError(
            f"Tile shape {tile_shape} has {len(tile_shape)} entries, block '{block.name}' "
            f"has {len(block.index_vars)} indices"
        )
    if any(tile < 1 for tile in tile_shape):
        raise ShapeMismatchError(f"Tile shape {tile_shape} for block '{block.name}' has sizes below 1")

    tiled = nest.clone()
    target = tiled.block(block_id)
    taken = tiled.index_names()

    outer_vars: list[IndexVariable] = []
    inner_vars: list[IndexVariable] = []
    splits: list[tuple[str, int, str, str]] = []
    guards: list[Constraint] = []
    for var, tile in zip(target.index_vars, tile_shape):
        outer, inner = split_index(var, tile, taken)
        outer_vars.append(outer)
        inner_vars.append(inner)
        splits.append((var.name, tile, outer.name, inner.name))
        if var.range % tile:
            guards.append(Constraint(AffineMap(terms=((outer.name, tile), (inner.name, 1))), var.range))

    inner_block = Block(
        name=target.name + INNER_BLOCK_SUFFIX,
        index_vars=inner_vars,
        refinements=dict(target.refinements),
        statements=list(target.statements),
        constraints=list(target.constraints),
    )
    _rewrite_block(inner_block, splits)
    inner_block.constraints.extend(guards)

    moved = tiled.children(block_id)
    target.index_vars = outer_vars
    target.refinements = {}
    target.statements = []
    target.constraints = []
    inner_id = tiled.add_block(inner_block, parent=block_id)
    for child in moved:
        tiled.remove_edge(block_id, child)
        tiled.add_edge(inner_id, child)
        for descendant in tiled.subtree(child):
            _rewrite_block(tiled.block(descendant), splits)

    logger.debug("Tiled block '%s' by %s:\n%s", block.name, tile_shape, tiled.format(block_id))
    return tiled
