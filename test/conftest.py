"""Shared test utilities and fixtures for pytest."""

from collections.abc import Sequence
from itertools import product

import pytest

from looptile.ir import AffineMap, Block, IndexVariable, LeafOp, LoopNest, Refinement, build_contraction

MATMUL_SIZES = {"m": 5, "k": 5, "n": 5}


@pytest.fixture
def matmul_nest() -> tuple[LoopNest, int]:
    """Fixture providing the 5x5 matmul ``C[m,n] = A[m,k] * B[k,n]``.

    Returns:
        Tuple of (nest, kernel block id). The kernel declares ``k, m, n``.
    """
    return build_contraction("kernel", "mk,kn->mn", ("A", "B", "C"), MATMUL_SIZES)


def single_block_nest(ranges: Sequence[int], coefficients: Sequence[int], offset: int = 0) -> tuple[LoopNest, int]:
    """Build a one-block nest whose buffer ``X`` is addressed by the given map.

    Index variables are named ``i0, i1, ...``.

    Args:
        ranges: Range of each index variable.
        coefficients: Coefficient of each index in the address of ``X``.
        offset: Constant term of the address.

    Returns:
        Tuple of (nest, block id).
    """
    names = [f"i{pos}" for pos in range(len(ranges))]
    block = Block(
        name="loop",
        index_vars=[IndexVariable(name, r) for name, r in zip(names, ranges)],
        statements=[LeafOp("touch", ("X",))],
    )
    block.refine(Refinement("X", AffineMap.from_dict(dict(zip(names, coefficients)), offset)))
    nest = LoopNest()
    block_id = nest.add_block(block)
    return nest, block_id


def iter_points(ranges: Sequence[int]):
    """Yield every index tuple of a rectangular iteration space."""
    yield from product(*(range(r) for r in ranges))


def split_values(
    point: Sequence[int], tile_shape: Sequence[int], outer: Block, inner: Block
) -> dict[str, int]:
    """Decompose combined index values into the variables of a tiled block pair.

    Args:
        point: Combined (untiled) value of each original index.
        tile_shape: Tile size per index.
        outer: The tiled block holding the outer variables.
        inner: The inner block holding the inner variables.

    Returns:
        Maps every outer and inner variable name to its value.
    """
    values: dict[str, int] = {}
    for value, tile, outer_var, inner_var in zip(point, tile_shape, outer.index_vars, inner.index_vars):
        values[outer_var.name] = value // tile
        values[inner_var.name] = value % tile
    return values


def shape_id(shape: Sequence[int]) -> str:
    """Format a shape tuple as a pytest id like ``5x5x5``."""
    return "x".join(str(s) for s in shape)
