"""Builder for contraction kernels described by einsum subscripts.

Stands in for a language front-end: turns ``"mk,kn->mn"`` plus buffer
names and index sizes into a two-level LoopNest (``main`` holding one
``kernel`` block) with row-major refinements.
"""

import logging
from collections.abc import Mapping, Sequence

from looptile.ir.affine import AffineMap
from looptile.ir.nest import LoopNest
from looptile.ir.types import READ, WRITE, Block, IndexVariable, LeafOp, Refinement

logger = logging.getLogger(__name__)


def _parse_subscripts(subscripts: str) -> tuple[list[str], str]:
    """Split einsum subscripts into operand and output index strings.

    Raises:
        ValueError: If the subscripts have no ``->`` or contain non-letters.
    """
    if "->" not in subscripts:
        raise ValueError(f"Subscripts '{subscripts}' must contain '->'")
    lhs, output = subscripts.replace(" ", "").split("->")
    operands = lhs.split(",")
    for part in [*operands, output]:
        if not part.isalpha():
            raise ValueError(f"Subscript '{part}' must be a non-empty string of index letters")
    return operands, output


def row_major_access(indices: str, sizes: Mapping[str, int]) -> AffineMap:
    """Address a buffer whose axes are ``indices`` in row-major order.

    A letter repeated across axes (a diagonal access) accumulates its strides.

    Args:
        indices: One index letter per buffer axis, outermost first.
        sizes: Size of every index.

    Returns:
        Affine map with zero offset and one term per distinct index.
    """
    terms: dict[str, int] = {}
    stride = 1
    for name in reversed(indices):
        terms[name] = terms.get(name, 0) + stride
        stride *= sizes[name]
    ordered = {name: terms[name] for name in dict.fromkeys(indices)}
    return AffineMap.from_dict(ordered)


def build_contraction(
    name: str, subscripts: str, buffers: Sequence[str], sizes: Mapping[str, int], op: str = "mul_add"
) -> tuple[LoopNest, int]:
    """Build the loop nest of a tensor contraction.

    The kernel block declares every index in alphabetical order, so
    ``"mk,kn->mn"`` yields indices ``k, m, n``.

    Args:
        name: Kernel block name.
        subscripts: Einsum subscripts, e.g. ``"mk,kn->mn"``.
        buffers: Buffer name per operand followed by the output buffer name.
        sizes: Size of every index letter.
        op: Name of the leaf op in the kernel body.

    Returns:
        Tuple of (nest, kernel block id).

    Raises:
        ValueError: If the buffer count does not match the subscripts or an
            index has no size.

    Example:
        >>> nest, kernel = build_contraction("matmul", "mk,kn->mn", ("A", "B", "C"), {"m": 5, "k": 5, "n": 5})
        >>> [var.name for var in nest.block(kernel).index_vars]
        ['k', 'm', 'n']
    """
    operands, output = _parse_subscripts(subscripts)
    if len(buffers) != len(operands) + 1:
        raise ValueError(f"Expected {len(operands) + 1} buffer names for '{subscripts}', got {len(buffers)}")
    letters = sorted(set("".join([*operands, output])))
    missing = [letter for letter in letters if letter not in sizes]
    if missing:
        raise ValueError(f"No size given for indices {missing}")

    roles = [(buf, idx, READ) for buf, idx in zip(buffers[:-1], operands)] + [(buffers[-1], output, WRITE)]

    main = Block(name="main")
    for buf, _, direction in roles:
        main.refine(Refinement(buf, AffineMap(), direction))
    nest = LoopNest()
    main_id = nest.add_block(main)

    kernel = Block(name=name, index_vars=[IndexVariable(letter, sizes[letter]) for letter in letters])
    for buf, indices, direction in roles:
        kernel.refine(Refinement(buf, row_major_access(indices, sizes), direction))
    kernel.statements.append(LeafOp(op, tuple(buffers)))
    kernel_id = nest.add_block(kernel, parent=main_id)

    nest.validate()
    logger.debug("Built contraction '%s' (%s):\n%s", name, subscripts, nest.format())
    return nest, kernel_id
