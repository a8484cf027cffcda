"""Buffer access analysis over a LoopNest subtree.

``compute_access`` flattens every refinement chain of a buffer, from the
queried block down to the innermost block refining it, into an
``AccessPattern``: the per-index strides of the buffer's linear address,
the folded constant offset, and the boundary guards that keep ragged tiles
in range.

A pattern is exact when every guard met along the chain could be stated
over the chain's own indices. Guards recorded by tiling reference the outer
half of a split, so a query rooted inside the inner block cannot express
them and reports ``is_exact=False`` with no constraint rows.
"""

import logging
from dataclasses import dataclass, field

from tabulate import tabulate

from looptile.errors import AmbiguousRefinementError, UnknownBufferError
from looptile.ir import Block, LoopNest

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AccessIndex:
    """One index of a flattened access.

    Attributes:
        name: Lineage name of the index (the original dimension it tiles).
        stride: Coefficient of the index in the buffer's linear address.
        range: Iteration count of the index.
    """

    name: str
    stride: int
    range: int


@dataclass(frozen=True)
class AccessConstraint:
    """Boundary guard ``sum(coefficients[i] * idx[i]) < bound``.

    Attributes:
        coefficients: One coefficient per entry of the owning pattern's indices.
        bound: Exclusive upper bound.
    """

    coefficients: tuple[int, ...]
    bound: int

    def holds(self, values: tuple[int, ...]) -> bool:
        """Return whether the guard admits an index assignment aligned with ``coefficients``."""
        return sum(c * v for c, v in zip(self.coefficients, values)) < self.bound


@dataclass(frozen=True)
class AccessPattern:
    """Flattened addressing of a buffer across one chain of loop levels.

    Attributes:
        is_exterior: True when the innermost level's own indices do not move
            the address, so the access can be hoisted out of that loop.
        is_exact: False when a guard met along the chain references indices
            outside the chain and therefore could not be listed.
        base_offset: Sum of every level's refinement offset.
        indices: Every index of the chain, outermost first.
        constraints: Guards a consumer must evaluate before trusting an address.
    """

    is_exterior: bool
    is_exact: bool
    base_offset: int
    indices: tuple[AccessIndex, ...]
    constraints: tuple[AccessConstraint, ...] = ()

    def address(self, values: tuple[int, ...]) -> int:
        """Return the linear address at an index assignment aligned with ``indices``."""
        return self.base_offset + sum(idx.stride * v for idx, v in zip(self.indices, values))


@dataclass
class _Chain:
    """Mutable accumulator for one refinement chain; copied at every branch."""

    names: list[str] = field(default_factory=list)
    dims: list[str] = field(default_factory=list)
    strides: list[int] = field(default_factory=list)
    ranges: list[int] = field(default_factory=list)
    rows: list[tuple[dict[int, int], int]] = field(default_factory=list)
    base_offset: int = 0
    is_exact: bool = True
    is_exterior: bool = True
    refined: bool = False

    def copy(self) -> "_Chain":
        """Return an independent copy of the accumulator."""
        return _Chain(
            names=list(self.names),
            dims=list(self.dims),
            strides=list(self.strides),
            ranges=list(self.ranges),
            rows=[(dict(row), bound) for row, bound in self.rows],
            base_offset=self.base_offset,
            is_exact=self.is_exact,
            is_exterior=self.is_exterior,
            refined=self.refined,
        )

    def descend(self, block: Block, buffer: str) -> None:
        """Fold one level: its indices, its refinement for ``buffer`` and its guards."""
        for var in block.index_vars:
            self.names.append(var.name)
            self.dims.append(var.dim)
            self.strides.append(0)
            self.ranges.append(var.range)
        positions = {name: pos for pos, name in enumerate(self.names)}

        self.is_exterior = True
        refinement = block.refinements.get(buffer)
        if refinement is not None:
            self.refined = True
            self.base_offset += refinement.access.offset
            # Terms on indices above the query root are fixed for this query.
            for name, coefficient in refinement.access.terms:
                if name in positions:
                    self.strides[positions[name]] += coefficient
            self.is_exterior = all(refinement.access.coefficient(var.name) == 0 for var in block.index_vars)

        for constraint in block.constraints:
            terms = [(name, c) for name, c in constraint.access.terms if c != 0]
            if all(name in positions for name, _ in terms):
                row = {positions[name]: c for name, c in terms}
                self.rows.append((row, constraint.bound - constraint.access.offset))
            else:
                self.is_exact = False

    def pattern(self) -> AccessPattern:
        """Freeze the accumulated chain into an AccessPattern."""
        width = len(self.names)
        return AccessPattern(
            is_exterior=self.is_exterior,
            is_exact=self.is_exact,
            base_offset=self.base_offset,
            indices=tuple(AccessIndex(d, s, r) for d, s, r in zip(self.dims, self.strides, self.ranges)),
            constraints=tuple(
                AccessConstraint(tuple(row.get(pos, 0) for pos in range(width)), bound) for row, bound in self.rows
            ),
        )


def _refines(nest: LoopNest, block_id: int, buffer: str) -> bool:
    """Return whether any block in the subtree declares a refinement for ``buffer``."""
    return any(buffer in nest.block(level).refinements for level in nest.subtree(block_id))


def _entry_offsets(nest: LoopNest, block_id: int, buffer: str) -> set[int]:
    """Return the offsets of the first refinements of ``buffer`` met going down from ``block_id``."""
    refinement = nest.block(block_id).refinements.get(buffer)
    if refinement is not None:
        return {refinement.access.offset}
    offsets: set[int] = set()
    for child in nest.children(block_id):
        offsets |= _entry_offsets(nest, child, buffer)
    return offsets


def _check_siblings(nest: LoopNest, block_id: int, live: list[int], buffer: str) -> None:
    """Reject sibling chains entering ``buffer`` at different offsets under an unrefined parent.

    Siblings without a refinement of their own are compared through the
    first refinement below them.

    Raises:
        AmbiguousRefinementError: If the siblings disagree on the offset.
    """
    parent = nest.block(block_id)
    if buffer in parent.refinements:
        return
    offsets: set[int] = set()
    for child in live:
        offsets |= _entry_offsets(nest, child, buffer)
    if len(offsets) > 1:
        raise AmbiguousRefinementError(
            f"Children of block '{parent.name}' refine '{buffer}' at offsets {sorted(offsets)} "
            f"with no refinement in '{parent.name}'"
        )


def _walk(nest: LoopNest, block_id: int, buffer: str, chain: _Chain, patterns: list[AccessPattern]) -> None:
    """Extend ``chain`` into every child that still refines ``buffer``; emit a pattern at each chain end."""
    live = [child for child in nest.children(block_id) if _refines(nest, child, buffer)]
    if not live:
        if chain.refined:
            patterns.append(chain.pattern())
        return
    _check_siblings(nest, block_id, live, buffer)
    for child in live:
        branch = chain.copy()
        branch.descend(nest.block(child), buffer)
        _walk(nest, child, buffer, branch, patterns)


def compute_access(nest: LoopNest, block_id: int, buffer: str) -> list[AccessPattern]:
    """Compute the access patterns of a buffer below a block.

    Args:
        nest: Nest to analyze. Not modified.
        block_id: Query root. Its indices are the outermost of every pattern;
            nothing above it is folded in.
        buffer: Buffer name.

    Returns:
        One pattern per refinement chain, in statement order. Empty when the
        buffer is not refined anywhere in the subtree.

    Raises:
        AmbiguousRefinementError: If sibling blocks refine the buffer at
            different offsets under a parent that does not refine it.
    """
    chain = _Chain()
    chain.descend(nest.block(block_id), buffer)
    patterns: list[AccessPattern] = []
    _walk(nest, block_id, buffer, chain, patterns)
    logger.debug("Access of '%s' under '%s':\n%s", buffer, nest.block(block_id).name, format_access(patterns))
    return patterns


def require_access(nest: LoopNest, block_id: int, buffer: str) -> list[AccessPattern]:
    """Like ``compute_access``, but the buffer must be accessed.

    Raises:
        UnknownBufferError: If no pattern is found.
    """
    patterns = compute_access(nest, block_id, buffer)
    if not patterns:
        raise UnknownBufferError(f"Buffer '{buffer}' is not accessed under block '{nest.block(block_id).name}'")
    return patterns


def compute_all_access(nest: LoopNest, block_id: int) -> dict[str, list[AccessPattern]]:
    """Compute access patterns for every buffer refined in the subtree.

    This is the per-buffer descriptor set a backend consumes alongside the
    tiled nest.

    Args:
        nest: Nest to analyze.
        block_id: Query root.

    Returns:
        Maps buffer name to its patterns, in first-refined order.
    """
    return {buffer: compute_access(nest, block_id, buffer) for buffer in nest.buffers(block_id)}


def format_access(patterns: list[AccessPattern]) -> str:
    """Format access patterns as human-readable tables.

    Args:
        patterns: Patterns returned by ``compute_access``.

    Returns:
        One index table per pattern, followed by its constraint table.
    """
    if not patterns:
        return "(no access)"
    blocks = []
    for number, pattern in enumerate(patterns):
        lines = [
            f"pattern {number}: exterior={pattern.is_exterior} exact={pattern.is_exact} offset={pattern.base_offset}"
        ]
        rows = [[idx.name, idx.stride, idx.range] for idx in pattern.indices]
        lines.append(tabulate(rows, headers=["index", "stride", "range"], tablefmt="simple"))
        if pattern.constraints:
            headers = [idx.name for idx in pattern.indices] + ["< bound"]
            rows = [[*c.coefficients, c.bound] for c in pattern.constraints]
            lines.append(tabulate(rows, headers=headers, tablefmt="simple"))
        blocks.append("\n".join(lines))
    return "\n\n".join(blocks)
