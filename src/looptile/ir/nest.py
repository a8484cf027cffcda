"""LoopNest: the arena holding every block of a loop-nest program.

Blocks are addressed by integer id. The arena is a ``networkx.DiGraph``
whose nodes carry the ``Block`` under the ``block`` attribute and whose
edges point from parent to child. Child order is the order of the parent's
``NestedBlock`` statements; name resolution walks parent links explicitly.
"""

import logging
from collections.abc import Iterator

import networkx as nx

from looptile.errors import InvalidNestError
from looptile.ir.affine import AffineMap
from looptile.ir.types import Block, IndexVariable, LeafOp, NestedBlock

logger = logging.getLogger(__name__)


class LoopNest(nx.DiGraph):
    """Tree of blocks with ancestor-scoped index variable visibility."""

    @property
    def root(self) -> int:
        """Id of the outermost block."""
        if "root" not in self.graph:
            raise InvalidNestError("Loop nest has no root block")
        return self.graph["root"]

    def add_block(self, block: Block, parent: int | None = None) -> int:
        """Add a block to the arena.

        The first block added without a parent becomes the root. A block
        added under ``parent`` is appended to the parent's statements.

        Args:
            block: Block to insert. The arena takes ownership.
            parent: Id of the enclosing block, or None for the root.

        Returns:
            The new block's id.

        Raises:
            InvalidNestError: If a second root is added or ``parent`` is unknown.
        """
        if parent is None and "root" in self.graph:
            raise InvalidNestError(f"Loop nest already has a root; cannot add '{block.name}' as another")
        if parent is not None and parent not in self:
            raise InvalidNestError(f"Unknown parent block id {parent}")
        block_id = self.number_of_nodes()
        self.add_node(block_id, block=block)
        if parent is None:
            self.graph["root"] = block_id
        else:
            self.add_edge(parent, block_id)
            self.block(parent).statements.append(NestedBlock(block_id))
        return block_id

    def block(self, block_id: int) -> Block:
        """Return the block stored under ``block_id``."""
        return self.nodes[block_id]["block"]

    def parent(self, block_id: int) -> int | None:
        """Return the id of the enclosing block, or None for the root."""
        preds = list(self.predecessors(block_id))
        return preds[0] if preds else None

    def children(self, block_id: int) -> list[int]:
        """Return ids of nested blocks in statement order."""
        return [stmt.block_id for stmt in self.block(block_id).statements if isinstance(stmt, NestedBlock)]

    def ancestors(self, block_id: int) -> list[int]:
        """Return ids of the enclosing blocks, outermost first, excluding ``block_id``."""
        chain: list[int] = []
        current = self.parent(block_id)
        while current is not None:
            chain.append(current)
            current = self.parent(current)
        chain.reverse()
        return chain

    def scope(self, block_id: int) -> dict[str, IndexVariable]:
        """Return every index variable visible inside ``block_id``, keyed by name."""
        visible: dict[str, IndexVariable] = {}
        for level in [*self.ancestors(block_id), block_id]:
            for var in self.block(level).index_vars:
                visible[var.name] = var
        return visible

    def subtree(self, block_id: int) -> Iterator[int]:
        """Yield ``block_id`` and its descendants in pre-order."""
        yield block_id
        for child in self.children(block_id):
            yield from self.subtree(child)

    def buffers(self, block_id: int) -> list[str]:
        """Return every buffer refined anywhere in the subtree, in first-seen order."""
        seen: dict[str, None] = {}
        for level in self.subtree(block_id):
            for name in self.block(level).refinements:
                seen.setdefault(name, None)
        return list(seen)

    def index_names(self) -> set[str]:
        """Return every index variable name declared anywhere in the nest."""
        return {var.name for _, data in self.nodes(data=True) for var in data["block"].index_vars}

    def clone(self) -> "LoopNest":
        """Return an independent copy; blocks get fresh containers."""
        nest = LoopNest()
        nest.graph.update(self.graph)
        for block_id, data in self.nodes(data=True):
            nest.add_node(block_id, block=data["block"].copy())
        nest.add_edges_from(self.edges)
        return nest

    def validate(self) -> None:
        """Check the structural invariants of the nest.

        Raises:
            InvalidNestError: If the nest is not a tree rooted at ``root``,
                statements and edges disagree, a name is declared twice or
                shadows an ancestor, a map references an invisible variable,
                or a leaf op uses a buffer with no refinement in scope.
        """
        root = self.root
        if not nx.is_arborescence(self) or self.parent(root) is not None:
            raise InvalidNestError("Loop nest is not a tree rooted at its root block")
        for block_id in self.nodes:
            if sorted(self.children(block_id)) != sorted(self.successors(block_id)):
                raise InvalidNestError(f"Block {block_id} statements disagree with the arena edges")
            self._validate_block(block_id)

    def _validate_block(self, block_id: int) -> None:
        """Check naming, scoping and buffer visibility for one block."""
        block = self.block(block_id)
        outer: dict[str, IndexVariable] = {}
        for level in self.ancestors(block_id):
            outer.update({var.name: var for var in self.block(level).index_vars})

        local: set[str] = set()
        for var in block.index_vars:
            if var.name in local:
                raise InvalidNestError(f"Block '{block.name}' declares index '{var.name}' twice")
            if var.name in outer:
                raise InvalidNestError(f"Index '{var.name}' in block '{block.name}' shadows an enclosing index")
            local.add(var.name)

        visible = local | set(outer)
        maps: list[tuple[str, AffineMap]] = [(f"refinement '{r.buffer}'", r.access) for r in block.refinements.values()]
        maps += [(f"constraint '{c}'", c.access) for c in block.constraints]
        for label, access in maps:
            unknown = [name for name in access.names if name not in visible]
            if unknown:
                raise InvalidNestError(f"{label} in block '{block.name}' references unknown indices {unknown}")

        in_scope: set[str] = set()
        for level in [*self.ancestors(block_id), block_id]:
            in_scope.update(self.block(level).refinements)
        for stmt in block.statements:
            if isinstance(stmt, LeafOp):
                missing = [name for name in stmt.buffers if name not in in_scope]
                if missing:
                    raise InvalidNestError(f"Op '{stmt.name}' in block '{block.name}' uses unrefined buffers {missing}")

    def format(self, block_id: int | None = None) -> str:
        """Render a subtree as indented text.

        Args:
            block_id: Subtree root; defaults to the nest root.

        Returns:
            Multi-line dump with one line per block, refinement, guard and op.
        """
        lines: list[str] = []
        self._format_block(self.root if block_id is None else block_id, 0, lines)
        return "\n".join(lines)

    def _format_block(self, block_id: int, depth: int, lines: list[str]) -> None:
        """Append the dump of one block and its body to ``lines``."""
        pad = "  " * depth
        block = self.block(block_id)
        header = f"{pad}block {block.name}"
        if block.index_vars:
            header += f" [{', '.join(str(var) for var in block.index_vars)}]"
        lines.append(header)
        for refinement in block.refinements.values():
            lines.append(f"{pad}  ref {refinement}")
        for constraint in block.constraints:
            lines.append(f"{pad}  guard {constraint}")
        for stmt in block.statements:
            if isinstance(stmt, NestedBlock):
                self._format_block(stmt.block_id, depth + 1, lines)
            else:
                lines.append(f"{pad}  op {stmt.name}({', '.join(stmt.buffers)})")

    def __repr__(self) -> str:
        """Return the text dump of the whole nest."""
        if "root" not in self.graph:
            return "LoopNest(<empty>)"
        return self.format()

    __str__ = __repr__
