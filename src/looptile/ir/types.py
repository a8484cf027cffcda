"""Loop-nest IR types: index variables, refinements, statements and blocks."""

from dataclasses import dataclass, field
from typing import Literal

from looptile.errors import InvalidNestError
from looptile.ir.affine import AffineMap, Constraint

READ = "read"
WRITE = "write"
READWRITE = "readwrite"

Direction = Literal["read", "write", "readwrite"]


@dataclass(frozen=True)
class IndexVariable:
    """One loop dimension declared by a block.

    Attributes:
        name: Name unique within the declaring block and its ancestors.
        range: Trip count, at least 1.
        base_stride: Unit step of the underlying linear index this variable
            advances, set by whichever transform introduced it.
        dim: Lineage label: the original dimension this variable was derived
            from. Defaults to ``name``; tiling copies it to both halves.
    """

    name: str
    range: int
    base_stride: int = 1
    dim: str = ""

    def __post_init__(self) -> None:
        """Validate the range and default the lineage label."""
        if self.range < 1:
            raise InvalidNestError(f"Index '{self.name}' has range {self.range}, expected >= 1")
        if not self.dim:
            object.__setattr__(self, "dim", self.name)

    def __str__(self) -> str:
        """Render as ``k:5``."""
        return f"{self.name}:{self.range}"


@dataclass(frozen=True)
class Refinement:
    """Scoped binding from a buffer to its affine address expression.

    Attributes:
        buffer: Buffer name.
        access: Address of the buffer element touched at each iteration.
        direction: One of ``"read"``, ``"write"``, ``"readwrite"``.
    """

    buffer: str
    access: AffineMap = AffineMap()
    direction: Direction = READ

    def __post_init__(self) -> None:
        """Validate the direction."""
        if self.direction not in (READ, WRITE, READWRITE):
            raise InvalidNestError(
                f"Refinement of '{self.buffer}' has direction '{self.direction}', "
                f"expected one of {[READ, WRITE, READWRITE]}"
            )

    def split(self, name: str, tile: int, outer: str, inner: str) -> "Refinement":
        """Return a copy whose access expression is rewritten across a tiling split."""
        return Refinement(self.buffer, self.access.split(name, tile, outer, inner), self.direction)

    def __str__(self) -> str:
        """Render as ``A read: 5*m + k``."""
        return f"{self.buffer} {self.direction}: {self.access}"


@dataclass(frozen=True)
class LeafOp:
    """Opaque compute statement naming the buffers it touches.

    Attributes:
        name: Operation name (e.g. ``"mul_add"``).
        buffers: Buffers the op references through in-scope refinements.
    """

    name: str
    buffers: tuple[str, ...] = ()


@dataclass(frozen=True)
class NestedBlock:
    """Statement holding a child block by its id in the owning LoopNest."""

    block_id: int


Statement = LeafOp | NestedBlock


@dataclass
class Block:
    """One loop level: index variables, buffer refinements and statements.

    Attributes:
        name: Human-readable block name.
        index_vars: Loop dimensions declared at this level, outermost first.
        refinements: Maps buffer name to its refinement at this level.
        statements: Ordered body of the block.
        constraints: Guards on index values that must hold for the body to run.
    """

    name: str
    index_vars: list[IndexVariable] = field(default_factory=list)
    refinements: dict[str, Refinement] = field(default_factory=dict)
    statements: list[Statement] = field(default_factory=list)
    constraints: list[Constraint] = field(default_factory=list)

    def refine(self, refinement: Refinement) -> None:
        """Declare (or replace) the refinement for ``refinement.buffer``."""
        self.refinements[refinement.buffer] = refinement

    def index_var(self, name: str) -> IndexVariable:
        """Look up a locally declared index variable.

        Raises:
            KeyError: If this block declares no variable ``name``.
        """
        for var in self.index_vars:
            if var.name == name:
                return var
        raise KeyError(f"Block '{self.name}' declares no index '{name}'")

    def copy(self) -> "Block":
        """Return a copy with fresh containers; elements are immutable and shared."""
        return Block(
            name=self.name,
            index_vars=list(self.index_vars),
            refinements=dict(self.refinements),
            statements=list(self.statements),
            constraints=list(self.constraints),
        )
