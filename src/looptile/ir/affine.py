"""Affine addressing: AffineMap, Constraint and the term-splitting helper."""

from collections.abc import Mapping
from dataclasses import dataclass

from looptile.errors import InvalidNestError

Term = tuple[str, int]


def split_term(term: Term, tile: int, outer: str, inner: str) -> tuple[Term, Term]:
    """Decompose one affine term across an outer/inner tiling split.

    A term ``c*v`` where ``v = tile*outer + inner`` becomes
    ``(c*tile)*outer + c*inner``.

    Args:
        term: ``(name, coefficient)`` pair referencing the split variable.
        tile: Inner tile size.
        outer: Name of the outer (tile-count) variable.
        inner: Name of the inner (within-tile) variable.

    Returns:
        Tuple of (outer term, inner term).
    """
    _, coefficient = term
    return ((outer, coefficient * tile), (inner, coefficient))


@dataclass(frozen=True)
class AffineMap:
    """A constant offset plus a linear combination of named index variables.

    Represents ``offset + sum(coefficient * value(name))``. Names must be
    unique across ``terms``.

    Attributes:
        offset: Constant term.
        terms: Ordered ``(name, coefficient)`` pairs.
    """

    offset: int = 0
    terms: tuple[Term, ...] = ()

    def __post_init__(self) -> None:
        """Reject repeated variable names."""
        names = [name for name, _ in self.terms]
        if len(names) != len(set(names)):
            raise InvalidNestError(f"Affine map has repeated terms: {names}")

    @classmethod
    def from_dict(cls, terms: Mapping[str, int], offset: int = 0) -> "AffineMap":
        """Build a map from a ``{name: coefficient}`` mapping, preserving its order."""
        return cls(offset=offset, terms=tuple(terms.items()))

    @property
    def names(self) -> tuple[str, ...]:
        """Variable names referenced by this map, in term order."""
        return tuple(name for name, _ in self.terms)

    def coefficient(self, name: str) -> int:
        """Return the coefficient of ``name``, or 0 when it does not appear."""
        for term_name, coefficient in self.terms:
            if term_name == name:
                return coefficient
        return 0

    def evaluate(self, values: Mapping[str, int]) -> int:
        """Evaluate the map at a concrete index assignment.

        Args:
            values: Value of every variable referenced by the map.

        Returns:
            The integer address.

        Raises:
            KeyError: If a referenced variable has no value.
        """
        return self.offset + sum(coefficient * values[name] for name, coefficient in self.terms)

    def split(self, name: str, tile: int, outer: str, inner: str) -> "AffineMap":
        """Rewrite every term on ``name`` into its outer and inner parts.

        Args:
            name: Variable being tiled.
            tile: Inner tile size.
            outer: Name of the new outer variable.
            inner: Name of the new inner variable.

        Returns:
            New map with the same value under ``name = tile*outer + inner``.
        """
        terms: list[Term] = []
        for term in self.terms:
            if term[0] == name:
                terms.extend(split_term(term, tile, outer, inner))
            else:
                terms.append(term)
        return AffineMap(offset=self.offset, terms=tuple(terms))

    def __str__(self) -> str:
        """Render as ``5*m - k + 3``, with signs folded into the joiners."""
        signed = [(name if abs(c) == 1 else f"{abs(c)}*{name}", c < 0) for name, c in self.terms]
        if self.offset or not signed:
            signed.append((str(abs(self.offset)), self.offset < 0))
        text, negative = signed[0]
        parts = [f"-{text}" if negative else text]
        for text, negative in signed[1:]:
            parts.append(f"{'-' if negative else '+'} {text}")
        return " ".join(parts)


@dataclass(frozen=True)
class Constraint:
    """A guard on index values: holds when ``access`` evaluates below ``bound``.

    Attributes:
        access: Affine expression over visible index variables.
        bound: Exclusive upper bound.
    """

    access: AffineMap
    bound: int

    def holds(self, values: Mapping[str, int]) -> bool:
        """Return whether the guard admits the given index assignment."""
        return self.access.evaluate(values) < self.bound

    def split(self, name: str, tile: int, outer: str, inner: str) -> "Constraint":
        """Rewrite the guard's expression across a tiling split."""
        return Constraint(self.access.split(name, tile, outer, inner), self.bound)

    def __str__(self) -> str:
        """Render as ``2*k_o + k_i < 5``."""
        return f"{self.access} < {self.bound}"
