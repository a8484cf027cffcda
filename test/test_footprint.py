"""Tests for numerical evaluation of access patterns.

Checks that guard rows cut exactly the ragged iterations, so the set of
addresses a tiled kernel touches equals the untiled one.

Run with: pytest test/test_footprint.py -v
"""

import numpy as np
from access_golden import EXPECTED_INNER_A, EXPECTED_KERNEL_A
from hypothesis import given, settings
from hypothesis import strategies as st

from looptile.analysis import (
    AccessIndex,
    AccessPattern,
    access_addresses,
    access_footprint,
    compute_access,
    guard_matrix,
    iteration_points,
)
from looptile.ir import build_contraction
from looptile.tiling import apply_tile


class TestIterationPoints:
    """Tests for iteration_points."""

    def test_row_major_enumeration(self) -> None:
        """The last index varies fastest."""
        pattern = AccessPattern(False, True, 0, (AccessIndex("i", 1, 2), AccessIndex("j", 1, 3)))
        points = iteration_points(pattern)
        assert points.shape == (6, 2)
        np.testing.assert_array_equal(points[:4], [[0, 0], [0, 1], [0, 2], [1, 0]])

    def test_no_indices(self) -> None:
        """A pattern without indices has exactly one (empty) iteration."""
        pattern = AccessPattern(True, True, 7, ())
        assert iteration_points(pattern).shape == (1, 0)
        np.testing.assert_array_equal(access_footprint(pattern), [7])


class TestGuards:
    """Tests for guard_matrix and access_addresses."""

    def test_guard_matrix(self) -> None:
        """Constraint rows stack into a (C, N) matrix and a (C,) bound vector."""
        coefficients, bounds = guard_matrix(EXPECTED_KERNEL_A)
        assert coefficients.shape == (3, 6)
        np.testing.assert_array_equal(coefficients[1], [0, 2, 0, 0, 1, 0])
        np.testing.assert_array_equal(bounds, [5, 5, 5])

    def test_empty_guard_matrix(self) -> None:
        """Without constraints every iteration is valid."""
        coefficients, bounds = guard_matrix(EXPECTED_INNER_A)
        assert coefficients.shape == (0, 3)
        _, valid = access_addresses(EXPECTED_INNER_A)
        assert valid.all()

    def test_ragged_iterations_masked(self) -> None:
        """Of the 6**3 tiled iterations of the 5x5x5 kernel, exactly 5**3 pass the guards."""
        addresses, valid = access_addresses(EXPECTED_KERNEL_A)
        assert addresses.shape == (216,)
        assert int(valid.sum()) == 125
        assert addresses[valid].max() == 24


class TestFootprint:
    """Tests for access_footprint."""

    def test_tiled_matmul_footprint(self) -> None:
        """The tiled kernel reads every element of A exactly as the untiled one does."""
        np.testing.assert_array_equal(access_footprint(EXPECTED_KERNEL_A), np.arange(25))

    def test_unguarded_inner_overruns(self) -> None:
        """Read in isolation, one inner tile touches a 2x2 corner of A."""
        np.testing.assert_array_equal(access_footprint(EXPECTED_INNER_A), [0, 1, 5, 6])

    @settings(max_examples=50, deadline=None)
    @given(
        m=st.integers(min_value=1, max_value=6),
        k=st.integers(min_value=1, max_value=6),
        n=st.integers(min_value=1, max_value=6),
        tiles=st.tuples(*[st.integers(min_value=1, max_value=4)] * 3),
    )
    def test_tiling_preserves_footprint(self, m: int, k: int, n: int, tiles: tuple[int, int, int]) -> None:
        """Property: every buffer's footprint is unchanged by tiling."""
        nest, kernel_id = build_contraction("kernel", "mk,kn->mn", ("A", "B", "C"), {"m": m, "k": k, "n": n})
        tiled = apply_tile(nest, kernel_id, tiles)
        for buffer in ("A", "B", "C"):
            (before,) = compute_access(nest, kernel_id, buffer)
            (after,) = compute_access(tiled, kernel_id, buffer)
            np.testing.assert_array_equal(access_footprint(after), access_footprint(before))
