"""Numerical evaluation of access patterns.

Enumerates the iteration space of a pattern with numpy and evaluates its
addresses and guards. This is the reference behaviour a backend must
reproduce: an iteration whose guard row fails is skipped, never clamped.
"""

import numpy as np

from looptile.analysis.access import AccessPattern


def iteration_points(pattern: AccessPattern) -> np.ndarray:
    """Enumerate every index assignment of a pattern.

    Args:
        pattern: Access pattern to enumerate.

    Returns:
        Integer array of shape ``(N, len(indices))`` in row-major order over
        the indices (the last index varies fastest). A pattern without
        indices has a single empty assignment.
    """
    ranges = [idx.range for idx in pattern.indices]
    if not ranges:
        return np.zeros((1, 0), dtype=np.int64)
    grids = np.indices(ranges, dtype=np.int64)
    return grids.reshape(len(ranges), -1).T


def guard_matrix(pattern: AccessPattern) -> tuple[np.ndarray, np.ndarray]:
    """Stack a pattern's constraints into a coefficient matrix and bound vector.

    Returns:
        Tuple of (coefficients of shape ``(C, len(indices))``, bounds of shape ``(C,)``).
    """
    coefficients = np.zeros((len(pattern.constraints), len(pattern.indices)), dtype=np.int64)
    for row, constraint in enumerate(pattern.constraints):
        coefficients[row] = constraint.coefficients
    bounds = np.array([c.bound for c in pattern.constraints], dtype=np.int64)
    return coefficients, bounds


def access_addresses(pattern: AccessPattern) -> tuple[np.ndarray, np.ndarray]:
    """Evaluate the address and guard of every iteration.

    Returns:
        Tuple of (addresses of shape ``(N,)``, boolean mask of shape ``(N,)``
        that is True where every guard holds).
    """
    points = iteration_points(pattern)
    strides = np.array([idx.stride for idx in pattern.indices], dtype=np.int64)
    addresses = pattern.base_offset + points @ strides
    coefficients, bounds = guard_matrix(pattern)
    valid = np.all(points @ coefficients.T < bounds, axis=1)
    return addresses, valid


def access_footprint(pattern: AccessPattern) -> np.ndarray:
    """Return the sorted distinct addresses touched by in-range iterations."""
    addresses, valid = access_addresses(pattern)
    return np.unique(addresses[valid])
