"""Access analysis: flattened per-buffer addressing and its numerical evaluation."""

from looptile.analysis.access import (
    AccessConstraint,
    AccessIndex,
    AccessPattern,
    compute_access,
    compute_all_access,
    format_access,
    require_access,
)
from looptile.analysis.footprint import access_addresses, access_footprint, guard_matrix, iteration_points

__all__ = [
    "AccessConstraint",
    "AccessIndex",
    "AccessPattern",
    "access_addresses",
    "access_footprint",
    "compute_access",
    "compute_all_access",
    "format_access",
    "guard_matrix",
    "iteration_points",
    "require_access",
]
