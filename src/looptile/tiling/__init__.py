"""Tiling pass: applies a caller-chosen tile shape to one block of a LoopNest."""

from looptile.tiling.tile import INNER_BLOCK_SUFFIX, INNER_SUFFIX, OUTER_SUFFIX, apply_tile, split_index

__all__ = ["INNER_BLOCK_SUFFIX", "INNER_SUFFIX", "OUTER_SUFFIX", "apply_tile", "split_index"]
