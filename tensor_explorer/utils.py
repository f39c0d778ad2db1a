"""Formatting helpers for tensor shapes and byte sizes."""

from __future__ import annotations

from collections.abc import Iterable

_SIZE_UNITS = ("B", "KB", "MB", "GB")


def format_shape(shape: Iterable[int]) -> str:
    """Render a shape as a parenthesised, comma separated list."""
    return "(" + ", ".join(str(dim) for dim in shape) + ")"


def format_size(num_bytes: int) -> str:
    """Render a byte count in B, KB, MB or GB with one decimal above bytes."""
    size = float(num_bytes)
    unit_idx = 0
    while size >= 1024.0 and unit_idx < len(_SIZE_UNITS) - 1:
        size /= 1024.0
        unit_idx += 1
    if unit_idx == 0:
        return f"{num_bytes} {_SIZE_UNITS[0]}"
    return f"{size:.1f} {_SIZE_UNITS[unit_idx]}"