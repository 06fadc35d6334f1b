"""Parsing and formatting utilities."""

from __future__ import annotations

import math

_SIZE_UNITS = ("B", "KB", "MB", "GB")


def format_file_size(size_bytes: int | None) -> str:
    """Format a byte count with binary prefixes.

    Examples:
        - 1536 -> "1.50 KB"
        - 1073741824 -> "1.00 GB"
        - 0 / None -> ""

    Sizes beyond the largest unit are expressed in GB.
    """
    if not size_bytes or size_bytes < 0:
        return ""
    # log2 is exact for powers of two, so 1024**n lands on unit n.
    index = min(int(math.log2(size_bytes) // 10), len(_SIZE_UNITS) - 1)
    return f"{size_bytes / 1024**index:.2f} {_SIZE_UNITS[index]}"
