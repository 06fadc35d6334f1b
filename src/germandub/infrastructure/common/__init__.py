"""Common infrastructure utilities."""

from __future__ import annotations

from .parsers import format_file_size

__all__ = ["format_file_size"]
