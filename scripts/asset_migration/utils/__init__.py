"""
Utility modules for image handling and atomic output writes.
"""

from .image import ImageUtils
from .fileio import (
    atomic_write_bytes,
    atomic_write_text,
    atomic_write_json,
    atomic_write_toml,
    atomic_copy,
    atomic_save_image,
    ensure_writable_directory,
)

__all__ = [
    "ImageUtils",
    "atomic_write_bytes",
    "atomic_write_text",
    "atomic_write_json",
    "atomic_write_toml",
    "atomic_copy",
    "atomic_save_image",
    "ensure_writable_directory",
]
