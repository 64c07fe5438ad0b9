"""
Atomic file writes for the migration output tree.

Every output file is written to a sibling temporary file and moved into
place with ``os.replace`` so a cancelled or crashed run never leaves a
half-written file behind.
"""

import os
import json
import shutil
import threading
from pathlib import Path
from typing import Any, Callable, Union

import toml

from .image import ImageUtils


PathLike = Union[str, Path]


def _temp_path(path: Path) -> Path:
    return path.with_name(f"{path.name}.tmp.{os.getpid()}.{threading.get_ident()}")


def _atomic(path: PathLike, writer: Callable[[Path], None]) -> Path:
    """
    Run ``writer`` against a temporary path and move the result onto ``path``.

    Args:
        path: Final destination
        writer: Callable that fully writes the temporary file

    Returns:
        The destination path
    """
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    tmp_path = _temp_path(path)
    try:
        writer(tmp_path)
        os.replace(tmp_path, path)
    finally:
        if tmp_path.exists():
            try:
                tmp_path.unlink()
            except OSError:
                pass
    return path


def atomic_write_bytes(path: PathLike, data: bytes) -> Path:
    """Write raw bytes atomically."""
    def writer(tmp: Path) -> None:
        with open(tmp, 'wb') as f:
            f.write(data)
            f.flush()
            os.fsync(f.fileno())

    return _atomic(path, writer)


def atomic_write_text(path: PathLike, text: str) -> Path:
    """Write UTF-8 text atomically."""
    return atomic_write_bytes(path, text.encode('utf-8'))


def atomic_write_json(path: PathLike, data: Any) -> Path:
    """Serialize ``data`` as indented JSON and write it atomically."""
    return atomic_write_text(path, json.dumps(data, indent=2) + "\n")


def atomic_write_toml(path: PathLike, data: dict) -> Path:
    """Serialize ``data`` as TOML and write it atomically."""
    return atomic_write_text(path, toml.dumps(data))


def atomic_copy(source: PathLike, destination: PathLike) -> Path:
    """Copy a file's bytes to ``destination`` atomically (no metadata copy)."""
    def writer(tmp: Path) -> None:
        with open(source, 'rb') as src, open(tmp, 'wb') as dst:
            shutil.copyfileobj(src, dst)
            dst.flush()
            os.fsync(dst.fileno())

    return _atomic(destination, writer)


def atomic_save_image(image, path: PathLike, format: str = 'PNG', **kwargs) -> Path:
    """Save a Pillow image atomically."""
    return _atomic(path, lambda tmp: ImageUtils.save_image(image, str(tmp), format=format, **kwargs))


def ensure_writable_directory(path: PathLike) -> Path:
    """
    Create ``path`` if needed and prove it accepts writes.

    Raises:
        OSError: If the directory cannot be created or written to
    """
    path = Path(path)
    path.mkdir(parents=True, exist_ok=True)
    probe = _temp_path(path / ".write_probe")
    with open(probe, 'wb') as f:
        f.write(b"")
    probe.unlink()
    return path
