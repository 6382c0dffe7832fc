from __future__ import annotations

import os
import tempfile
from pathlib import Path

from .models import IoError


def atomic_write_bytes(path: Path, content: bytes) -> None:
    """Write *content* to *path* atomically.

    Writes to a temporary file in the same directory, then renames
    (``os.replace``) into place.  Readers see either the old file or the
    complete new one, never a partial write.
    """
    path.parent.mkdir(parents=True, exist_ok=True)
    fd, tmp_path = tempfile.mkstemp(
        dir=str(path.parent),
        prefix=f".{path.name}.",
        suffix=".tmp",
    )
    try:
        with os.fdopen(fd, "wb") as tmp_handle:
            tmp_handle.write(content)
            tmp_handle.flush()
            os.fsync(tmp_handle.fileno())
        os.replace(tmp_path, str(path))
    except BaseException:
        # Clean up the temp file on any failure.
        try:
            os.unlink(tmp_path)
        except OSError:
            pass
        raise


def chained_io_error(message: str, cause: BaseException) -> IoError:
    """Build an ``IoError`` whose ``__cause__`` is *cause*, for fatal results."""
    error = IoError(message)
    error.__cause__ = cause
    return error


def is_contained_name(name: str) -> bool:
    """Return True if *name* is a relative name that stays inside its store.

    Bundles address entries by relative name only; absolute names, the bare
    ``.``, any name with a ``..`` segment and names holding a NUL byte are
    never theirs.
    """
    if not name or name == "." or name.startswith("/") or "\x00" in name:
        return False
    return ".." not in name.split("/")
