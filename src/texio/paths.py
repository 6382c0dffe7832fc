"""Lexical normalization of TeX paths.

A *TeX path* obeys simplified semantics: ``/`` separators, Unicode text, and
no symlinks, so ``.`` and ``..`` can be resolved purely lexically.  Nothing
here touches the host filesystem; translating a normalized path into a host
path, archive entry or map key is the job of each backend.

Normalized forms look like::

    path/to/my/file.txt
    ../../path/to/parent/dir/file.txt
    /absolute/path/to/file.txt
"""

from __future__ import annotations

import logging

logger = logging.getLogger(__name__)

_ROOT = ""


def try_normalize_tex_path(path: str) -> str | None:
    """Strip ``.``, ``..`` and repeated separators from *path*.

    Whitespace is never stripped.  Leading ``..`` segments of a relative path
    that cannot cancel an earlier component are kept literally; a ``..`` that
    would climb above the root of an absolute path is rejected.

    Args:
        path: ``/``-separated path supplied by the engine.

    Returns:
        The normalized path, ``""`` for empty input, or ``None`` if the path
        refers to a parent of the root.
    """
    if not path:
        return ""

    components: list[str] = []
    parent_level = 0
    has_root = False

    for index, segment in enumerate(path.split("/")):
        if segment == "" and index == 0:
            has_root = True
            components.append(_ROOT)
        elif segment in ("", "."):
            continue
        elif segment == "..":
            if not components:
                parent_level += 1
            elif components[-1] == _ROOT:
                return None
            else:
                components.pop()
        else:
            components.append(segment)

    # The root sentinel is an empty string, so joining it yields the leading slash.
    normalized = "/".join([".."] * parent_level + components)
    if not normalized:
        return "/" if has_root else "."
    return normalized


def normalize_tex_path(path: str) -> str:
    """Normalize *path* if possible, otherwise return it unchanged.

    A failed normalization is not an error: the original string is passed on
    and the backend decides whether to accept it.
    """
    normalized = try_normalize_tex_path(path)
    if normalized is None:
        logger.debug("Path %r escapes its root; passing it through unnormalized", path)
        return path
    return normalized
