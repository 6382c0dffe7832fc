"""Digest-keyed cache of precompiled format files.

A format file is derived from a bundle, so it is only valid for the exact
bundle contents it was built from.  The cache stores ``plain.fmt`` built from
bundle digest ``D`` as ``<D>-plain.fmt``: once the bundle changes, the old
file is simply never looked up again.
"""

from __future__ import annotations

import logging
from pathlib import Path

from .digest import DigestData
from .handles import CommitOnCloseBuffer, InputHandle, OutputHandle
from .models import InputOrigin, OpenResult
from .provider import Bundle, IoProvider
from .utils import atomic_write_bytes

logger = logging.getLogger(__name__)

FORMAT_SUFFIX = ".fmt"


class FormatCache(IoProvider):
    """Answers format reads and format writes; declines everything else."""

    def __init__(self, bundle_digest: DigestData, cache_root: Path) -> None:
        self.bundle_digest = bundle_digest
        self.cache_root = Path(cache_root)

    @classmethod
    def for_bundle(cls, bundle: Bundle, cache_root: Path) -> "FormatCache":
        """Build a cache keyed by the bundle's current digest.

        Raises:
            DigestError: If the bundle cannot report a digest.
        """
        return cls(bundle.get_digest(), cache_root)

    def path_for(self, name: str) -> Path | None:
        """Return the cache file for format *name*, or ``None`` if *name* is not a format."""
        if not name.endswith(FORMAT_SUFFIX) or "/" in name or "\x00" in name:
            return None
        stem = name[: -len(FORMAT_SUFFIX)]
        if not stem or stem in (".", ".."):
            return None
        return self.cache_root / f"{self.bundle_digest.to_hex()}-{stem}{FORMAT_SUFFIX}"

    def input_open_name(self, name: str) -> OpenResult[InputHandle]:
        return OpenResult.not_available()

    def input_open_format(self, name: str) -> OpenResult[InputHandle]:
        path = self.path_for(name)
        if path is None:
            return OpenResult.not_available()
        try:
            reader = path.open("rb")
        except (FileNotFoundError, IsADirectoryError):
            logger.debug("Format cache miss for %s", path.name)
            return OpenResult.not_available()
        except OSError as exc:
            return OpenResult.fatal(exc)
        return OpenResult.ok(InputHandle(name, reader, InputOrigin.OTHER))

    def output_open_name(self, name: str) -> OpenResult[OutputHandle]:
        path = self.path_for(name)
        if path is None:
            return OpenResult.not_available()

        def commit(data: bytes) -> None:
            atomic_write_bytes(path, data)
            logger.info("Stored format %s (%d bytes) in %s", name, len(data), self.cache_root)

        return OpenResult.ok(OutputHandle(name, CommitOnCloseBuffer(commit)))
