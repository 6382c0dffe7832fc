"""Read-only bundles of TeX support files.

Bundles never accept outputs.  ``DirBundle`` and ``ZipBundle`` take their
digest from the ``SHA256SUM`` manifest they carry; ``CachedBundle`` records
the digest its remote source reports and serves it from the cache.
"""

from __future__ import annotations

import logging
import zipfile
import zlib
from pathlib import Path
from typing import Protocol

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from .canonical import to_canonical_json
from .digest import DigestData, DigestError
from .handles import InputHandle
from .models import InputOrigin, OpenResult
from .provider import Bundle
from .utils import atomic_write_bytes, chained_io_error, is_contained_name

logger = logging.getLogger(__name__)


class DirBundle(Bundle):
    """A bundle unpacked into a host directory."""

    def __init__(self, root: Path) -> None:
        self.root = Path(root)

    def input_open_name(self, name: str) -> OpenResult[InputHandle]:
        if not is_contained_name(name):
            return OpenResult.not_available()
        try:
            reader = (self.root / name).open("rb")
        except (FileNotFoundError, IsADirectoryError, NotADirectoryError):
            return OpenResult.not_available()
        except OSError as exc:
            return OpenResult.fatal(exc)
        return OpenResult.ok(InputHandle(name, reader, InputOrigin.OTHER))

    def __repr__(self) -> str:
        return f"DirBundle({str(self.root)!r})"


class ZipBundle(Bundle):
    """A bundle stored as a zip archive.

    The archive is opened lazily on first use.  An unreadable or corrupted
    archive makes every request fatal, since no request could be answered
    correctly by falling back past it.
    """

    def __init__(self, path: Path) -> None:
        self.path = Path(path)
        self._archive: zipfile.ZipFile | None = None

    def _open_archive(self) -> zipfile.ZipFile:
        if self._archive is None:
            self._archive = zipfile.ZipFile(self.path)
        return self._archive

    def input_open_name(self, name: str) -> OpenResult[InputHandle]:
        if not is_contained_name(name):
            return OpenResult.not_available()
        try:
            archive = self._open_archive()
        except (OSError, zipfile.BadZipFile) as exc:
            return OpenResult.fatal(chained_io_error(f"unable to open zip bundle {self.path}", exc))
        try:
            data = archive.read(name)
        except KeyError:
            return OpenResult.not_available()
        except (OSError, zipfile.BadZipFile, zlib.error) as exc:
            return OpenResult.fatal(chained_io_error(f"corrupted entry {name!r} in zip bundle {self.path}", exc))
        return OpenResult.ok(InputHandle.from_bytes(name, data, InputOrigin.OTHER))

    def close(self) -> None:
        if self._archive is not None:
            self._archive.close()
            self._archive = None

    def __repr__(self) -> str:
        return f"ZipBundle({str(self.path)!r})"


class RemoteFetcher(Protocol):
    """Source of truth behind a ``CachedBundle``.

    Transport, authentication and retries are the fetcher's business.
    """

    def fetch_digest(self) -> DigestData:
        """Return the current digest of the remote bundle."""
        ...

    def fetch(self, name: str) -> bytes | None:
        """Return the contents of *name*, or ``None`` if the bundle lacks it."""
        ...


class CacheIndex(BaseModel):
    """On-disk record of what a ``CachedBundle`` knows about its remote."""

    model_config = ConfigDict(extra="forbid")

    digest: str = Field(pattern=r"^[0-9a-f]{64}$")
    missing: list[str] = Field(default_factory=list)


class CachedBundle(Bundle):
    """A local cache in front of a remote bundle.

    Layout below ``cache_root``::

        index.json              digest of the cached remote + names it lacks
        data/<digest>/<name>    files fetched so far

    Files are stored under the digest they were fetched for, so a remote
    whose contents change never serves stale bytes.  ``get_digest`` is
    overridden: the digest comes from the index, or from the fetcher exactly
    once when the cache is empty.
    """

    INDEX_NAME = "index.json"

    def __init__(self, cache_root: Path, fetcher: RemoteFetcher) -> None:
        self.cache_root = Path(cache_root)
        self.fetcher = fetcher
        self._index: CacheIndex | None = None

    @property
    def index_path(self) -> Path:
        return self.cache_root / self.INDEX_NAME

    def _load_index(self) -> CacheIndex | None:
        if not self.index_path.is_file():
            return None
        try:
            return CacheIndex.model_validate_json(self.index_path.read_text(encoding="utf-8"))
        except (ValidationError, UnicodeDecodeError) as exc:
            logger.warning("Discarding unreadable cache index %s: %s", self.index_path, exc)
            return None

    def _save_index(self, index: CacheIndex) -> None:
        atomic_write_bytes(self.index_path, to_canonical_json(index).encode("utf-8"))
        self._index = index

    def _current_index(self) -> CacheIndex:
        if self._index is None:
            index = self._load_index()
            if index is None:
                digest = self._fetch_digest()
                logger.info("Recorded remote bundle digest %s in %s", digest, self.cache_root)
                index = CacheIndex(digest=digest.to_hex())
                self._save_index(index)
            self._index = index
        return self._index

    def _fetch_digest(self) -> DigestData:
        try:
            return self.fetcher.fetch_digest()
        except Exception as exc:  # noqa: BLE001 - any fetcher failure means no digest.
            raise DigestError("unable to determine remote bundle digest") from exc

    def get_digest(self) -> DigestData:
        """Return the cached remote digest.

        Raises:
            DigestError: If the cache is empty and the remote cannot report one.
        """
        return DigestData.from_hex(self._current_index().digest)

    def refresh_digest(self) -> DigestData:
        """Ask the remote for its digest again, resetting the cache if it moved."""
        digest = self._fetch_digest()
        current = self._current_index()
        if digest.to_hex() != current.digest:
            logger.info("Remote bundle digest changed from %s to %s", current.digest, digest)
            self._save_index(CacheIndex(digest=digest.to_hex()))
        return digest

    def input_open_name(self, name: str) -> OpenResult[InputHandle]:
        if not is_contained_name(name):
            return OpenResult.not_available()
        try:
            index = self._current_index()
        except (DigestError, OSError) as exc:
            return OpenResult.fatal(exc)
        if name in index.missing:
            return OpenResult.not_available()

        cached_path = self.cache_root / "data" / index.digest / name
        try:
            return OpenResult.ok(InputHandle(name, cached_path.open("rb"), InputOrigin.OTHER))
        except (FileNotFoundError, IsADirectoryError, NotADirectoryError):
            pass
        except OSError as exc:
            return OpenResult.fatal(exc)

        try:
            data = self.fetcher.fetch(name)
        except Exception as exc:  # noqa: BLE001 - fetcher failures are fatal results.
            return OpenResult.fatal(chained_io_error(f"unable to fetch {name!r} from remote bundle", exc))

        try:
            if data is None:
                self._save_index(index.model_copy(update={"missing": sorted({*index.missing, name})}))
                return OpenResult.not_available()
            atomic_write_bytes(cached_path, data)
        except OSError as exc:
            return OpenResult.fatal(exc)
        logger.info("Cached %s (%d bytes) for bundle %s", name, len(data), index.digest)
        return OpenResult.ok(InputHandle.from_bytes(name, data, InputOrigin.OTHER))

    def __repr__(self) -> str:
        return f"CachedBundle({str(self.cache_root)!r})"
