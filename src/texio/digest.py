"""Bundle content digests.

A bundle's digest summarizes the exact contents of every file it holds.  It
is computed once by whoever produces the bundle and shipped inside it as a
``SHA256SUM`` manifest; readers trust the manifest and never rehash the
bundle contents.
"""

from __future__ import annotations

import hashlib
import logging
import re
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable

from .canonical import to_canonical_json
from .models import IoError

logger = logging.getLogger(__name__)

DIGEST_NAME = "SHA256SUM"
DIGEST_LEN = 64

_HEX_DIGEST_RE = re.compile(r"[0-9a-f]{64}")
_READ_CHUNK = 1 << 16


class DigestError(IoError):
    """Base class for bundle digest failures."""


class MissingDigestError(DigestError):
    """The bundle has no ``SHA256SUM`` manifest."""


class CorruptedDigestError(DigestError):
    """The ``SHA256SUM`` manifest exists but does not hold a valid digest."""


@dataclass(frozen=True, slots=True)
class DigestData:
    """A 256-bit SHA-256 value."""

    value: bytes

    def __post_init__(self) -> None:
        if len(self.value) != 32:
            raise ValueError(f"digest must be 32 bytes, got {len(self.value)}")

    @classmethod
    def from_hex(cls, text: str) -> "DigestData":
        """Parse exactly 64 lowercase hexadecimal characters.

        Raises:
            ValueError: On wrong length or any character outside ``0-9a-f``.
        """
        if not _HEX_DIGEST_RE.fullmatch(text):
            raise ValueError(f"expected {DIGEST_LEN} hex characters, got {text!r:.80}")
        return cls(bytes.fromhex(text))

    @classmethod
    def of_bytes(cls, data: bytes) -> "DigestData":
        return cls(hashlib.sha256(data).digest())

    @classmethod
    def zeros(cls) -> "DigestData":
        return cls(bytes(32))

    def to_hex(self) -> str:
        return self.value.hex()

    def __str__(self) -> str:
        return self.to_hex()


def compute_bundle_digest(entries: Iterable[tuple[str, DigestData]]) -> DigestData:
    """Compute a bundle digest from ``(name, file digest)`` pairs.

    The digest is SHA-256 over the RFC 8785 canonical JSON of the
    ``{name: hex digest}`` map, so it depends only on names and contents and
    not on enumeration order.  The manifest file itself must not be among the
    entries.

    Raises:
        ValueError: If a name appears twice or names the manifest.
    """
    manifest: dict[str, str] = {}
    for name, file_digest in entries:
        if name == DIGEST_NAME:
            raise ValueError(f"{DIGEST_NAME} cannot be part of its own digest")
        if name in manifest:
            raise ValueError(f"Duplicate bundle entry: {name}")
        manifest[name] = file_digest.to_hex()
    return DigestData.of_bytes(to_canonical_json(manifest).encode("utf-8"))


def _file_digest(path: Path) -> DigestData:
    hasher = hashlib.sha256()
    with path.open("rb") as handle:
        for chunk in iter(lambda: handle.read(_READ_CHUNK), b""):
            hasher.update(chunk)
    return DigestData(hasher.digest())


def digest_directory(directory: Path) -> DigestData:
    """Compute the bundle digest of every regular file below *directory*.

    Entry names are ``/``-separated paths relative to *directory*.
    """
    entries = []
    for path in sorted(directory.rglob("*")):
        if not path.is_file():
            continue
        name = path.relative_to(directory).as_posix()
        if name == DIGEST_NAME:
            continue
        entries.append((name, _file_digest(path)))
    return compute_bundle_digest(entries)


def write_digest_manifest(directory: Path) -> DigestData:
    """Compute the digest of *directory* and write it to its ``SHA256SUM``.

    Returns:
        The digest that was written.
    """
    digest = digest_directory(directory)
    manifest_path = directory / DIGEST_NAME
    manifest_path.write_text(digest.to_hex() + "\n", encoding="utf-8")
    logger.info("Wrote bundle digest %s to %s", digest, manifest_path)
    return digest
