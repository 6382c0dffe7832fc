from importlib.metadata import version

from .backends import AgentBackendIo, build_filesystem_store_io
from .bundles import CacheIndex, CachedBundle, DirBundle, RemoteFetcher, ZipBundle
from .digest import (
    DIGEST_LEN,
    DIGEST_NAME,
    CorruptedDigestError,
    DigestData,
    DigestError,
    MissingDigestError,
    compute_bundle_digest,
    digest_directory,
    write_digest_manifest,
)
from .filesystem import FilesystemIo, FilesystemPrimaryInputIo
from .format_cache import FormatCache
from .handles import InputHandle, OutputHandle
from .io_setup import IoSetup, IoSetupBuilder
from .memory import MemoryIo
from .models import InputOrigin, IoError, OpenResult, OpenStatus
from .paths import normalize_tex_path, try_normalize_tex_path
from .provider import Bundle, IoProvider
from .settings import RuntimeSettings
from .stack import IoStack
from .stdstreams import GenuineStdoutIo


def get_version() -> str:
    try:
        return version(__name__)
    except Exception:
        return "0.0.0"


__all__ = [
    "AgentBackendIo",
    "Bundle",
    "CacheIndex",
    "CachedBundle",
    "CorruptedDigestError",
    "DigestData",
    "DigestError",
    "DirBundle",
    "FilesystemIo",
    "FilesystemPrimaryInputIo",
    "FormatCache",
    "GenuineStdoutIo",
    "InputHandle",
    "InputOrigin",
    "IoError",
    "IoProvider",
    "IoSetup",
    "IoSetupBuilder",
    "IoStack",
    "MemoryIo",
    "MissingDigestError",
    "OpenResult",
    "OpenStatus",
    "OutputHandle",
    "RemoteFetcher",
    "RuntimeSettings",
    "ZipBundle",
    "DIGEST_LEN",
    "DIGEST_NAME",
    "build_filesystem_store_io",
    "compute_bundle_digest",
    "digest_directory",
    "normalize_tex_path",
    "try_normalize_tex_path",
    "write_digest_manifest",
]
