"""Providers backed by deepagents storage backends.

Any ``BackendProtocol`` store (a ``FilesystemBackend`` rooted somewhere, a
``CompositeBackend`` routing prefixes to several stores, or a custom one) can
take part in an ``IoStack`` through ``AgentBackendIo``.  Only the store's
byte-level ``download_files``/``upload_files`` operations are used, so
binary TeX inputs survive unchanged.

Store errors map onto open results as follows::

    file_not_found, is_directory, invalid_path  -> not_available
    any other error string                      -> fatal(IoError)
"""

from __future__ import annotations

import logging
from pathlib import Path

from deepagents.backends import FilesystemBackend
from deepagents.backends.protocol import BackendProtocol

from .handles import CommitOnCloseBuffer, InputHandle, OutputHandle
from .models import InputOrigin, IoError, OpenResult
from .provider import IoProvider
from .utils import chained_io_error, is_contained_name

logger = logging.getLogger(__name__)

_ABSENT_ERRORS = frozenset({"file_not_found", "is_directory", "invalid_path"})


class AgentBackendIo(IoProvider):
    """Exposes a deepagents storage backend as an I/O provider.

    TeX names are relative to the store's virtual root: ``tex/file.sty`` is
    requested as ``/tex/file.sty``.  Absolute TeX names and names that climb
    out of the root are declined without consulting the store.
    """

    def __init__(
        self,
        backend: BackendProtocol,
        writes_allowed: bool = False,
        origin: InputOrigin = InputOrigin.OTHER,
    ) -> None:
        self._backend = backend
        self.writes_allowed = writes_allowed
        self.origin = origin

    @staticmethod
    def _virtual_path(name: str) -> str | None:
        if not is_contained_name(name):
            return None
        return "/" + name

    def input_open_name(self, name: str) -> OpenResult[InputHandle]:
        virtual_path = self._virtual_path(name)
        if virtual_path is None:
            return OpenResult.not_available()
        try:
            responses = self._backend.download_files([virtual_path])
        except OSError as exc:
            return OpenResult.fatal(chained_io_error(f"storage backend failed to read {virtual_path}", exc))
        if not responses:
            return OpenResult.not_available()

        response = responses[0]
        if response.error in _ABSENT_ERRORS:
            return OpenResult.not_available()
        if response.error:
            logger.warning("Storage backend refused %s: %s", virtual_path, response.error)
            return OpenResult.fatal(IoError(f"storage backend refused {virtual_path}: {response.error}"))
        if response.content is None:
            return OpenResult.not_available()
        return OpenResult.ok(InputHandle.from_bytes(name, response.content, self.origin))

    def output_open_name(self, name: str) -> OpenResult[OutputHandle]:
        if not self.writes_allowed:
            return OpenResult.not_available()
        virtual_path = self._virtual_path(name)
        if virtual_path is None:
            return OpenResult.not_available()

        def commit(data: bytes) -> None:
            responses = self._backend.upload_files([(virtual_path, data)])
            errors = [response.error for response in responses if response.error]
            if errors:
                raise IoError(f"storage backend refused to store {virtual_path}: {errors[0]}")
            logger.debug("Uploaded %d bytes to %s", len(data), virtual_path)

        return OpenResult.ok(OutputHandle(name, CommitOnCloseBuffer(commit)))


def build_filesystem_store_io(root_dir: Path, writes_allowed: bool = False) -> AgentBackendIo:
    """Serve a host directory through a virtual-mode ``FilesystemBackend``.

    Virtual mode confines every request to ``root_dir``, which makes this a
    safer choice than ``FilesystemIo`` for directories holding untrusted
    documents.
    """
    backend = FilesystemBackend(root_dir=root_dir, virtual_mode=True)
    return AgentBackendIo(backend, writes_allowed=writes_allowed, origin=InputOrigin.FILESYSTEM)
