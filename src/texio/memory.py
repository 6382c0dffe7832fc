from __future__ import annotations

import logging

from .handles import CommitOnCloseBuffer, InputHandle, OutputHandle
from .models import InputOrigin, OpenResult
from .provider import IoProvider

logger = logging.getLogger(__name__)

STDOUT_NAME = ""


class MemoryIo(IoProvider):
    """Keeps files in a name-to-bytes map.

    Accepts every output name, so it is usually the first provider of a stack
    and captures everything the engine writes.  Files written here can be
    read back as inputs within the same run.  Standard output is stored
    under the empty name when ``stdout_allowed`` is set.
    """

    def __init__(self, stdout_allowed: bool = False) -> None:
        self.files: dict[str, bytes] = {}
        self.stdout_allowed = stdout_allowed

    def create_entry(self, name: str, data: bytes) -> None:
        self.files[name] = bytes(data)

    def stdout_bytes(self) -> bytes | None:
        return self.files.get(STDOUT_NAME) if self.stdout_allowed else None

    def _open_output(self, name: str) -> OutputHandle:
        def commit(data: bytes) -> None:
            self.files[name] = data
            logger.debug("Stored %d bytes in memory as %r", len(data), name)

        # The name exists from the moment it is opened, like a truncated file.
        self.files[name] = b""
        return OutputHandle(name, CommitOnCloseBuffer(commit))

    def input_open_name(self, name: str) -> OpenResult[InputHandle]:
        if name == STDOUT_NAME:
            return OpenResult.not_available()
        data = self.files.get(name)
        if data is None:
            return OpenResult.not_available()
        return OpenResult.ok(InputHandle.from_bytes(name, data, InputOrigin.OTHER))

    def output_open_name(self, name: str) -> OpenResult[OutputHandle]:
        if name == STDOUT_NAME:
            return OpenResult.not_available()
        return OpenResult.ok(self._open_output(name))

    def output_open_stdout(self) -> OpenResult[OutputHandle]:
        if not self.stdout_allowed:
            return OpenResult.not_available()
        return OpenResult.ok(self._open_output(STDOUT_NAME))
