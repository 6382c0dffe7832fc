from __future__ import annotations

import sys
from typing import BinaryIO

from .handles import NonClosingWriter, OutputHandle
from .models import OpenResult
from .provider import IoProvider

STDOUT_HANDLE_NAME = "<stdout>"


class GenuineStdoutIo(IoProvider):
    """Sends the engine's standard output to the process's real stdout.

    Closing the returned handle flushes stdout but never closes it.
    """

    def __init__(self, stream: BinaryIO | None = None) -> None:
        self._stream = stream

    def output_open_stdout(self) -> OpenResult[OutputHandle]:
        stream = self._stream if self._stream is not None else sys.stdout.buffer
        return OpenResult.ok(OutputHandle(STDOUT_HANDLE_NAME, NonClosingWriter(stream)))
