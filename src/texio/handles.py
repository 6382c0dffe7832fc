"""Input and output handles exchanged between providers and the engine.

A handle is exclusively owned by whoever opened it and is released exactly
once, either explicitly with ``close()`` or by leaving a ``with`` block.
"""

from __future__ import annotations

import io
import os
from typing import BinaryIO, Callable, Iterator

from .models import InputOrigin


class InputHandle:
    """Read-only byte stream bound to the name it was opened under."""

    def __init__(self, name: str, reader: BinaryIO, origin: InputOrigin = InputOrigin.OTHER) -> None:
        self._name = name
        self._reader = reader
        self._origin = origin
        self._ever_read = False
        self._closed = False

    @classmethod
    def from_bytes(cls, name: str, data: bytes, origin: InputOrigin = InputOrigin.OTHER) -> "InputHandle":
        return cls(name, io.BytesIO(data), origin)

    @property
    def name(self) -> str:
        return self._name

    @property
    def origin(self) -> InputOrigin:
        return self._origin

    @property
    def ever_read(self) -> bool:
        """True once any read call has been made on this handle."""
        return self._ever_read

    @property
    def closed(self) -> bool:
        return self._closed

    def read(self, size: int = -1) -> bytes:
        self._ensure_open()
        self._ever_read = True
        return self._reader.read(size)

    def readinto(self, buffer: bytearray | memoryview) -> int:
        self._ensure_open()
        self._ever_read = True
        return self._reader.readinto(buffer)

    def readline(self, size: int = -1) -> bytes:
        self._ensure_open()
        self._ever_read = True
        return self._reader.readline(size)

    def seek(self, offset: int, whence: int = os.SEEK_SET) -> int:
        self._ensure_open()
        return self._reader.seek(offset, whence)

    def tell(self) -> int:
        self._ensure_open()
        return self._reader.tell()

    def seekable(self) -> bool:
        return not self._closed and self._reader.seekable()

    def get_size(self) -> int | None:
        """Return the total stream size in bytes, or ``None`` if unknown.

        The read position is left unchanged.
        """
        self._ensure_open()
        try:
            return os.fstat(self._reader.fileno()).st_size
        except (AttributeError, OSError, io.UnsupportedOperation):
            pass
        if not self._reader.seekable():
            return None
        position = self._reader.tell()
        try:
            return self._reader.seek(0, os.SEEK_END)
        finally:
            self._reader.seek(position)

    def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        self._reader.close()

    def _ensure_open(self) -> None:
        if self._closed:
            raise ValueError(f"I/O operation on closed input handle: {self._name}")

    def __iter__(self) -> Iterator[bytes]:
        while True:
            line = self.readline()
            if not line:
                return
            yield line

    def __enter__(self) -> "InputHandle":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def __repr__(self) -> str:
        return f"InputHandle(name={self._name!r}, origin={self._origin.value})"


class OutputHandle:
    """Writable byte sink bound to the name it was opened under.

    The backend chooses persistence by choosing the writer: a buffer that is
    committed on close, a host file, or a wrapper that never closes the
    process's real stdout.
    """

    def __init__(self, name: str, writer: BinaryIO) -> None:
        self._name = name
        self._writer = writer
        self._closed = False

    @property
    def name(self) -> str:
        return self._name

    @property
    def closed(self) -> bool:
        return self._closed

    def write(self, data: bytes) -> int:
        if self._closed:
            raise ValueError(f"I/O operation on closed output handle: {self._name}")
        return self._writer.write(data)

    def flush(self) -> None:
        if not self._closed:
            self._writer.flush()

    def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        self._writer.close()

    def __enter__(self) -> "OutputHandle":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def __repr__(self) -> str:
        return f"OutputHandle(name={self._name!r})"


class CommitOnCloseBuffer(io.BytesIO):
    """In-memory writer that hands its final contents to *commit* on close.

    Backends that persist outputs somewhere other than a host file (a map, a
    remote store, an atomically-renamed cache file) wrap one of these in an
    ``OutputHandle``.
    """

    def __init__(self, commit: Callable[[bytes], None]) -> None:
        super().__init__()
        self._commit = commit

    def close(self) -> None:
        if self.closed:
            return
        data = self.getvalue()
        super().close()
        self._commit(data)


class NonClosingWriter(io.RawIOBase):
    """Forwards writes to *target* and only flushes it on close."""

    def __init__(self, target: BinaryIO) -> None:
        super().__init__()
        self._target = target

    def writable(self) -> bool:
        return True

    def write(self, data: bytes) -> int:  # type: ignore[override]
        self._target.write(data)
        return len(data)

    def flush(self) -> None:
        if not self.closed:
            self._target.flush()

    def close(self) -> None:
        if self.closed:
            return
        try:
            self._target.flush()
        finally:
            super().close()
