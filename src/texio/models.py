from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Generic, TypeVar

HandleT = TypeVar("HandleT")


class IoError(RuntimeError):
    """Raised for unrecoverable conditions detected by an I/O backend.

    Carried as the error of a fatal ``OpenResult``; never used to signal that
    a backend simply lacks a file.
    """


class InputOrigin(str, Enum):
    """Where an opened input came from.

    Downstream logic may trust modification times only for ``FILESYSTEM``
    inputs.
    """

    FILESYSTEM = "filesystem"
    OTHER = "other"


class OpenStatus(str, Enum):
    OK = "ok"
    NOT_AVAILABLE = "not_available"
    FATAL = "fatal"


@dataclass(frozen=True, slots=True)
class OpenResult(Generic[HandleT]):
    """Outcome of one open attempt against a provider.

    Exactly one of three shapes is valid:

    * ``OK``: ``handle`` is set, ``error`` is ``None``.
    * ``NOT_AVAILABLE``: neither is set.  The provider does not have the file;
      a stack moves on to its next provider.
    * ``FATAL``: ``error`` is set, ``handle`` is ``None``.  The open failed in a
      way fallback cannot repair.

    Use the ``ok``/``not_available``/``fatal`` constructors rather than
    building instances directly.
    """

    status: OpenStatus
    handle: HandleT | None = None
    error: BaseException | None = None

    def __post_init__(self) -> None:
        if self.status == OpenStatus.OK:
            if self.handle is None or self.error is not None:
                raise ValueError("OK result must carry a handle and no error")
        elif self.status == OpenStatus.NOT_AVAILABLE:
            if self.handle is not None or self.error is not None:
                raise ValueError("NOT_AVAILABLE result must carry neither handle nor error")
        elif self.status == OpenStatus.FATAL:
            if not isinstance(self.error, BaseException) or self.handle is not None:
                raise ValueError("FATAL result must carry an exception and no handle")

    @classmethod
    def ok(cls, handle: HandleT) -> "OpenResult[HandleT]":
        return cls(status=OpenStatus.OK, handle=handle)

    @classmethod
    def not_available(cls) -> "OpenResult[HandleT]":
        return cls(status=OpenStatus.NOT_AVAILABLE)

    @classmethod
    def fatal(cls, error: BaseException) -> "OpenResult[HandleT]":
        return cls(status=OpenStatus.FATAL, error=error)

    @property
    def is_ok(self) -> bool:
        return self.status == OpenStatus.OK

    @property
    def is_not_available(self) -> bool:
        return self.status == OpenStatus.NOT_AVAILABLE

    @property
    def is_fatal(self) -> bool:
        return self.status == OpenStatus.FATAL

    def unwrap(self) -> HandleT:
        """Return the handle, raising for the other two outcomes.

        Raises:
            FileNotFoundError: For ``NOT_AVAILABLE``.
            BaseException: The carried error, unchanged, for ``FATAL``.
        """
        if self.status == OpenStatus.OK:
            assert self.handle is not None
            return self.handle
        if self.status == OpenStatus.FATAL:
            assert self.error is not None
            raise self.error
        raise FileNotFoundError("requested file is not available from any provider")
