"""Providers backed by the host filesystem."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Iterable

from .handles import InputHandle, OutputHandle
from .models import InputOrigin, OpenResult
from .paths import try_normalize_tex_path
from .provider import IoProvider

logger = logging.getLogger(__name__)

# Errors that mean "no such file here" rather than "this backend is broken".
_ABSENT_ERRORS = (FileNotFoundError, IsADirectoryError, NotADirectoryError)


class FilesystemIo(IoProvider):
    """Serves files below a root directory.

    * Relative names resolve against ``root``.
    * Absolute names are served only when ``absolute_allowed`` is set.
    * Outputs are written only when ``writes_allowed`` is set; otherwise
      output requests are declined so a later provider can take them.
    * Names in ``hidden_inputs`` always answer ``not_available`` for input,
      which lets a caller mask stale files such as a previous run's outputs.
    """

    def __init__(
        self,
        root: Path,
        writes_allowed: bool = False,
        absolute_allowed: bool = False,
        hidden_inputs: Iterable[str] = (),
    ) -> None:
        self.root = Path(root)
        self.writes_allowed = writes_allowed
        self.absolute_allowed = absolute_allowed
        self.hidden_inputs = frozenset(try_normalize_tex_path(name) or name for name in hidden_inputs)

    def _construct_path(self, name: str) -> Path | None:
        # No host path can contain a NUL byte.
        if not name or "\x00" in name:
            return None
        if name.startswith("/"):
            if not self.absolute_allowed:
                return None
            return Path(name)
        return self.root / name

    def input_open_name(self, name: str) -> OpenResult[InputHandle]:
        if name in self.hidden_inputs:
            logger.debug("Input %r is hidden in %s", name, self.root)
            return OpenResult.not_available()
        path = self._construct_path(name)
        if path is None:
            return OpenResult.not_available()
        try:
            reader = path.open("rb")
        except _ABSENT_ERRORS:
            return OpenResult.not_available()
        except OSError as exc:
            return OpenResult.fatal(exc)
        return OpenResult.ok(InputHandle(name, reader, InputOrigin.FILESYSTEM))

    def output_open_name(self, name: str) -> OpenResult[OutputHandle]:
        if not self.writes_allowed:
            return OpenResult.not_available()
        path = self._construct_path(name)
        if path is None:
            return OpenResult.not_available()
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            writer = path.open("wb")
        except OSError as exc:
            return OpenResult.fatal(exc)
        return OpenResult.ok(OutputHandle(name, writer))


class FilesystemPrimaryInputIo(IoProvider):
    """Serves one host file as the engine's primary input and nothing else.

    The caller named this file explicitly, so failing to open it is fatal
    rather than a reason to fall back.
    """

    def __init__(self, path: Path) -> None:
        self.path = Path(path)

    def input_open_primary(self) -> OpenResult[InputHandle]:
        try:
            reader = self.path.open("rb")
        except (OSError, ValueError) as exc:
            return OpenResult.fatal(exc)
        return OpenResult.ok(InputHandle(self.path.name, reader, InputOrigin.FILESYSTEM))

    def input_open_format(self, name: str) -> OpenResult[InputHandle]:
        return OpenResult.not_available()
