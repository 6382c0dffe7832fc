"""Small providers that are handy when wiring up tests."""

from __future__ import annotations

from pathlib import Path

from .handles import InputHandle
from .models import InputOrigin, OpenResult
from .provider import IoProvider


class SingleInputFileIo(IoProvider):
    """Serves exactly one host file, under its base name."""

    def __init__(self, path: Path) -> None:
        self.full_path = Path(path)
        self.name = self.full_path.name

    def input_open_name(self, name: str) -> OpenResult[InputHandle]:
        if name != self.name:
            return OpenResult.not_available()
        try:
            reader = self.full_path.open("rb")
        except OSError as exc:
            return OpenResult.fatal(exc)
        return OpenResult.ok(InputHandle(name, reader, InputOrigin.FILESYSTEM))
