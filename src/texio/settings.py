from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path

from dotenv import load_dotenv

_TRUE_VALUES = frozenset({"1", "true", "yes", "on"})
_FALSE_VALUES = frozenset({"0", "false", "no", "off", ""})


@dataclass(frozen=True)
class RuntimeSettings:
    """Runtime settings loaded from environment with fail-fast validation."""

    format_cache_dir: str = "~/.cache/texio/formats"
    bundle_cache_dir: str = "~/.cache/texio/bundles"
    allow_absolute_paths: bool = False
    hidden_inputs: tuple[str, ...] = field(default_factory=tuple)
    stdout_to_memory: bool = False

    @classmethod
    def from_env(cls, dotenv_path: Path | None = None) -> "RuntimeSettings":
        """Read ``TEXIO_*`` variables, after loading a ``.env`` file if present.

        Variables already set in the environment take precedence over ``.env``.
        """
        load_dotenv(dotenv_path=dotenv_path, override=False)
        return cls(
            format_cache_dir=os.getenv("TEXIO_FORMAT_CACHE_DIR", "~/.cache/texio/formats"),
            bundle_cache_dir=os.getenv("TEXIO_BUNDLE_CACHE_DIR", "~/.cache/texio/bundles"),
            allow_absolute_paths=_get_env_bool("TEXIO_ALLOW_ABSOLUTE_PATHS", default=False),
            hidden_inputs=_get_env_list("TEXIO_HIDDEN_INPUTS"),
            stdout_to_memory=_get_env_bool("TEXIO_STDOUT_TO_MEMORY", default=False),
        ).normalized()

    def normalized(self) -> "RuntimeSettings":
        """Validate and normalize all fields. Raises ValueError on invalid configuration."""
        format_cache_dir = self.format_cache_dir.strip()
        if not format_cache_dir:
            raise ValueError("TEXIO_FORMAT_CACHE_DIR must be non-empty")
        bundle_cache_dir = self.bundle_cache_dir.strip()
        if not bundle_cache_dir:
            raise ValueError("TEXIO_BUNDLE_CACHE_DIR must be non-empty")

        hidden_inputs = tuple(name.strip() for name in self.hidden_inputs if name.strip())
        for name in hidden_inputs:
            if "\x00" in name:
                raise ValueError(f"TEXIO_HIDDEN_INPUTS contains an invalid name: {name!r}")

        return RuntimeSettings(
            format_cache_dir=format_cache_dir,
            bundle_cache_dir=bundle_cache_dir,
            allow_absolute_paths=self.allow_absolute_paths,
            hidden_inputs=hidden_inputs,
            stdout_to_memory=self.stdout_to_memory,
        )

    @property
    def format_cache_path(self) -> Path:
        return Path(self.format_cache_dir).expanduser()

    @property
    def bundle_cache_path(self) -> Path:
        return Path(self.bundle_cache_dir).expanduser()


def _get_env_bool(name: str, default: bool) -> bool:
    """Parse a boolean environment variable.

    Raises:
        ValueError: If the value is not a recognised boolean spelling.
    """
    raw = os.getenv(name)
    if raw is None:
        return default
    value = raw.strip().lower()
    if value in _TRUE_VALUES:
        return True
    if value in _FALSE_VALUES:
        return False
    raise ValueError(f"{name} must be a boolean (1/0, true/false, yes/no, on/off), got: {raw!r}")


def _get_env_list(name: str) -> tuple[str, ...]:
    raw = os.getenv(name)
    if raw is None:
        return ()
    return tuple(raw.split(","))
