"""Assembly of the provider stack for one engine run.

Composition order (first asked to last asked)::

    FormatCache         (only .fmt formats, keyed by the bundle digest)
    MemoryIo            (captures every output, optionally stdout)
    GenuineStdoutIo     (real stdout, when requested)
    FilesystemPrimaryInputIo
    FilesystemIo ...    (search directories, in the order added)
    extra providers ... (in the order added)
    bundle

``IoSetup`` owns every provider it creates and closes them all on exit.
Stacks obtained from it are views that stop working once it is closed, so a
stack can never outlive the providers it points at.
"""

from __future__ import annotations

import logging
from pathlib import Path

from .bundles import CachedBundle, RemoteFetcher
from .filesystem import FilesystemIo, FilesystemPrimaryInputIo
from .format_cache import FormatCache
from .memory import MemoryIo
from .models import IoError
from .provider import Bundle, IoProvider
from .settings import RuntimeSettings
from .stack import IoStack
from .stdstreams import GenuineStdoutIo

logger = logging.getLogger(__name__)


class IoSetup:
    """The providers of one engine run, plus the stack over them."""

    def __init__(self, providers: list[IoProvider], memory: MemoryIo, bundle: Bundle | None) -> None:
        self._providers = tuple(providers)
        self.memory = memory
        self.bundle = bundle
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def providers(self) -> tuple[IoProvider, ...]:
        return self._providers

    def stack(self) -> IoStack:
        if self._closed:
            raise RuntimeError("IoSetup is closed")
        return IoStack(self._providers, is_live=lambda: not self._closed)

    def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        for provider in reversed(self._providers):
            provider.close()

    def __enter__(self) -> "IoSetup":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()


class IoSetupBuilder:
    """Collects the pieces of an ``IoSetup``; every setter returns the builder."""

    def __init__(self) -> None:
        self._primary_input: Path | None = None
        self._filesystem_roots: list[Path] = []
        self._extra_providers: list[IoProvider] = []
        self._bundle: Bundle | None = None
        self._bundle_cache_root: Path | None = None
        self._format_cache_root: Path | None = None
        self._hidden_inputs: list[str] = []
        self._absolute_allowed = False
        self._stdout_to_memory = False
        self._genuine_stdout = False

    @classmethod
    def from_settings(cls, settings: RuntimeSettings) -> "IoSetupBuilder":
        builder = cls()
        builder.absolute_paths_allowed(settings.allow_absolute_paths)
        builder.stdout_to_memory(settings.stdout_to_memory)
        for name in settings.hidden_inputs:
            builder.hide_input(name)
        builder.format_cache_root(settings.format_cache_path)
        builder.bundle_cache_root(settings.bundle_cache_path)
        return builder

    def primary_input_path(self, path: Path) -> "IoSetupBuilder":
        self._primary_input = Path(path)
        return self

    def filesystem_root(self, root: Path) -> "IoSetupBuilder":
        """Add a read-only search directory; outputs are always captured in memory."""
        self._filesystem_roots.append(Path(root))
        return self

    def provider(self, provider: IoProvider) -> "IoSetupBuilder":
        """Add an already-built provider; the setup takes ownership of it."""
        self._extra_providers.append(provider)
        return self

    def bundle(self, bundle: Bundle) -> "IoSetupBuilder":
        self._bundle = bundle
        return self

    def bundle_cache_root(self, root: Path | None) -> "IoSetupBuilder":
        self._bundle_cache_root = Path(root) if root is not None else None
        return self

    def cached_bundle(self, fetcher: RemoteFetcher) -> "IoSetupBuilder":
        """Use a remote bundle, cached below the bundle cache root.

        Raises:
            ValueError: If no bundle cache root has been configured.
        """
        if self._bundle_cache_root is None:
            raise ValueError("a bundle cache root is required for a cached bundle")
        return self.bundle(CachedBundle(self._bundle_cache_root, fetcher))

    def format_cache_root(self, root: Path | None) -> "IoSetupBuilder":
        self._format_cache_root = Path(root) if root is not None else None
        return self

    def hide_input(self, name: str) -> "IoSetupBuilder":
        self._hidden_inputs.append(name)
        return self

    def absolute_paths_allowed(self, allowed: bool) -> "IoSetupBuilder":
        self._absolute_allowed = allowed
        return self

    def stdout_to_memory(self, enabled: bool) -> "IoSetupBuilder":
        self._stdout_to_memory = enabled
        return self

    def genuine_stdout(self, enabled: bool) -> "IoSetupBuilder":
        self._genuine_stdout = enabled
        return self

    def _build_format_cache(self) -> FormatCache | None:
        if self._bundle is None or self._format_cache_root is None:
            return None
        try:
            return FormatCache.for_bundle(self._bundle, self._format_cache_root)
        except (IoError, OSError) as exc:
            # Formats can still be built; they just cannot be reused across runs.
            logger.warning("Format caching disabled for %r: %s", self._bundle, exc)
            return None

    def create(self) -> IoSetup:
        providers: list[IoProvider] = []

        format_cache = self._build_format_cache()
        if format_cache is not None:
            providers.append(format_cache)

        memory = MemoryIo(stdout_allowed=self._stdout_to_memory)
        providers.append(memory)

        if self._genuine_stdout:
            providers.append(GenuineStdoutIo())
        if self._primary_input is not None:
            providers.append(FilesystemPrimaryInputIo(self._primary_input))
        for root in self._filesystem_roots:
            providers.append(
                FilesystemIo(
                    root,
                    absolute_allowed=self._absolute_allowed,
                    hidden_inputs=self._hidden_inputs,
                )
            )
        providers.extend(self._extra_providers)
        if self._bundle is not None:
            providers.append(self._bundle)

        logger.debug("Created I/O setup with providers: %s", [type(p).__name__ for p in providers])
        return IoSetup(providers, memory, self._bundle)
