"""First-match-wins composition of I/O providers.

Composition order is the registration order and is fixed for the lifetime of
the stack::

    IoStack([memory, primary, filesystem, format_cache, bundle])

For every request the providers are asked in turn:

* ``ok``: returned at once; later providers are not asked.
* ``fatal``: returned at once; fallback cannot recover from it.
* ``not_available``: ask the next provider.

If every provider declines, the stack declines.  Named requests are passed
through ``normalize_tex_path`` first, so backends only ever see canonical
names (or the original string, when it cannot be normalized).
"""

from __future__ import annotations

import logging
from typing import Callable, Iterable, Sequence, TypeVar

from .handles import InputHandle, OutputHandle
from .models import OpenResult
from .paths import normalize_tex_path
from .provider import IoProvider

logger = logging.getLogger(__name__)

HandleT = TypeVar("HandleT")


class IoStack(IoProvider):
    """An ordered, non-owning view over several providers.

    The stack never closes its providers; whoever created them does.  A
    stack handed out by ``IoSetup`` is bound to that setup's lifetime and
    refuses further requests once the setup is closed.
    """

    def __init__(self, providers: Iterable[IoProvider], *, is_live: Callable[[], bool] | None = None) -> None:
        self._providers: tuple[IoProvider, ...] = tuple(providers)
        self._is_live = is_live

    @property
    def providers(self) -> Sequence[IoProvider]:
        return self._providers

    def _first_answer(
        self,
        operation: str,
        request: Callable[[IoProvider], OpenResult[HandleT]],
        name: str | None = None,
    ) -> OpenResult[HandleT]:
        if self._is_live is not None and not self._is_live():
            raise RuntimeError("I/O stack used after its providers were closed")

        for index, provider in enumerate(self._providers):
            result = request(provider)
            if result.is_not_available:
                continue
            if result.is_fatal:
                logger.warning(
                    "%s(%s) failed in provider #%d (%s): %s",
                    operation,
                    name or "",
                    index,
                    type(provider).__name__,
                    result.error,
                )
            else:
                logger.debug(
                    "%s(%s) answered by provider #%d (%s)",
                    operation,
                    name or "",
                    index,
                    type(provider).__name__,
                )
            return result

        logger.debug("%s(%s) not available from any of %d providers", operation, name or "", len(self._providers))
        return OpenResult.not_available()

    def input_open_name(self, name: str) -> OpenResult[InputHandle]:
        normalized = normalize_tex_path(name)
        return self._first_answer(
            "input_open_name",
            lambda provider: provider.input_open_name(normalized),
            normalized,
        )

    def input_open_primary(self) -> OpenResult[InputHandle]:
        return self._first_answer("input_open_primary", lambda provider: provider.input_open_primary())

    def input_open_format(self, name: str) -> OpenResult[InputHandle]:
        normalized = normalize_tex_path(name)
        return self._first_answer(
            "input_open_format",
            lambda provider: provider.input_open_format(normalized),
            normalized,
        )

    def output_open_name(self, name: str) -> OpenResult[OutputHandle]:
        normalized = normalize_tex_path(name)
        return self._first_answer(
            "output_open_name",
            lambda provider: provider.output_open_name(normalized),
            normalized,
        )

    def output_open_stdout(self) -> OpenResult[OutputHandle]:
        return self._first_answer("output_open_stdout", lambda provider: provider.output_open_stdout())
