"""Capability contracts every I/O backend implements.

An ``IoProvider`` answers open requests by name.  Each backend decides on its
own whether it has a file: lacking one is ``OpenResult.not_available()``,
never an error.  Only a backend that is itself unusable (a corrupted archive,
an I/O failure) answers with ``OpenResult.fatal(...)``.  ``IoStack`` relies on
that distinction to fall back correctly.

A ``Bundle`` is a provider whose whole contents are summarized by one digest,
which lets callers validate derived artifacts without rescanning the bundle.
"""

from __future__ import annotations

import logging
from abc import ABC

from .digest import DIGEST_LEN, DIGEST_NAME, CorruptedDigestError, DigestData, MissingDigestError
from .handles import InputHandle, OutputHandle
from .models import OpenResult

logger = logging.getLogger(__name__)


class IoProvider(ABC):
    """Base class for named-open backends.

    Every operation defaults to ``not_available``; a backend overrides only
    the operations it serves.
    """

    def input_open_name(self, name: str) -> OpenResult[InputHandle]:
        """Open the input file called *name* for reading."""
        return OpenResult.not_available()

    def input_open_primary(self) -> OpenResult[InputHandle]:
        """Open the engine's primary input document."""
        return OpenResult.not_available()

    def input_open_format(self, name: str) -> OpenResult[InputHandle]:
        """Open a precompiled format file.

        Providers that keep format files apart from ordinary inputs override
        this; everyone else treats a format like any other input.
        """
        return self.input_open_name(name)

    def output_open_name(self, name: str) -> OpenResult[OutputHandle]:
        """Open the output file called *name* for writing."""
        return OpenResult.not_available()

    def output_open_stdout(self) -> OpenResult[OutputHandle]:
        """Open the engine's standard output sink."""
        return OpenResult.not_available()

    def close(self) -> None:
        """Release backend resources.  Handles already given out stay valid."""

    def __enter__(self) -> "IoProvider":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()


class Bundle(IoProvider):
    """A provider that can report a digest of its entire contents."""

    def get_digest(self) -> DigestData:
        """Return the digest summarizing this bundle's contents.

        The default reads the first 64 bytes of the bundle's own
        ``SHA256SUM`` file as a hex-encoded digest.  Backends that already
        know their digest more cheaply should override this.

        Raises:
            MissingDigestError: If the bundle has no ``SHA256SUM`` file.
            CorruptedDigestError: If the manifest does not hold a valid digest.
            BaseException: Whatever fatal error opening the manifest produced,
                unchanged.
        """
        result = self.input_open_name(DIGEST_NAME)
        if result.is_not_available:
            raise MissingDigestError(f"bundle does not provide needed {DIGEST_NAME} file")
        handle = result.unwrap()
        with handle:
            raw = handle.read(DIGEST_LEN)

        try:
            return DigestData.from_hex(raw.decode("utf-8"))
        except (UnicodeDecodeError, ValueError) as exc:
            logger.warning("Bundle %r has a malformed %s manifest", self, DIGEST_NAME)
            raise CorruptedDigestError("corrupted SHA256 digest data") from exc
