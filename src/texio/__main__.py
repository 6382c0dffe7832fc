"""Entry point for `python -m texio` and the `texio` CLI script."""

from __future__ import annotations

import argparse
import logging
from pathlib import Path

from texio.bundles import DirBundle, ZipBundle
from texio.digest import write_digest_manifest
from texio.io_setup import IoSetupBuilder
from texio.models import IoError
from texio.paths import try_normalize_tex_path
from texio.provider import Bundle
from texio.settings import RuntimeSettings

EXIT_FOUND = 0
EXIT_MISSING = 1
EXIT_FATAL = 2


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Inspect texio path normalization, bundles and provider stacks")
    parser.add_argument(
        "--log-level",
        default="WARNING",
        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
        help="Logging verbosity",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    normalize = subparsers.add_parser("normalize", help="Print the normalized form of TeX paths")
    normalize.add_argument("paths", nargs="+", help="TeX paths to normalize")

    digest = subparsers.add_parser("digest", help="Print the digest recorded in a bundle")
    digest.add_argument("bundle", type=Path, help="Bundle directory or .zip file")

    manifest = subparsers.add_parser("manifest", help="Compute and write a directory bundle's SHA256SUM")
    manifest.add_argument("directory", type=Path, help="Bundle directory")

    resolve = subparsers.add_parser("resolve", help="Resolve an input name through a provider stack")
    resolve.add_argument("name", help="TeX name to open")
    resolve.add_argument("--primary", type=Path, default=None, help="Primary input file")
    resolve.add_argument(
        "--dir",
        dest="dirs",
        type=Path,
        action="append",
        default=[],
        help="Search directory (repeatable; searched in order)",
    )
    resolve.add_argument("--bundle", type=Path, default=None, help="Bundle directory or .zip file")
    resolve.add_argument("--format", action="store_true", help="Open NAME as a format file")
    return parser.parse_args(argv)


def open_bundle(path: Path) -> Bundle:
    if path.is_dir():
        return DirBundle(path)
    if path.suffix.lower() == ".zip":
        return ZipBundle(path)
    raise ValueError(f"Bundle must be a directory or a .zip file: {path}")


def run_normalize(args: argparse.Namespace) -> int:
    for path in args.paths:
        normalized = try_normalize_tex_path(path)
        print(normalized if normalized is not None else "<invalid>")
    return 0


def run_digest(args: argparse.Namespace) -> int:
    try:
        with open_bundle(args.bundle) as bundle:
            print(bundle.get_digest())
    except (IoError, OSError, ValueError) as exc:
        logging.error("Unable to read bundle digest: %s", exc)
        return EXIT_FATAL
    return 0


def run_manifest(args: argparse.Namespace) -> int:
    if not args.directory.is_dir():
        logging.error("Bundle directory does not exist: %s", args.directory)
        return EXIT_FATAL
    try:
        digest = write_digest_manifest(args.directory)
    except (IoError, OSError) as exc:
        logging.error("Unable to write bundle manifest: %s", exc)
        return EXIT_FATAL
    print(digest)
    return 0


def run_resolve(args: argparse.Namespace) -> int:
    settings = RuntimeSettings.from_env()
    builder = IoSetupBuilder.from_settings(settings)
    if args.primary is not None:
        builder.primary_input_path(args.primary)
    for directory in args.dirs:
        builder.filesystem_root(directory)
    if args.bundle is not None:
        try:
            builder.bundle(open_bundle(args.bundle))
        except ValueError as exc:
            logging.error("%s", exc)
            return EXIT_FATAL

    with builder.create() as setup:
        stack = setup.stack()
        result = stack.input_open_format(args.name) if args.format else stack.input_open_name(args.name)
        if result.is_not_available:
            print(f"missing {args.name}")
            return EXIT_MISSING
        if result.is_fatal:
            logging.error("Unable to open %s: %s", args.name, result.error)
            return EXIT_FATAL
        with result.unwrap() as handle:
            size = len(handle.read())
        print(f"found {args.name} ({size} bytes)")
    return EXIT_FOUND


COMMANDS = {
    "normalize": run_normalize,
    "digest": run_digest,
    "manifest": run_manifest,
    "resolve": run_resolve,
}


def main(argv: list[str] | None = None) -> int:
    args = parse_args(argv)
    logging.basicConfig(
        level=getattr(logging, args.log_level),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    try:
        return COMMANDS[args.command](args)
    except ValueError as exc:
        logging.error("Invalid configuration: %s", exc)
        return EXIT_FATAL


if __name__ == "__main__":
    raise SystemExit(main())
