"""CLI entrypoints for hashstamp commands."""

from __future__ import annotations

import argparse
import sys
from pathlib import Path

from .config import ConfigError
from .emitter import EmissionError
from .fingerprint import FingerprintError
from .logging import configure_logging
from .normalizer import NormalizationError
from .pipeline import HashStampPipeline
from .resolver import UnresolvedCollisionError

_RUN_ERRORS = (
    ConfigError,
    EmissionError,
    FingerprintError,
    NormalizationError,
    UnresolvedCollisionError,
    FileNotFoundError,
    NotADirectoryError,
    ValueError,
)


def _add_verbose_option(
    parser: argparse.ArgumentParser, *, suppress_default: bool = False
) -> None:
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        default=argparse.SUPPRESS if suppress_default else False,
        help="Increase log verbosity for troubleshooting.",
    )


def _add_path_argument(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "path",
        nargs="?",
        default=".",
        help="Path to the source tree root (defaults to current directory).",
    )


def _add_output_option(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "-o",
        "--output",
        type=Path,
        default=None,
        help="Generated module path (defaults to the configured output).",
    )


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="hashstamp",
        description="Fingerprint method bodies and emit a digest registry module.",
    )
    _add_verbose_option(parser)
    subparsers = parser.add_subparsers(dest="command", required=True)

    generate_parser = subparsers.add_parser(
        "generate",
        help="Write the generated registry module for a source tree.",
    )
    _add_verbose_option(generate_parser, suppress_default=True)
    _add_path_argument(generate_parser)
    _add_output_option(generate_parser)
    generate_parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Compute the registry without writing the module.",
    )

    check_parser = subparsers.add_parser(
        "check",
        help="Exit non-zero when the generated module is out of date.",
    )
    _add_verbose_option(check_parser, suppress_default=True)
    _add_path_argument(check_parser)
    _add_output_option(check_parser)

    list_parser = subparsers.add_parser(
        "list",
        help="Print every member digest of a source tree.",
    )
    _add_verbose_option(list_parser, suppress_default=True)
    _add_path_argument(list_parser)
    list_parser.add_argument(
        "--namespace",
        default=None,
        help="Only list members of this namespace.",
    )

    return parser


def main(argv: list[str] | None = None) -> None:
    """CLI entrypoint for hashstamp commands."""
    parser = _build_parser()
    args = parser.parse_args(argv)

    configure_logging(verbose=bool(args.verbose))

    pipeline = HashStampPipeline()

    if args.command == "generate":
        dry_run = bool(getattr(args, "dry_run", False))
        try:
            outcome = pipeline.generate(args.path, output=args.output, dry_run=dry_run)
        except _RUN_ERRORS as exc:
            parser.exit(1, f"hashstamp generate failed: {exc}\nRun with --verbose for more details.\n")
        rel_path = _relativize(outcome.path)
        members = len(outcome.result.registry)
        if outcome.written:
            print(f"Wrote {members} member digests to {rel_path}")
        elif dry_run:
            print(f"{members} member digests computed for {rel_path} (dry-run)")
        else:
            print(f"{rel_path} already up to date")
    elif args.command == "check":
        try:
            changes = pipeline.check(args.path, output=args.output)
        except _RUN_ERRORS as exc:
            parser.exit(1, f"hashstamp check failed: {exc}\nRun with --verbose for more details.\n")
        if changes.is_empty:
            print("Generated module is up to date")
            return
        for line in changes.lines():
            print(line)
        parser.exit(1, "Generated module is stale; run `hashstamp generate`.\n")
    elif args.command == "list":
        try:
            registry = pipeline.registry_for(args.path)
        except _RUN_ERRORS as exc:
            parser.exit(1, f"hashstamp list failed: {exc}\nRun with --verbose for more details.\n")
        for namespace, type_name, member, stamp in sorted(registry.iter_members(), key=lambda item: item[:3]):
            if args.namespace and namespace != args.namespace:
                continue
            print(f"{namespace}.{type_name}.{member} {stamp.digest}")
    else:  # pragma: no cover - argparse enforces choices
        parser.exit(1, "Unknown command\n")


def _relativize(path: Path) -> str:
    try:
        return str(path.relative_to(Path.cwd()))
    except ValueError:
        return str(path)


if __name__ == "__main__":
    main(sys.argv[1:])
