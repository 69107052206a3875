"""`crossrelease release` subcommands: run, tag."""

import argparse
import sys
from pathlib import Path

from crossrelease_tooling.pipeline.orchestrator import run as run_release
from crossrelease_tooling.release.tag import run as run_tag


def _common(ap: argparse.ArgumentParser) -> None:
    ap.add_argument(
        "--project-root",
        type=Path,
        default=Path.cwd(),
        help="Crate root containing Cargo.toml (default: cwd)",
    )
    ap.add_argument("--config", type=Path, default=None, help="Config YAML (default: crossrelease.yaml)")
    ap.add_argument("--dry-run", action="store_true", help="cargo publish --dry-run; no deploy, no tag")
    ap.add_argument("--no-push", action="store_true", help="Create the tag locally without pushing")


def run_release_argv(argv: list[str] | None = None) -> None:
    """Parse release subcommand from argv and run. argv defaults to sys.argv[2:] when called from main."""
    if argv is None:
        argv = sys.argv[2:] if len(sys.argv) > 2 else []
    if not argv:
        print("crossrelease release: missing subcommand (run, tag)", file=sys.stderr)
        sys.exit(1)
    cmd = argv[0]
    rest = argv[1:]

    if cmd == "run":
        ap = argparse.ArgumentParser(
            prog="crossrelease release run",
            description="Build, publish and document every target, then tag the release",
        )
        _common(ap)
        ap.add_argument("--targets-file", type=Path, default=None, help="YAML target registry")
        ap.add_argument(
            "--no-fail-fast",
            action="store_true",
            help="Keep going after a target fails (the release is then not tagged)",
        )
        args = ap.parse_args(rest)
        rc = run_release(
            args.project_root.resolve(),
            config_path=args.config,
            targets_file=args.targets_file,
            dry_run=args.dry_run,
            fail_fast=False if args.no_fail_fast else None,
            push_tag=not args.no_push,
        )
        sys.exit(rc)

    if cmd == "tag":
        ap = argparse.ArgumentParser(
            prog="crossrelease release tag",
            description="Create the v<version> tag from cargo metadata",
        )
        _common(ap)
        args = ap.parse_args(rest)
        rc = run_tag(
            args.project_root.resolve(),
            config_path=args.config,
            push=not args.no_push,
            dry_run=args.dry_run,
        )
        sys.exit(rc)

    print("crossrelease release: use subcommand 'run' or 'tag'", file=sys.stderr)
    sys.exit(1)
