"""Main CLI entry point for crossrelease tooling."""

import logging
import sys

from crossrelease_tooling.cli import docs_cmd, release_cmd, targets_cmd


def _configure_logging(argv: list[str]) -> list[str]:
    """Strip leading -v/--verbose from argv and set the log level (DEBUG when given, else WARNING).

    Flags after the command word belong to the subcommand and are left alone.
    """
    prog, rest = argv[:1], argv[1:]
    leading = 0
    while leading < len(rest) and rest[leading] in ("-v", "--verbose"):
        leading += 1
    verbose = leading > 0
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(levelname)s [%(name)s] %(message)s" if verbose else "%(levelname)s: %(message)s",
        force=True,
    )
    return prog + rest[leading:]


def main() -> None:
    """Main CLI entry point."""
    sys.argv = _configure_logging(sys.argv)
    if len(sys.argv) < 2:
        print("Usage: crossrelease [-v] <command> [args...]", file=sys.stderr)
        print("Commands:", file=sys.stderr)
        print(
            "  release run   - Install toolchain, build, publish, document every target; then tag",
            file=sys.stderr,
        )
        print("  release tag   - Create v<version> tag from cargo metadata", file=sys.stderr)
        print("  targets list  - Show the target registry and toolchain per target", file=sys.stderr)
        print("  targets check - Validate the registry and toolchain coverage", file=sys.stderr)
        print(
            "  docs should-deploy <triple> - Whether docs from <triple> would be deployed",
            file=sys.stderr,
        )
        sys.exit(1)

    command = sys.argv[1]

    if command == "release":
        release_cmd.run_release_argv()
    elif command == "targets":
        targets_cmd.run_targets_argv()
    elif command == "docs":
        docs_cmd.run_docs_argv()
    else:
        print(f"Error: Unknown command: {command}", file=sys.stderr)
        sys.exit(1)


if __name__ == "__main__":
    main()
