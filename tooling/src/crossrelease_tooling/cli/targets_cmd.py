"""CLI for the target registry: crossrelease targets list | check."""

from __future__ import annotations

import sys

from crossrelease_tooling.cli.parse_common import common_flags
from crossrelease_tooling.config import ReleaseConfig
from crossrelease_tooling.errors import CrossReleaseError
from crossrelease_tooling.targets.registry import Target, load_targets, validate_targets
from crossrelease_tooling.toolchain.select import select_recipe


def _load(argv: list[str]) -> tuple[ReleaseConfig, tuple[Target, ...]]:
    parsed, _ = common_flags(argv)
    config = ReleaseConfig.load(parsed["project_root"], config_path=parsed["config"])
    if parsed["targets_file"] is not None:
        return config, load_targets(parsed["targets_file"])
    return config, validate_targets(config.targets)


def run_targets_argv(argv: list[str] | None = None) -> None:
    """Dispatch crossrelease targets <subcommand>."""
    if argv is None:
        argv = sys.argv[2:]
    if not argv:
        print("Usage: crossrelease targets <list|check> [--targets-file F] [--config F]", file=sys.stderr)
        sys.exit(1)
    sub, args = argv[0], argv[1:]

    if sub not in ("list", "check"):
        print(f"Error: Unknown targets subcommand: {sub}", file=sys.stderr)
        sys.exit(1)

    try:
        config, targets = _load(args)
        recipes = [select_recipe(t) for t in targets]
    except CrossReleaseError as e:
        print(f"❌ {e}", file=sys.stderr)
        sys.exit(1)

    if sub == "list":
        for t, recipe in zip(targets, recipes):
            marker = " (primary)" if t.primary else ""
            name = recipe.toolchain_name(config.toolchain_channel)
            print(f"{t.triple}\t{t.family.value}\t{name}{marker}")
    else:
        print(f"✅ {len(targets)} target(s), every target has a toolchain recipe")
    sys.exit(0)
