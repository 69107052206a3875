"""CLI for documentation gating: crossrelease docs should-deploy <triple> [--ref REF]."""

from __future__ import annotations

import sys

from crossrelease_tooling.cli.parse_common import common_flags, parse_flags
from crossrelease_tooling.config import ReleaseConfig, TriggerContext
from crossrelease_tooling.docs.deploy import should_deploy_docs
from crossrelease_tooling.errors import CrossReleaseError
from crossrelease_tooling.targets.registry import find_target, load_targets


def run_docs_argv(argv: list[str] | None = None) -> None:
    """Print true/false; exit 0 when docs for <triple> would be deployed, 1 otherwise."""
    if argv is None:
        argv = sys.argv[2:]
    if len(argv) < 2 or argv[0] != "should-deploy":
        print("Usage: crossrelease docs should-deploy <triple> [--ref REF]", file=sys.stderr)
        sys.exit(1)
    triple = argv[1]
    parsed, rest = common_flags(argv[2:])
    ref_flags, _ = parse_flags(rest, ("ref", "--ref", None, None))

    try:
        config = ReleaseConfig.load(parsed["project_root"], config_path=parsed["config"])
        targets = load_targets(parsed["targets_file"]) if parsed["targets_file"] else config.targets
        target = find_target(targets, triple)
    except CrossReleaseError as e:
        print(f"❌ {e}", file=sys.stderr)
        sys.exit(1)

    ref = ref_flags["ref"] if ref_flags["ref"] is not None else config.ref
    deploy = should_deploy_docs(target, TriggerContext(ref=ref, release_branch=config.release_branch))
    print("true" if deploy else "false")
    sys.exit(0 if deploy else 1)
