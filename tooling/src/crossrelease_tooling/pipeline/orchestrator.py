"""Cross-target release: per target install toolchain, build, publish, document; then tag once.

Targets are independent pipelines run in registry order, each with its own context.
The tagger is a join point after the loop and only runs when every target succeeded.
With fail_fast (default) the first failure aborts the run; without it the remaining
targets still run, but the release is reported incomplete and not tagged.
Configuration and authentication errors abort regardless of fail_fast.
"""

from __future__ import annotations

import dataclasses
import logging
import sys
from collections.abc import Iterable
from dataclasses import dataclass, field
from pathlib import Path

from crossrelease_tooling.build.publish import PublishResult, compile_target, publish_target
from crossrelease_tooling.config import ReleaseConfig
from crossrelease_tooling.docs.deploy import deploy_docs, should_deploy_docs
from crossrelease_tooling.docs.generate import generate_docs
from crossrelease_tooling.errors import (
    AuthenticationError,
    ConfigurationError,
    CrossReleaseError,
    ReleaseIncompleteError,
)
from crossrelease_tooling.pipeline.context import PipelineContext, pipeline_context
from crossrelease_tooling.release.tag import ReleaseTag, tag_release
from crossrelease_tooling.targets.registry import Target, load_targets, validate_targets
from crossrelease_tooling.toolchain.select import install_toolchain, select_recipe

log = logging.getLogger(__name__)

ABORT_ALWAYS = (ConfigurationError, AuthenticationError)


@dataclass
class RunReport:
    results: list[PublishResult] = field(default_factory=list)
    failures: dict[str, CrossReleaseError] = field(default_factory=dict)
    deployed_from: str | None = None
    tag: ReleaseTag | None = None

    @property
    def ok(self) -> bool:
        return not self.failures

    def published_version(self) -> str | None:
        """The single version reported by publish across targets, or None if none reported."""
        versions = {r.version for r in self.results if r.version}
        if len(versions) > 1:
            msg = f"Targets published different versions: {sorted(versions)}"
            raise ConfigurationError(msg)
        return next(iter(versions), None)


def preflight(config: ReleaseConfig, targets: Iterable[Target]) -> tuple[Target, ...]:
    """Validate registry, recipe coverage and SDK config before any tool runs."""
    checked = validate_targets(targets)
    for t in checked:
        select_recipe(t)
    sdkconfig = config.sdkconfig_defaults
    if sdkconfig is not None and not sdkconfig.is_file():
        msg = f"SDK config defaults not found: {sdkconfig}"
        raise ConfigurationError(msg)
    return checked


def run_target_pipeline(ctx: PipelineContext, *, dry_run: bool = False) -> tuple[PublishResult, bool]:
    """One target: install → compile → publish → docs → gated deploy. Returns (result, deployed)."""
    ctx.installation = install_toolchain(ctx.target, ctx.config, ctx.workdir)
    artifact = compile_target(ctx)
    result = publish_target(ctx, artifact, ctx.config.registry_token, dry_run=dry_run)
    docs = generate_docs(ctx)

    if not should_deploy_docs(ctx.target, ctx.config.trigger):
        log.debug(
            "docs for %s not deployed (primary=%s, ref=%r)",
            ctx.target.triple,
            ctx.target.primary,
            ctx.config.ref,
        )
        return result, False
    if dry_run:
        print(f"Info:  Dry run; would deploy documentation from {ctx.target.triple}")
        return result, False
    deploy_docs(docs, ctx.config)
    return result, True


def run_release(
    config: ReleaseConfig,
    targets: Iterable[Target] | None = None,
    *,
    dry_run: bool = False,
) -> RunReport:
    """Run every target pipeline, then tag. Raises the fatal error that ended the run."""
    checked = preflight(config, config.targets if targets is None else targets)
    if not dry_run and not config.registry_token:
        msg = "No registry token (set CRATES_IO_TOKEN or CARGO_REGISTRY_TOKEN)"
        raise AuthenticationError(msg)

    report = RunReport()
    for target in checked:
        try:
            with pipeline_context(target, config) as ctx:
                result, deployed = run_target_pipeline(ctx, dry_run=dry_run)
        except ABORT_ALWAYS:
            raise
        except CrossReleaseError as e:
            if config.fail_fast:
                raise
            print(f"❌ {target.triple}: {e}", file=sys.stderr)
            report.failures[target.triple] = e
            continue
        report.results.append(result)
        if deployed:
            report.deployed_from = target.triple

    if report.failures:
        raise ReleaseIncompleteError(report.failures)

    report.tag = tag_release(
        config.project_root,
        config.package,
        expected_version=report.published_version(),
        push=config.push_tag,
        remote=config.remote,
        dry_run=dry_run,
    )
    return report


def run(
    project_root: Path,
    *,
    config_path: Path | None = None,
    targets_file: Path | None = None,
    dry_run: bool = False,
    fail_fast: bool | None = None,
    push_tag: bool = True,
) -> int:
    """Load config, run the release, print a summary. Returns 0 or 1."""
    try:
        config = ReleaseConfig.load(project_root, config_path=config_path)
        changes: dict[str, object] = {"push_tag": push_tag and config.push_tag}
        if fail_fast is not None:
            changes["fail_fast"] = fail_fast
        if targets_file is not None:
            changes["targets"] = load_targets(targets_file)
        config = dataclasses.replace(config, **changes)
        report = run_release(config, dry_run=dry_run)
    except CrossReleaseError as e:
        print(f"❌ {e}", file=sys.stderr)
        return 1

    print(f"🎉 Released {config.package} for {len(report.results)} target(s)")
    if report.deployed_from:
        print(f"  Documentation deployed from {report.deployed_from}")
    if report.tag is not None:
        print(f"  Tag: {report.tag.name}")
    return 0
