"""Compile and publish the package for one target with cargo.

Every target gets the same std flags (std is rebuilt with panic_abort and
panic_immediate_abort); the ESP-IDF SDK is pointed at the pipeline's own tools dir and
the shared sdkconfig defaults file.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from pathlib import Path

from crossrelease_tooling.errors import (
    AuthenticationError,
    CompileError,
    CrossReleaseError,
    PublishError,
)
from crossrelease_tooling.helpers import combined_output, run_tool
from crossrelease_tooling.pipeline.context import PipelineContext

log = logging.getLogger(__name__)

BUILD_STD_FLAGS: tuple[str, ...] = (
    "-Zbuild-std=std,panic_abort",
    "-Zbuild-std-features=panic_immediate_abort",
)

# Lower-cased fragments of cargo/crates.io output meaning the token was refused.
_AUTH_MARKERS = (
    "401 unauthorized",
    "403 forbidden",
    "invalid token",
    "authentication failed",
    "the given token",
    "no token found",
    "please provide a non-empty token",
)

_UPLOADED_VERSION = re.compile(r"(?:Uploading|Packaging|Uploaded)\s+(\S+)\s+v(\S+)")


@dataclass(frozen=True)
class BuildArtifact:
    """cargo output for one target; lives only as long as the pipeline workdir."""

    triple: str
    path: Path


@dataclass(frozen=True)
class PublishResult:
    """Outcome of one cargo publish. Only returned on success; a failed publish raises
    AuthenticationError or PublishError instead, so success is always True here.
    """

    triple: str
    success: bool
    version: str | None = None
    output: str = ""


def build_env(ctx: PipelineContext) -> dict[str, str]:
    """Target-specific SDK overrides plus the pipeline's toolchain and target dir."""
    extra = {
        "CARGO_TARGET_DIR": str(ctx.cargo_target_dir),
        "ESP_IDF_TOOLS_INSTALL_DIR": str(ctx.tools_dir),
    }
    if ctx.config.sdkconfig_defaults is not None:
        extra["ESP_IDF_SDKCONFIG_DEFAULTS"] = str(ctx.config.sdkconfig_defaults)
    return ctx.environ(extra)


def target_args(triple: str) -> list[str]:
    return ["--target", triple, *BUILD_STD_FLAGS]


def compile_target(ctx: PipelineContext) -> BuildArtifact:
    """cargo build --release for ctx.target. Raises CompileError; nothing is published then."""
    triple = ctx.target.triple
    cmd = ["cargo", "build", "--release", *target_args(triple)]
    print(f"🔨 Building {ctx.config.package} for {triple}...")
    try:
        r = run_tool(cmd, cwd=ctx.config.project_root, env=build_env(ctx))
    except FileNotFoundError as e:
        msg = "cargo not found in PATH"
        raise CompileError(msg, cmd=cmd) from e
    if r.returncode != 0:
        out = combined_output(r)
        msg = f"Build failed for {triple}:\n{out}"
        raise CompileError(msg, cmd=cmd, returncode=r.returncode, output=out)
    return BuildArtifact(triple=triple, path=ctx.cargo_target_dir / triple)


def parse_published_version(output: str, package: str) -> str | None:
    """Version cargo reported while packaging/uploading package, or None."""
    for m in _UPLOADED_VERSION.finditer(output):
        if m.group(1) == package:
            return m.group(2)
    return None


def classify_publish_failure(
    cmd: list[str], returncode: int, output: str, triple: str
) -> CrossReleaseError:
    """AuthenticationError for a refused token, PublishError (output verbatim) otherwise."""
    low = output.lower()
    if any(marker in low for marker in _AUTH_MARKERS):
        msg = f"Registry rejected the credential while publishing {triple}:\n{output}"
        return AuthenticationError(msg, cmd=cmd, returncode=returncode, output=output)
    msg = f"Publish failed for {triple}:\n{output}"
    return PublishError(msg, cmd=cmd, returncode=returncode, output=output)


def publish_target(
    ctx: PipelineContext,
    artifact: BuildArtifact,
    token: str | None,
    *,
    dry_run: bool = False,
) -> PublishResult:
    """cargo publish for the artifact's target. Attempted at most once per pipeline."""
    if ctx.published:
        msg = f"Publish already attempted for {artifact.triple} in this run"
        raise PublishError(msg)
    if not token and not dry_run:
        msg = "No registry token (set CRATES_IO_TOKEN or CARGO_REGISTRY_TOKEN)"
        raise AuthenticationError(msg)

    cmd = ["cargo", "publish", *target_args(artifact.triple)]
    if dry_run:
        cmd.append("--dry-run")
    env = build_env(ctx)
    if token:
        env["CARGO_REGISTRY_TOKEN"] = token

    print(f"📦 Publishing {ctx.config.package} for {artifact.triple}{' (dry run)' if dry_run else ''}...")
    ctx.published = True
    try:
        r = run_tool(cmd, cwd=ctx.config.project_root, env=env)
    except FileNotFoundError as e:
        msg = "cargo not found in PATH"
        raise PublishError(msg, cmd=cmd) from e
    out = combined_output(r)
    if r.returncode != 0:
        raise classify_publish_failure(cmd, r.returncode, out, artifact.triple)

    version = parse_published_version(out, ctx.config.package)
    log.debug("published %s for %s: version=%s", ctx.config.package, artifact.triple, version)
    print(f"  ✅ {artifact.triple} published" + (f" (v{version})" if version else ""))
    return PublishResult(triple=artifact.triple, success=True, version=version, output=out)
