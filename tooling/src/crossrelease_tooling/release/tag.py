"""Tag the release: read the package version from cargo metadata, create and push v<version>.

The tag must not exist yet, locally or on the remote. Re-running after a successful
release fails with TagConflictError instead of quietly doing nothing.
"""

from __future__ import annotations

import json
import logging
import sys
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from crossrelease_tooling.config import ReleaseConfig
from crossrelease_tooling.errors import (
    ConfigurationError,
    CrossReleaseError,
    TagConflictError,
    TaggingError,
)
from crossrelease_tooling.helpers import (
    combined_output,
    git_identity_args,
    is_valid_version,
    run_tool,
    tag_name_for,
    write_github_output,
)

log = logging.getLogger(__name__)


@dataclass(frozen=True)
class ReleaseTag:
    name: str
    version: str
    message: str


def release_tag_for(version: str) -> ReleaseTag:
    """ReleaseTag for version: name v<version>, message 'Release v<version>'."""
    name = tag_name_for(version)
    return ReleaseTag(name=name, version=version, message=f"Release {name}")


def select_package_version(metadata: dict[str, Any], package: str) -> str:
    """Version of the one package named package in cargo metadata. Zero or many matches raise."""
    packages = metadata.get("packages")
    if not isinstance(packages, list):
        msg = "cargo metadata output has no 'packages' list"
        raise ConfigurationError(msg)
    matches = [p for p in packages if isinstance(p, dict) and p.get("name") == package]
    if len(matches) != 1:
        msg = f"Expected exactly one package named {package!r} in cargo metadata, found {len(matches)}"
        raise ConfigurationError(msg)
    version = str(matches[0].get("version") or "")
    if not is_valid_version(version):
        msg = f"Package {package!r} has invalid version {version!r}"
        raise ConfigurationError(msg)
    return version


def read_package_version(project_root: Path, package: str) -> str:
    """Run cargo metadata --no-deps in project_root and return package's version."""
    cmd = ["cargo", "metadata", "--format-version=1", "--no-deps"]
    try:
        r = run_tool(cmd, cwd=project_root)
    except FileNotFoundError as e:
        msg = "cargo not found in PATH"
        raise ConfigurationError(msg) from e
    if r.returncode != 0:
        msg = f"cargo metadata failed: {combined_output(r)}"
        raise ConfigurationError(msg)
    try:
        metadata = json.loads(r.stdout)
    except json.JSONDecodeError as e:
        msg = f"cargo metadata returned invalid JSON: {e}"
        raise ConfigurationError(msg) from e
    return select_package_version(metadata, package)


def _git(args: list[str], cwd: Path) -> tuple[int, str]:
    cmd = ["git", *args]
    try:
        r = run_tool(cmd, cwd=cwd)
    except FileNotFoundError as e:
        msg = "git not found in PATH"
        raise TaggingError(msg, cmd=cmd) from e
    return r.returncode, combined_output(r)


def tag_exists_locally(project_root: Path, name: str) -> bool:
    rc, _ = _git(["rev-parse", "-q", "--verify", f"refs/tags/{name}"], project_root)
    return rc == 0


def tag_exists_on_remote(project_root: Path, name: str, remote: str) -> bool:
    rc, out = _git(["ls-remote", "--tags", remote, f"refs/tags/{name}"], project_root)
    if rc != 0:
        msg = f"git ls-remote {remote} failed: {out}"
        raise TaggingError(msg, returncode=rc, output=out)
    return bool(out.strip())


def _delete_local_tag(project_root: Path, name: str) -> None:
    """Remove a tag whose push failed."""
    rc, out = _git(["tag", "-d", name], project_root)
    if rc != 0:
        log.warning("could not delete local tag %s after failed push: %s", name, out)


def create_release_tag(
    project_root: Path,
    tag: ReleaseTag,
    *,
    push: bool = True,
    remote: str = "origin",
) -> ReleaseTag:
    """Create annotated tag and (by default) push it. Existing tag raises TagConflictError.

    If the push fails the local tag is deleted again, so no tag is left behind that
    exists only locally.
    """
    if tag_exists_locally(project_root, tag.name):
        raise TagConflictError(tag.name, "local repository")
    if push and tag_exists_on_remote(project_root, tag.name, remote):
        raise TagConflictError(tag.name, f"remote {remote!r}")

    rc, out = _git([*git_identity_args(), "tag", "-a", tag.name, "-m", tag.message], project_root)
    if rc != 0:
        if "already exists" in out:
            raise TagConflictError(tag.name, "local repository")
        msg = f"git tag {tag.name} failed: {out}"
        raise TaggingError(msg, returncode=rc, output=out)
    print(f"🏷️  Created tag {tag.name}")

    if push:
        rc, out = _git(["push", remote, f"refs/tags/{tag.name}"], project_root)
        if rc != 0:
            _delete_local_tag(project_root, tag.name)
            if "already exists" in out:
                raise TagConflictError(tag.name, f"remote {remote!r}")
            msg = f"git push {remote} {tag.name} failed: {out}"
            raise TaggingError(msg, returncode=rc, output=out)
        print(f"  ✅ Pushed {tag.name} to {remote}")
    return tag


def tag_release(
    project_root: Path,
    package: str,
    *,
    expected_version: str | None = None,
    push: bool = True,
    remote: str = "origin",
    dry_run: bool = False,
) -> ReleaseTag:
    """Resolve the version, then create the tag. Nothing is tagged if the version is unresolved."""
    version = read_package_version(project_root, package)
    print(f"{package} version: {version}")
    if expected_version is not None and expected_version != version:
        msg = f"Published version {expected_version} does not match cargo metadata version {version}"
        raise ConfigurationError(msg)
    tag = release_tag_for(version)
    if dry_run:
        print(f"Info:  Dry run; would create tag {tag.name} ({tag.message!r})")
    else:
        create_release_tag(project_root, tag, push=push, remote=remote)
        write_github_output("crate_version", version)
    log.debug("release tag %s done (dry_run=%s)", tag.name, dry_run)
    return tag


def run(
    project_root: Path,
    *,
    config_path: Path | None = None,
    push: bool = True,
    dry_run: bool = False,
) -> int:
    """Tag only (no build/publish): for re-tagging after a manual publish. Returns 0 or 1."""
    try:
        config = ReleaseConfig.load(project_root, config_path=config_path)
        tag_release(
            project_root,
            config.package,
            push=push and config.push_tag,
            remote=config.remote,
            dry_run=dry_run,
        )
    except CrossReleaseError as e:
        print(f"❌ {e}", file=sys.stderr)
        return 1
    return 0
