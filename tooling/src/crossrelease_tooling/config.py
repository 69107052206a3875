"""Release configuration: defaults, optional crossrelease.yaml, then environment.

Secrets (registry token, repository token) are only ever read from the environment.
Paths are relative to project_root.
"""

from __future__ import annotations

import os
from collections.abc import Mapping
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from crossrelease_tooling.errors import ConfigurationError
from crossrelease_tooling.helpers import is_truthy, load_yaml_file
from crossrelease_tooling.targets.registry import (
    DEFAULT_TARGETS,
    Target,
    targets_from_data,
)

CONFIG_FILE_NAME = "crossrelease.yaml"

# esp-idf-hal defaults; override in crossrelease.yaml or the environment.
DEFAULT_CONFIG: dict[str, str] = {
    "toolchain_channel": "nightly",
    "package": "esp-idf-hal",
    "sdkconfig_defaults": ".github/configs/sdkconfig.defaults",
    "release_branch": "refs/heads/master",
    "pages_branch": "gh-pages",
    "remote": "origin",
    "doc_features": "esp-idf-sys/native",
}

# config key -> environment variable
ENV_VARS: dict[str, str] = {
    "toolchain_channel": "RUST_TOOLCHAIN",
    "package": "CRATE_NAME",
    "sdkconfig_defaults": "ESP_IDF_SDKCONFIG_DEFAULTS",
    "release_branch": "RELEASE_BRANCH",
    "pages_branch": "PAGES_BRANCH",
}

REGISTRY_TOKEN_VARS = ("CRATES_IO_TOKEN", "CARGO_REGISTRY_TOKEN")


def resolve_config(overrides: Mapping[str, Any] | None) -> dict[str, str]:
    """Return config dict with defaults filled. Unknown keys are ignored."""
    out = dict(DEFAULT_CONFIG)
    if overrides:
        out.update({k: str(v) for k, v in overrides.items() if k in out and v is not None})
    return out


@dataclass(frozen=True)
class TriggerContext:
    """Which ref triggered the run, and which ref is allowed to deploy."""

    ref: str
    release_branch: str

    @property
    def on_release_branch(self) -> bool:
        return bool(self.ref) and self.ref == self.release_branch


@dataclass(frozen=True)
class ReleaseConfig:
    project_root: Path
    package: str = DEFAULT_CONFIG["package"]
    toolchain_channel: str = DEFAULT_CONFIG["toolchain_channel"]
    sdkconfig_defaults: Path | None = None
    release_branch: str = DEFAULT_CONFIG["release_branch"]
    ref: str = ""
    registry_token: str | None = None
    repo_token: str | None = None
    repository: str | None = None
    pages_branch: str = DEFAULT_CONFIG["pages_branch"]
    remote: str = DEFAULT_CONFIG["remote"]
    doc_features: tuple[str, ...] = ("esp-idf-sys/native",)
    fail_fast: bool = True
    push_tag: bool = True
    work_root: Path | None = None
    targets: tuple[Target, ...] = field(default=DEFAULT_TARGETS)

    @property
    def trigger(self) -> TriggerContext:
        return TriggerContext(ref=self.ref, release_branch=self.release_branch)

    @classmethod
    def load(
        cls,
        project_root: Path,
        *,
        config_path: Path | None = None,
        env: Mapping[str, str] | None = None,
    ) -> ReleaseConfig:
        """Build config from defaults, the YAML file (if any) and env (env wins)."""
        env = os.environ if env is None else env
        file_data: dict[str, Any] = {}
        path = config_path or project_root / CONFIG_FILE_NAME
        if config_path is not None and not path.is_file():
            msg = f"Config file not found: {path}"
            raise ConfigurationError(msg)
        if path.is_file():
            try:
                file_data = load_yaml_file(path)
            except (OSError, ValueError) as e:
                msg = f"Could not read config {path}: {e}"
                raise ConfigurationError(msg) from e

        values = resolve_config(file_data)
        for key, var in ENV_VARS.items():
            if env.get(var):
                values[key] = env[var]

        targets = targets_from_data(file_data) if "targets" in file_data else DEFAULT_TARGETS
        sdkconfig = Path(values["sdkconfig_defaults"])
        if not sdkconfig.is_absolute():
            sdkconfig = project_root / sdkconfig
        work_root = env.get("CROSSRELEASE_WORK_ROOT") or file_data.get("work_root")

        return cls(
            project_root=project_root,
            package=values["package"],
            toolchain_channel=values["toolchain_channel"],
            sdkconfig_defaults=sdkconfig,
            release_branch=values["release_branch"],
            ref=env.get("GITHUB_REF", ""),
            registry_token=next((env[v] for v in REGISTRY_TOKEN_VARS if env.get(v)), None),
            repo_token=env.get("GITHUB_TOKEN") or None,
            repository=env.get("GITHUB_REPOSITORY") or file_data.get("repository") or None,
            pages_branch=values["pages_branch"],
            remote=values["remote"],
            doc_features=tuple(f.strip() for f in values["doc_features"].split(",") if f.strip()),
            fail_fast=is_truthy(
                env.get("CROSSRELEASE_FAIL_FAST"),
                default=bool(file_data.get("fail_fast", True)),
            ),
            work_root=Path(work_root) if work_root else None,
            targets=targets,
        )
