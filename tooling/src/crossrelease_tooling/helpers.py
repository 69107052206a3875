"""Shared helpers for crossrelease_tooling (tool invocation, env, YAML, version, CI outputs).

Used by toolchain, build, docs, release and the pipeline orchestrator.
"""

from __future__ import annotations

import logging
import os
import re
import subprocess
from collections.abc import Mapping, Sequence
from pathlib import Path
from typing import Any

import yaml

log = logging.getLogger(__name__)

# --- Tool invocation ---


def run_tool(
    cmd: Sequence[str],
    cwd: Path | None = None,
    env: Mapping[str, str] | None = None,
) -> subprocess.CompletedProcess[str]:
    """Run an external tool with captured text output. Never raises on non-zero exit.

    FileNotFoundError propagates when the executable is not on PATH; callers map it to
    their own error type.
    """
    log.debug("$ %s (cwd=%s)", " ".join(cmd), cwd)
    return subprocess.run(
        list(cmd),
        cwd=str(cwd) if cwd is not None else None,
        env=dict(env) if env is not None else None,
        capture_output=True,
        text=True,
        check=False,
    )


def combined_output(r: subprocess.CompletedProcess[str]) -> str:
    """stderr followed by stdout, stripped. cargo reports most failures on stderr."""
    return ((r.stderr or "") + (r.stdout or "")).strip()


def merged_env(*overlays: Mapping[str, str]) -> dict[str, str]:
    """Copy of os.environ with overlays applied in order (later wins)."""
    env = dict(os.environ)
    for overlay in overlays:
        env.update(overlay)
    return env


def redact(text: str, *secrets: str | None) -> str:
    """Replace every non-empty secret in text with ***."""
    for s in secrets:
        if s:
            text = text.replace(s, "***")
    return text


# --- Config / file ---


def load_yaml_file(p: Path) -> dict[str, Any]:
    """Load a YAML mapping from path. Empty file yields {}. Raises ValueError if not a mapping."""
    with p.open() as f:
        data = yaml.safe_load(f)
    if data is None:
        return {}
    if not isinstance(data, dict):
        msg = f"Expected a mapping at top level of {p}"
        raise ValueError(msg)
    return data


def is_truthy(value: str | None, default: bool = True) -> bool:
    """Interpret an env-style flag. Unset or blank returns default."""
    if value is None or not value.strip():
        return default
    return value.strip().lower() not in ("0", "false", "no", "off")


# --- Text ---


def crate_doc_dir_name(package: str) -> str:
    """rustdoc directory for a crate: hyphens become underscores (esp-idf-hal -> esp_idf_hal)."""
    return package.replace("-", "_")


# --- Version ---

_SEMVER = re.compile(r"^(\d+)\.(\d+)\.(\d+)(?:-([\w.-]+))?(?:\+([\w.-]+))?$")


def is_valid_version(v: str) -> bool:
    """True for a cargo (semver) version such as 3.1.0, 0.39.0-rc.2 or 1.0.0+build.5."""
    return bool(_SEMVER.match(v))


def tag_name_for(version: str) -> str:
    """Release tag name: always "v" + version (3.1.0 -> v3.1.0)."""
    return f"v{version}"


# --- Git ---

GIT_BOT_NAME = "github-actions[bot]"
GIT_BOT_EMAIL = "41898282+github-actions[bot]@users.noreply.github.com"


def git_identity_args() -> list[str]:
    """`git -c` options committing and tagging as the Actions bot, whatever the checkout has configured."""
    return ["-c", f"user.name={GIT_BOT_NAME}", "-c", f"user.email={GIT_BOT_EMAIL}"]


# --- CI ---


def write_github_output(key: str, value: str) -> bool:
    """Append key=value to $GITHUB_OUTPUT when running in Actions. Returns True if written."""
    go = os.environ.get("GITHUB_OUTPUT")
    if not go:
        return False
    with Path(go).open("a") as f:
        f.write(f"{key}={value}\n")
    return True
