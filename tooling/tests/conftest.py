"""Pytest fixtures for crossrelease tooling tests."""

from collections.abc import Callable
from pathlib import Path
from unittest.mock import MagicMock

import pytest

from crossrelease_tooling.config import ReleaseConfig


@pytest.fixture
def crate_root(tmp_path: Path) -> Path:
    """Minimal crate tree: Cargo.toml plus .github/configs/sdkconfig.defaults."""
    root = tmp_path / "crate"
    root.mkdir()
    (root / "Cargo.toml").write_text('[package]\nname = "esp-idf-hal"\nversion = "3.1.0"\n')
    configs = root / ".github" / "configs"
    configs.mkdir(parents=True)
    (configs / "sdkconfig.defaults").write_text("CONFIG_FREERTOS_HZ=1000\n")
    return root


@pytest.fixture
def release_config(crate_root: Path, tmp_path: Path) -> ReleaseConfig:
    """Config for a run triggered from the release branch, with both tokens set."""
    return ReleaseConfig(
        project_root=crate_root,
        sdkconfig_defaults=crate_root / ".github" / "configs" / "sdkconfig.defaults",
        ref="refs/heads/master",
        registry_token="crates-io-secret",
        repo_token="gh-secret",
        repository="esp-rs/esp-idf-hal",
        work_root=tmp_path / "work",
    )


@pytest.fixture
def completed() -> Callable[..., MagicMock]:
    """Factory for fake subprocess.CompletedProcess results."""

    def _make(returncode: int = 0, stdout: str = "", stderr: str = "") -> MagicMock:
        return MagicMock(returncode=returncode, stdout=stdout, stderr=stderr)

    return _make
