"""Per-target pipeline context: the state one target's install/build/publish/docs steps share.

Each pipeline owns a temporary working directory (CARGO_TARGET_DIR, ESP-IDF tools, docs)
and its own toolchain installation; both are discarded when the pipeline ends.
"""

from __future__ import annotations

import logging
import shutil
import tempfile
from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import dataclass
from pathlib import Path

from crossrelease_tooling.config import ReleaseConfig
from crossrelease_tooling.helpers import merged_env
from crossrelease_tooling.targets.registry import Target
from crossrelease_tooling.toolchain.select import ToolchainInstallation

log = logging.getLogger(__name__)


@dataclass
class PipelineContext:
    target: Target
    config: ReleaseConfig
    workdir: Path
    installation: ToolchainInstallation | None = None
    published: bool = False
    docs_dir: Path | None = None

    @property
    def cargo_target_dir(self) -> Path:
        return self.workdir / "target"

    @property
    def tools_dir(self) -> Path:
        """ESP_IDF_TOOLS_INSTALL_DIR for this pipeline."""
        return self.workdir / "out"

    def environ(self, extra: dict[str, str] | None = None) -> dict[str, str]:
        """Process env plus this pipeline's toolchain activation plus extra."""
        toolchain_env = self.installation.env if self.installation is not None else {}
        return merged_env(toolchain_env, extra or {})


@contextmanager
def pipeline_context(target: Target, config: ReleaseConfig) -> Iterator[PipelineContext]:
    """Yield a fresh context with its own working directory; remove the directory afterwards."""
    if config.work_root is not None:
        config.work_root.mkdir(parents=True, exist_ok=True)
    workdir = Path(
        tempfile.mkdtemp(
            prefix=f"crossrelease-{target.triple}-",
            dir=str(config.work_root) if config.work_root is not None else None,
        )
    )
    log.debug("pipeline workdir for %s: %s", target.triple, workdir)
    try:
        yield PipelineContext(target=target, config=config, workdir=workdir)
    finally:
        shutil.rmtree(workdir, ignore_errors=True)
