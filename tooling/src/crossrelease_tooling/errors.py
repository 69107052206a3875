"""Exception hierarchy for crossrelease_tooling.

Every failure is fatal to the run; the CLI turns any CrossReleaseError into exit code 1.
"""

from __future__ import annotations

from collections.abc import Sequence


class CrossReleaseError(Exception):
    """Base exception for all release errors."""


class ConfigurationError(CrossReleaseError):
    """Static configuration is unusable (empty registry, unmapped target, ambiguous package)."""


class ToolInvocationError(CrossReleaseError):
    """An external tool (rustup, espup, cargo, git) failed."""

    def __init__(
        self,
        message: str,
        *,
        cmd: Sequence[str] | None = None,
        returncode: int | None = None,
        output: str = "",
    ) -> None:
        self.cmd = list(cmd) if cmd is not None else None
        self.returncode = returncode
        self.output = output
        super().__init__(message)


class ToolchainError(ToolInvocationError):
    """Toolchain installation for a target failed."""


class AuthenticationError(ToolInvocationError):
    """Registry rejected (or never received) the credential. Aborts remaining targets."""


class CompileError(ToolInvocationError):
    """Compiling the package for a target failed; nothing was published for it."""


class PublishError(ToolInvocationError):
    """Registry rejected the package (e.g. version already uploaded)."""


class DocumentationError(ToolInvocationError):
    """cargo doc failed or produced no documentation tree."""


class DeploymentError(ToolInvocationError):
    """Publishing the documentation site failed."""


class TaggingError(ToolInvocationError):
    """Creating or pushing the release tag failed."""


class TagConflictError(TaggingError):
    """Release tag already exists locally or on the remote."""

    def __init__(self, tag: str, where: str = "repository") -> None:
        self.tag = tag
        super().__init__(f"Tag {tag} already exists in {where}; refusing to re-tag")


class ReleaseIncompleteError(CrossReleaseError):
    """One or more targets failed with fail-fast disabled; the run is not tagged."""

    def __init__(self, failures: dict[str, CrossReleaseError]) -> None:
        self.failures = dict(failures)
        names = ", ".join(sorted(self.failures))
        super().__init__(f"{len(self.failures)} target(s) failed: {names}")
