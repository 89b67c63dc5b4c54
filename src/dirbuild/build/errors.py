"""Exception taxonomy for dirbuild.

Every error aborts the current session and is reported verbatim to the
user. None of them is retried.
"""

from pathlib import Path
from typing import TYPE_CHECKING, Optional, Sequence

if TYPE_CHECKING:
    from .toolchain import BuildResult

# Exit status used when no more specific status is available
GENERIC_FAILURE = 1


class DirbuildError(Exception):
    """Base class for all dirbuild errors."""

    @property
    def exit_code(self) -> int:
        return GENERIC_FAILURE


class ConfigError(DirbuildError):
    """Raised when the build configuration is invalid."""


class DiscoveryError(DirbuildError):
    """Raised when the source directory cannot be read."""

    def __init__(self, directory: Path, reason: str):
        self.directory = directory
        self.reason = reason
        super().__init__(f"Cannot read source directory {directory}: {reason}")


class NamingConflictError(DirbuildError):
    """Raised when an artifact path is claimed twice.

    Either two sources derive the same artifact path, or a derived artifact
    path is itself one of the sources.
    """

    def __init__(self, artifact_path: Path, claimants: Sequence[Path]):
        self.artifact_path = artifact_path
        self.claimants = tuple(claimants)
        names = ", ".join(p.name for p in self.claimants)
        super().__init__(f"Artifact path {artifact_path} is claimed by more than one file: {names}")


class BuildFailure(DirbuildError):
    """Raised when a compile or link step fails. Carries the failed result."""

    def __init__(self, result: "BuildResult"):
        self.result = result
        if result.returncode is None:
            status = "could not be started"
        else:
            status = f"exited with status {result.returncode}"
        super().__init__(f"{result.step.capitalize()} of {result.artifact.path.name} failed: {result.command[0]} {status}")

    @property
    def exit_code(self) -> int:
        returncode: Optional[int] = self.result.returncode
        if returncode is not None and 0 < returncode < 256:
            return returncode
        return GENERIC_FAILURE

    @property
    def diagnostics(self) -> str:
        """Captured stderr and stdout of the failed tool, stderr first."""
        return self.result.diagnostics


class CleanupError(DirbuildError):
    """Raised when an artifact exists but cannot be removed."""

    def __init__(self, path: Path, reason: str):
        self.path = path
        self.reason = reason
        super().__init__(f"Cannot remove {path}: {reason}")
