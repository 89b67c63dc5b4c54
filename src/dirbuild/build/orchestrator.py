"""
Build orchestration for dirbuild.

Walks the target graph source by source, in discovery order. Within a
chain the intermediate is settled before the binary. An artifact is
rebuilt when it is missing, older than its dependency, or its dependency
was rebuilt in this session. The first failing step aborts the whole
session.

File modification times are the only build cache: they are re-read from
disk on every session.
"""

import logging
import time
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import TYPE_CHECKING, Any, List, Optional

from .. import output
from ..subprocess_utils import safe_popen
from .errors import BuildFailure, DiscoveryError
from .source_scanner import SourceScanner
from .target_graph import Artifact, TargetChain, TargetGraph, build_graph
from .toolchain import BuildResult, BuildTask, ExternalTool

if TYPE_CHECKING:
    from ..config import BuildConfig

# Module-level logger
logger = logging.getLogger(__name__)


class ArtifactState(Enum):
    """Staleness of one artifact relative to its dependency."""

    MISSING = "missing"
    STALE = "stale"
    UP_TO_DATE = "up-to-date"

    @property
    def needs_build(self) -> bool:
        return self is not ArtifactState.UP_TO_DATE


def evaluate(artifact: Artifact, dependency_mtime_ns: Optional[int], dependency_rebuilt: bool) -> ArtifactState:
    """Decide whether an artifact must be rebuilt.

    Args:
        artifact: Artifact with a freshly read modification time
        dependency_mtime_ns: Modification time of the dependency, None if absent
        dependency_rebuilt: Whether the dependency was (or would be) rebuilt
            earlier in this session

    Returns:
        The artifact state
    """
    if artifact.mtime_ns is None:
        return ArtifactState.MISSING
    if dependency_rebuilt:
        return ArtifactState.STALE
    if dependency_mtime_ns is not None and artifact.mtime_ns < dependency_mtime_ns:
        return ArtifactState.STALE
    return ArtifactState.UP_TO_DATE


@dataclass
class RunResult:
    """Outcome of running a freshly built binary. Informational only."""

    binary: Path
    returncode: Optional[int]
    error: str = ""


@dataclass
class BuildReport:
    """Summary of a successful build session.

    Attributes:
        results: Executed build steps, in execution order
        planned: Steps that would run (dry run only)
        up_to_date: Artifacts that were skipped
        runs: Post-build program runs
        build_time: Session wall time in seconds
    """

    results: List[BuildResult] = field(default_factory=list)
    planned: List[BuildTask] = field(default_factory=list)
    up_to_date: List[Artifact] = field(default_factory=list)
    runs: List[RunResult] = field(default_factory=list)
    build_time: float = 0.0

    @property
    def built(self) -> List[Path]:
        """Paths of the artifacts rebuilt in this session."""
        return [r.artifact.path for r in self.results]


class BuildOrchestrator:
    """Builds every stale artifact of one directory, fail-fast."""

    def __init__(self, config: "BuildConfig"):
        """
        Initialize orchestrator.

        Args:
            config: Resolved build configuration
        """
        self.config = config
        self.compiler = ExternalTool("compile", config.compile_command)
        self.linker = ExternalTool("link", config.link_command)

    def discover(self) -> TargetGraph:
        """Scan the build directory and expand the sources into a target graph.

        Raises:
            DiscoveryError: If the directory cannot be read
            NamingConflictError: If artifact paths collide
        """
        scanner = SourceScanner(self.config.directory, self.config.extension)
        sources = scanner.scan()
        return build_graph(sources, self.config.intermediate_suffix, self.config.binary_suffix)

    def build(self, graph: Optional[TargetGraph] = None, progress_bar: Optional[Any] = None) -> BuildReport:
        """Execute the build goal.

        Args:
            graph: Target graph to build (discovered when omitted)
            progress_bar: Optional tqdm progress bar, advanced once per source.
                When given, per-artifact lines are only printed in verbose mode.

        Returns:
            BuildReport of the session

        Raises:
            DiscoveryError: If the directory or a source cannot be read
            NamingConflictError: If artifact paths collide
            BuildFailure: On the first failing compile or link step
        """
        start_time = time.time()
        if graph is None:
            graph = self.discover()

        report = BuildReport()
        total = len(graph)
        quiet = progress_bar is not None
        for index, chain in enumerate(graph, start=1):
            output.log_phase(index, total, chain.source.path.name, verbose_only=True)
            self._build_chain(chain, report, quiet)
            if progress_bar is not None:
                progress_bar.update(1)

        report.build_time = time.time() - start_time
        logger.debug(
            f"Build session finished: {len(report.results)} step(s) run, "
            f"{len(report.up_to_date)} artifact(s) up to date"
        )
        return report

    def _build_chain(self, chain: TargetChain, report: BuildReport, quiet: bool) -> None:
        try:
            dependency_mtime: Optional[int] = chain.source.path.stat().st_mtime_ns
        except FileNotFoundError:
            raise DiscoveryError(self.config.directory, f"source {chain.source.path.name} disappeared")
        except OSError as e:
            raise DiscoveryError(self.config.directory, f"cannot stat {chain.source.path.name}: {e.strerror or e}")

        dependency_rebuilt = False
        for artifact, tool in ((chain.intermediate, self.compiler), (chain.binary, self.linker)):
            artifact.refresh()
            state = evaluate(artifact, dependency_mtime, dependency_rebuilt)
            logger.debug(f"{artifact.path.name}: {state.value}")

            if not state.needs_build:
                report.up_to_date.append(artifact)
                output.log_artifact(artifact.kind.step, artifact.path.name, up_to_date=True)
                dependency_mtime = artifact.mtime_ns
                dependency_rebuilt = False
                continue

            task = tool.task_for(artifact, chain.source.stem)
            output.log_artifact(artifact.kind.step, artifact.path.name, verbose_only=quiet)
            output.log_command(list(task.command))

            if self.config.dry_run:
                report.planned.append(task)
                dependency_rebuilt = True
                continue

            result = tool.run(task, cwd=self.config.directory)
            if not result.success:
                raise BuildFailure(result)

            report.results.append(result)
            if result.diagnostics:
                output.log_diagnostics(result.diagnostics, verbose_only=True)
            artifact.refresh()
            if not artifact.exists:
                output.log_warning(f"{artifact.kind.step} succeeded but {artifact.path.name} was not created")
            dependency_mtime = artifact.mtime_ns
            dependency_rebuilt = True

        if dependency_rebuilt and self.config.run_after_build and not self.config.dry_run:
            report.runs.append(self.run_binary(chain.binary.path))

    def run_binary(self, binary: Path) -> RunResult:
        """Run a built program with inherited standard streams.

        The exit status is reported but never fails the build. There is no
        timeout: a program that hangs blocks the session.
        """
        program = str(binary.absolute())
        output.log(f"Running {binary.name}...")
        try:
            proc = safe_popen([program], cwd=self.config.directory, console=True)
        except OSError as e:
            output.log_warning(f"Could not run {binary.name}: {e.strerror or e}")
            return RunResult(binary=binary, returncode=None, error=str(e))

        try:
            returncode = proc.wait()
        except KeyboardInterrupt:
            proc.kill()
            proc.wait()
            raise

        if returncode == 0:
            output.log_detail(f"{binary.name} exited with status 0")
        else:
            output.log_warning(f"{binary.name} exited with status {returncode}")
        return RunResult(binary=binary, returncode=returncode)
