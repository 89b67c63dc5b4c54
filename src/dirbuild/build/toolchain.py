"""External compiler and linker invocation.

The compiler and linker are opaque collaborators: each takes one input file
and writes one output file, and signals failure through a non-zero exit
status with diagnostics on its error stream. Their output is captured and
handed back to the caller uninterpreted.
"""

import logging
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Sequence

from ..subprocess_utils import safe_run
from .target_graph import Artifact

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class BuildTask:
    """A stale artifact bound to the command that rebuilds it."""

    artifact: Artifact
    step: str
    command: tuple[str, ...]


@dataclass
class BuildResult:
    """Outcome of one executed build task.

    Attributes:
        task: The task that was executed
        returncode: Exit status, or None if the tool could not be started
        stdout: Captured standard output
        stderr: Captured standard error (or the launch error)
        duration: Wall time in seconds
    """

    task: BuildTask
    returncode: Optional[int]
    stdout: str = ""
    stderr: str = ""
    duration: float = 0.0

    @property
    def success(self) -> bool:
        return self.returncode == 0

    @property
    def artifact(self) -> Artifact:
        return self.task.artifact

    @property
    def step(self) -> str:
        return self.task.step

    @property
    def command(self) -> tuple[str, ...]:
        return self.task.command

    @property
    def diagnostics(self) -> str:
        """Captured stderr and stdout, stderr first, one stream per block."""
        parts = [self.stderr, self.stdout]
        return "\n".join(p.rstrip() for p in parts if p and p.strip())


class ExternalTool:
    """One external build step (compile or link) driven by a command template.

    Template arguments may reference {input} (the dependency path),
    {output} (the artifact path) and {stem} (the source name without its
    extension).
    """

    def __init__(self, step: str, template: Sequence[str]):
        self.step = step
        self.template = tuple(template)

    def task_for(self, artifact: Artifact, stem: str) -> BuildTask:
        """Render the command that rebuilds an artifact."""
        values = {
            "input": str(artifact.dependency),
            "output": str(artifact.path),
            "stem": stem,
        }
        command = tuple(arg.format(**values) for arg in self.template)
        return BuildTask(artifact=artifact, step=self.step, command=command)

    def run(self, task: BuildTask, cwd: Optional[Path] = None) -> BuildResult:
        """Execute a task and wait for it. Never raises for tool failures.

        There is no timeout: a tool that hangs blocks the build.
        """
        logger.debug(f"Running {self.step}: {' '.join(task.command)}")
        start_time = time.time()
        try:
            completed = safe_run(
                list(task.command),
                cwd=cwd,
                capture_output=True,
                text=True,
                errors="replace",
            )
        except OSError as e:
            logger.debug(f"Failed to start {task.command[0]}: {e}")
            return BuildResult(
                task=task,
                returncode=None,
                stderr=f"{task.command[0]}: {e.strerror or e}",
                duration=time.time() - start_time,
            )

        result = BuildResult(
            task=task,
            returncode=completed.returncode,
            stdout=completed.stdout or "",
            stderr=completed.stderr or "",
            duration=time.time() - start_time,
        )
        if result.success:
            logger.debug(f"{self.step} of {task.artifact.path.name} succeeded in {result.duration:.2f}s")
        else:
            logger.debug(f"{self.step} of {task.artifact.path.name} failed with status {result.returncode}")
        return result
