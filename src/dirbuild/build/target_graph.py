"""Target graph: maps each source to its build artifacts.

Every source expands into a fixed two-step chain::

    foo.rs  ->  foo.bc  ->  foo
    source      intermediate  binary

Artifact names are derived by stripping the source extension and appending
the target suffix. Artifacts live next to their source.
"""

import logging
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Dict, Iterator, List, Optional, Sequence

from .errors import NamingConflictError
from .source_scanner import SourceUnit

logger = logging.getLogger(__name__)


class ArtifactKind(Enum):
    """Kind of derived build product."""

    INTERMEDIATE = "intermediate"
    BINARY = "binary"

    @property
    def step(self) -> str:
        """Name of the build step that produces this kind."""
        return "compile" if self is ArtifactKind.INTERMEDIATE else "link"


@dataclass
class Artifact:
    """A derived file and its single direct dependency.

    Attributes:
        kind: Intermediate or binary
        path: Where the artifact is written
        dependency: The file this artifact is built from
        mtime_ns: Last observed modification time, None if the file is absent
    """

    kind: ArtifactKind
    path: Path
    dependency: Path
    mtime_ns: Optional[int] = field(default=None, compare=False)

    def refresh(self) -> Optional[int]:
        """Re-read the modification time from the file system."""
        try:
            self.mtime_ns = self.path.stat().st_mtime_ns
        except FileNotFoundError:
            self.mtime_ns = None
        return self.mtime_ns

    @property
    def exists(self) -> bool:
        return self.mtime_ns is not None


@dataclass
class TargetChain:
    """The source -> intermediate -> binary chain of one source."""

    source: SourceUnit
    intermediate: Artifact
    binary: Artifact

    @property
    def artifacts(self) -> tuple[Artifact, Artifact]:
        """Artifacts in dependency order."""
        return (self.intermediate, self.binary)


@dataclass
class TargetGraph:
    """All chains of one session, in source discovery order."""

    chains: List[TargetChain]

    def __iter__(self) -> Iterator[TargetChain]:
        return iter(self.chains)

    def __len__(self) -> int:
        return len(self.chains)

    def artifact_paths(self) -> List[Path]:
        """Every derived path, intermediates before binaries per source."""
        return [a.path for chain in self.chains for a in chain.artifacts]


def build_chain(source: SourceUnit, intermediate_suffix: str, binary_suffix: str) -> TargetChain:
    """Derive the artifact chain for one source.

    Args:
        source: The discovered source unit
        intermediate_suffix: Suffix of the compiled intermediate (e.g., ".bc")
        binary_suffix: Suffix of the linked binary (often empty)

    Returns:
        TargetChain with artifact modification times not yet read
    """
    intermediate_path = source.path.with_name(source.stem + intermediate_suffix)
    binary_path = source.path.with_name(source.stem + binary_suffix)
    return TargetChain(
        source=source,
        intermediate=Artifact(ArtifactKind.INTERMEDIATE, intermediate_path, source.path),
        binary=Artifact(ArtifactKind.BINARY, binary_path, intermediate_path),
    )


def build_graph(sources: Sequence[SourceUnit], intermediate_suffix: str, binary_suffix: str) -> TargetGraph:
    """Expand sources into chains and verify artifact paths are unambiguous.

    Raises:
        NamingConflictError: If two sources map to the same artifact path,
            or an artifact path is one of the sources
    """
    chains = [build_chain(s, intermediate_suffix, binary_suffix) for s in sources]

    source_paths = {s.path for s in sources}
    claimed: Dict[Path, Path] = {}
    for chain in chains:
        for artifact in chain.artifacts:
            if artifact.path in source_paths:
                raise NamingConflictError(artifact.path, [chain.source.path, artifact.path])
            owner = claimed.get(artifact.path)
            if owner is not None:
                raise NamingConflictError(artifact.path, [owner, chain.source.path])
            claimed[artifact.path] = chain.source.path

    logger.debug(f"Target graph: {len(chains)} chain(s), {len(claimed)} artifact(s)")
    return TargetGraph(chains)
