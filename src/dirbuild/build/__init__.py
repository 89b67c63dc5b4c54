"""
Build system components for dirbuild.

This package provides:
- Source discovery (one directory, one extension)
- Target graph expansion (source -> intermediate -> binary)
- External compiler/linker invocation
- Build orchestration and artifact cleanup
"""

from .cleaner import CleanReport, clean_artifacts
from .errors import (
    BuildFailure,
    CleanupError,
    ConfigError,
    DirbuildError,
    DiscoveryError,
    NamingConflictError,
)
from .orchestrator import ArtifactState, BuildOrchestrator, BuildReport, RunResult
from .source_scanner import SourceScanner, SourceUnit
from .target_graph import Artifact, ArtifactKind, TargetChain, TargetGraph, build_chain, build_graph
from .toolchain import BuildResult, BuildTask, ExternalTool

__all__ = [
    "Artifact",
    "ArtifactKind",
    "ArtifactState",
    "BuildFailure",
    "BuildOrchestrator",
    "BuildReport",
    "BuildResult",
    "BuildTask",
    "CleanReport",
    "CleanupError",
    "ConfigError",
    "DirbuildError",
    "DiscoveryError",
    "ExternalTool",
    "NamingConflictError",
    "RunResult",
    "SourceScanner",
    "SourceUnit",
    "TargetChain",
    "TargetGraph",
    "build_chain",
    "build_graph",
    "clean_artifacts",
]
