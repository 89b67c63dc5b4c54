"""Tests for error messages and exit status mapping."""

from pathlib import Path

from dirbuild.build.errors import (
    GENERIC_FAILURE,
    BuildFailure,
    CleanupError,
    DirbuildError,
    DiscoveryError,
    NamingConflictError,
)
from dirbuild.build.target_graph import Artifact, ArtifactKind
from dirbuild.build.toolchain import BuildResult, BuildTask


def _result(returncode, stdout="", stderr=""):
    artifact = Artifact(ArtifactKind.BINARY, Path("/tmp/foo"), Path("/tmp/foo.bc"))
    task = BuildTask(artifact=artifact, step="link", command=("clang", "/tmp/foo.bc", "-o", "/tmp/foo"))
    return BuildResult(task=task, returncode=returncode, stdout=stdout, stderr=stderr)


def test_build_failure_propagates_exit_status():
    failure = BuildFailure(_result(2))
    assert failure.exit_code == 2
    assert str(failure) == "Link of foo failed: clang exited with status 2"


def test_build_failure_out_of_range_status():
    assert BuildFailure(_result(-9)).exit_code == GENERIC_FAILURE
    assert BuildFailure(_result(300)).exit_code == GENERIC_FAILURE


def test_build_failure_diagnostics_stderr_first():
    failure = BuildFailure(_result(1, stdout="note: out\n", stderr="error: err\n"))
    assert failure.diagnostics == "error: err\nnote: out"


def test_build_failure_empty_diagnostics():
    assert BuildFailure(_result(1, stdout="  \n")).diagnostics == ""


def test_generic_exit_codes():
    errors = [
        DiscoveryError(Path("/nope"), "directory does not exist"),
        NamingConflictError(Path("/d/a.bc"), [Path("/d/a.rs"), Path("/d/a.bc.rs")]),
        CleanupError(Path("/d/a"), "Permission denied"),
    ]
    for error in errors:
        assert isinstance(error, DirbuildError)
        assert error.exit_code == GENERIC_FAILURE


def test_naming_conflict_message_lists_claimants():
    error = NamingConflictError(Path("/d/a.bc"), [Path("/d/a.rs"), Path("/d/a.bc.rs")])
    assert "a.rs, a.bc.rs" in str(error)


def test_successful_result_diagnostics_keep_streams_apart():
    result = _result(0, stdout="linked ok", stderr="warning: unused")
    assert result.diagnostics == "warning: unused\nlinked ok"
