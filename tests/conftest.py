"""Pytest configuration and fixtures for dirbuild tests.

The compiler and linker are stood in for by a small Python script run with
the current interpreter, so the tests drive real child processes:

- compile: copies the source into the intermediate, fails on BREAK_COMPILE
- link: writes an executable Python script as the binary, fails on
  BREAK_LINK; the binary exits with status 7 if the source contains EXIT7

Every successful invocation is appended to a call log.
"""

import sys
import textwrap
from pathlib import Path

import pytest

from dirbuild import output
from dirbuild.config import BuildConfig

FAKE_TOOL = textwrap.dedent(
    """
    import os
    import sys
    from pathlib import Path

    mode, src, dst, log = sys.argv[1:5]
    text = Path(src).read_text()
    if mode == "compile" and "BREAK_COMPILE" in text:
        sys.stderr.write(src + ": error: cannot compile\\n")
        sys.exit(3)
    if mode == "link" and "BREAK_LINK" in text:
        sys.stderr.write(src + ": error: undefined reference\\n")
        sys.exit(5)
    if mode == "compile":
        Path(dst).write_text(text)
    else:
        code = 7 if "EXIT7" in text else 0
        Path(dst).write_text("#!" + sys.executable + "\\nimport sys\\nsys.exit(%d)\\n" % code)
        os.chmod(dst, 0o755)
    with open(log, "a") as f:
        f.write(mode + " " + Path(src).name + " " + Path(dst).name + "\\n")
    """
)


@pytest.fixture(autouse=True)
def reset_output_module():
    """Point the output module at the current (captured) stdout for each test."""
    output._output_stream = sys.stdout
    output.set_verbose(True)
    yield
    output._output_stream = sys.stdout


@pytest.fixture
def fake_tool(tmp_path_factory) -> Path:
    """Path to the fake compiler/linker script (kept outside the build dir)."""
    tool = tmp_path_factory.mktemp("tools") / "fake_tool.py"
    tool.write_text(FAKE_TOOL)
    return tool


@pytest.fixture
def project(tmp_path) -> Path:
    """Empty build directory."""
    directory = tmp_path / "proj"
    directory.mkdir()
    return directory


@pytest.fixture
def call_log(tmp_path) -> Path:
    return tmp_path / "calls.log"


@pytest.fixture
def make_config(project, fake_tool, call_log):
    """Factory for a BuildConfig wired to the fake tool."""

    def _make(**kwargs) -> BuildConfig:
        settings = dict(
            directory=project,
            extension=".src",
            intermediate_suffix=".obj",
            binary_suffix=".bin",
            compile_command=(sys.executable, str(fake_tool), "compile", "{input}", "{output}", str(call_log)),
            link_command=(sys.executable, str(fake_tool), "link", "{input}", "{output}", str(call_log)),
        )
        settings.update(kwargs)
        return BuildConfig(**settings)

    return _make


@pytest.fixture
def read_calls(call_log):
    """Return the logged tool invocations as a list of lines."""

    def _read() -> list[str]:
        if not call_log.exists():
            return []
        return call_log.read_text().splitlines()

    return _read
