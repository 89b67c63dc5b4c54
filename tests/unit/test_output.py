"""Tests for the timestamped output module."""

import io
import re

from dirbuild import output

TIMESTAMP = r"\d{2}:\d{2}\.\d{2}"


def _capture():
    stream = io.StringIO()
    output.init_timer(stream)
    return stream


def test_log_is_timestamped():
    stream = _capture()
    output.log("Building 2 source(s)...")
    assert re.fullmatch(TIMESTAMP + r" Building 2 source\(s\)\.\.\.\n", stream.getvalue())


def test_verbose_only_suppressed():
    stream = _capture()
    output.set_verbose(False)
    output.log("hidden", verbose_only=True)
    output.log_detail("hidden", verbose_only=True)
    output.log_command(["cc", "a.c"])
    output.log("shown")
    assert stream.getvalue().count("\n") == 1
    assert "shown" in stream.getvalue()


def test_log_phase_and_detail():
    stream = _capture()
    output.log_phase(1, 2, "bar.rs")
    output.log_detail("Board", indent=2)
    lines = stream.getvalue().splitlines()
    assert lines[0].endswith("[1/2] bar.rs")
    assert lines[1].endswith("   Board")


def test_log_artifact():
    stream = _capture()
    output.log_artifact("compile", "foo.bc")
    output.log_artifact("link", "foo", up_to_date=True)
    lines = stream.getvalue().splitlines()
    assert lines[0].endswith("[compile] foo.bc")
    assert lines[1].endswith("[link] foo (up to date)")


def test_log_command_and_diagnostics():
    stream = _capture()
    output.log_command(["rustc", "a.rs"])
    output.log_diagnostics("warning: unused\n  --> a.rs:1\n")
    lines = stream.getvalue().splitlines()
    assert lines[0].endswith("$ rustc a.rs")
    assert lines[1].endswith("warning: unused")
    assert len(lines) == 3


def test_warning_prefix():
    stream = _capture()
    output.log_warning("careful")
    assert "WARNING: careful" in stream.getvalue()


def test_format_timestamp_starts_near_zero():
    output.init_timer(io.StringIO())
    assert output.format_timestamp().startswith("00:0")


def test_timed_logger_reports_done():
    stream = _capture()
    with output.TimedLogger("Cleaning", phase=(1, 1)) as timed:
        timed.detail("removed 2 files")
    lines = stream.getvalue().splitlines()
    assert lines[0].endswith("[1/1] Cleaning...")
    assert lines[1].endswith("removed 2 files")
    assert re.search(r"Done \(\d+\.\d{2}s\)$", lines[2])
