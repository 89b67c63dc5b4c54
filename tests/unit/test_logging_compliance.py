"""Unit tests for logging compliance across the codebase.

Library modules report progress through dirbuild.output or the logging
module. Only the CLI prints directly.
"""

import re
from pathlib import Path

import pytest


class TestLoggingCompliance:
    """Test cases for logging vs print statement compliance."""

    def test_no_print_statements_outside_cli(self):
        src_dir = Path(__file__).parent.parent.parent / "src" / "dirbuild"
        assert src_dir.exists(), f"Source directory not found: {src_dir}"

        python_files = [p for p in src_dir.rglob("*.py") if "__pycache__" not in p.parts]
        assert len(python_files) > 0, "No Python files found in src/"

        violations = []
        for file_path in python_files:
            if file_path.name == "cli.py":
                continue

            for line_num, line in enumerate(file_path.read_text(encoding="utf-8").split("\n"), start=1):
                if line.strip().startswith("#"):
                    continue
                if re.search(r"(?<![\w.])print\s*\(", line):
                    violations.append(f"{file_path}:{line_num}: {line.strip()}")

        if violations:
            violation_report = "\n".join(violations)
            pytest.fail(f"Found {len(violations)} print() calls outside the CLI:\n{violation_report}\n\nUse dirbuild.output or logging instead.")

    def test_modules_use_module_level_logger(self):
        src_dir = Path(__file__).parent.parent.parent / "src" / "dirbuild" / "build"
        for name in ("source_scanner.py", "target_graph.py", "toolchain.py", "orchestrator.py", "cleaner.py"):
            content = (src_dir / name).read_text(encoding="utf-8")
            assert "logger = logging.getLogger(__name__)" in content, name
