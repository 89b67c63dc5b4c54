"""Subprocess utilities for platform-safe process execution.

Every child process dirbuild starts (compiler, linker, and the freshly
built program) goes through these wrappers so that platform-specific
flags are applied in one place.
"""

import subprocess
import sys
from typing import Any


def get_subprocess_creation_flags() -> int:
    """Get platform-specific subprocess creation flags.

    Returns:
        - Windows: subprocess.CREATE_NO_WINDOW (prevents console window)
        - Other platforms: 0 (no special flags)
    """
    if sys.platform == "win32":
        return subprocess.CREATE_NO_WINDOW
    return 0


def _apply_platform_defaults(kwargs: dict[str, Any], console: bool = False) -> dict[str, Any]:
    # A console program keeps the parent console and its standard streams
    default_flags = 0 if console else get_subprocess_creation_flags()

    if "creationflags" in kwargs:
        kwargs["creationflags"] = kwargs["creationflags"] | default_flags
    elif default_flags:
        kwargs["creationflags"] = default_flags

    # Tools never read the terminal; keep them off the console input handle
    if "stdin" not in kwargs and not console:
        kwargs["stdin"] = subprocess.DEVNULL

    return kwargs


def safe_run(cmd: list[str], **kwargs: Any) -> subprocess.CompletedProcess:
    """Execute subprocess.run with platform-specific flags.

    Automatically applies:
    - CREATE_NO_WINDOW on Windows (prevents console window)
    - stdin=DEVNULL (prevents console input handle inheritance)

    Args:
        cmd: Command and arguments (same as subprocess.run)
        **kwargs: Additional arguments passed to subprocess.run

    Returns:
        CompletedProcess result from subprocess.run

    Note:
        - If 'creationflags' is explicitly provided in kwargs,
          it will be OR'd with platform defaults to preserve custom flags.
        - If 'stdin' is explicitly provided in kwargs, it will be used as-is.
          Pass stdin=None to let the child inherit the parent's stdin.
    """
    return subprocess.run(cmd, **_apply_platform_defaults(kwargs))


def safe_popen(cmd: list[str], console: bool = False, **kwargs: Any) -> subprocess.Popen:
    """Execute subprocess.Popen with platform-specific flags.

    Same defaults as safe_run(), for callers that need the process handle.

    Args:
        cmd: Command and arguments (same as subprocess.Popen)
        console: If True, skip CREATE_NO_WINDOW and the stdin redirect so the
            child shares the parent console and inherits all standard streams
        **kwargs: Additional arguments passed to subprocess.Popen

    Returns:
        Popen process handle
    """
    return subprocess.Popen(cmd, **_apply_platform_defaults(kwargs, console=console))
