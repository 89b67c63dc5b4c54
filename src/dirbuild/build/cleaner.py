"""Removal of derived build artifacts.

Cleaning deletes every intermediate and binary the current sources map to,
whether stale or not. Sources are never touched, and an artifact that is
already gone is not an error.
"""

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterable, List

from .. import output
from .errors import CleanupError

logger = logging.getLogger(__name__)


@dataclass
class CleanReport:
    """Outcome of a clean session."""

    removed: List[Path] = field(default_factory=list)
    absent: List[Path] = field(default_factory=list)


def clean_artifacts(paths: Iterable[Path], dry_run: bool = False) -> CleanReport:
    """Delete artifact files.

    Args:
        paths: Artifact paths, typically TargetGraph.artifact_paths()
        dry_run: Only report which files would be removed

    Returns:
        CleanReport listing removed and already-absent paths

    Raises:
        CleanupError: If an artifact exists but cannot be removed, or a
            directory occupies an artifact path
    """
    report = CleanReport()
    for path in paths:
        if path.is_dir() and not path.is_symlink():
            raise CleanupError(path, "is a directory")
        if not path.exists() and not path.is_symlink():
            report.absent.append(path)
            continue

        if dry_run:
            output.log_detail(f"would remove {path.name}")
            report.removed.append(path)
            continue

        try:
            path.unlink()
        except FileNotFoundError:
            report.absent.append(path)
            continue
        except OSError as e:
            raise CleanupError(path, e.strerror or str(e))

        logger.debug(f"Removed {path}")
        output.log_detail(f"removed {path.name}", verbose_only=True)
        report.removed.append(path)

    return report
