"""
Source file discovery for dirbuild.

Sources are the regular files directly inside the build directory whose
name ends with the configured extension. Subdirectories are never
searched.
"""

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import List

from .errors import ConfigError, DiscoveryError

logger = logging.getLogger(__name__)


@dataclass(frozen=True, order=True)
class SourceUnit:
    """A discovered source file.

    Attributes:
        path: Path to the source file
        extension: Extension the file was discovered by (e.g., ".rs")
    """

    path: Path
    extension: str

    @property
    def stem(self) -> str:
        """File name with the discovered extension removed."""
        return self.path.name[: -len(self.extension)]


class SourceScanner:
    """Scans a directory for source files with a given extension."""

    def __init__(self, directory: Path, extension: str):
        if not extension:
            raise ConfigError("Source extension must not be empty")
        self.directory = directory
        self.extension = extension

    def scan(self) -> List[SourceUnit]:
        """Return the source units in the directory, sorted by file name.

        Raises:
            DiscoveryError: If the directory does not exist, is not a
                directory, or cannot be listed
        """
        try:
            entries = list(self.directory.iterdir())
        except FileNotFoundError:
            raise DiscoveryError(self.directory, "directory does not exist")
        except NotADirectoryError:
            raise DiscoveryError(self.directory, "not a directory")
        except PermissionError:
            raise DiscoveryError(self.directory, "permission denied")
        except OSError as e:
            raise DiscoveryError(self.directory, e.strerror or str(e))

        sources = []
        for entry in entries:
            name = entry.name
            if not name.endswith(self.extension):
                continue
            if name == self.extension:
                logger.debug(f"Skipping {entry}: empty file stem")
                continue
            if not entry.is_file():
                continue
            sources.append(SourceUnit(path=entry, extension=self.extension))

        sources.sort(key=lambda s: s.path.name)
        logger.debug(f"Discovered {len(sources)} source(s) in {self.directory}")
        return sources
