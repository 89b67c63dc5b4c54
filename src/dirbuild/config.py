"""Build configuration for dirbuild.

Configuration is layered, lowest precedence first:

1. Built-in defaults (a Rust -> LLVM bitcode -> clang pipeline)
2. An optional ``dirbuild.ini`` in the build directory
3. Command-line overrides

Example ``dirbuild.ini``::

    [dirbuild]
    extension = .c
    intermediate_suffix = .o
    binary_suffix =
    compile = cc -c {input} -o {output}
    link = cc {input} -o {output}
    run = yes
"""

import configparser
import logging
import shlex
import string
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Mapping, Optional

from .build.errors import ConfigError

logger = logging.getLogger(__name__)

CONFIG_FILENAME = "dirbuild.ini"
CONFIG_SECTION = "dirbuild"

DEFAULT_EXTENSION = ".rs"
DEFAULT_INTERMEDIATE_SUFFIX = ".bc"
DEFAULT_BINARY_SUFFIX = ""
DEFAULT_COMPILE = "rustc {input} --emit=llvm-bc -o {output} --cfg libc -O"
DEFAULT_LINK = "clang {input} -o {output} -O2 -lpthread"

PLACEHOLDERS = frozenset({"input", "output", "stem"})

_STRING_KEYS = ("extension", "intermediate_suffix", "binary_suffix", "compile", "link")


def parse_command(template: str, name: str) -> tuple[str, ...]:
    """Split a command template into arguments and validate its placeholders.

    Args:
        template: Shell-like command line, e.g. "cc -c {input} -o {output}"
        name: Setting name used in error messages

    Returns:
        Tuple of argument templates

    Raises:
        ConfigError: If the template is empty, unparsable or uses an
            unknown placeholder
    """
    try:
        args = tuple(shlex.split(template))
    except ValueError as e:
        raise ConfigError(f"Invalid {name} command {template!r}: {e}")
    if not args:
        raise ConfigError(f"The {name} command is empty")

    formatter = string.Formatter()
    for arg in args:
        try:
            fields = [f for _, f, _, _ in formatter.parse(arg) if f is not None]
        except ValueError as e:
            raise ConfigError(f"Invalid {name} command argument {arg!r}: {e}")
        for field_name in fields:
            if field_name not in PLACEHOLDERS:
                allowed = ", ".join("{" + p + "}" for p in sorted(PLACEHOLDERS))
                raise ConfigError(f"Unknown placeholder {{{field_name}}} in {name} command (allowed: {allowed})")
    return args


@dataclass(frozen=True)
class BuildConfig:
    """Resolved configuration for one build session.

    Attributes:
        directory: Directory holding the sources and receiving the artifacts
        extension: Source file extension (e.g., ".rs")
        intermediate_suffix: Suffix of compiled intermediates (e.g., ".bc")
        binary_suffix: Suffix of linked binaries (empty for none)
        compile_command: Compile command template, one entry per argument
        link_command: Link command template, one entry per argument
        run_after_build: Execute each binary after it is rebuilt
        dry_run: Report what would be built without running anything
        verbose: Whether to enable verbose output
    """

    directory: Path
    extension: str = DEFAULT_EXTENSION
    intermediate_suffix: str = DEFAULT_INTERMEDIATE_SUFFIX
    binary_suffix: str = DEFAULT_BINARY_SUFFIX
    compile_command: tuple[str, ...] = tuple(shlex.split(DEFAULT_COMPILE))
    link_command: tuple[str, ...] = tuple(shlex.split(DEFAULT_LINK))
    run_after_build: bool = False
    dry_run: bool = False
    verbose: bool = False

    def __post_init__(self) -> None:
        if not self.extension:
            raise ConfigError("Source extension must not be empty")
        if self.intermediate_suffix == self.binary_suffix:
            raise ConfigError(f"Intermediate and binary suffix must differ (both are {self.intermediate_suffix!r})")
        if not self.compile_command:
            raise ConfigError("The compile command is empty")
        if not self.link_command:
            raise ConfigError("The link command is empty")


def read_ini(ini_path: Path) -> Dict[str, Any]:
    """Read settings from a dirbuild.ini file.

    Returns:
        Mapping of setting name to value; only keys present in the file

    Raises:
        ConfigError: If the file cannot be parsed or has invalid values
    """
    parser = configparser.ConfigParser(interpolation=None)
    try:
        with open(ini_path, "r", encoding="utf-8") as f:
            parser.read_file(f)
    except (configparser.Error, UnicodeDecodeError) as e:
        raise ConfigError(f"Failed to parse {ini_path}: {e}")
    except OSError as e:
        raise ConfigError(f"Failed to read {ini_path}: {e}")

    if not parser.has_section(CONFIG_SECTION):
        logger.debug(f"{ini_path} has no [{CONFIG_SECTION}] section")
        return {}

    section = parser[CONFIG_SECTION]
    known = set(_STRING_KEYS) | {"run"}
    for key in section:
        if key not in known:
            raise ConfigError(f"Unknown setting '{key}' in {ini_path}")

    settings: Dict[str, Any] = {key: section[key] for key in _STRING_KEYS if key in section}
    if "run" in section:
        try:
            settings["run"] = section.getboolean("run")
        except ValueError:
            raise ConfigError(f"Invalid boolean for 'run' in {ini_path}: {section['run']!r}")
    return settings


def load_config(directory: Path, overrides: Optional[Mapping[str, Any]] = None) -> BuildConfig:
    """Resolve the configuration for a build directory.

    Args:
        directory: Build directory; its dirbuild.ini is read if present
        overrides: Command-line values keyed like the ini settings plus
            "dry_run" and "verbose"; None values are ignored

    Returns:
        Resolved BuildConfig

    Raises:
        ConfigError: On any invalid setting
    """
    settings: Dict[str, Any] = {
        "extension": DEFAULT_EXTENSION,
        "intermediate_suffix": DEFAULT_INTERMEDIATE_SUFFIX,
        "binary_suffix": DEFAULT_BINARY_SUFFIX,
        "compile": DEFAULT_COMPILE,
        "link": DEFAULT_LINK,
        "run": False,
        "dry_run": False,
        "verbose": False,
    }

    # Tools run with the build directory as cwd, so paths must not be relative
    directory = Path(directory).absolute()
    ini_path = directory / CONFIG_FILENAME
    if ini_path.is_file():
        logger.debug(f"Loading configuration from {ini_path}")
        settings.update(read_ini(ini_path))

    if overrides:
        settings.update({k: v for k, v in overrides.items() if v is not None})

    return BuildConfig(
        directory=directory,
        extension=settings["extension"],
        intermediate_suffix=settings["intermediate_suffix"],
        binary_suffix=settings["binary_suffix"],
        compile_command=parse_command(settings["compile"], "compile"),
        link_command=parse_command(settings["link"], "link"),
        run_after_build=bool(settings["run"]),
        dry_run=bool(settings["dry_run"]),
        verbose=bool(settings["verbose"]),
    )
