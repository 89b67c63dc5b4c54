"""
Command-line interface for dirbuild.

This module provides the `dirbuild` CLI tool:

    dirbuild [build] [DIRECTORY]    compile and link every stale source
    dirbuild clean [DIRECTORY]      remove every derived artifact
"""

import argparse
import logging
import sys
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, List, Optional

from tqdm import tqdm

from . import __version__, output
from .build import BuildFailure, BuildOrchestrator, DirbuildError, clean_artifacts
from .config import BuildConfig, load_config

GOALS = ("build", "clean")

# Options that consume the following token as their value
VALUE_OPTIONS = (
    "-x",
    "--extension",
    "--intermediate-suffix",
    "--binary-suffix",
    "--compile",
    "--link",
)


@dataclass
class BuildArgs:
    """Arguments shared by the build and clean commands."""

    directory: Path
    extension: Optional[str] = None
    intermediate_suffix: Optional[str] = None
    binary_suffix: Optional[str] = None
    compile: Optional[str] = None
    link: Optional[str] = None
    run: Optional[bool] = None
    dry_run: bool = False
    verbose: bool = False

    def overrides(self) -> Dict[str, Any]:
        """Command-line settings in the shape load_config() expects."""
        return {
            "extension": self.extension,
            "intermediate_suffix": self.intermediate_suffix,
            "binary_suffix": self.binary_suffix,
            "compile": self.compile,
            "link": self.link,
            "run": self.run,
            "dry_run": self.dry_run or None,
            "verbose": self.verbose or None,
        }


def _setup(args: BuildArgs) -> BuildConfig:
    output.init_timer(sys.stdout)
    output.set_verbose(args.verbose)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )
    output.log_header("dirbuild", __version__)
    return load_config(args.directory, args.overrides())


def _use_progress_bar(config: BuildConfig) -> bool:
    if config.verbose or config.dry_run or config.run_after_build:
        return False
    return sys.stderr.isatty()


def _fail(title: str, error: DirbuildError) -> None:
    print()
    print(f"\033[1;31m✗ {title}\033[0m")
    print()
    print(str(error))

    if isinstance(error, BuildFailure):
        print(f"Command: {' '.join(error.result.command)}")
        if error.diagnostics:
            print()
            print(error.diagnostics)


def _unexpected(error: Exception, verbose: bool) -> None:
    print()
    print("\033[1;31m✗ Unexpected error\033[0m")
    print()
    print(f"{type(error).__name__}: {error}")
    if verbose:
        import traceback

        print()
        print("Traceback:")
        print(traceback.format_exc())


def build_command(args: BuildArgs) -> None:
    """Compile and link every stale source in a directory.

    Examples:
        dirbuild                        # Build sources in current directory
        dirbuild build examples/        # Build a specific directory
        dirbuild -x .c --compile "cc -c {input} -o {output}" --link "cc {input} -o {output}"
        dirbuild --run                  # Run each binary after it is rebuilt
        dirbuild --dry-run              # Show what would be built
    """
    try:
        config = _setup(args)
        orchestrator = BuildOrchestrator(config)
        graph = orchestrator.discover()

        if not len(graph):
            output.log_warning(f"No *{config.extension} sources found in {config.directory}")
            sys.exit(0)

        output.log(f"Building {len(graph)} source(s) in {config.directory}...")
        if _use_progress_bar(config):
            with tqdm(total=len(graph), desc="Building", unit="source", ncols=80, leave=False) as pbar:
                report = orchestrator.build(graph, progress_bar=pbar)
        else:
            report = orchestrator.build(graph)

        print()
        if config.dry_run:
            print("Dry run, nothing was executed:")
            for task in report.planned:
                print(f"  {' '.join(task.command)}")
            if not report.planned:
                print("  Nothing to be done.")
            sys.exit(0)

        print("\033[1;32m✓ Build successful!\033[0m")
        print()
        if report.results:
            print(f"Rebuilt {len(report.results)} artifact(s), {len(report.up_to_date)} up to date")
        else:
            print("Nothing to be done, all artifacts are up to date")
        for run in report.runs:
            if run.returncode != 0:
                status = run.error or f"exit status {run.returncode}"
                print(f"Note: {run.binary.name} finished with {status}")
        output.log_build_complete(report.build_time)
        sys.exit(0)

    except DirbuildError as e:
        _fail("Build failed!", e)
        sys.exit(e.exit_code)

    except KeyboardInterrupt:
        print()
        print("\033[1;33m✗ Build interrupted\033[0m")
        sys.exit(130)  # Standard exit code for SIGINT

    except Exception as e:
        _unexpected(e, args.verbose)
        sys.exit(1)


def clean_command(args: BuildArgs) -> None:
    """Remove every intermediate and binary derived from the current sources.

    Examples:
        dirbuild clean                  # Clean current directory
        dirbuild clean examples/        # Clean a specific directory
        dirbuild clean --dry-run        # Show what would be removed
    """
    try:
        config = _setup(args)
        orchestrator = BuildOrchestrator(config)
        graph = orchestrator.discover()

        with output.TimedLogger(f"Cleaning {config.directory}") as timed:
            report = clean_artifacts(graph.artifact_paths(), dry_run=config.dry_run)
            timed.detail(f"{len(report.absent)} artifact(s) already absent")

        print()
        verb = "Would remove" if config.dry_run else "Removed"
        print(f"\033[1;32m✓ Clean successful!\033[0m {verb} {len(report.removed)} file(s)")
        sys.exit(0)

    except DirbuildError as e:
        _fail("Clean failed!", e)
        sys.exit(e.exit_code)

    except KeyboardInterrupt:
        print()
        print("\033[1;33m✗ Clean interrupted\033[0m")
        sys.exit(130)

    except Exception as e:
        _unexpected(e, args.verbose)
        sys.exit(1)


def _add_common_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "directory",
        nargs="?",
        type=Path,
        default=Path.cwd(),
        help="Directory holding the sources (default: current directory)",
    )
    parser.add_argument(
        "-x",
        "--extension",
        default=None,
        help="Source file extension (default: .rs)",
    )
    parser.add_argument(
        "--intermediate-suffix",
        default=None,
        help="Suffix of compiled intermediates (default: .bc)",
    )
    parser.add_argument(
        "--binary-suffix",
        default=None,
        help="Suffix of linked binaries (default: none)",
    )
    parser.add_argument(
        "--compile",
        default=None,
        help="Compile command template using {input}, {output} and {stem}",
    )
    parser.add_argument(
        "--link",
        default=None,
        help="Link command template using {input}, {output} and {stem}",
    )
    run_group = parser.add_mutually_exclusive_group()
    run_group.add_argument(
        "-r",
        "--run",
        dest="run",
        action="store_const",
        const=True,
        default=None,
        help="Run each binary after it is rebuilt",
    )
    run_group.add_argument(
        "--no-run",
        dest="run",
        action="store_const",
        const=False,
        help="Do not run binaries, even if dirbuild.ini enables it",
    )
    parser.add_argument(
        "-n",
        "--dry-run",
        action="store_true",
        help="Print what would be done without doing it",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Show commands, tool output and debug logging",
    )


def create_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="dirbuild",
        description="dirbuild - incremental compile/link/run for a directory of sources",
    )
    parser.add_argument(
        "--version",
        action="version",
        version=f"dirbuild {__version__}",
    )

    subparsers = parser.add_subparsers(dest="command", help="Goal to run (default: build)")

    build_parser = subparsers.add_parser(
        "build",
        help="Compile and link every stale source",
    )
    _add_common_arguments(build_parser)

    clean_parser = subparsers.add_parser(
        "clean",
        help="Remove every derived artifact",
    )
    _add_common_arguments(clean_parser)

    return parser


def _find_goal(argv: List[str]) -> Optional[int]:
    """Index of the goal word, if the first positional argument is one.

    Options may precede the goal, e.g. `dirbuild -x .c clean DIR`.
    """
    skip_value = False
    for index, token in enumerate(argv):
        if skip_value:
            skip_value = False
            continue
        if token == "--":
            return None
        if token.startswith("-") and token != "-":
            skip_value = token in VALUE_OPTIONS
            continue
        return index if token in GOALS else None
    return None


def main(argv: Optional[List[str]] = None) -> None:
    """dirbuild - incremental compile/link/run for a directory of sources."""
    if argv is None:
        argv = sys.argv[1:]

    argv = list(argv)
    if not argv or argv[0] not in ("-h", "--help", "--version"):
        goal_index = _find_goal(argv)
        if goal_index is None:
            # "build" is the default goal
            argv = ["build"] + argv
        else:
            argv = [argv[goal_index]] + argv[:goal_index] + argv[goal_index + 1 :]

    parsed_args = create_parser().parse_args(argv)

    args = BuildArgs(
        directory=parsed_args.directory,
        extension=parsed_args.extension,
        intermediate_suffix=parsed_args.intermediate_suffix,
        binary_suffix=parsed_args.binary_suffix,
        compile=parsed_args.compile,
        link=parsed_args.link,
        run=parsed_args.run,
        dry_run=parsed_args.dry_run,
        verbose=parsed_args.verbose,
    )

    if parsed_args.command == "clean":
        clean_command(args)
    else:
        build_command(args)


if __name__ == "__main__":
    main()
