"""dirbuild - incremental compile/link/run for a directory of sources."""

__version__ = "0.1.0"
