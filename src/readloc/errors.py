"""Fatal error taxonomy.

None of these are recovered from inside the package; they propagate to the CLI,
which reports them and exits non-zero before any output file is written.
"""

from __future__ import annotations


class ReadlocError(Exception):
    """Base class for readloc failures."""


class ToolUnavailableError(ReadlocError, FileNotFoundError):
    """A required external executable is not in PATH."""


class InputDirectoryError(ReadlocError):
    """An input or output directory is missing or unreadable."""


class ParseError(ReadlocError, ValueError):
    """Malformed CIGAR, malformed upstream row, or unknown chromosome name."""


class IntegrityError(ReadlocError):
    """Decoded alignment span disagrees with the reported alignment end."""
