"""Helpers for running external commands (bedtools).

Design goals
------------
- Fail fast with actionable error messages.
- Capture stderr/stdout for debugging.
- Keep the public surface small; treat this as an internal utility module.

readloc does not reimplement overlap detection; it wraps ``bedtools intersect``
and does the join/resolution in Python.
"""

from __future__ import annotations

import logging
import shlex
import subprocess
import textwrap
from shutil import which
from typing import Optional, Sequence

from .errors import ToolUnavailableError

logger = logging.getLogger(__name__)


class ExternalCommandError(RuntimeError):
    """Raised when an external command fails."""

    def __init__(
        self,
        message: str,
        *,
        cmd: Sequence[str],
        returncode: int,
        stdout: Optional[str] = None,
        stderr: Optional[str] = None,
    ) -> None:
        super().__init__(message)
        self.cmd = list(cmd)
        self.returncode = int(returncode)
        self.stdout = stdout
        self.stderr = stderr


def cmd_to_str(cmd: Sequence[str]) -> str:
    return " ".join(shlex.quote(str(x)) for x in cmd)


def ensure_executable_in_path(exe: str, *, hint: Optional[str] = None) -> str:
    """Ensure an executable exists in PATH and return its location.

    Parameters
    ----------
    exe:
        Name of the executable to find.
    hint:
        Optional message shown if the executable is missing.
    """
    found = which(exe)
    if found is None:
        msg = f"Required executable '{exe}' was not found in your PATH."
        if hint:
            msg += "\n\n" + hint
        raise ToolUnavailableError(msg)
    return found


def run_command(
    cmd: Sequence[str],
    *,
    text: bool = True,
) -> subprocess.CompletedProcess:
    """Run a command, capturing stdout+stderr, and return the CompletedProcess.

    Raise ``ExternalCommandError`` on non-zero exit.
    Use ``text=False`` for binary output (e.g. ``bedtools intersect -ubam``).
    """
    logger.debug("Running command: %s", cmd_to_str(cmd))

    cp = subprocess.run(
        list(map(str, cmd)),
        check=False,
        stdout=subprocess.PIPE,
        stderr=subprocess.PIPE,
        text=text,
    )

    if cp.returncode != 0:
        stderr = cp.stderr if isinstance(cp.stderr, str) else _decode(cp.stderr)
        raise ExternalCommandError(
            message=textwrap.dedent(
                f"""
                External command failed (exit code {cp.returncode}).

                Command:
                  {cmd_to_str(cmd)}

                STDERR (tail):
                  {_tail(stderr)}
                """
            ).strip(),
            cmd=cmd,
            returncode=cp.returncode,
            stdout=cp.stdout if isinstance(cp.stdout, str) else None,
            stderr=stderr,
        )

    return cp


def _decode(b: Optional[bytes]) -> str:
    if not b:
        return ""
    return b.decode("utf-8", errors="replace")


def _tail(s: Optional[str], n: int = 3000) -> str:
    if not s:
        return "(empty)"
    s = str(s)
    if len(s) <= n:
        return s
    return "..." + s[-n:]
