"""Subprocess helper shared by the file access implementations."""

import logging
import subprocess
from typing import Optional, Sequence

logger = logging.getLogger(__name__)


class CommandError(Exception):
    """A command could not be run or exited unsuccessfully."""

    def __init__(self, args: Sequence[str], message: str, returncode: Optional[int] = None):
        self.command = list(args)
        self.returncode = returncode
        super().__init__(f"{' '.join(self.command)}: {message}")


def run_command(
    args: Sequence[str],
    cwd: Optional[str] = None,
    timeout: Optional[float] = None,
    input_bytes: Optional[bytes] = None,
) -> bytes:
    """Run a command and return its raw stdout.

    Args:
        args: Program and arguments
        cwd: Working directory for the process
        timeout: Seconds before the process is killed
        input_bytes: Data written to stdin

    Returns:
        Captured stdout bytes

    Raises:
        CommandError: If the program is missing, times out or exits non-zero
    """
    try:
        result = subprocess.run(
            list(args),
            cwd=cwd,
            input=input_bytes,
            capture_output=True,
            timeout=timeout,
            check=True,
        )
    except FileNotFoundError as e:
        raise CommandError(args, f"program not found ({e.filename})") from e
    except subprocess.TimeoutExpired as e:
        raise CommandError(args, f"timed out after {timeout}s") from e
    except subprocess.CalledProcessError as e:
        stderr = (e.stderr or b"").decode("utf-8", errors="replace").strip()
        raise CommandError(args, stderr or f"exit code {e.returncode}", e.returncode) from e

    logger.debug("ran %s (%d bytes)", args[0], len(result.stdout))
    return result.stdout
