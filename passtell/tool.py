"""
passtell - Encryption Tool Module

This file handles everything that touches the external `age` program:
- Checking that it is installed
- Running it with a captured stderr
- Turning its stderr into a one-line error message

How a run works:
    1. stderr goes to a hidden file (.age.error) in the store directory
    2. the process runs to completion (no timeout, the user types a passphrase)
    3. the hidden file is read back and always removed, even on Ctrl-C
    4. the caller gets a ToolResult; non-zero exits become ToolError

`age` writes the passphrase prompt straight to the terminal, so stdin and
stdout stay free for plaintext.
"""

import logging
import os
import shutil
import subprocess
from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import IO, Iterator, List, Optional

from .config import ERROR_PREFIX_LEN, Settings
from .errors import StoreError, ToolError, ToolMissingError

logger = logging.getLogger(__name__)


# =============================================================================
# Results and error formatting
# =============================================================================

@dataclass
class ToolResult:
    """Outcome of one tool invocation."""

    args: List[str] = field(default_factory=list)
    returncode: int = 0
    stdout: str = ""
    stderr: str = ""

    @property
    def ok(self) -> bool:
        return self.returncode == 0


def format_tool_error(stderr: str, prefix_len: int = ERROR_PREFIX_LEN) -> str:
    """
    Reduce the tool's stderr to the message shown to the user.

    `age` reports failures as:

        age: error: incorrect passphrase
        age: report unexpected or unhelpful errors at https://filippo.io/age/report

    The second line is dropped and the "age: " tag is cut from the first,
    leaving "error: incorrect passphrase".

    Args:
        stderr: Captured stderr text
        prefix_len: Number of leading characters to strip

    Returns:
        The formatted first line ("" if stderr was empty)
    """
    lines = stderr.splitlines()
    if len(lines) > 1:
        del lines[1]
    if not lines:
        return ""
    return lines[0][prefix_len:].strip()


@contextmanager
def error_capture(directory: str, name: str) -> Iterator[IO[str]]:
    """
    Open the hidden stderr capture file for one invocation.

    The file is removed when the block exits, whatever the reason.
    """
    path = os.path.join(directory, name)
    try:
        f = open(path, "w+", encoding="utf-8")
    except OSError as e:
        raise StoreError(f"cannot write {path}", e)
    try:
        yield f
    finally:
        f.close()
        try:
            os.remove(path)
        except FileNotFoundError:
            pass


# =============================================================================
# Tool wrapper
# =============================================================================

class AgeTool:
    """
    Runs `age` for encryption and decryption.

    Usage:
        tool = AgeTool(settings)
        tool.encrypt("s3cr3t", "/home/me/.passtell/bank.age", "/home/me/.passtell")
        value = tool.decrypt("/home/me/.passtell/bank.age", "/home/me/.passtell")
    """

    def __init__(self, settings: Settings, executable: Optional[str] = None):
        self.settings = settings
        self.executable = executable or settings.tool

    def require(self) -> str:
        """Return the tool's full path, or raise ToolMissingError."""
        path = shutil.which(self.executable)
        if path is None:
            raise ToolMissingError(self.executable)
        return path

    def run(self, args: List[str], directory: str, stdin: Optional[str] = None) -> ToolResult:
        """
        Run the tool once and collect its output.

        Args:
            args: Arguments after the program name
            directory: Store directory (working dir and home of the capture file)
            stdin: Text to feed on standard input (None = inherit terminal)

        Returns:
            ToolResult (never raises for a non-zero exit)
        """
        cmd = [self.require()] + list(args)
        logger.debug("running %s in %s", " ".join(cmd), directory)

        with error_capture(directory, self.settings.error_file) as err:
            proc = subprocess.run(
                cmd,
                input=stdin,
                stdout=subprocess.PIPE,
                stderr=err,
                cwd=directory,
                text=True,
            )
            err.flush()
            err.seek(0)
            stderr = err.read()

        logger.debug("%s exited with status %d", self.executable, proc.returncode)
        return ToolResult(args=cmd, returncode=proc.returncode,
                          stdout=proc.stdout or "", stderr=stderr)

    def check(self, result: ToolResult) -> ToolResult:
        """Raise ToolError for a failed result, return it unchanged otherwise."""
        if result.ok:
            return result
        message = format_tool_error(result.stderr)
        if not message:
            message = f"{self.executable} exited with status {result.returncode}"
        raise ToolError(message, result)

    def encrypt(self, plaintext: str, path: str, directory: str) -> None:
        """Encrypt plaintext (fed on stdin) into path with a passphrase."""
        self.check(self.run(["--passphrase", "--output", path], directory, stdin=plaintext))

    def decrypt(self, path: str, directory: str) -> str:
        """Decrypt path and return the plaintext from stdout."""
        return self.check(self.run(["--decrypt", path], directory)).stdout
