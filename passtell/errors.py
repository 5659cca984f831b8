"""
Exception classes raised by the secret store.

Every error is fatal at the process level: the CLI prints the message
and exits with status 1.
"""
from typing import TYPE_CHECKING, Optional

if TYPE_CHECKING:
    from passtell.tool import ToolResult


class PasstellError(Exception):
    """Base class for all passtell errors."""
    exit_code = 1


class ToolMissingError(PasstellError):
    """Raised when the encryption tool is not on PATH."""

    def __init__(self, tool: str):
        self.tool = tool
        super().__init__(f"'{tool}' is not installed or not on PATH")


class InvalidInputError(PasstellError):
    """Raised for an empty secret, a secret equal to its filename, or a bad filename."""
    pass


class SecretExistsError(PasstellError):
    """Raised when add or a rename would overwrite an existing secret."""

    def __init__(self, filename: str):
        self.filename = filename
        super().__init__(f"{filename} already exists")


class SecretNotFoundError(PasstellError):
    """Raised when show, edit or delete target a missing secret."""

    def __init__(self, filename: str):
        self.filename = filename
        super().__init__(f"{filename} does not exist")


class ToolError(PasstellError):
    """
    Raised when the encryption tool exits non-zero.

    The message is the tool's own error line (see tool.format_tool_error);
    the full result stays available on .result.
    """

    def __init__(self, message: str, result: Optional["ToolResult"] = None):
        self.result = result
        super().__init__(message)


class StoreError(PasstellError):
    """
    Raised when a filesystem operation on the store fails
    (creating or entering the directory, removing or renaming a file).
    """

    def __init__(self, message: str, orig_exc: Optional[OSError] = None):
        self.orig_exc = orig_exc
        if orig_exc is not None and orig_exc.strerror:
            message += f": {orig_exc.strerror}"
        super().__init__(message)
