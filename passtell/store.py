"""
passtell - Secret Store Module

This file handles:
- Resolving a filename argument to a store directory + secret filename
- Adding/showing/editing/deleting secrets
- Listing every secret under a directory

Layout on disk:
    <store_dir>/
        bank.age          one secret per file, encrypted by `age`
        mail.age
        .age.error        exists only while `age` is running

Nothing is kept between invocations: each operation gets a Request naming
exactly one file and works on the filesystem directly. There is no locking;
two concurrent edits of the same secret race and the last writer wins.
"""

import getpass
import logging
import os
from dataclasses import dataclass
from typing import Callable, Iterator, Optional, Tuple

from .config import Settings, load_settings
from .errors import InvalidInputError, SecretExistsError, SecretNotFoundError, StoreError, ToolError
from .tool import AgeTool

logger = logging.getLogger(__name__)


# =============================================================================
# REQUEST
# =============================================================================

@dataclass(frozen=True)
class Request:
    """One resolved secret: the directory it lives in and its filename."""

    directory: str
    filename: str

    @property
    def path(self) -> str:
        return os.path.join(self.directory, self.filename)

    def exists(self) -> bool:
        return os.path.exists(self.path)

    def renamed(self, filename: str) -> "Request":
        return Request(directory=self.directory, filename=filename)


# =============================================================================
# SECRET STORE
# =============================================================================

class SecretStore:
    """
    Secret store operations.

    Usage:
        store = SecretStore()
        request = store.resolve("bank")          # ~/.passtell/bank.age
        store.add(request)                       # prompts for the secret
        print(store.show(request))
        request = store.edit(request)            # may return a renamed request
        store.delete(request)

        for name, path in store.list():
            print(name, path)

    Prompts go through ask_secret (no echo) and ask (plain input) so callers
    can supply their own.
    """

    def __init__(
        self,
        settings: Optional[Settings] = None,
        tool: Optional[AgeTool] = None,
        ask_secret: Callable[[str], str] = getpass.getpass,
        ask: Callable[[str], str] = input,
    ):
        self.settings = settings or load_settings()
        self.tool = tool or AgeTool(self.settings)
        self.ask_secret = ask_secret
        self.ask = ask

    # -------------------------------------------------------------------------
    # Filenames
    # -------------------------------------------------------------------------

    def normalize(self, filename: str) -> str:
        """Append the secret extension unless filename already has it."""
        if filename.endswith(self.settings.extension):
            return filename
        return filename + self.settings.extension

    def stem(self, filename: str) -> str:
        """Filename without the secret extension."""
        if filename.endswith(self.settings.extension):
            return filename[:-len(self.settings.extension)]
        return filename

    def resolve(self, target: str) -> Request:
        """
        Turn a filename or path argument into a Request.

        A bare filename lives in the configured store directory, which is
        created if missing. A path with a directory part uses that directory
        as-is; it must already exist and be enterable.

        Args:
            target: "bank", "bank.age" or "some/dir/bank"

        Returns:
            Request with an absolute directory and a normalized filename
        """
        directory, name = os.path.split(target or "")
        if not name:
            raise InvalidInputError("missing filename")

        if directory:
            if not os.path.isdir(directory) or not os.access(directory, os.X_OK):
                raise StoreError(f"cannot change to directory {directory}")
        else:
            directory = self.settings.store_dir
            try:
                os.makedirs(directory, exist_ok=True)
            except OSError as e:
                raise StoreError(f"cannot create directory {directory}", e)

        return Request(directory=os.path.abspath(directory), filename=self.normalize(name))

    def check_value(self, value: str, filename: str) -> None:
        """Reject an empty secret or one that just repeats the filename."""
        if not value:
            raise InvalidInputError("secret cannot be empty")
        if value in (filename, self.stem(filename)):
            raise InvalidInputError("secret cannot be the same as the filename")

    # -------------------------------------------------------------------------
    # Operations
    # -------------------------------------------------------------------------

    def add(self, request: Request, value: Optional[str] = None) -> str:
        """
        Create a new secret.

        Args:
            request: Resolved target (must not exist yet)
            value: Secret to store; prompted for (no echo) when None

        Returns:
            Path of the saved file
        """
        if request.exists():
            raise SecretExistsError(request.filename)

        if value is None:
            value = self.ask_secret(f"Secret for {self.stem(request.filename)}: ")
        self.check_value(value, request.filename)

        try:
            self.tool.encrypt(value, request.path, request.directory)
        except ToolError:
            # age may leave a truncated output file behind
            self._discard(request.path)
            raise

        logger.info("saved %s", request.path)
        return request.path

    def show(self, request: Request) -> str:
        """Decrypt a secret and return its plaintext."""
        if not request.exists():
            raise SecretNotFoundError(request.filename)
        return self.tool.decrypt(request.path, request.directory)

    def edit(self, request: Request) -> Request:
        """
        Rename a secret and/or replace its value.

        The secret is decrypted first, then the user is asked for a new
        filename and a new value; a blank answer keeps the current one.
        The value is re-encrypted to a temporary file that replaces the
        original, which is then moved to its new name if it changed.

        Returns:
            Request for the secret after the edit
        """
        value = self.show(request)

        new_name = self.ask(f"New filename [{self.stem(request.filename)}]: ").strip()
        target = request
        if new_name:
            if os.sep in new_name or (os.altsep and os.altsep in new_name):
                raise InvalidInputError("new filename cannot contain a directory")
            target = request.renamed(self.normalize(new_name))
            if target.filename != request.filename and target.exists():
                raise SecretExistsError(target.filename)

        new_value = self.ask_secret("New secret (leave blank to keep): ")
        if new_value:
            value = new_value
        self.check_value(value, target.filename)

        tmp_path = os.path.join(request.directory, f".{request.filename}.new")
        try:
            self.tool.encrypt(value, tmp_path, request.directory)
        except ToolError:
            self._discard(tmp_path)
            raise

        try:
            os.replace(tmp_path, request.path)
            if target.filename != request.filename:
                os.replace(request.path, target.path)
        except OSError as e:
            self._discard(tmp_path)
            raise StoreError(f"cannot move {request.filename} to {target.filename}", e)

        logger.info("saved %s", target.path)
        return target

    def delete(self, request: Request) -> None:
        """
        Remove a secret.

        The secret is decrypted first and the plaintext thrown away, so only
        files that still open with the passphrase can be deleted.
        """
        self.show(request)
        try:
            os.remove(request.path)
        except OSError as e:
            raise StoreError(f"cannot delete {request.filename}", e)
        logger.info("deleted %s", request.path)

    def list(self, directory: Optional[str] = None) -> Iterator[Tuple[str, str]]:
        """
        Find every secret under a directory, recursively.

        Args:
            directory: Where to look (default: the configured store directory).
                       A missing directory yields nothing.

        Yields:
            (filename, full path) pairs in sorted order
        """
        root = directory or self.settings.store_dir
        for dirpath, dirnames, filenames in os.walk(root):
            dirnames.sort()
            for name in sorted(filenames):
                if name.endswith(self.settings.extension):
                    yield name, os.path.join(dirpath, name)

    # -------------------------------------------------------------------------
    # Helpers
    # -------------------------------------------------------------------------

    def _discard(self, path: str) -> None:
        try:
            os.remove(path)
        except FileNotFoundError:
            pass
        except OSError as e:
            logger.warning("could not remove %s: %s", path, e)
