"""
passtell - Command-Line Interface

    passtell <command> (<filename> | <path/to/file>)
    passtell l* [<directory>]

Commands are matched on their first letter, so "a", "add" and "append"
all mean add:

    a*  add      prompt for a new secret and encrypt it
    s*  show     decrypt and print a secret
    e*  edit     rename a secret and/or change its value
    d*  delete   remove a secret
    l*  list     list every secret under a directory

Exit status is 0 on success (or help) and 1 on any error.
"""

import argparse
import logging
import signal
import sys
from enum import Enum
from typing import List, Optional

import pyperclip

from . import __version__
from .config import ENV_STORE_DIR, load_settings
from .errors import InvalidInputError, PasstellError
from .passwords import DEFAULT_LENGTH, generate_password
from .store import SecretStore

logger = logging.getLogger(__name__)


class Command(Enum):
    ADD = "add"
    SHOW = "show"
    EDIT = "edit"
    DELETE = "delete"
    LIST = "list"
    UNKNOWN = "unknown"


_PREFIXES = {
    "a": Command.ADD,
    "s": Command.SHOW,
    "e": Command.EDIT,
    "d": Command.DELETE,
    "l": Command.LIST,
}


def parse_command(word: str) -> Command:
    """Map a command word to a Command by its first character."""
    if not word:
        return Command.UNKNOWN
    return _PREFIXES.get(word[0], Command.UNKNOWN)


class ArgumentParser(argparse.ArgumentParser):
    """argparse parser whose usage errors exit with status 1, like every other failure."""

    def error(self, message):
        self.print_usage(sys.stderr)
        self.exit(1, f"{self.prog}: error: {message}\n")


def build_parser() -> argparse.ArgumentParser:
    parser = ArgumentParser(
        prog="passtell",
        description="Keep each secret in its own age-encrypted file.",
        epilog=f"Secrets are stored in ${ENV_STORE_DIR} (default ~/.passtell).",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument("command", nargs="?", help="add, show, edit, delete or list (first letter is enough)")
    parser.add_argument("target", nargs="?", help="filename or path/to/file (list: directory)")
    parser.add_argument("-g", "--generate", action="store_true", help="add: store a generated password")
    parser.add_argument("--length", type=int, help=f"add --generate: password length (default {DEFAULT_LENGTH})")
    parser.add_argument("--no-symbols", action="store_true", help="add --generate: letters and digits only")
    parser.add_argument("-c", "--clip", action="store_true", help="show: copy to clipboard instead of printing")
    parser.add_argument("-v", "--verbose", action="store_true", help="log tool invocations to stderr")
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    return parser


def setup_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="passtell: %(levelname)s: %(message)s",
        stream=sys.stderr,
    )


def _exit_on_signal(signum, frame):
    # Unwind normally so the error capture file gets removed
    raise SystemExit(1)


def install_signal_handlers() -> None:
    for name in ("SIGHUP", "SIGTERM", "SIGQUIT"):
        sig = getattr(signal, name, None)
        if sig is not None:
            signal.signal(sig, _exit_on_signal)


# =============================================================================
# Commands
# =============================================================================

def cmd_add(store: SecretStore, args: argparse.Namespace) -> None:
    request = store.resolve(args.target)
    value = None
    if args.generate:
        try:
            length = DEFAULT_LENGTH if args.length is None else args.length
            value = generate_password(length, not args.no_symbols)
        except ValueError as e:
            raise InvalidInputError(str(e))
    store.add(request, value)
    if value is not None:
        print(f"Generated: {value}")
    print(f"Saved {request.filename}")


def cmd_show(store: SecretStore, args: argparse.Namespace) -> None:
    request = store.resolve(args.target)
    value = store.show(request)
    if args.clip:
        try:
            pyperclip.copy(value)
        except pyperclip.PyperclipException as e:
            raise PasstellError(f"clipboard unavailable: {e}")
        print(f"Copied {request.filename} to clipboard")
    else:
        print(value)


def cmd_edit(store: SecretStore, args: argparse.Namespace) -> None:
    request = store.edit(store.resolve(args.target))
    print(f"Saved {request.filename}")


def cmd_delete(store: SecretStore, args: argparse.Namespace) -> None:
    request = store.resolve(args.target)
    store.delete(request)
    print(f"Deleted {request.filename}")


def cmd_list(store: SecretStore, args: argparse.Namespace) -> None:
    for name, path in store.list(args.target):
        print(f"{name}\t{path}")


COMMANDS = {
    Command.ADD: cmd_add,
    Command.SHOW: cmd_show,
    Command.EDIT: cmd_edit,
    Command.DELETE: cmd_delete,
    Command.LIST: cmd_list,
}


def check_options(command: Command, args: argparse.Namespace) -> None:
    """Reject options that do not apply to the command."""
    generate_opts = args.length is not None or args.no_symbols
    if command is not Command.ADD and (args.generate or generate_opts):
        raise InvalidInputError(f"--generate, --length and --no-symbols only apply to add, not {command.value}")
    if command is Command.ADD and generate_opts and not args.generate:
        raise InvalidInputError("--length and --no-symbols need --generate")
    if command is not Command.SHOW and args.clip:
        raise InvalidInputError(f"--clip only applies to show, not {command.value}")


def run(args: argparse.Namespace, store: Optional[SecretStore] = None) -> None:
    """Dispatch parsed arguments to a command. Raises PasstellError on failure."""
    command = parse_command(args.command)
    if command is Command.UNKNOWN:
        raise InvalidInputError(f"unknown command '{args.command}'")
    if command is not Command.LIST and not args.target:
        raise InvalidInputError("missing filename")
    check_options(command, args)

    if store is None:
        store = SecretStore(load_settings())
    logger.debug("%s %s in %s", command.value, args.target or "", store.settings.store_dir)
    COMMANDS[command](store, args)


def main(argv: Optional[List[str]] = None) -> int:
    parser = build_parser()
    try:
        args = parser.parse_args(argv)
    except SystemExit as e:
        # -h and --version exit 0, usage errors exit 1
        return int(e.code or 0)
    if not args.command:
        parser.print_help()
        return 0

    setup_logging(args.verbose)
    install_signal_handlers()
    try:
        run(args)
    except PasstellError as e:
        print(f"passtell: {e}", file=sys.stderr)
        return e.exit_code
    except KeyboardInterrupt:
        print("", file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
