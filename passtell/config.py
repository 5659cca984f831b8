"""
passtell - Configuration

Everything that can differ between two machines lives here:
- where the store directory is (PASSTELL_DIR or ~/.passtell)
- which extension marks a file as a secret
- which program does the encryption
"""

import os
from dataclasses import dataclass
from typing import Mapping, Optional


# =============================================================================
# Defaults
# =============================================================================

ENV_STORE_DIR = "PASSTELL_DIR"
DEFAULT_STORE_DIR = os.path.join(os.path.expanduser("~"), ".passtell")

TOOL = "age"
EXTENSION = ".age"

# `age` prefixes every message with "age: " and follows the first line
# with a report-a-bug banner.
ERROR_PREFIX_LEN = 5


@dataclass(frozen=True)
class Settings:
    """Resolved settings for one invocation."""

    store_dir: str = DEFAULT_STORE_DIR
    extension: str = EXTENSION
    tool: str = TOOL

    @property
    def error_file(self) -> str:
        return self.extension + ".error"


def load_settings(environ: Optional[Mapping[str, str]] = None) -> Settings:
    """
    Build Settings from the environment.

    Args:
        environ: Mapping to read from (default: os.environ)

    Returns:
        Settings with store_dir taken from PASSTELL_DIR when it is set
    """
    if environ is None:
        environ = os.environ
    store_dir = (environ.get(ENV_STORE_DIR) or "").strip() or DEFAULT_STORE_DIR
    return Settings(store_dir=os.path.expanduser(store_dir))
