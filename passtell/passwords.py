"""
passtell - Password Generation

`passtell add NAME --generate` stores one of these instead of prompting,
and prints it once so it can be pasted into the site's signup form.
"""

import secrets
import string

DEFAULT_LENGTH = 20
SYMBOLS = "!@#$%^&*()_+-="


def generate_password(length: int = DEFAULT_LENGTH, use_symbols: bool = True) -> str:
    """
    Pick `length` characters uniformly at random with the `secrets` module.

    Letters and digits are always in the pool; `--no-symbols` drops the
    punctuation for sites that reject it. The result never collides with
    the empty-secret check because length must be at least 1.
    """
    if length < 1:
        raise ValueError(f"length must be at least 1 (got {length})")

    pool = string.ascii_letters + string.digits
    if use_symbols:
        pool += SYMBOLS
    return "".join(secrets.choice(pool) for _ in range(length))
