"""Application-wide identifier utilities."""

from __future__ import annotations

import itertools
import secrets
import threading
import time

_ALPHABET = "0123456789abcdefghijklmnopqrstuvwxyz"
_COUNTER = itertools.count()
_LOCK = threading.Lock()


def _to_base36(value: int, width: int = 0) -> str:
    chars: list[str] = []
    current = value
    while current:
        current, remainder = divmod(current, 36)
        chars.append(_ALPHABET[remainder])
    encoded = "".join(reversed(chars)) or "0"
    return encoded.rjust(width, "0")


def generate_cuid(length: int = 24) -> str:
    """Generate a collision-resistant lowercase identifier with a `c` prefix.

    Layout: millisecond timestamp, a rolling process counter, then random
    padding up to ``length``.
    """
    with _LOCK:
        counter = next(_COUNTER) % (36**4)

    prefix = _to_base36(int(time.time() * 1000)) + _to_base36(counter, width=4)
    body_len = max(length - 1, 8)
    padding = "".join(secrets.choice(_ALPHABET) for _ in range(max(body_len - len(prefix), 0)))
    return f"c{(prefix + padding)[:body_len]}"
