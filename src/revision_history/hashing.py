"""Short, human-shareable revision hashes.

Hashes are random, not derived from the payload. Uniqueness within an
entity's history is enforced by checking candidates against the hashes
already in use.
"""

import logging
import re
import secrets
import string
from collections.abc import Callable, Collection

from revision_history.errors import HashExhaustedError

logger = logging.getLogger(__name__)

HASH_LENGTH = 8
_ALPHABET = string.ascii_lowercase + string.digits
_HASH_RE = re.compile(rf"^[a-z0-9]{{{HASH_LENGTH}}}$")


def generate_revision_hash() -> str:
    """Generate an 8-character lowercase alphanumeric hash."""
    return "".join(secrets.choice(_ALPHABET) for _ in range(HASH_LENGTH))


def is_valid_revision_hash(value: str) -> bool:
    """Return True if value looks like a revision hash."""
    return bool(_HASH_RE.match(value))


def format_revision_hash(value: str) -> str:
    """Normalize a hash for display."""
    return value.lower()


def generate_unique_revision_hash(
    existing: Collection[str],
    *,
    max_attempts: int = 100,
    generator: Callable[[], str] = generate_revision_hash,
) -> str:
    """Generate a hash not present in ``existing``.

    Raises HashExhaustedError if ``max_attempts`` candidates all collide.
    """
    taken = existing if isinstance(existing, set | frozenset) else set(existing)
    for attempt in range(1, max_attempts + 1):
        candidate = generator()
        if candidate not in taken:
            if attempt > 2:
                logger.warning("Revision hash needed %d attempts", attempt)
            return candidate
    raise HashExhaustedError(max_attempts)
