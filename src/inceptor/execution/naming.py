"""Random names for ephemeral functions.

Names are drawn from a non-cryptographic uniform source. Collisions with
another live function are possible; the backend reports them as a name
conflict at create time.
"""

from __future__ import annotations

import random
import string

LETTERS = string.ascii_lowercase
DEFAULT_NAME_LENGTH = 16


def generate_identifier(length: int = DEFAULT_NAME_LENGTH, *, rng: random.Random | None = None) -> str:
    """Return a random string of ``length`` lowercase letters.

    Example:
        >>> name = generate_identifier(8, rng=random.Random(42))
        >>> len(name), name.isalpha(), name.islower()
        (8, True, True)
    """
    if length < 1:
        raise ValueError(f"Identifier length must be positive, got {length}")
    source = rng or random
    return "".join(source.choice(LETTERS) for _ in range(length))
