"""Seeded derivation functions.

Every synthetic value LEDGIS shows (node placement, shard sizes, replica
counts, latency) is derived from a string seed through these functions, so
the same evidence record always renders the same telemetry. The hash is a
plain 31-polynomial rolling hash; it is a labeling function, not a
security primitive.
"""

import struct

HASH_MODULUS = 2**32


class InvalidArgument(ValueError):
    """Raised when a derivation function receives an unusable argument."""


def _code_units(seed: str) -> tuple[int, ...]:
    """Return the UTF-16 code units of a string."""
    data = seed.encode("utf-16-le", "surrogatepass")
    return struct.unpack(f"<{len(data) // 2}H", data)


def seeded_hash(seed: str) -> int:
    """Hash a seed to an unsigned 32-bit integer."""
    value = 0
    for unit in _code_units(seed):
        value = (value * 31 + unit) % HASH_MODULUS
    return value


def seeded_fraction(seed: str) -> float:
    """Map a seed to a float in [0, 1)."""
    return seeded_hash(seed) / HASH_MODULUS


def seeded_in_range(seed: str, n: int) -> int:
    """Map a seed to an integer in [0, n).

    Raises:
        InvalidArgument: If n is not positive
    """
    if n <= 0:
        raise InvalidArgument(f"Range size must be positive, got {n}")
    return seeded_hash(seed) % n
