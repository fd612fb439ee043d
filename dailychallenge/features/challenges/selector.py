"""
Deterministic index selection for daily challenges.

Rolling multiplicative string hash (Java ``String.hashCode`` style):

    h = (h * 31 + code) mod 2**32, read as a signed 32-bit integer

over the key's UTF-16 code units, then ``abs(h) % modulus``. Any port that
follows the same arithmetic picks identical indices for identical keys, which
a seeded PRNG would not guarantee.
"""

from dailychallenge.core.errors import ValidationError

_MASK_32 = 0xFFFFFFFF
_SIGN_BIT = 0x80000000


def string_hash(key: str) -> int:
    """Signed 32-bit rolling hash of ``key``."""
    data = key.encode("utf-16-le")
    h = 0
    for i in range(0, len(data), 2):
        code = data[i] | (data[i + 1] << 8)
        h = (h * 31 + code) & _MASK_32
    return h - (1 << 32) if h & _SIGN_BIT else h


def select_index(key: str, modulus: int) -> int:
    """Map ``key`` to a stable index in ``[0, modulus)``."""
    if modulus <= 0:
        raise ValidationError(f"modulus must be positive, got {modulus}")
    return abs(string_hash(key)) % modulus
