"""
Stable identifier hashing

Channel identifiers derived here are stored as favorite/hidden-item keys, so the
algorithm must never change: 32-bit FNV-1a over the UTF-8 bytes of
"{name}:{group}", rendered in base 36 with an "m3u_" prefix.
"""

FNV32_OFFSET_BASIS = 0x811C9DC5
FNV32_PRIME = 0x01000193
STABLE_ID_PREFIX = "m3u_"

_BASE36_DIGITS = "0123456789abcdefghijklmnopqrstuvwxyz"


def fnv1a_32(data: bytes) -> int:
    """
    Compute the 32-bit FNV-1a hash of a byte string

    Args:
        data: Bytes to hash

    Returns:
        Unsigned 32-bit hash value
    """
    value = FNV32_OFFSET_BASIS
    for byte in data:
        value ^= byte
        value = (value * FNV32_PRIME) & 0xFFFFFFFF
    return value


def to_base36(value: int) -> str:
    """Render a non-negative integer in lowercase base 36"""
    if value < 0:
        raise ValueError(f"Cannot encode negative value in base36: {value}")
    if value == 0:
        return "0"

    digits = []
    while value:
        value, remainder = divmod(value, 36)
        digits.append(_BASE36_DIGITS[remainder])
    return "".join(reversed(digits))


def stable_channel_id(name: str | None, group_title: str | None) -> str:
    """
    Build a reproducible channel identifier from its name and group

    Args:
        name: Channel display name ("unknown" when empty)
        group_title: Channel group ("unknown" when empty)

    Returns:
        Identifier like 'm3u_1x9f0ab'
    """
    key = f"{name or 'unknown'}:{group_title or 'unknown'}"
    return f"{STABLE_ID_PREFIX}{to_base36(fnv1a_32(key.encode('utf-8')))}"
