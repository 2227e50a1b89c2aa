from __future__ import annotations

from .exceptions import InvalidChar, InvalidValue

BITS_PER_CHAR = 5
BASE32 = "0123456789bcdefghjkmnpqrstuvwxyz"

_CHAR_VALUES = {char: value for value, char in enumerate(BASE32)}


def value_to_char(value: int) -> str:
    if not 0 <= value < len(BASE32):
        raise InvalidValue(f"Not a valid base32 value: {value}")
    return BASE32[value]


def char_to_value(char: str) -> int:
    try:
        return _CHAR_VALUES[char]
    except KeyError:
        raise InvalidChar(f"Not a valid base32 char: {char!r}") from None


def is_valid_string(value: str) -> bool:
    return all(char in _CHAR_VALUES for char in value)
