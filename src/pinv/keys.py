"""Entry key codec.

Keys printed on labels are integers written in a 64-symbol alphabet,
most significant digit first:

    0-9  A-Z  a-z  +  -

The entry store treats keys as opaque strings; this codec is only used to
mint fresh, unused keys for key sheets.
"""

from __future__ import annotations

ALPHABET = "0123456789ABCDEFGHIJKLMNOPQRSTUVWXYZabcdefghijklmnopqrstuvwxyz+-"
_BASE = len(ALPHABET)
_INDEX = {ch: i for i, ch in enumerate(ALPHABET)}


def encode_key(number: int) -> str:
    """Encode a non-negative integer as a key string.

    Raises:
        ValueError: If *number* is negative.
    """
    if number < 0:
        raise ValueError(f"Key numbers must be non-negative, got {number}")
    if number == 0:
        return ALPHABET[0]
    digits = []
    while number:
        number, rem = divmod(number, _BASE)
        digits.append(ALPHABET[rem])
    return "".join(reversed(digits))


def decode_key(key: str) -> int:
    """Decode a key string back to its integer.

    Raises:
        ValueError: If *key* is empty or contains a symbol outside the alphabet.
    """
    text = key.strip()
    if not text:
        raise ValueError("Key is empty")
    number = 0
    for ch in text:
        try:
            number = number * _BASE + _INDEX[ch]
        except KeyError:
            raise ValueError(f"Invalid key symbol '{ch}' in '{key}'") from None
    return number
