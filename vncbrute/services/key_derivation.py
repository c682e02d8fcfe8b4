"""
VNC password to DES key derivation and challenge encryption.

VNC Authentication uses the password as a single-DES key, but the legacy
key schedule reads each key byte least significant bit first. The bits of
every password byte therefore have to be mirrored before the key is handed
to a standard DES implementation.

Example:
    >>> derive_key("pass").hex()
    '0e86cece00000000'
"""

from typing import Union

import numpy as np
from Crypto.Cipher import DES


KEY_LENGTH = 8
CHALLENGE_LENGTH = 16


def _password_bytes(password: Union[str, bytes]) -> bytes:
    """Raw bytes of a password, one byte per character where possible."""
    if isinstance(password, bytes):
        return password
    try:
        return password.encode("latin-1")
    except UnicodeEncodeError:
        return password.encode("utf-8")


def _reverse_bits(data: np.ndarray) -> np.ndarray:
    # unpackbits emits MSB first, packing LSB first mirrors every byte
    return np.packbits(np.unpackbits(data), bitorder="little")


def flip_bits(value: int) -> int:
    """
    Reverse the order of the 8 bits in a byte (bit 0 becomes bit 7).

    Args:
        value: Byte value 0-255

    Returns:
        The mirrored byte value
    """
    if not 0 <= value <= 0xFF:
        raise ValueError(f"Not a byte value: {value}")
    return int(_reverse_bits(np.array([value], dtype=np.uint8))[0])


def derive_key(password: Union[str, bytes]) -> bytes:
    """
    Derive the 8-byte DES key for a candidate password.

    Only the first 8 bytes of the password count; anything longer is
    silently truncated, as real VNC servers do. Shorter passwords are
    zero padded, so the empty password gives an all-zero key.

    Args:
        password: Candidate password

    Returns:
        8-byte DES key
    """
    raw = _password_bytes(password)[:KEY_LENGTH]
    flipped = _reverse_bits(np.frombuffer(raw, dtype=np.uint8)).tobytes()
    return flipped.ljust(KEY_LENGTH, b"\x00")


def encrypt_challenge(challenge: bytes, password: Union[str, bytes]) -> bytes:
    """
    Compute the 16-byte response to a VNC authentication challenge.

    Both 8-byte halves are encrypted independently under the same key
    (ECB, no chaining between blocks).

    Args:
        challenge: 16 bytes received from the server
        password: Candidate password

    Returns:
        16-byte response

    Raises:
        ValueError: If the challenge is not exactly 16 bytes
    """
    if len(challenge) != CHALLENGE_LENGTH:
        raise ValueError(
            f"Challenge must be {CHALLENGE_LENGTH} bytes, got {len(challenge)}"
        )
    cipher = DES.new(derive_key(password), DES.MODE_ECB)
    return cipher.encrypt(bytes(challenge))
