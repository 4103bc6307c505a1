"""
Firmware Digests

All digests are computed over the complete input with hashlib and
rendered as lowercase hexadecimal.
"""

import hashlib
import hmac
from typing import Union

from .config import DIGEST_ALGORITHM


def _to_bytes(data: Union[bytes, bytearray, memoryview, str]) -> bytes:
    if isinstance(data, str):
        return data.encode('utf-8')
    return bytes(data)


def digest(data: Union[bytes, str], algorithm: str = DIGEST_ALGORITHM) -> bytes:
    """
    Compute a raw digest.

    Raises:
        ValueError: The algorithm is not available in this interpreter
    """
    return hashlib.new(algorithm.lower(), _to_bytes(data)).digest()


def digest_hex(data: Union[bytes, str], algorithm: str = DIGEST_ALGORITHM) -> str:
    """Compute a digest as lowercase hex."""
    return digest(data, algorithm).hex()


def verify_digest(declared_hex: str, data: Union[bytes, str], algorithm: str = DIGEST_ALGORITHM) -> bool:
    """
    Verify that data matches a declared digest.

    Comparison is case-insensitive and constant-time.
    """
    computed = digest_hex(data, algorithm)
    return hmac.compare_digest(computed, declared_hex.lower())
