"""
Demonstration Signing

Ephemeral Ed25519 (RFC 8032) keys for illustrating hash-then-sign.
Keys live only for a single attestation run and protect nothing.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Tuple

from nacl.exceptions import BadSignatureError
from nacl.signing import SigningKey, VerifyKey

from .config import DIGEST_ALGORITHM
from .hashing import digest


@dataclass(frozen=True)
class KeyPair:
    """Raw Ed25519 key pair."""
    signing_key: bytes
    verify_key: bytes
    algorithm: str = "Ed25519"


class CryptoProvider(ABC):
    """
    Abstract interface for the primitives the attestation demo needs.

    `verify` returns False for a signature that does not match; any
    exception from these methods is an environment failure.
    """

    name: str = "abstract"
    signature_algorithm: str = "unknown"
    digest_algorithm: str = "unknown"

    @abstractmethod
    def hash(self, data: bytes) -> bytes:
        pass

    @abstractmethod
    def generate_keypair(self) -> KeyPair:
        pass

    @abstractmethod
    def sign(self, message: bytes, key_pair: KeyPair) -> bytes:
        pass

    @abstractmethod
    def verify(self, message: bytes, signature: bytes, verify_key: bytes) -> bool:
        pass


class NaClCryptoProvider(CryptoProvider):
    """PyNaCl Ed25519 signatures over hashlib digests."""

    name = "pynacl"
    signature_algorithm = "Ed25519"

    def __init__(self, digest_algorithm: str = DIGEST_ALGORITHM):
        self.digest_algorithm = digest_algorithm.lower()

    def hash(self, data: bytes) -> bytes:
        return digest(data, self.digest_algorithm)

    def generate_keypair(self) -> KeyPair:
        signing_key, verify_key = generate_signing_key()
        return KeyPair(signing_key=signing_key, verify_key=verify_key)

    def sign(self, message: bytes, key_pair: KeyPair) -> bytes:
        return sign_data(message, key_pair.signing_key)

    def verify(self, message: bytes, signature: bytes, verify_key: bytes) -> bool:
        return verify_signature(message, signature, verify_key)


# Convenience functions

def generate_signing_key() -> Tuple[bytes, bytes]:
    """
    Generate an Ed25519 key pair.

    Returns:
        Tuple of (signing_key_bytes, verify_key_bytes)
    """
    signing_key = SigningKey.generate()
    return bytes(signing_key), bytes(signing_key.verify_key)


def sign_data(data: bytes, signing_key: bytes) -> bytes:
    """Sign data with Ed25519 signing key; returns the 64-byte signature."""
    key = SigningKey(signing_key)
    return key.sign(data).signature


def verify_signature(data: bytes, signature: bytes, verify_key: bytes) -> bool:
    """Verify Ed25519 signature."""
    try:
        key = VerifyKey(verify_key)
        key.verify(data, signature)
        return True
    except BadSignatureError:
        return False
