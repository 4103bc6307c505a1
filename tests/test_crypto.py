"""
Hashing and Signing Test Suite
"""

import hashlib
import unittest

from secureboot_sim import NaClCryptoProvider, digest, digest_hex, verify_digest
from secureboot_sim.signing import generate_signing_key, sign_data, verify_signature


class TestHashing(unittest.TestCase):

    def test_sha256_vector(self):
        self.assertEqual(
            digest_hex(b"abc", "sha256"),
            "ba7816bf8f01cfea414140de5dae2223b00361a396177a9cb410ff61f20015ad",
        )

    def test_str_is_utf8(self):
        self.assertEqual(digest("héllo"), hashlib.sha256("héllo".encode("utf-8")).digest())

    def test_verify_digest(self):
        declared = digest_hex(b"bootloader")
        self.assertTrue(verify_digest(declared, b"bootloader"))
        self.assertTrue(verify_digest(declared.upper(), b"bootloader"))
        self.assertFalse(verify_digest(declared, b"bootloader!"))

    def test_unknown_algorithm(self):
        with self.assertRaises(ValueError):
            digest(b"x", "no-such-hash")


class TestSigning(unittest.TestCase):

    def test_sign_and_verify(self):
        sk, vk = generate_signing_key()
        sig = sign_data(b"digest", sk)
        self.assertEqual(len(sig), 64)
        self.assertTrue(verify_signature(b"digest", sig, vk))

    def test_tampered_message_rejected(self):
        sk, vk = generate_signing_key()
        sig = sign_data(b"digest", sk)
        self.assertFalse(verify_signature(b"digesT", sig, vk))

    def test_tampered_signature_rejected(self):
        sk, vk = generate_signing_key()
        sig = bytearray(sign_data(b"digest", sk))
        sig[0] ^= 0xFF
        self.assertFalse(verify_signature(b"digest", bytes(sig), vk))

    def test_wrong_key_rejected(self):
        sk, _ = generate_signing_key()
        _, other_vk = generate_signing_key()
        self.assertFalse(verify_signature(b"digest", sign_data(b"digest", sk), other_vk))

    def test_provider(self):
        provider = NaClCryptoProvider()
        message = provider.hash(b"fw")
        self.assertEqual(len(message), 32)
        key_pair = provider.generate_keypair()
        self.assertEqual(key_pair.algorithm, "Ed25519")
        self.assertEqual(len(key_pair.verify_key), 32)
        signature = provider.sign(message, key_pair)
        self.assertTrue(provider.verify(message, signature, key_pair.verify_key))


if __name__ == "__main__":
    unittest.main(verbosity=2)
