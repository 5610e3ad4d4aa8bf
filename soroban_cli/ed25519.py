# Copyright © Aptos Foundation
# SPDX-License-Identifier: Apache-2.0

"""
Ed25519 key material for Stellar identities.

Keys are held as NaCl signing/verify keys and rendered in Stellar's StrKey
encoding: secret seeds start with ``S`` and account ids (public keys) with
``G``. This is the representation written to the identity store and printed
by the CLI.

Examples:
    Round-trip a secret key::

        private_key = PrivateKey.random()
        restored = PrivateKey.from_str(str(private_key))
        assert restored == private_key

        address = str(private_key.public_key())  # "G..."
"""

from __future__ import annotations

import unittest

from nacl.signing import SigningKey, VerifyKey
from stellar_sdk import StrKey

from .exceptions import InvalidSecretKey


class PrivateKey:
    """Ed25519 private key rendered as a StrKey secret seed.

    Attributes:
        LENGTH: The byte length of Ed25519 private keys (32)
        key: The underlying NaCl SigningKey instance
    """

    LENGTH: int = 32

    key: SigningKey

    def __init__(self, key: SigningKey):
        self.key = key

    def __eq__(self, other: object):
        if not isinstance(other, PrivateKey):
            return NotImplemented
        return self.key == other.key

    def __str__(self) -> str:
        """Get the StrKey secret seed ("S...")."""
        return StrKey.encode_ed25519_secret_seed(self.key.encode())

    def __repr__(self) -> str:
        # Never render the secret itself.
        return f"PrivateKey(public_key={self.public_key()})"

    @staticmethod
    def from_bytes(value: bytes) -> PrivateKey:
        """Create a private key from a raw 32-byte ed25519 seed.

        Raises:
            InvalidSecretKey: If the value is not exactly 32 bytes.
        """
        if len(value) != PrivateKey.LENGTH:
            raise InvalidSecretKey()
        return PrivateKey(SigningKey(value))

    @staticmethod
    def from_str(value: str) -> PrivateKey:
        """Parse a StrKey secret seed.

        Args:
            value: The "S..." encoded secret seed.

        Raises:
            InvalidSecretKey: If the checksum, version byte or length is wrong.
        """
        try:
            raw = StrKey.decode_ed25519_secret_seed(value.strip())
        except ValueError as e:
            raise InvalidSecretKey() from e
        return PrivateKey.from_bytes(raw)

    def public_key(self) -> PublicKey:
        return PublicKey(self.key.verify_key)

    @staticmethod
    def random() -> PrivateKey:
        return PrivateKey(SigningKey.generate())


class PublicKey:
    """Ed25519 public key rendered as a StrKey account id ("G...")."""

    LENGTH: int = 32

    key: VerifyKey

    def __init__(self, key: VerifyKey):
        self.key = key

    def __eq__(self, other: object):
        if not isinstance(other, PublicKey):
            return NotImplemented
        return self.key == other.key

    def __hash__(self) -> int:
        return hash(self.key.encode())

    def __str__(self) -> str:
        return StrKey.encode_ed25519_public_key(self.key.encode())

    def __repr__(self) -> str:
        return f"PublicKey({self})"

    @staticmethod
    def from_str(value: str) -> PublicKey:
        """Create a PublicKey from its StrKey account id.

        Raises:
            ValueError: If the account id is malformed.
        """
        return PublicKey(VerifyKey(StrKey.decode_ed25519_public_key(value.strip())))


class Test(unittest.TestCase):
    def test_private_key_from_str(self):
        private_key = PrivateKey.random()
        encoded = str(private_key)

        self.assertTrue(encoded.startswith("S"))
        self.assertEqual(PrivateKey.from_str(encoded), private_key)
        self.assertEqual(PrivateKey.from_str(f"  {encoded}\n"), private_key)

    def test_private_key_invalid(self):
        with self.assertRaises(InvalidSecretKey):
            PrivateKey.from_str("SNOTAKEY")
        public = str(PrivateKey.random().public_key())
        with self.assertRaises(InvalidSecretKey):
            PrivateKey.from_str(public)
        with self.assertRaises(InvalidSecretKey):
            PrivateKey.from_bytes(b"\x00" * 31)

    def test_public_key_round_trip(self):
        public_key = PrivateKey.random().public_key()
        encoded = str(public_key)

        self.assertTrue(encoded.startswith("G"))
        self.assertEqual(len(encoded), 56)
        self.assertEqual(PublicKey.from_str(encoded), public_key)

    def test_repr_hides_secret(self):
        private_key = PrivateKey.random()
        self.assertNotIn(str(private_key), repr(private_key))

    def test_from_bytes(self):
        private_key = PrivateKey.from_bytes(bytes(range(32)))

        self.assertEqual(private_key, PrivateKey.from_bytes(bytes(range(32))))
        self.assertEqual(PrivateKey.from_str(str(private_key)), private_key)
        self.assertNotEqual(private_key, PrivateKey.from_bytes(bytes(32)))
