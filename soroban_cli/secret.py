# Copyright © Aptos Foundation
# SPDX-License-Identifier: Apache-2.0

"""
Identity secrets: a seed phrase or an already derived secret key.

A :data:`Secret` is one of two variants:

- :class:`SeedPhrase` holds BIP-39 mnemonic words. Keys are derived from it
  with SEP-5, i.e. SLIP-10 ed25519 along ``m/44'/148'/{hd_path}'``.
- :class:`SecretKey` holds a single StrKey secret seed ("S..."). There is
  nothing to derive from, so asking for an hd path is an error.

Derivation always dispatches on the variant in :func:`private_key`; nothing
else inspects a secret's internals.

Examples:
    Deterministic phrases from a seed::

        phrase = from_seed("0123456789abcdef")
        assert phrase == from_seed("0123456789abcdef")

        first = public_key(phrase)
        second = public_key(phrase, hd_path=1)

    Converting to a raw secret key::

        key = SecretKey(str(private_key(phrase, hd_path=3)))
        assert public_key(key) == public_key(phrase, hd_path=3)
"""

from __future__ import annotations

import unittest
from dataclasses import dataclass, field
from typing import Any, Dict, Optional, Union

from mnemonic import Mnemonic
from stellar_sdk import Keypair
from typing_extensions import assert_never

from .ed25519 import PrivateKey, PublicKey
from .exceptions import (
    HdPathNotApplicable,
    InvalidHdPath,
    InvalidSecretKey,
    InvalidSeed,
    InvalidSeedPhrase,
)

LANGUAGE = "english"

# Random phrases are 24 words.
RANDOM_STRENGTH_BITS = 256

# Hardened SLIP-10 indices live below 2**31.
MAX_HD_PATH = 2**31

# Seed behind --default-seed. Reserved for tests and docs.
TEST_SEED = "0000000000000000"

TEST_SEED_PHRASE = (
    "coral light army gather adapt blossom school alcohol coral light army giggle"
)


@dataclass(frozen=True)
class SeedPhrase:
    seed_phrase: str = field(repr=False)


@dataclass(frozen=True)
class SecretKey:
    secret_key: str = field(repr=False)


Secret = Union[SeedPhrase, SecretKey]


def from_seed(seed: Optional[str] = None) -> SeedPhrase:
    """Create a seed phrase, deterministically when a seed is given.

    The seed's UTF-8 bytes are used directly as BIP-39 entropy, so the same
    seed always yields the same phrase. Without a seed, fresh entropy comes
    from the operating system.

    Args:
        seed: Optional string of 16, 20, 24, 28 or 32 bytes.

    Raises:
        InvalidSeed: If the seed has an unusable length.
    """
    mnemonic = Mnemonic(LANGUAGE)
    if seed is None:
        return SeedPhrase(mnemonic.generate(strength=RANDOM_STRENGTH_BITS))
    entropy = seed.encode("utf-8")
    try:
        return SeedPhrase(mnemonic.to_mnemonic(entropy))
    except ValueError as e:
        raise InvalidSeed(len(entropy)) from e


def test_seed_phrase() -> SeedPhrase:
    """The fixed seed phrase used for reproducible fixtures.

    Same as ``from_seed("0000000000000000")``.
    """
    return from_seed(TEST_SEED)


# Not a test case.
test_seed_phrase.__test__ = False  # type: ignore[attr-defined]


def private_key(secret: Secret, hd_path: Optional[int] = None) -> PrivateKey:
    """Derive the private key of a secret.

    Args:
        secret: The seed phrase or secret key.
        hd_path: Account index for seed phrases, defaults to 0. Must be left
            unset for secret keys.

    Raises:
        InvalidSeedPhrase: If the words or checksum are invalid.
        InvalidHdPath: If ``hd_path`` is outside ``[0, 2**31)``.
        InvalidSecretKey: If a stored secret key cannot be decoded.
        HdPathNotApplicable: If ``hd_path`` is given for a secret key.
    """
    if isinstance(secret, SeedPhrase):
        index = 0 if hd_path is None else hd_path
        if not 0 <= index < MAX_HD_PATH:
            raise InvalidHdPath(index)
        try:
            keypair = Keypair.from_mnemonic_phrase(secret.seed_phrase, index=index)
        except ValueError as e:
            raise InvalidSeedPhrase() from e
        return PrivateKey.from_bytes(keypair.raw_secret_key())
    elif isinstance(secret, SecretKey):
        if hd_path is not None:
            raise HdPathNotApplicable(hd_path)
        return PrivateKey.from_str(secret.secret_key)
    else:
        assert_never(secret)


def public_key(secret: Secret, hd_path: Optional[int] = None) -> PublicKey:
    """Derive the public key matching :func:`private_key`."""
    return private_key(secret, hd_path).public_key()


def to_dict(secret: Secret) -> Dict[str, str]:
    """Mapping written to the identity store."""
    if isinstance(secret, SeedPhrase):
        return {"seed_phrase": secret.seed_phrase}
    elif isinstance(secret, SecretKey):
        return {"secret_key": secret.secret_key}
    else:
        assert_never(secret)


def from_dict(data: Dict[str, Any]) -> Secret:
    """Inverse of :func:`to_dict`.

    Raises:
        ValueError: If the mapping has neither or both of the known keys.
    """
    has_phrase = "seed_phrase" in data
    has_key = "secret_key" in data
    if has_phrase == has_key:
        raise ValueError("expected exactly one of 'seed_phrase' or 'secret_key'")
    if has_phrase:
        return SeedPhrase(str(data["seed_phrase"]))
    return SecretKey(str(data["secret_key"]))


class Test(unittest.TestCase):
    # SEP-5 test vector 1
    SEP5_PHRASE = (
        "illness spike retreat truth genius clock brain pass fit cave bargain toe"
    )
    SEP5_ADDRESS_0 = "GDRXE2BQUC3AZNPVFSCEZ76NJ3WWL25FYFK6RGZGIEKWE4SOOHSUJUJ6"

    def test_from_seed_is_deterministic(self):
        seed = "0123456789abcdef"
        first = from_seed(seed)
        second = from_seed(seed)

        self.assertEqual(first, second)
        self.assertEqual(len(first.seed_phrase.split()), 12)
        self.assertEqual(private_key(first), private_key(second))
        self.assertEqual(public_key(first, 7), public_key(second, 7))

    def test_from_seed_lengths(self):
        self.assertEqual(len(from_seed("a" * 32).seed_phrase.split()), 24)
        with self.assertRaises(InvalidSeed) as cm:
            from_seed("short")
        self.assertEqual(cm.exception.length, 5)
        with self.assertRaises(InvalidSeed):
            from_seed("")

    def test_random_phrases_differ(self):
        first = from_seed()
        second = from_seed()

        self.assertNotEqual(first, second)
        self.assertEqual(len(first.seed_phrase.split()), 24)
        self.assertTrue(Mnemonic(LANGUAGE).check(first.seed_phrase))

    def test_test_seed_phrase(self):
        self.assertEqual(test_seed_phrase(), test_seed_phrase())
        self.assertEqual(
            test_seed_phrase().seed_phrase,
            "coral light army gather adapt blossom school alcohol "
            "coral light army giggle",
        )
        self.assertEqual(test_seed_phrase().seed_phrase, TEST_SEED_PHRASE)

    def test_test_seed_phrase_matches_default_seed(self):
        self.assertEqual(test_seed_phrase(), from_seed("0000000000000000"))
        self.assertEqual(
            private_key(test_seed_phrase(), 3),
            private_key(from_seed("0000000000000000"), 3),
        )

    def test_sep5_vector(self):
        phrase = SeedPhrase(self.SEP5_PHRASE)
        self.assertEqual(str(public_key(phrase)), self.SEP5_ADDRESS_0)

    def test_hd_path(self):
        phrase = test_seed_phrase()

        self.assertEqual(private_key(phrase), private_key(phrase, 0))
        self.assertNotEqual(private_key(phrase, 0), private_key(phrase, 1))
        self.assertNotEqual(public_key(phrase, 1), public_key(phrase, 2))
        self.assertEqual(public_key(phrase, 2), private_key(phrase, 2).public_key())

    def test_hd_path_range(self):
        phrase = test_seed_phrase()
        with self.assertRaises(InvalidHdPath):
            private_key(phrase, -1)
        with self.assertRaises(InvalidHdPath):
            private_key(phrase, MAX_HD_PATH)

    def test_invalid_seed_phrase(self):
        with self.assertRaises(InvalidSeedPhrase):
            private_key(SeedPhrase("abandon " * 12))
        with self.assertRaises(InvalidSeedPhrase):
            private_key(SeedPhrase("not a real mnemonic at all"))

    def test_secret_key(self):
        derived = private_key(test_seed_phrase(), 4)
        secret = SecretKey(str(derived))

        self.assertEqual(private_key(secret), derived)
        self.assertEqual(public_key(secret), derived.public_key())

    def test_secret_key_rejects_hd_path(self):
        secret = SecretKey(str(PrivateKey.random()))
        with self.assertRaises(HdPathNotApplicable) as cm:
            private_key(secret, 0)
        self.assertEqual(cm.exception.hd_path, 0)
        with self.assertRaises(HdPathNotApplicable):
            public_key(secret, 3)

    def test_invalid_secret_key(self):
        with self.assertRaises(InvalidSecretKey):
            private_key(SecretKey("SBAD"))

    def test_dict_round_trip(self):
        phrase = test_seed_phrase()
        key = SecretKey(str(private_key(phrase)))

        self.assertEqual(to_dict(phrase), {"seed_phrase": TEST_SEED_PHRASE})
        self.assertEqual(from_dict(to_dict(phrase)), phrase)
        self.assertEqual(from_dict(to_dict(key)), key)
        with self.assertRaises(ValueError):
            from_dict({})
        with self.assertRaises(ValueError):
            from_dict({"seed_phrase": "a", "secret_key": "b"})

    def test_repr_hides_secret(self):
        self.assertNotIn("coral", repr(test_seed_phrase()))
