# Copyright © Aptos Foundation
# SPDX-License-Identifier: Apache-2.0

"""
Identity commands: generate, address and fund.

:func:`generate` is the flow behind ``identity generate``:

1. pick the seed phrase: the fixed test phrase (``default_seed``), one
   derived from ``seed``, or a random one;
2. with ``as_secret``, replace it by the secret key at ``hd_path``;
3. write it to the store under ``name``;
4. if any network input was given, resolve the network and fund the
   identity's account through friendbot.

Funding failures propagate; the identity is already written by then.
"""

import shutil
import tempfile
import unittest
import unittest.mock
from dataclasses import dataclass, field
from typing import Callable, Optional

from . import secret
from .async_client import FriendbotClient, FundingResult
from .ed25519 import PublicKey
from .exceptions import (
    HdPathNotApplicable,
    NetworkRequired,
    NotFound,
    SorobanCliError,
)
from .locator import ConfigLocator, InMemoryLocator, Locator
from .network import Network, NetworkArgs, is_no_network, resolve

FriendbotFactory = Callable[[Network], FriendbotClient]


class InvalidGenerateArgs(SorobanCliError):
    """``seed`` and ``default_seed`` were both given."""


@dataclass(frozen=True)
class GenerateArgs:
    name: str
    seed: Optional[str] = None
    default_seed: bool = False
    as_secret: bool = False
    hd_path: Optional[int] = None
    network: NetworkArgs = field(default_factory=NetworkArgs)

    def validate(self):
        if self.default_seed and self.seed is not None:
            raise InvalidGenerateArgs("--seed cannot be used with --default-seed")
        self.network.validate()


async def fund(
    network: Network,
    address: PublicKey,
    friendbot_factory: FriendbotFactory = FriendbotClient,
) -> FundingResult:
    friendbot = friendbot_factory(network)
    try:
        return await friendbot.fund_address(address)
    finally:
        await friendbot.close()


async def generate(
    args: GenerateArgs,
    locator: ConfigLocator,
    friendbot_factory: FriendbotFactory = FriendbotClient,
) -> PublicKey:
    """Create, store and optionally fund an identity.

    Returns:
        The identity's public key, derived at ``args.hd_path``.
    """
    args.validate()
    if args.default_seed:
        seed_phrase = secret.test_seed_phrase()
    else:
        seed_phrase = secret.from_seed(args.seed)

    private_key = secret.private_key(seed_phrase, args.hd_path)
    stored: secret.Secret = seed_phrase
    if args.as_secret:
        stored = secret.SecretKey(str(private_key))
    locator.write_identity(args.name, stored)

    account = private_key.public_key()
    if not is_no_network(args.network):
        await fund(resolve(args.network, locator), account, friendbot_factory)
    return account


def address(locator: Locator, name: str, hd_path: Optional[int] = None) -> PublicKey:
    """Public key of a stored identity."""
    return secret.public_key(locator.read_identity(name), hd_path)


async def fund_identity(
    locator: Locator,
    name: str,
    network_args: NetworkArgs,
    hd_path: Optional[int] = None,
    friendbot_factory: FriendbotFactory = FriendbotClient,
) -> FundingResult:
    """Fund an identity that is already in the store."""
    network_args.validate()
    return await fund(
        resolve(network_args, locator),
        address(locator, name, hd_path),
        friendbot_factory,
    )


class Test(unittest.IsolatedAsyncioTestCase):
    def setUp(self):
        self.locator = InMemoryLocator()
        self.locator.write_network("local", Network("http://localhost:8000", "L"))
        self.friendbots = []

    def factory(self, result: FundingResult = FundingResult.FUNDED):
        def make(network: Network):
            friendbot = unittest.mock.AsyncMock(spec=FriendbotClient)
            friendbot.network = network
            friendbot.fund_address.return_value = result
            self.friendbots.append(friendbot)
            return friendbot

        return make

    async def test_generate_without_network(self):
        public_key = await generate(GenerateArgs("alice"), self.locator, self.factory())

        stored = self.locator.read_identity("alice")
        self.assertIsInstance(stored, secret.SeedPhrase)
        self.assertEqual(secret.public_key(stored), public_key)
        self.assertEqual(self.friendbots, [])

    async def test_generate_default_seed(self):
        await generate(GenerateArgs("alice", default_seed=True), self.locator)
        self.assertEqual(
            self.locator.read_identity("alice"), secret.test_seed_phrase()
        )

    async def test_generate_seed_is_deterministic(self):
        args = GenerateArgs("alice", seed="0123456789abcdef")
        first = await generate(args, self.locator)
        second = await generate(args, self.locator)
        self.assertEqual(first, second)

    async def test_generate_seed_conflict(self):
        with self.assertRaises(InvalidGenerateArgs):
            await generate(
                GenerateArgs("alice", seed="0123456789abcdef", default_seed=True),
                self.locator,
            )
        self.assertEqual(self.locator.list_identities(), [])

    async def test_generate_as_secret(self):
        public_key = await generate(
            GenerateArgs("alice", default_seed=True, as_secret=True, hd_path=2),
            self.locator,
        )

        stored = self.locator.read_identity("alice")
        self.assertIsInstance(stored, secret.SecretKey)
        self.assertEqual(secret.public_key(stored), public_key)
        self.assertEqual(public_key, secret.public_key(secret.test_seed_phrase(), 2))
        with self.assertRaises(HdPathNotApplicable):
            secret.public_key(stored, 2)

    async def test_generate_and_fund(self):
        args = GenerateArgs(
            "alice",
            default_seed=True,
            as_secret=True,
            hd_path=1,
            network=NetworkArgs(network="local"),
        )
        public_key = await generate(args, self.locator, self.factory())

        self.assertEqual(len(self.friendbots), 1)
        friendbot = self.friendbots[0]
        self.assertEqual(friendbot.network, Network("http://localhost:8000", "L"))
        friendbot.fund_address.assert_awaited_once_with(public_key)
        friendbot.close.assert_awaited_once()

    async def test_generate_explicit_network(self):
        args = GenerateArgs(
            "alice",
            network=NetworkArgs(rpc_url="https://x", network_passphrase="P"),
        )
        await generate(args, self.locator, self.factory(FundingResult.ALREADY_FUNDED))
        self.assertEqual(self.friendbots[0].network, Network("https://x", "P"))

    async def test_generate_unknown_network(self):
        args = GenerateArgs("alice", network=NetworkArgs(network="missing"))
        with self.assertRaises(NotFound):
            await generate(args, self.locator, self.factory())
        # The identity is written before the network is resolved.
        self.assertEqual(self.locator.list_identities(), ["alice"])

    async def test_fund_identity(self):
        directory = tempfile.mkdtemp()
        self.addCleanup(shutil.rmtree, directory)
        locator = Locator(directory)
        locator.write_identity("bob", secret.test_seed_phrase())
        locator.write_network("local", Network("http://localhost:8000", "L"))

        result = await fund_identity(
            locator, "bob", NetworkArgs(network="local"), 3, self.factory()
        )

        self.assertEqual(result, FundingResult.FUNDED)
        self.friendbots[0].fund_address.assert_awaited_once_with(
            secret.public_key(secret.test_seed_phrase(), 3)
        )
        with self.assertRaises(NetworkRequired):
            await fund_identity(locator, "bob", NetworkArgs(), None, self.factory())
