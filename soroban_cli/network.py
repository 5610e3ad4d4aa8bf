# Copyright © Aptos Foundation
# SPDX-License-Identifier: Apache-2.0

"""
Network selection.

A command can be pointed at a network in two ways: by the name of a network
saved in the config store, or by an explicit RPC URL together with the
network passphrase. Flags fall back to environment variables:

- ``SOROBAN_NETWORK``: name of a saved network
- ``SOROBAN_RPC_URL``: RPC server endpoint
- ``SOROBAN_NETWORK_PASSPHRASE``: passphrase of that network

:func:`resolve` turns those inputs into exactly one :class:`Network`, checking
in order:

1. a network name, looked up in the store;
2. an explicit RPC URL and passphrase pair, used as given;
3. otherwise :class:`NetworkRequired`.

Commands that can run without a network (e.g. generating an identity without
funding it) check :func:`is_no_network` first.
"""

from __future__ import annotations

import os
import unittest
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Dict, Mapping, Optional

from .exceptions import InvalidNetworkArgs, NetworkRequired, NotFound

if TYPE_CHECKING:
    from .locator import ConfigLocator

RPC_URL_ENV = "SOROBAN_RPC_URL"
NETWORK_PASSPHRASE_ENV = "SOROBAN_NETWORK_PASSPHRASE"
NETWORK_ENV = "SOROBAN_NETWORK"

FUTURENET_RPC_URL = "https://rpc-futurenet.stellar.org:443"
FUTURENET_PASSPHRASE = "Test SDF Future Network ; October 2022"


@dataclass(frozen=True)
class Network:
    """A resolved network: both fields are always present."""

    rpc_url: str
    network_passphrase: str

    @staticmethod
    def futurenet() -> Network:
        return Network(FUTURENET_RPC_URL, FUTURENET_PASSPHRASE)

    def to_dict(self) -> Dict[str, str]:
        return {"rpc_url": self.rpc_url, "network_passphrase": self.network_passphrase}

    @staticmethod
    def from_dict(data: Mapping[str, Any]) -> Network:
        """Build a network from a stored mapping.

        Raises:
            ValueError: If either field is missing or empty.
        """
        rpc_url = data.get("rpc_url")
        network_passphrase = data.get("network_passphrase")
        if not rpc_url or not network_passphrase:
            raise ValueError("expected non-empty 'rpc_url' and 'network_passphrase'")
        return Network(str(rpc_url), str(network_passphrase))


@dataclass(frozen=True)
class NetworkArgs:
    """Raw network inputs, before resolution."""

    rpc_url: Optional[str] = None
    network_passphrase: Optional[str] = None
    network: Optional[str] = None

    @staticmethod
    def from_env(
        rpc_url: Optional[str] = None,
        network_passphrase: Optional[str] = None,
        network: Optional[str] = None,
        environ: Optional[Mapping[str, str]] = None,
    ) -> NetworkArgs:
        """Fill unset inputs from the environment.

        Empty values, whether passed in or read from the environment, count as
        unset.
        """
        env = os.environ if environ is None else environ
        return NetworkArgs(
            rpc_url=rpc_url or env.get(RPC_URL_ENV) or None,
            network_passphrase=network_passphrase
            or env.get(NETWORK_PASSPHRASE_ENV)
            or None,
            network=network or env.get(NETWORK_ENV) or None,
        )

    def validate(self):
        """Check the combinations the flags allow.

        Raises:
            InvalidNetworkArgs: If a network name is combined with an RPC URL
                or passphrase, or only half of the pair is given.
        """
        if self.network and (self.rpc_url or self.network_passphrase):
            raise InvalidNetworkArgs(
                "--network cannot be used with --rpc-url or --network-passphrase"
            )
        if bool(self.rpc_url) != bool(self.network_passphrase):
            raise InvalidNetworkArgs(
                "--rpc-url and --network-passphrase must be provided together"
            )


def is_no_network(args: NetworkArgs) -> bool:
    """True when no network input was given at all."""
    return not (args.network or args.rpc_url or args.network_passphrase)


def resolve(args: NetworkArgs, locator: ConfigLocator) -> Network:
    """Pick the network a command targets.

    A network name wins over an explicit pair. Mutual exclusion of the two is
    enforced by :meth:`NetworkArgs.validate`, not here.

    Raises:
        NotFound: If the named network is not in the store.
        NetworkRequired: If neither a name nor a complete pair was given.
    """
    if args.network:
        return locator.read_network(args.network)
    if args.rpc_url and args.network_passphrase:
        return Network(args.rpc_url, args.network_passphrase)
    raise NetworkRequired()


class Test(unittest.TestCase):
    def setUp(self):
        from .locator import InMemoryLocator

        self.locator = InMemoryLocator()
        self.locator.write_network("alpha", Network("https://a", "PA"))

    def test_named_network(self):
        args = NetworkArgs(network="alpha")
        self.assertEqual(resolve(args, self.locator), Network("https://a", "PA"))

    def test_named_network_takes_precedence(self):
        args = NetworkArgs(
            rpc_url="https://x", network_passphrase="P", network="alpha"
        )
        self.assertEqual(resolve(args, self.locator), Network("https://a", "PA"))

    def test_named_network_not_found(self):
        with self.assertRaises(NotFound) as cm:
            resolve(NetworkArgs(network="beta"), self.locator)
        self.assertEqual(cm.exception.name, "beta")

    def test_explicit_pair(self):
        args = NetworkArgs(rpc_url="https://x", network_passphrase="P")
        self.assertEqual(resolve(args, self.locator), Network("https://x", "P"))

    def test_no_network(self):
        args = NetworkArgs()
        self.assertTrue(is_no_network(args))
        with self.assertRaises(NetworkRequired):
            resolve(args, self.locator)

    def test_incomplete_pair(self):
        args = NetworkArgs(rpc_url="https://x")
        self.assertFalse(is_no_network(args))
        with self.assertRaises(NetworkRequired):
            resolve(args, self.locator)
        with self.assertRaises(NetworkRequired):
            resolve(NetworkArgs(rpc_url="https://x", network_passphrase=""), self.locator)

    def test_validate(self):
        NetworkArgs().validate()
        NetworkArgs(network="alpha").validate()
        NetworkArgs(rpc_url="https://x", network_passphrase="P").validate()
        with self.assertRaises(InvalidNetworkArgs):
            NetworkArgs(network="alpha", rpc_url="https://x").validate()
        with self.assertRaises(InvalidNetworkArgs):
            NetworkArgs(network_passphrase="P").validate()

    def test_from_env(self):
        environ = {
            RPC_URL_ENV: "https://env",
            NETWORK_PASSPHRASE_ENV: "PE",
            NETWORK_ENV: "",
        }
        self.assertEqual(
            NetworkArgs.from_env(environ=environ),
            NetworkArgs(rpc_url="https://env", network_passphrase="PE"),
        )
        self.assertEqual(
            NetworkArgs.from_env(rpc_url="https://flag", environ=environ).rpc_url,
            "https://flag",
        )
        self.assertTrue(is_no_network(NetworkArgs.from_env(environ={})))

    def test_network_dict(self):
        network = Network.futurenet()
        self.assertEqual(Network.from_dict(network.to_dict()), network)
        with self.assertRaises(ValueError):
            Network.from_dict({"rpc_url": "https://x"})
