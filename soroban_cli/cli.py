# Copyright © Aptos Foundation
# SPDX-License-Identifier: Apache-2.0

"""
Command-line interface for managing identities and networks.

Examples:
    Generate an identity from the test seed phrase and fund it::

        python -m soroban_cli.cli identity generate alice --default-seed \
            --network futurenet

    Generate a raw secret key at account index 2, without a network::

        python -m soroban_cli.cli identity generate bob --as-secret --hd-path 2

    Save a local network and fund an existing identity on it::

        python -m soroban_cli.cli network add local \
            --rpc-url http://localhost:8000/soroban/rpc \
            --network-passphrase "Standalone Network ; February 2017"
        python -m soroban_cli.cli identity fund bob --network local

Network flags fall back to ``SOROBAN_NETWORK``, ``SOROBAN_RPC_URL`` and
``SOROBAN_NETWORK_PASSPHRASE``. Entries live in ``./.soroban`` unless
``--global`` or ``--config-dir`` is given.
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import shutil
import sys
import tempfile
import unittest
import unittest.mock
from typing import List, Optional

from . import identity, secret
from .async_client import FundingResult
from .exceptions import (
    InvalidNetworkArgs,
    NetworkRequired,
    NotFound,
    SorobanCliError,
)
from .locator import Locator
from .network import Network, NetworkArgs


def add_locator_args(parser: argparse.ArgumentParser):
    parser.add_argument(
        "--global",
        dest="use_global",
        action="store_true",
        help="Use the global config directory instead of ./.soroban",
    )
    parser.add_argument(
        "--config-dir", help="Location of the config directory", type=str
    )


def add_network_args(parser: argparse.ArgumentParser):
    group = parser.add_argument_group("Options (RPC)")
    group.add_argument(
        "--rpc-url", help="RPC server endpoint [env: SOROBAN_RPC_URL]", type=str
    )
    group.add_argument(
        "--network-passphrase",
        help="Network passphrase to sign the transaction sent to the rpc server "
        "[env: SOROBAN_NETWORK_PASSPHRASE]",
        type=str,
    )
    group.add_argument(
        "--network", help="Name of network to use from config [env: SOROBAN_NETWORK]"
    )


def hd_path(value: str) -> int:
    index = int(value)
    if index < 0:
        raise argparse.ArgumentTypeError("hd path must be a non-negative integer")
    return index


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="soroban-py", description="Manage Soroban identities and networks"
    )
    parser.add_argument(
        "-v", "--verbose", action="store_true", help="Log debug output"
    )
    commands = parser.add_subparsers(dest="command", required=True)

    identity_parser = commands.add_parser("identity", help="Manage identities")
    identity_commands = identity_parser.add_subparsers(
        dest="identity_command", required=True
    )

    generate = identity_commands.add_parser(
        "generate", help="Generate a new identity with a seed phrase"
    )
    generate.add_argument("name", help="Name of identity")
    seeds = generate.add_mutually_exclusive_group()
    seeds.add_argument(
        "--seed",
        help="Optional seed to use when generating seed phrase. Random otherwise.",
    )
    seeds.add_argument(
        "-d",
        "--default-seed",
        action="store_true",
        help="Generate the default seed phrase. Useful for testing.",
    )
    generate.add_argument(
        "-s",
        "--as-secret",
        action="store_true",
        help="Output the generated identity as a secret key",
    )
    generate.add_argument(
        "--hd-path",
        type=hd_path,
        help="When generating a secret key, which hd_path should be used "
        "from the original seed_phrase.",
    )
    add_locator_args(generate)
    add_network_args(generate)

    address = identity_commands.add_parser(
        "address", help="Print the public key of an identity"
    )
    address.add_argument("name", help="Name of identity")
    address.add_argument("--hd-path", type=hd_path, help="Account index")
    add_locator_args(address)

    fund = identity_commands.add_parser("fund", help="Fund an identity on a network")
    fund.add_argument("name", help="Name of identity")
    fund.add_argument("--hd-path", type=hd_path, help="Account index")
    add_locator_args(fund)
    add_network_args(fund)

    identity_ls = identity_commands.add_parser("ls", help="List identities")
    add_locator_args(identity_ls)

    identity_rm = identity_commands.add_parser("rm", help="Remove an identity")
    identity_rm.add_argument("name", help="Name of identity")
    add_locator_args(identity_rm)

    network_parser = commands.add_parser("network", help="Manage networks")
    network_commands = network_parser.add_subparsers(
        dest="network_command", required=True
    )

    network_add = network_commands.add_parser("add", help="Add a new network")
    network_add.add_argument("name", help="Name of network")
    network_add.add_argument("--rpc-url", required=True, help="RPC server endpoint")
    network_add.add_argument(
        "--network-passphrase", required=True, help="Network passphrase"
    )
    add_locator_args(network_add)

    network_rm = network_commands.add_parser("rm", help="Remove a network")
    network_rm.add_argument("name", help="Name of network")
    add_locator_args(network_rm)

    network_ls = network_commands.add_parser("ls", help="List networks")
    add_locator_args(network_ls)

    return parser


def network_args(parsed_args: argparse.Namespace) -> NetworkArgs:
    return NetworkArgs.from_env(
        rpc_url=parsed_args.rpc_url,
        network_passphrase=parsed_args.network_passphrase,
        network=parsed_args.network,
    )


async def run(parsed_args: argparse.Namespace) -> Optional[str]:
    """Execute a parsed command and return what should be printed."""
    locator = Locator(parsed_args.config_dir, parsed_args.use_global)

    if parsed_args.command == "identity":
        command = parsed_args.identity_command
        if command == "generate":
            args = identity.GenerateArgs(
                name=parsed_args.name,
                seed=parsed_args.seed,
                default_seed=parsed_args.default_seed,
                as_secret=parsed_args.as_secret,
                hd_path=parsed_args.hd_path,
                network=network_args(parsed_args),
            )
            public_key = await identity.generate(args, locator)
            logging.info(f"Generated identity {args.name} ({public_key})")
            return None
        if command == "address":
            return str(identity.address(locator, parsed_args.name, parsed_args.hd_path))
        if command == "fund":
            result = await identity.fund_identity(
                locator, parsed_args.name, network_args(parsed_args), parsed_args.hd_path
            )
            if result == FundingResult.ALREADY_FUNDED:
                return f"{parsed_args.name} is already funded"
            return f"{parsed_args.name} funded"
        if command == "ls":
            return "\n".join(locator.list_identities())
        if command == "rm":
            locator.remove_identity(parsed_args.name)
            return None

    if parsed_args.command == "network":
        command = parsed_args.network_command
        if command == "add":
            locator.write_network(
                parsed_args.name,
                Network(parsed_args.rpc_url, parsed_args.network_passphrase),
            )
            return None
        if command == "rm":
            locator.remove_network(parsed_args.name)
            return None
        if command == "ls":
            return "\n".join(locator.list_networks())

    raise ValueError(f"unknown command {parsed_args.command}")


async def main(args: List[str]):
    """Parse ``args``, run the command and print its output.

    Errors from the identity and network layers exit with status 1 and their
    message on stderr.
    """
    parser = build_parser()
    parsed_args = parser.parse_args(args)
    logging.basicConfig(
        level=logging.DEBUG if parsed_args.verbose else logging.WARNING,
        format="%(levelname)s %(message)s",
    )

    try:
        output = await run(parsed_args)
    except InvalidNetworkArgs as e:
        parser.error(str(e))
    except SorobanCliError as e:
        parser.exit(1, f"error: {e}\n")
    if output:
        print(output)


def entry_point():
    asyncio.run(main(sys.argv[1:]))


class Test(unittest.IsolatedAsyncioTestCase):
    def setUp(self):
        self.dir = tempfile.mkdtemp()
        self.addCleanup(shutil.rmtree, self.dir)
        patcher = unittest.mock.patch.dict(
            "os.environ",
            {
                "SOROBAN_NETWORK": "",
                "SOROBAN_RPC_URL": "",
                "SOROBAN_NETWORK_PASSPHRASE": "",
            },
        )
        patcher.start()
        self.addCleanup(patcher.stop)

    async def run_cli(self, *args: str) -> Optional[str]:
        parsed_args = build_parser().parse_args(list(args) + ["--config-dir", self.dir])
        return await run(parsed_args)

    async def test_generate_and_address(self):
        await self.run_cli("identity", "generate", "alice", "--default-seed")
        expected = str(secret.public_key(secret.test_seed_phrase()))

        self.assertEqual(await self.run_cli("identity", "address", "alice"), expected)
        self.assertEqual(
            await self.run_cli("identity", "address", "alice", "--hd-path", "1"),
            str(secret.public_key(secret.test_seed_phrase(), 1)),
        )
        self.assertEqual(await self.run_cli("identity", "ls"), "alice")

    async def test_generate_as_secret(self):
        await self.run_cli(
            "identity", "generate", "bob", "-d", "-s", "--hd-path", "5"
        )
        self.assertEqual(
            await self.run_cli("identity", "address", "bob"),
            str(secret.public_key(secret.test_seed_phrase(), 5)),
        )

    async def test_seed_conflicts_with_default_seed(self):
        with self.assertRaises(SystemExit):
            build_parser().parse_args(
                ["identity", "generate", "a", "--seed", "x", "--default-seed"]
            )

    async def test_network_commands(self):
        await self.run_cli(
            "network",
            "add",
            "local",
            "--rpc-url",
            "http://localhost:8000",
            "--network-passphrase",
            "Standalone",
        )
        self.assertEqual(await self.run_cli("network", "ls"), "futurenet\nlocal")
        await self.run_cli("network", "rm", "local")
        self.assertEqual(await self.run_cli("network", "ls"), "futurenet")

    async def test_generate_funds_with_network(self):
        with unittest.mock.patch(
            "soroban_cli.identity.fund", return_value=FundingResult.FUNDED
        ) as fund:
            await self.run_cli(
                "identity", "generate", "carol", "-d", "--network", "futurenet"
            )
        fund.assert_awaited_once()
        self.assertEqual(fund.await_args.args[0], Network.futurenet())

    async def test_fund_identity(self):
        await self.run_cli("identity", "generate", "erin", "-d")
        with unittest.mock.patch(
            "soroban_cli.identity.fund",
            side_effect=[FundingResult.FUNDED, FundingResult.ALREADY_FUNDED],
        ) as fund:
            self.assertEqual(
                await self.run_cli(
                    "identity", "fund", "erin", "--network", "futurenet"
                ),
                "erin funded",
            )
            self.assertEqual(
                await self.run_cli(
                    "identity",
                    "fund",
                    "erin",
                    "--hd-path",
                    "2",
                    "--rpc-url",
                    "http://localhost:8000",
                    "--network-passphrase",
                    "Standalone",
                ),
                "erin is already funded",
            )
        first, second = fund.await_args_list
        self.assertEqual(first.args[0], Network.futurenet())
        self.assertEqual(first.args[1], secret.public_key(secret.test_seed_phrase()))
        self.assertEqual(
            second.args[0], Network("http://localhost:8000", "Standalone")
        )
        self.assertEqual(
            second.args[1], secret.public_key(secret.test_seed_phrase(), 2)
        )

    async def test_fund_identity_requires_network(self):
        await self.run_cli("identity", "generate", "erin", "-d")
        with self.assertRaises(NetworkRequired):
            await self.run_cli("identity", "fund", "erin")

    async def test_identity_rm(self):
        await self.run_cli("identity", "generate", "frank", "-d")
        await self.run_cli("identity", "generate", "grace")

        self.assertIsNone(await self.run_cli("identity", "rm", "frank"))
        self.assertEqual(await self.run_cli("identity", "ls"), "grace")
        with self.assertRaises(NotFound):
            await self.run_cli("identity", "address", "frank")
        with self.assertRaises(NotFound):
            await self.run_cli("identity", "rm", "frank")

    async def test_main_reports_errors(self):
        with unittest.mock.patch("sys.stderr"):
            with self.assertRaises(SystemExit) as cm:
                await main(["identity", "address", "nobody", "--config-dir", self.dir])
        self.assertEqual(cm.exception.code, 1)

    async def test_main_rejects_conflicting_network_args(self):
        with unittest.mock.patch("sys.stderr"):
            with self.assertRaises(SystemExit) as cm:
                await main(
                    [
                        "identity",
                        "generate",
                        "dave",
                        "--network",
                        "futurenet",
                        "--rpc-url",
                        "https://x",
                        "--config-dir",
                        self.dir,
                    ]
                )
        self.assertEqual(cm.exception.code, 2)


if __name__ == "__main__":
    entry_point()
