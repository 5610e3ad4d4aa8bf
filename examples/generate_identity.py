# Copyright © Aptos Foundation
# SPDX-License-Identifier: Apache-2.0

"""
Generate two identities: alice from a random seed phrase, funded on the
configured network, and bob as the raw secret key of account 1 of a seeded
phrase, left unfunded.
"""

import asyncio

from soroban_cli import secret
from soroban_cli.identity import GenerateArgs, generate
from soroban_cli.locator import Locator
from soroban_cli.network import NetworkArgs

from .common import CONFIG_DIR, NETWORK_PASSPHRASE, RPC_URL


async def main():
    locator = Locator(CONFIG_DIR)
    network = NetworkArgs(rpc_url=RPC_URL, network_passphrase=NETWORK_PASSPHRASE)

    # :!:>section_1
    alice = await generate(GenerateArgs("alice", network=network), locator)
    bob = await generate(
        GenerateArgs("bob", seed="0123456789abcdef", as_secret=True, hd_path=1),
        locator,
    )
    # <:!:section_1

    print("\n=== Identities ===")
    print(f"Alice: {alice}")
    print(f"Bob: {bob}")

    # Bob was stored as a secret key, so its account is the hd path 1 account
    # of the phrase it came from.
    phrase = secret.from_seed("0123456789abcdef")
    assert secret.public_key(locator.read_identity("bob")) == secret.public_key(
        phrase, 1
    )


if __name__ == "__main__":
    asyncio.run(main())
