# Copyright © Aptos Foundation
# SPDX-License-Identifier: Apache-2.0

"""
Soroban CLI (Python) - identities and network selection for Stellar/Soroban.

Core Features:
- **Secrets**: seed phrases (BIP-39, SEP-5 derivation) or raw secret keys
- **Config store**: named identities and networks on disk
- **Network selection**: saved network names or explicit RPC URL/passphrase
- **Funding**: friendbot funding of new accounts on test networks

Module Organization:
    - **secret**: seed phrase and secret key variants, key derivation
    - **ed25519**: key pairs rendered as Stellar StrKeys
    - **locator**: the config store and its narrow protocol
    - **network**: network inputs and their resolution
    - **async_client**: Soroban RPC and friendbot clients
    - **identity**: the generate/address/fund flows
    - **cli**: argparse front end (``soroban-py``)

Quick Start::

    import asyncio

    from soroban_cli.identity import GenerateArgs, generate
    from soroban_cli.locator import Locator
    from soroban_cli.network import NetworkArgs

    public_key = asyncio.run(
        generate(
            GenerateArgs("alice", network=NetworkArgs(network="futurenet")),
            Locator(),
        )
    )
    print(public_key)

Security Considerations:
    - Seed phrases and secret keys are stored in plain text; identity files
      are created readable by their owner only.
    - Secrets are never logged and are hidden from ``repr``.
"""
