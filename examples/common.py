# Copyright © Aptos Foundation
# SPDX-License-Identifier: Apache-2.0

"""
Shared configuration for the examples.

Environment Variables:
    SOROBAN_RPC_URL: RPC endpoint of the network to fund accounts on
    SOROBAN_NETWORK_PASSPHRASE: passphrase of that network
    SOROBAN_EXAMPLE_CONFIG_DIR: where example identities are written
"""

import os

from soroban_cli.network import FUTURENET_PASSPHRASE, FUTURENET_RPC_URL

RPC_URL = os.getenv("SOROBAN_RPC_URL", FUTURENET_RPC_URL)

NETWORK_PASSPHRASE = os.getenv("SOROBAN_NETWORK_PASSPHRASE", FUTURENET_PASSPHRASE)

CONFIG_DIR = os.getenv("SOROBAN_EXAMPLE_CONFIG_DIR", os.path.abspath("./.soroban"))
