# Copyright © Aptos Foundation
# SPDX-License-Identifier: Apache-2.0

"""
Runnable examples for the soroban_cli package.

Run them as modules from the repository root, e.g.::

    python -m examples.generate_identity

They default to futurenet and can be pointed elsewhere with the environment
variables read by :mod:`examples.common`.
"""
