# Copyright © Aptos Foundation
# SPDX-License-Identifier: Apache-2.0

"""
Client identification for outgoing HTTP requests.

Every request made by :mod:`soroban_cli.async_client` carries a header naming
this package and its installed version, e.g.
``X-Client-Name: soroban-cli-python/0.1.0``.
"""

import importlib.metadata as metadata

# Package name constant for metadata lookup
PACKAGE_NAME = "soroban-cli"


class Metadata:
    CLIENT_HEADER = "X-Client-Name"

    @staticmethod
    def get_client_header_val() -> str:
        """Header value in the format "soroban-cli-python/{version}".

        Falls back to "0.0.0" when the package metadata is not installed, e.g.
        when running from a source checkout.
        """
        try:
            version = metadata.version(PACKAGE_NAME)
        except metadata.PackageNotFoundError:
            version = "0.0.0"
        return f"soroban-cli-python/{version}"
