# Copyright © Aptos Foundation
# SPDX-License-Identifier: Apache-2.0

from typing import Any, Optional


class SorobanCliError(Exception):
    """Base exception for identity, network and funding errors."""

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    def __str__(self) -> str:
        return self.message


class InvalidSeed(SorobanCliError):
    """The seed cannot be used as entropy for a seed phrase."""

    def __init__(self, length: int):
        self.length = length
        super().__init__(
            f"Invalid seed: {length} bytes of entropy, expected 16, 20, 24, 28 or 32"
        )


class InvalidSeedPhrase(SorobanCliError):
    """The stored seed phrase has unknown words or a bad checksum."""

    def __init__(self):
        super().__init__("Invalid seed phrase")


class InvalidSecretKey(SorobanCliError):
    """The stored secret key is not a valid ed25519 secret seed."""

    def __init__(self):
        super().__init__("Invalid secret key")


class HdPathNotApplicable(SorobanCliError):
    """An hd path was requested from a secret that is not a seed phrase."""

    def __init__(self, hd_path: int):
        self.hd_path = hd_path
        super().__init__(
            f"Cannot derive hd path {hd_path} from a secret key, only from a seed phrase"
        )


class InvalidHdPath(SorobanCliError):
    """The hd path index is outside the hardened derivation range."""

    def __init__(self, hd_path: int):
        self.hd_path = hd_path
        super().__init__(f"Invalid hd path {hd_path}, expected 0 <= hd_path < 2**31")


class InvalidName(SorobanCliError):
    """A config entry name cannot be used as a file name."""

    def __init__(self, name: str):
        self.name = name
        super().__init__(f"Invalid name {name!r}")


class NotFound(SorobanCliError):
    """A named identity or network is absent from the config store."""

    def __init__(self, kind: str, name: str):
        self.kind = kind
        self.name = name
        super().__init__(f"Failed to find config {kind} for {name}")


class CorruptEntry(SorobanCliError):
    """A stored identity or network could not be parsed."""

    def __init__(self, kind: str, name: str, path: str):
        self.kind = kind
        self.name = name
        self.path = path
        super().__init__(f"Failed to read config {kind} for {name} from {path}")


class InvalidNetworkArgs(SorobanCliError):
    """Network flags were combined in a way that can never resolve."""


class NetworkRequired(SorobanCliError):
    """A network-dependent operation was attempted without a usable network."""

    def __init__(self):
        super().__init__(
            "network arg or rpc url and network passphrase are required if using the network"
        )


class ApiError(SorobanCliError):
    """The RPC server returned a non-success status code or a JSON-RPC error."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code

    def __str__(self) -> str:
        if self.status_code:
            return f"ApiError ({self.status_code}): {self.message}"
        return f"ApiError: {self.message}"


class InvalidUrl(SorobanCliError):
    """The funding URL cannot be parsed or has an unsupported scheme."""

    def __init__(self, url: str):
        self.url = url
        super().__init__(f"Invalid URL {url}")


class MalformedResponse(SorobanCliError):
    """The funding service answered with a body that is not JSON."""

    def __init__(self, url: str, body: str):
        self.url = url
        self.body = body
        super().__init__(f"Failed to parse JSON from {url}, {body!r}")


class UnexpectedResponse(SorobanCliError):
    """The funding service answered with JSON of an unknown shape."""

    def __init__(self, body: Any):
        self.body = body
        super().__init__(f"Improper response {body}")


class PlatformUnsupported(SorobanCliError):
    """TLS funding requests are unavailable on this operating system."""

    def __init__(self, url: str):
        self.url = url
        super().__init__(f"Currently not supported on windows. Please visit:\n{url}")
