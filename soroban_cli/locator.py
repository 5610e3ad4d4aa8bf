# Copyright © Aptos Foundation
# SPDX-License-Identifier: Apache-2.0

"""
Config store for named identities and networks.

Identity generation and network resolution only need two operations, which
are captured by the :class:`ConfigLocator` protocol:

- ``write_identity(name, secret)``
- ``read_network(name)``

:class:`Locator` is the store the CLI uses: one JSON document per entry,
laid out as::

    <config dir>/identity/<name>.json   {"seed_phrase": "..."} or {"secret_key": "S..."}
    <config dir>/network/<name>.json    {"rpc_url": "...", "network_passphrase": "..."}

The config dir is ``./.soroban`` by default, or the global directory
(``$SOROBAN_CONFIG_HOME``, else ``$XDG_CONFIG_HOME/soroban``, else
``~/.config/soroban``) when ``use_global`` is set.

:class:`InMemoryLocator` keeps the same entries in dictionaries, for tests and
embedding.
"""

from __future__ import annotations

import json
import os
import shutil
import tempfile
import unittest
import unittest.mock
from typing import Any, Callable, Dict, List, Optional, TypeVar

from typing_extensions import Protocol

from . import secret as secret_mod
from .exceptions import CorruptEntry, InvalidName, NotFound
from .network import Network
from .secret import Secret

CONFIG_HOME_ENV = "SOROBAN_CONFIG_HOME"
LOCAL_DIR = ".soroban"
IDENTITY_DIR = "identity"
NETWORK_DIR = "network"

BUILTIN_NETWORKS: Dict[str, Network] = {"futurenet": Network.futurenet()}

# Identities hold secrets in plain text.
IDENTITY_FILE_MODE = 0o600

T = TypeVar("T")


class ConfigLocator(Protocol):
    """What identity generation and network resolution need from a store."""

    def write_identity(self, name: str, secret: Secret) -> None:
        """Persist a named identity, replacing any existing one."""
        ...

    def read_network(self, name: str) -> Network:
        """Load a named network.

        Raises:
            NotFound: If no network of that name exists.
        """
        ...


def validate_name(name: str) -> str:
    """Entry names become file names, so they may not contain separators."""
    separators = [sep for sep in (os.sep, os.altsep, "/") if sep]
    if not name or name in (".", "..") or any(sep in name for sep in separators):
        raise InvalidName(name)
    return name


def global_config_dir() -> str:
    config_home = os.environ.get(CONFIG_HOME_ENV)
    if config_home:
        return config_home
    xdg = os.environ.get("XDG_CONFIG_HOME") or os.path.join(
        os.path.expanduser("~"), ".config"
    )
    return os.path.join(xdg, "soroban")


class Locator:
    """File backed config store."""

    config_dir: str

    def __init__(self, config_dir: Optional[str] = None, use_global: bool = False):
        if config_dir is None:
            config_dir = global_config_dir() if use_global else LOCAL_DIR
        self.config_dir = config_dir

    def __repr__(self) -> str:
        return f"Locator({self.config_dir!r})"

    #
    # Identities
    #

    def write_identity(self, name: str, secret: Secret) -> None:
        self._write(
            self._path(IDENTITY_DIR, name),
            secret_mod.to_dict(secret),
            IDENTITY_FILE_MODE,
        )

    def read_identity(self, name: str) -> Secret:
        return self._read(IDENTITY_DIR, name, secret_mod.from_dict)

    def list_identities(self) -> List[str]:
        return self._list(IDENTITY_DIR)

    def remove_identity(self, name: str) -> None:
        self._remove(IDENTITY_DIR, name)

    #
    # Networks
    #

    def write_network(self, name: str, network: Network) -> None:
        self._write(self._path(NETWORK_DIR, name), network.to_dict())

    def read_network(self, name: str) -> Network:
        """Load a saved network, falling back to the built-in ones."""
        try:
            return self._read(NETWORK_DIR, name, Network.from_dict)
        except NotFound:
            if name in BUILTIN_NETWORKS:
                return BUILTIN_NETWORKS[name]
            raise

    def list_networks(self) -> List[str]:
        return sorted(set(self._list(NETWORK_DIR)) | set(BUILTIN_NETWORKS))

    def remove_network(self, name: str) -> None:
        self._remove(NETWORK_DIR, name)

    def _path(self, kind: str, name: str) -> str:
        return os.path.join(self.config_dir, kind, f"{validate_name(name)}.json")

    def _write(self, path: str, data: Dict[str, str], mode: int = 0o666):
        os.makedirs(os.path.dirname(path), exist_ok=True)
        # The mode only applies when the file is created.
        fd = os.open(path, os.O_WRONLY | os.O_CREAT | os.O_TRUNC, mode)
        with os.fdopen(fd, "w") as file:
            json.dump(data, file)

    def _read(
        self, kind: str, name: str, parse: Callable[[Dict[str, Any]], T]
    ) -> T:
        """Load and parse an entry.

        Raises:
            NotFound: If the entry does not exist.
            CorruptEntry: If the file is not a JSON object that ``parse`` accepts.
        """
        path = self._path(kind, name)
        try:
            with open(path) as file:
                data = json.load(file)
        except FileNotFoundError as e:
            raise NotFound(kind, name) from e
        except ValueError as e:
            raise CorruptEntry(kind, name, path) from e
        if not isinstance(data, dict):
            raise CorruptEntry(kind, name, path)
        try:
            return parse(data)
        except ValueError as e:
            raise CorruptEntry(kind, name, path) from e

    def _list(self, kind: str) -> List[str]:
        directory = os.path.join(self.config_dir, kind)
        if not os.path.isdir(directory):
            return []
        return sorted(
            entry[: -len(".json")]
            for entry in os.listdir(directory)
            if entry.endswith(".json")
        )

    def _remove(self, kind: str, name: str):
        try:
            os.remove(self._path(kind, name))
        except FileNotFoundError as e:
            raise NotFound(kind, name) from e


class InMemoryLocator:
    """Dictionary backed config store."""

    identities: Dict[str, Secret]
    networks: Dict[str, Network]

    def __init__(self):
        self.identities = {}
        self.networks = {}

    def write_identity(self, name: str, secret: Secret) -> None:
        self.identities[validate_name(name)] = secret

    def read_identity(self, name: str) -> Secret:
        if name not in self.identities:
            raise NotFound(IDENTITY_DIR, name)
        return self.identities[name]

    def list_identities(self) -> List[str]:
        return sorted(self.identities)

    def remove_identity(self, name: str) -> None:
        if self.identities.pop(name, None) is None:
            raise NotFound(IDENTITY_DIR, name)

    def write_network(self, name: str, network: Network) -> None:
        self.networks[validate_name(name)] = network

    def read_network(self, name: str) -> Network:
        if name not in self.networks:
            raise NotFound(NETWORK_DIR, name)
        return self.networks[name]

    def list_networks(self) -> List[str]:
        return sorted(self.networks)

    def remove_network(self, name: str) -> None:
        if self.networks.pop(name, None) is None:
            raise NotFound(NETWORK_DIR, name)


class Test(unittest.TestCase):
    def setUp(self):
        self.dir = tempfile.mkdtemp()
        self.locator = Locator(self.dir)

    def tearDown(self):
        shutil.rmtree(self.dir)

    def test_identity_round_trip(self):
        phrase = secret_mod.test_seed_phrase()
        key = secret_mod.SecretKey(str(secret_mod.private_key(phrase)))

        self.locator.write_identity("alice", phrase)
        self.locator.write_identity("bob", key)

        self.assertEqual(self.locator.read_identity("alice"), phrase)
        self.assertEqual(self.locator.read_identity("bob"), key)
        self.assertEqual(self.locator.list_identities(), ["alice", "bob"])
        with open(os.path.join(self.dir, "identity", "alice.json")) as file:
            self.assertEqual(json.load(file), {"seed_phrase": phrase.seed_phrase})

    def test_identity_overwrite(self):
        self.locator.write_identity("alice", secret_mod.from_seed())
        self.locator.write_identity("alice", secret_mod.test_seed_phrase())
        self.assertEqual(
            self.locator.read_identity("alice"), secret_mod.test_seed_phrase()
        )
        self.assertEqual(self.locator.list_identities(), ["alice"])

    def test_identity_remove(self):
        self.locator.write_identity("alice", secret_mod.test_seed_phrase())
        self.locator.remove_identity("alice")
        with self.assertRaises(NotFound):
            self.locator.read_identity("alice")
        with self.assertRaises(NotFound):
            self.locator.remove_identity("alice")

    @unittest.skipIf(os.name == "nt", "POSIX permissions")
    def test_identity_file_mode(self):
        self.locator.write_identity("alice", secret_mod.test_seed_phrase())
        path = os.path.join(self.dir, "identity", "alice.json")
        self.assertEqual(os.stat(path).st_mode & 0o777, IDENTITY_FILE_MODE)

    def test_corrupt_entries(self):
        os.makedirs(os.path.join(self.dir, "identity"))
        os.makedirs(os.path.join(self.dir, "network"))
        contents = {
            ("identity", "garbled"): "{not json",
            ("identity", "empty"): "{}",
            ("identity", "listed"): "[]",
            ("network", "garbled"): "",
            ("network", "partial"): '{"rpc_url": "https://a"}',
            ("network", "futurenet"): "null",
        }
        for (kind, name), text in contents.items():
            with open(os.path.join(self.dir, kind, f"{name}.json"), "w") as file:
                file.write(text)

        for name in ["garbled", "empty", "listed"]:
            with self.assertRaises(CorruptEntry) as cm:
                self.locator.read_identity(name)
            self.assertEqual(cm.exception.kind, "identity")
            self.assertEqual(cm.exception.name, name)
        for name in ["garbled", "partial", "futurenet"]:
            with self.assertRaises(CorruptEntry) as cm:
                self.locator.read_network(name)
            self.assertEqual(cm.exception.kind, "network")

    def test_network_round_trip(self):
        network = Network("https://a", "PA")
        self.locator.write_network("alpha", network)

        self.assertEqual(self.locator.read_network("alpha"), network)
        self.assertEqual(self.locator.list_networks(), ["alpha", "futurenet"])
        with self.assertRaises(NotFound) as cm:
            self.locator.read_network("beta")
        self.assertEqual(cm.exception.kind, "network")

    def test_builtin_network(self):
        self.assertEqual(self.locator.read_network("futurenet"), Network.futurenet())
        shadow = Network("http://localhost:8000/soroban/rpc", "Standalone")
        self.locator.write_network("futurenet", shadow)
        self.assertEqual(self.locator.read_network("futurenet"), shadow)
        self.locator.remove_network("futurenet")
        self.assertEqual(self.locator.read_network("futurenet"), Network.futurenet())

    def test_invalid_names(self):
        for name in ["", ".", "..", "a/b", os.path.join("x", "y")]:
            with self.assertRaises(InvalidName):
                self.locator.write_identity(name, secret_mod.test_seed_phrase())
        with self.assertRaises(InvalidName):
            InMemoryLocator().write_network("a/b", Network.futurenet())

    def test_global_config_dir(self):
        environ = {CONFIG_HOME_ENV: self.dir}
        with unittest.mock.patch.dict(os.environ, environ):
            self.assertEqual(Locator(use_global=True).config_dir, self.dir)
        self.assertEqual(Locator().config_dir, LOCAL_DIR)

    def test_in_memory(self):
        locator = InMemoryLocator()
        locator.write_identity("alice", secret_mod.test_seed_phrase())
        self.assertEqual(locator.list_identities(), ["alice"])
        with self.assertRaises(NotFound):
            locator.read_network("futurenet")
        locator.remove_identity("alice")
        with self.assertRaises(NotFound):
            locator.read_identity("alice")
