"""
Server configuration.

``ServerConfiguration`` owns the configuration tree loaded from disk,
exposes typed accessors over it, and keeps the registries of modalities and
peers in sync with their sections of the tree.
"""

import copy
import json
import logging
import weakref
from pathlib import Path
from typing import Any, Dict, List, Optional, Protocol, Union

from .encoding import Encoding, get_default_encoding, set_default_encoding
from .errors import (
    BadFileFormatError,
    BadParameterTypeError,
    InexistentItemError,
    ParameterOutOfRangeError,
)
from .loader import read_configuration
from .modality import RemoteModalityParameters
from .peer import WebServiceParameters
from .policy import is_same_ae_title
from .registry import ORTHANC_PEERS, ModalityRegistry, PeerRegistry

logger = logging.getLogger("dicom_config")

DEFAULT_ENCODING = "DefaultEncoding"
REGISTERED_USERS = "RegisteredUsers"
HIDDEN_PASSWORD = "********"
STRICT_AET_COMPARISON = "StrictAetComparison"
DICOM_CHECK_MODALITY_HOST = "DicomCheckModalityHost"


class HttpServer(Protocol):
    """What the configuration needs from the embedded HTTP server."""

    def clear_users(self) -> None: ...

    def register_user(self, username: str, password: str) -> None: ...


class ServerConfiguration:
    """Configuration of the server, with its modalities and peers."""

    def __init__(self, tree: Optional[Dict[str, Any]] = None,
                 source: Optional[Union[str, Path]] = None):
        """Wrap an already loaded configuration tree.

        Args:
            tree: The configuration tree, copied so the caller keeps its own
            source: File or directory the tree was read from, used to
                resolve relative paths and to detect changes on disk
        """
        self._json: Dict[str, Any] = copy.deepcopy(tree) if tree is not None else {}
        self._source = source
        self._server_index: Optional[weakref.ReferenceType] = None

        self.default_directory = Path.cwd()
        self.configuration_path: Optional[Path] = None

        if source is not None:
            source = Path(source)
            if source.is_dir():
                self.default_directory = source
            else:
                self.default_directory = source.parent
            self.configuration_path = source.absolute()

        self.modalities = ModalityRegistry()
        self.peers = PeerRegistry()
        self.modalities.load_from_section(self._json)
        self.peers.load_from_section(self._json)

        if DEFAULT_ENCODING in self._json:
            set_default_encoding(Encoding.from_string(self.get_string(DEFAULT_ENCODING, "")))

    @classmethod
    def read(cls, path: Optional[Union[str, Path]] = None) -> "ServerConfiguration":
        """Load the configuration from a file or from a directory of files.

        Args:
            path: Configuration file or directory, ``None`` for an empty
                configuration

        Raises:
            InexistentFileError: If the path does not exist
            BadJsonError: If a configuration file is not a JSON object
            BadFileFormatError: If a section is defined twice, or if the
                modalities/peers are badly formatted
        """
        return cls(read_configuration(path), path)

    @property
    def json(self) -> Dict[str, Any]:
        return self._json

    # Typed accessors

    def _get(self, key: str, expected: tuple, kind: str, default: Any) -> Any:
        if key not in self._json:
            return default

        value = self._json[key]
        # bool is a subclass of int, but never a valid integer option
        if not isinstance(value, expected) or (bool not in expected and isinstance(value, bool)):
            logger.error('The configuration option "%s" must be %s', key, kind)
            raise BadParameterTypeError(f'The configuration option "{key}" must be {kind}')
        return value

    def get_string(self, key: str, default: str = "") -> str:
        return self._get(key, (str,), "a string", default)

    def get_integer(self, key: str, default: int = 0) -> int:
        return self._get(key, (int,), "an integer", default)

    def get_unsigned_integer(self, key: str, default: int = 0) -> int:
        value = self.get_integer(key, default)
        if value < 0:
            logger.error('The configuration option "%s" must be a positive integer', key)
            raise ParameterOutOfRangeError(f'The configuration option "{key}" must be a positive integer')
        return value

    def get_boolean(self, key: str, default: bool = False) -> bool:
        return self._get(key, (bool,), "a Boolean (true or false)", default)

    def get_string_list(self, key: str) -> List[str]:
        """Read an option that is a list of strings, empty if absent."""
        if key not in self._json:
            return []

        values = self._json[key]
        if not isinstance(values, list) or not all(isinstance(v, str) for v in values):
            logger.error("Badly formatted list of strings: %s", key)
            raise BadFileFormatError(f'The configuration option "{key}" must be a list of strings')
        return list(values)

    def resolve_path(self, value: Union[str, Path]) -> Path:
        """Interpret a path of the configuration relative to its directory."""
        path = Path(value)
        if not path.is_absolute():
            path = self.default_directory / path
        return path.absolute()

    # Modalities

    def is_same_ae_title(self, aet1: str, aet2: str) -> bool:
        return is_same_ae_title(aet1, aet2, self.get_boolean(STRICT_AET_COMPARISON, False))

    def get_modality_using_symbolic_name(self, name: str) -> RemoteModalityParameters:
        return self.modalities.get(name)

    def lookup_modality_using_aet(self, aet: str) -> Optional[RemoteModalityParameters]:
        return self.modalities.lookup_by_ae_title(aet, self.get_boolean(STRICT_AET_COMPARISON, False))

    def get_modality_using_aet(self, aet: str) -> RemoteModalityParameters:
        modality = self.lookup_modality_using_aet(aet)
        if modality is None:
            logger.error("Unknown modality for AET: %s", aet)
            raise InexistentItemError(f"Unknown modality for AET: {aet}")
        return modality

    def is_known_ae_title(self, aet: str, host: str) -> bool:
        return self.modalities.is_known_ae_title(
            aet, host,
            strict=self.get_boolean(STRICT_AET_COMPARISON, False),
            check_host=self.get_boolean(DICOM_CHECK_MODALITY_HOST, False),
        )

    def list_modalities(self) -> List[str]:
        return self.modalities.names()

    def update_modality(self, name: str, modality: RemoteModalityParameters) -> None:
        self.modalities.update(name, modality)
        self.modalities.save_to_section(self._json)

    def remove_modality(self, name: str) -> None:
        self.modalities.remove(name)
        self.modalities.save_to_section(self._json)

    # Peers

    def lookup_peer(self, name: str) -> Optional[WebServiceParameters]:
        return self.peers.lookup(name)

    def list_peers(self) -> List[str]:
        return self.peers.names()

    def update_peer(self, name: str, peer: WebServiceParameters) -> None:
        self.peers.update(name, peer)
        self.peers.save_to_section(self._json)

    def remove_peer(self, name: str) -> None:
        self.peers.remove(name)
        self.peers.save_to_section(self._json)

    # HTTP users

    def setup_registered_users(self, http_server: HttpServer) -> None:
        """Register the "RegisteredUsers" of the configuration in the HTTP server.

        Raises:
            BadFileFormatError: If the list of users is badly formatted
        """
        http_server.clear_users()

        if REGISTERED_USERS not in self._json:
            return

        users = self._json[REGISTERED_USERS]
        if not isinstance(users, dict) or not all(isinstance(p, str) for p in users.values()):
            logger.error("Badly formatted list of users")
            raise BadFileFormatError(f'Bad format of the "{REGISTERED_USERS}" configuration section')

        for username, password in users.items():
            http_server.register_user(username, password)

    # Whole configuration

    def format(self, include_passwords: bool = True) -> str:
        """Human-readable JSON of the configuration.

        Args:
            include_passwords: Keep the passwords of the peers and of the
                registered users, else they are left out or masked
        """
        tree = self._json
        if not include_passwords:
            tree = dict(tree)
            if ORTHANC_PEERS in tree:
                tree[ORTHANC_PEERS] = {
                    name: peer.to_config(include_passwords=False)
                    for name, peer in self.peers.items()
                }
            if isinstance(tree.get(REGISTERED_USERS), dict):
                tree[REGISTERED_USERS] = {name: HIDDEN_PASSWORD for name in tree[REGISTERED_USERS]}
        return json.dumps(tree, indent=3, ensure_ascii=False) + "\n"

    def has_changed(self) -> bool:
        """Check whether the configuration on disk differs from the one in memory."""
        current = read_configuration(self._source)
        return _canonical(self._json) != _canonical(current)

    def set_default_encoding(self, encoding: Encoding) -> None:
        """Change the default encoding, and record it in the configuration."""
        set_default_encoding(encoding)
        self._json[DEFAULT_ENCODING] = encoding.value

    @property
    def default_encoding(self) -> Encoding:
        return get_default_encoding()

    # Server index

    @property
    def server_index(self) -> Optional[Any]:
        """The server index attached to this configuration, if any."""
        if self._server_index is None:
            return None
        return self._server_index()

    def set_server_index(self, index: Any) -> None:
        self._server_index = weakref.ref(index)

    def reset_server_index(self) -> None:
        self._server_index = None


def _canonical(tree: Dict[str, Any]) -> str:
    return json.dumps(tree, sort_keys=True, separators=(",", ":"))
