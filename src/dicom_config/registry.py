"""
Registries of the remote modalities and peers.

Each registry owns its entries in memory. It is filled from one section of
the configuration tree and exported back into that section after every
change.
"""

import logging
from typing import Any, Dict, Generic, Iterator, List, MutableMapping, Optional, Tuple, TypeVar

from .errors import BadFileFormatError, InexistentItemError
from .modality import RemoteModalityParameters
from .peer import WebServiceParameters
from .policy import check_symbolic_name, is_allowed_host, is_same_ae_title

logger = logging.getLogger("dicom_config.registry")

DICOM_MODALITIES = "DicomModalities"
ORTHANC_PEERS = "OrthancPeers"

T = TypeVar("T")


class _Registry(Generic[T]):
    """Mapping from symbolic names to connection parameters."""

    section: str = ""

    def __init__(self):
        self._entries: Dict[str, T] = {}

    def _parse(self, value: Any) -> T:
        raise NotImplementedError

    def _serialize(self, entry: T) -> Any:
        raise NotImplementedError

    def load_from_section(self, tree: Dict[str, Any]) -> None:
        """Replace the registry content with the section of the tree.

        Raises:
            BadFileFormatError: If the section is not a JSON object, or if a
                symbolic name is invalid
        """
        self._entries.clear()

        if self.section not in tree:
            return

        source = tree[self.section]
        if not isinstance(source, dict):
            logger.error('Bad format of the "%s" configuration section', self.section)
            raise BadFileFormatError(f'Bad format of the "{self.section}" configuration section')

        for name, value in source.items():
            check_symbolic_name(name)
            self._entries[name] = self._parse(value)

    def export(self) -> Dict[str, Any]:
        """Serialize the registry, sorted by symbolic name."""
        return {name: self._serialize(entry) for name, entry in self.items()}

    def save_to_section(self, tree: MutableMapping[str, Any]) -> None:
        """Write the registry into its section of the tree.

        A section that never existed is not created for an empty registry.
        """
        if self._entries or self.section in tree:
            tree[self.section] = self.export()

    def update(self, name: str, entry: T) -> None:
        check_symbolic_name(name)
        self._entries[name] = entry

    def remove(self, name: str) -> None:
        self._entries.pop(name, None)

    def names(self) -> List[str]:
        return sorted(self._entries)

    def items(self) -> List[Tuple[str, T]]:
        return sorted(self._entries.items())

    def __contains__(self, name: object) -> bool:
        return name in self._entries

    def __iter__(self) -> Iterator[str]:
        return iter(self.names())

    def __len__(self) -> int:
        return len(self._entries)


class ModalityRegistry(_Registry[RemoteModalityParameters]):
    """The "DicomModalities" known to the server."""

    section = DICOM_MODALITIES

    def _parse(self, value: Any) -> RemoteModalityParameters:
        return RemoteModalityParameters.from_config(value)

    def _serialize(self, entry: RemoteModalityParameters) -> Any:
        return entry.to_config(force_advanced_format=True)

    def get(self, name: str) -> RemoteModalityParameters:
        """Get a modality by its symbolic name.

        Raises:
            InexistentItemError: If no modality has this name
        """
        if name not in self._entries:
            logger.error("No modality with symbolic name: %s", name)
            raise InexistentItemError(f"No modality with symbolic name: {name}")
        return self._entries[name]

    def lookup_by_ae_title(self, aet: str, strict: bool = False) -> Optional[RemoteModalityParameters]:
        """Find the first modality (in name order) with the given AE title."""
        for _, modality in self.items():
            if is_same_ae_title(aet, modality.application_entity_title, strict):
                return modality
        return None

    def is_known_ae_title(self, aet: str, host: str, strict: bool = False,
                          check_host: bool = False) -> bool:
        """Check whether a remote AE is allowed to talk to the server.

        Args:
            aet: AE title of the remote modality
            host: Address the request comes from
            strict: Case-sensitive comparison of AE titles
            check_host: Also require the host to match the configured one
        """
        modality = self.lookup_by_ae_title(aet, strict)

        if modality is None:
            logger.warning('Modality "%s" is not listed in the "%s" configuration option',
                           aet, DICOM_MODALITIES)
            return False

        if is_allowed_host(modality.host, host, check_host):
            return True

        logger.warning(
            'Forbidding access from AET "%s" given its hostname (%s) does not match '
            'the "%s" configuration option (%s was expected)',
            aet, host, DICOM_MODALITIES, modality.host
        )
        return False


class PeerRegistry(_Registry[WebServiceParameters]):
    """The "OrthancPeers" known to the server."""

    section = ORTHANC_PEERS

    def _parse(self, value: Any) -> WebServiceParameters:
        return WebServiceParameters.from_config(value)

    def _serialize(self, entry: WebServiceParameters) -> Any:
        return entry.to_config(force_advanced_format=False, include_passwords=True)

    def lookup(self, name: str) -> Optional[WebServiceParameters]:
        """Get a peer by its symbolic name, None if unknown."""
        peer = self._entries.get(name)
        if peer is None:
            logger.error("No peer with symbolic name: %s", name)
        return peer

    def update(self, name: str, entry: WebServiceParameters) -> None:
        """Register a peer, after checking its client certificate."""
        check_symbolic_name(name)
        entry.check_client_certificate()
        self._entries[name] = entry
