import pytest
from pydantic import ValidationError

from dicom_config.errors import BadFileFormatError, InexistentItemError
from dicom_config.modality import RemoteModalityParameters
from dicom_config.peer import WebServiceParameters
from dicom_config.policy import check_symbolic_name, is_allowed_host, is_same_ae_title
from dicom_config.registry import DICOM_MODALITIES, ORTHANC_PEERS, ModalityRegistry, PeerRegistry


@pytest.fixture
def tree():
    return {
        DICOM_MODALITIES: {
            "sample": ["STORESCP", "127.0.0.1", 2000],
            "echo-1": {"AET": "ECHO", "Host": "10.0.0.2", "Port": 104, "AllowStore": False},
            "echo-2": ["echo", "10.0.0.3", 104, "GE"],
        },
        ORTHANC_PEERS: {
            "peer": ["http://127.0.0.1:8043/", "alice", "alicePassword"],
            "other": {"Url": "https://other.local/", "HttpHeaders": {"Token": "t"}},
        },
    }


@pytest.fixture
def modalities(tree):
    registry = ModalityRegistry()
    registry.load_from_section(tree)
    return registry


def test_ae_title_policy():
    assert is_same_ae_title("ECHO", "echo")
    assert not is_same_ae_title("ECHO", "echo", strict=True)
    assert is_same_ae_title("ECHO", "ECHO", strict=True)
    assert not is_same_ae_title("ECHO", "ECHO2")


def test_host_policy():
    assert is_allowed_host("10.0.0.2", "10.0.0.9")
    assert is_allowed_host("10.0.0.2", "10.0.0.2", check_host=True)
    assert not is_allowed_host("10.0.0.2", "10.0.0.9", check_host=True)


@pytest.mark.parametrize("name", ["my modality", "my_modality", "", "modalité", "a/b"])
def test_invalid_symbolic_name(name):
    with pytest.raises(BadFileFormatError):
        check_symbolic_name(name)


@pytest.mark.parametrize("registry_class", [ModalityRegistry, PeerRegistry])
@pytest.mark.parametrize("name", ["with space", "with_underscore"])
def test_invalid_symbolic_name_in_section(registry_class, name):
    """Both sections reject names that are not alphanumeric or dash"""
    value = ["AET", "host", 104] if registry_class is ModalityRegistry else ["http://host/"]

    with pytest.raises(BadFileFormatError):
        registry_class().load_from_section({registry_class.section: {name: value}})


@pytest.mark.parametrize("registry_class", [ModalityRegistry, PeerRegistry])
def test_section_not_an_object(registry_class):
    with pytest.raises(BadFileFormatError):
        registry_class().load_from_section({registry_class.section: []})


def test_load_modalities(modalities):
    assert modalities.names() == ["echo-1", "echo-2", "sample"]
    assert len(modalities) == 3
    assert "sample" in modalities
    assert modalities.get("sample").port == 2000


def test_get_unknown_modality(modalities):
    with pytest.raises(InexistentItemError):
        modalities.get("unknown")


def test_lookup_by_ae_title(modalities):
    """The first modality in name order wins"""
    assert modalities.lookup_by_ae_title("ECHO").host == "10.0.0.2"
    assert modalities.lookup_by_ae_title("echo").host == "10.0.0.2"
    assert modalities.lookup_by_ae_title("echo", strict=True).host == "10.0.0.3"
    assert modalities.lookup_by_ae_title("Echo", strict=True) is None
    assert modalities.lookup_by_ae_title("UNKNOWN") is None


def test_is_known_ae_title(modalities):
    assert modalities.is_known_ae_title("STORESCP", "192.168.0.1")
    assert not modalities.is_known_ae_title("UNKNOWN", "127.0.0.1")
    assert modalities.is_known_ae_title("STORESCP", "127.0.0.1", check_host=True)
    assert not modalities.is_known_ae_title("STORESCP", "192.168.0.1", check_host=True)


def test_round_trip(tree, modalities):
    """Saving and reloading a registry gives back the same entries"""
    peers = PeerRegistry()
    peers.load_from_section(tree)

    saved = {}
    modalities.save_to_section(saved)
    peers.save_to_section(saved)

    reloaded_modalities = ModalityRegistry()
    reloaded_modalities.load_from_section(saved)
    reloaded_peers = PeerRegistry()
    reloaded_peers.load_from_section(saved)

    assert reloaded_modalities.items() == modalities.items()
    assert reloaded_peers.items() == peers.items()


def test_modalities_saved_in_advanced_format(modalities):
    saved = {}
    modalities.save_to_section(saved)

    assert all(isinstance(value, dict) for value in saved[DICOM_MODALITIES].values())


def test_save_empty_registry():
    """An empty registry clears an existing section, but never creates one"""
    registry = ModalityRegistry()

    tree = {}
    registry.save_to_section(tree)
    assert tree == {}

    tree = {DICOM_MODALITIES: {"old": ["OLD", "host", 104]}}
    registry.save_to_section(tree)
    assert tree == {DICOM_MODALITIES: {}}


def test_missing_section_clears_registry(modalities):
    modalities.load_from_section({})

    assert len(modalities) == 0


def test_update_and_remove(modalities):
    modality = RemoteModalityParameters(application_entity_title="NEW", host="h", port=11112)

    modalities.update("new", modality)
    assert modalities.get("new") == modality

    with pytest.raises(BadFileFormatError):
        modalities.update("not valid", modality)

    modalities.remove("new")
    modalities.remove("new")
    assert "new" not in modalities


def test_peer_lookup(tree):
    peers = PeerRegistry()
    peers.load_from_section(tree)

    assert peers.lookup("peer").username == "alice"
    assert peers.lookup("unknown") is None
    assert list(peers) == ["other", "peer"]


def test_peer_update_checks_certificate(tmp_path):
    peers = PeerRegistry()
    peer = WebServiceParameters(url="https://peer.local/",
                                certificate_file=str(tmp_path / "missing.crt"),
                                certificate_key_file=str(tmp_path / "missing.key"))

    with pytest.raises(FileNotFoundError):
        peers.update("peer", peer)
    assert "peer" not in peers


def test_descriptors_cannot_be_changed_behind_the_registry(tree, modalities):
    exported = modalities.export()

    with pytest.raises(ValidationError):
        modalities.get("sample").host = "10.0.0.99"
    with pytest.raises(ValidationError):
        modalities.lookup_by_ae_title("ECHO").allow_store = True

    assert modalities.export() == exported
    assert not modalities.is_known_ae_title("STORESCP", "10.0.0.99", check_host=True)

    peers = PeerRegistry()
    peers.load_from_section(tree)
    with pytest.raises(ValidationError):
        peers.lookup("peer").password = "changed"
    assert peers.export()["peer"] == ["http://127.0.0.1:8043/", "alice", "alicePassword"]
