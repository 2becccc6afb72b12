import pytest
from pydantic import ValidationError

from dicom_config.errors import BadFileFormatError, BadParameterTypeError, ParameterOutOfRangeError
from dicom_config.modality import ModalityManufacturer, RemoteModalityParameters


def test_simple_format():
    modality = RemoteModalityParameters.from_config(["STORESCP", "127.0.0.1", 2000])

    assert modality.application_entity_title == "STORESCP"
    assert modality.host == "127.0.0.1"
    assert modality.port == 2000
    assert modality.manufacturer == ModalityManufacturer.GENERIC
    assert modality.allow_store


def test_simple_format_with_manufacturer_and_string_port():
    modality = RemoteModalityParameters.from_config(["CLEARCANVAS", "192.168.1.1", "104", "ClearCanvas"])

    assert modality.port == 104
    assert modality.manufacturer == ModalityManufacturer.CLEAR_CANVAS


def test_advanced_format():
    modality = RemoteModalityParameters.from_config({
        "AET": "PACS",
        "Host": "pacs.local",
        "Port": 4242,
        "Manufacturer": "Dcm4Chee",
        "AllowStore": False,
    })

    assert modality.manufacturer == ModalityManufacturer.DCM4CHEE
    assert modality.allow_echo
    assert not modality.allow_store


def test_legacy_manufacturer():
    modality = RemoteModalityParameters.from_config(["SYNGO", "10.0.0.1", 104, "SyngoVia"])

    assert modality.manufacturer == ModalityManufacturer.GENERIC_NO_WILDCARD_IN_DATES


@pytest.mark.parametrize("value,error", [
    (["AET", "host"], BadFileFormatError),
    (["AET", "host", 104, "Generic", "extra"], BadFileFormatError),
    ({"AET": "AET", "Port": 104}, BadFileFormatError),
    ("AET@host:104", BadFileFormatError),
    (["AET", "host", 104, "UnknownVendor"], BadFileFormatError),
    (["AET", "host", 70000], ParameterOutOfRangeError),
    (["AET", "host", -1], ParameterOutOfRangeError),
    (["AET", "host", "http"], BadParameterTypeError),
    ([42, "host", 104], BadParameterTypeError),
    ({"AET": "AET", "Host": "host", "Port": 104, "AllowEcho": "yes"}, BadParameterTypeError),
])
def test_invalid_modality(value, error):
    with pytest.raises(error):
        RemoteModalityParameters.from_config(value)


def test_serialization_formats():
    """The simple format is used unless some operation is forbidden"""
    modality = RemoteModalityParameters(application_entity_title="A", host="h", port=11112)

    assert modality.to_config() == ["A", "h", 11112, "Generic"]
    assert modality.to_config(force_advanced_format=True) == {
        "AET": "A",
        "Host": "h",
        "Port": 11112,
        "Manufacturer": "Generic",
        "AllowEcho": True,
        "AllowFind": True,
        "AllowMove": True,
        "AllowStore": True,
    }

    restricted = modality.model_copy(update={"allow_move": False})
    assert isinstance(restricted.to_config(), dict)
    assert RemoteModalityParameters.from_config(restricted.to_config()) == restricted


def test_str():
    modality = RemoteModalityParameters(application_entity_title="ECHO", host="10.0.0.2", port=104)

    assert str(modality) == "ECHO@10.0.0.2:104"


@pytest.mark.parametrize("port,error", [
    (70000, ParameterOutOfRangeError),
    (-1, ParameterOutOfRangeError),
    ("abc", BadParameterTypeError),
    (True, BadParameterTypeError),
])
def test_invalid_port_in_constructor(port, error):
    """Direct construction checks the port like the configuration files do"""
    with pytest.raises(error):
        RemoteModalityParameters(application_entity_title="A", host="h", port=port)


def test_constructor_with_wrong_type():
    with pytest.raises(BadParameterTypeError):
        RemoteModalityParameters(application_entity_title=["A"], host="h", port=104)


def test_modality_is_immutable():
    modality = RemoteModalityParameters(application_entity_title="A", host="h", port=104)

    with pytest.raises(ValidationError):
        modality.port = 2000
    assert modality.port == 104
