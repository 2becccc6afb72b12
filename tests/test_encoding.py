import pytest

from dicom_config.encoding import Encoding
from dicom_config.errors import ParameterOutOfRangeError


@pytest.mark.parametrize("value,expected", [
    ("Latin1", Encoding.LATIN1),
    ("utf8", Encoding.UTF8),
    ("ISO_IR 192", Encoding.UTF8),
    ("ISO_IR 144", Encoding.CYRILLIC),
    ("Windows1251", Encoding.WINDOWS1251),
])
def test_from_string(value, expected):
    assert Encoding.from_string(value) == expected


def test_unknown_encoding():
    with pytest.raises(ParameterOutOfRangeError):
        Encoding.from_string("Klingon")


def test_python_codecs():
    """Every encoding can be used to decode text"""
    for encoding in Encoding:
        assert isinstance(b"ORTHANC".decode(encoding.python_codec), str)

    assert Encoding.WINDOWS1251.specific_character_set is None
    assert Encoding.LATIN1.specific_character_set == "ISO_IR 100"
