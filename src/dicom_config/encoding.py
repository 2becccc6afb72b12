"""
Text encodings of DICOM strings.

The server keeps one process-wide default encoding, used whenever a DICOM
instance does not specify its Specific Character Set (0008,0005).
"""

import logging
from enum import Enum
from typing import Optional

from pydicom.charset import python_encoding

from .errors import ParameterOutOfRangeError

logger = logging.getLogger("dicom_config.encoding")


class Encoding(str, Enum):
    """Encodings known to the server, named as in the configuration file."""
    ASCII = "Ascii"
    UTF8 = "Utf8"
    LATIN1 = "Latin1"
    LATIN2 = "Latin2"
    LATIN3 = "Latin3"
    LATIN4 = "Latin4"
    LATIN5 = "Latin5"
    CYRILLIC = "Cyrillic"
    WINDOWS1251 = "Windows1251"
    ARABIC = "Arabic"
    GREEK = "Greek"
    HEBREW = "Hebrew"
    THAI = "Thai"
    JAPANESE = "Japanese"
    CHINESE = "Chinese"
    KOREAN = "Korean"
    JAPANESE_KANJI = "JapaneseKanji"
    SIMPLIFIED_CHINESE = "SimplifiedChinese"

    @property
    def specific_character_set(self) -> Optional[str]:
        """Defined term of (0008,0005), None if DICOM has no term for it."""
        return _CHARACTER_SETS[self][0]

    @property
    def python_codec(self) -> str:
        """Name of the Python codec decoding this encoding."""
        term, fallback = _CHARACTER_SETS[self]
        if term is None:
            return fallback
        return python_encoding.get(term, fallback)

    @classmethod
    def from_string(cls, value: str) -> "Encoding":
        """Parse an encoding from its name or its DICOM defined term.

        Raises:
            ParameterOutOfRangeError: If the encoding is unknown
        """
        normalized = value.strip()
        for encoding in cls:
            if encoding.value.lower() == normalized.lower():
                return encoding
        for encoding, (term, _) in _CHARACTER_SETS.items():
            if term is not None and term == normalized.upper():
                return encoding

        logger.error("Unknown encoding: %s", value)
        raise ParameterOutOfRangeError(f"Unknown encoding: {value}")


# Encoding -> (Specific Character Set term, codec if pydicom lacks the term)
_CHARACTER_SETS = {
    Encoding.ASCII: ("ISO_IR 6", "ascii"),
    Encoding.UTF8: ("ISO_IR 192", "utf_8"),
    Encoding.LATIN1: ("ISO_IR 100", "latin_1"),
    Encoding.LATIN2: ("ISO_IR 101", "iso8859_2"),
    Encoding.LATIN3: ("ISO_IR 109", "iso8859_3"),
    Encoding.LATIN4: ("ISO_IR 110", "iso8859_4"),
    Encoding.LATIN5: ("ISO_IR 148", "iso8859_9"),
    Encoding.CYRILLIC: ("ISO_IR 144", "iso8859_5"),
    Encoding.WINDOWS1251: (None, "cp1251"),
    Encoding.ARABIC: ("ISO_IR 127", "iso8859_6"),
    Encoding.GREEK: ("ISO_IR 126", "iso8859_7"),
    Encoding.HEBREW: ("ISO_IR 138", "iso8859_8"),
    Encoding.THAI: ("ISO_IR 166", "iso8859_11"),
    Encoding.JAPANESE: ("ISO_IR 13", "shift_jis"),
    Encoding.CHINESE: ("GB18030", "gb18030"),
    Encoding.KOREAN: ("ISO 2022 IR 149", "euc_kr"),
    Encoding.JAPANESE_KANJI: ("ISO 2022 IR 87", "iso2022_jp"),
    Encoding.SIMPLIFIED_CHINESE: ("ISO 2022 IR 58", "gb2312"),
}

_default_encoding = Encoding.LATIN1


def get_default_encoding() -> Encoding:
    """Return the process-wide default encoding."""
    return _default_encoding


def set_default_encoding(encoding: Encoding) -> None:
    """Change the process-wide default encoding."""
    global _default_encoding

    if encoding != _default_encoding:
        logger.warning("Default encoding is changed from %s to %s",
                       _default_encoding.value, encoding.value)
    _default_encoding = encoding
