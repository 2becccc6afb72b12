"""
Connection parameters of remote HTTP peers.

A peer is declared in the "OrthancPeers" section either with the simple
format ``[ "http://127.0.0.1:8043/", "alice", "alicePassword" ]`` or with
an object listing its "Url" and optional "Username", "Password",
"CertificateFile", "CertificateKeyFile", "CertificateKeyPassword", "Pkcs11"
and "HttpHeaders".
"""

import logging
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

from cryptography import x509
from cryptography.hazmat.primitives import serialization
from pydantic import Field, field_validator, model_validator

from .base import ConfigurationModel
from .errors import BadFileFormatError, BadParameterTypeError, InexistentFileError

logger = logging.getLogger("dicom_config.peer")

JsonValue = Union[Dict[str, Any], List[Any]]


def normalize_url(url: str) -> str:
    """Check the scheme of a peer URL and make sure it ends with a slash.

    Raises:
        BadFileFormatError: If the URL is neither HTTP nor HTTPS
    """
    if not url.lower().startswith(("http://", "https://")):
        logger.error("Bad URL for a peer, it must start with http:// or https://: %s", url)
        raise BadFileFormatError(f"Bad URL for a peer: {url}")
    if not url.endswith("/"):
        url += "/"
    return url


def _read_string(source: Dict[str, Any], field: str) -> Optional[str]:
    value = source.get(field)
    if value is not None and not isinstance(value, str):
        logger.error('The "%s" field of a peer must be a string', field)
        raise BadParameterTypeError(f'The "{field}" field of a peer must be a string')
    return value


class WebServiceParameters(ConfigurationModel):
    """Parameters to connect to a remote HTTP peer."""
    url: str = "http://127.0.0.1:8042/"
    username: Optional[str] = None
    password: Optional[str] = None
    certificate_file: Optional[str] = None
    certificate_key_file: Optional[str] = None
    certificate_key_password: Optional[str] = None
    pkcs11_enabled: bool = False
    http_headers: Dict[str, str] = Field(default_factory=dict)

    @field_validator("url")
    @classmethod
    def check_url(cls, value: str) -> str:
        return normalize_url(value)

    @model_validator(mode="before")
    @classmethod
    def default_password(cls, data: Any) -> Any:
        # A username always comes with a password, possibly empty
        if isinstance(data, dict) and data.get("username") is not None and data.get("password") is None:
            data = dict(data, password="")
        return data

    def is_advanced_format_needed(self) -> bool:
        """Whether the simple (array) format would lose information."""
        return bool(self.certificate_file or self.pkcs11_enabled or self.http_headers)

    def to_config(self, force_advanced_format: bool = False,
                  include_passwords: bool = True) -> JsonValue:
        """Serialize the peer into its configuration-file representation.

        Args:
            force_advanced_format: Always use the JSON object format
            include_passwords: Write the password and the certificate key password

        Returns:
            A JSON array (simple format) or object (advanced format)
        """
        hides_password = self.username is not None and not include_passwords

        if not (force_advanced_format or self.is_advanced_format_needed() or hides_password):
            if self.username is None:
                return [self.url]
            return [self.url, self.username, self.password or ""]

        result: Dict[str, Any] = {"Url": self.url}
        if self.username is not None:
            result["Username"] = self.username
            if include_passwords:
                result["Password"] = self.password or ""
        if self.certificate_file:
            result["CertificateFile"] = self.certificate_file
            if self.certificate_key_file is not None:
                result["CertificateKeyFile"] = self.certificate_key_file
            if include_passwords and self.certificate_key_password is not None:
                result["CertificateKeyPassword"] = self.certificate_key_password
        result["Pkcs11"] = self.pkcs11_enabled
        if self.http_headers:
            result["HttpHeaders"] = dict(self.http_headers)
        return result

    @classmethod
    def from_config(cls, value: Any) -> "WebServiceParameters":
        """Parse a peer from the "OrthancPeers" section.

        Raises:
            BadFileFormatError: If the value has neither the simple nor the
                advanced format, or if the URL is not HTTP(S)
            BadParameterTypeError: If a field has the wrong type
        """
        if isinstance(value, list):
            if len(value) not in (1, 3) or not all(isinstance(item, str) for item in value):
                logger.error("A peer must be an array of 1 or 3 strings")
                raise BadFileFormatError("Bad format for a peer in the simple format")

            if len(value) == 1:
                return cls(url=value[0])
            return cls(url=value[0], username=value[1], password=value[2])

        if not isinstance(value, dict):
            logger.error("A peer must be a JSON array or a JSON object")
            raise BadFileFormatError("Bad format for a peer")

        url = _read_string(value, "Url")
        if url is None:
            logger.error('Missing "Url" field in a peer')
            raise BadFileFormatError('Missing "Url" field in a peer')

        username = _read_string(value, "Username")
        password = _read_string(value, "Password")
        if password is not None and username is None:
            logger.error('A peer cannot have a "Password" without a "Username"')
            raise BadFileFormatError('A peer cannot have a "Password" without a "Username"')

        pkcs11 = value.get("Pkcs11", False)
        if not isinstance(pkcs11, bool):
            raise BadParameterTypeError('The "Pkcs11" field of a peer must be a Boolean')

        # With PKCS#11, the private key lives in the token
        certificate_file = _read_string(value, "CertificateFile")
        certificate_key_file = _read_string(value, "CertificateKeyFile")
        if certificate_file and not certificate_key_file and not pkcs11:
            logger.error('The "CertificateKeyFile" field is required with "CertificateFile"')
            raise BadFileFormatError('Missing "CertificateKeyFile" field in a peer')

        headers = value.get("HttpHeaders", {})
        if not isinstance(headers, dict) or not all(isinstance(v, str) for v in headers.values()):
            logger.error('The "HttpHeaders" field of a peer must map strings to strings')
            raise BadFileFormatError('Bad format for the "HttpHeaders" of a peer')

        return cls(
            url=url,
            username=username,
            password=password,
            certificate_file=certificate_file,
            certificate_key_file=certificate_key_file if certificate_file else None,
            certificate_key_password=_read_string(value, "CertificateKeyPassword") if certificate_file else None,
            pkcs11_enabled=pkcs11,
            http_headers=headers,
        )

    def check_client_certificate(self) -> None:
        """Make sure the client certificate of this peer can be used.

        Raises:
            InexistentFileError: If the certificate or its key does not exist
            BadFileFormatError: If the certificate or its key is not valid PEM
        """
        if self.pkcs11_enabled or not self.certificate_file:
            return

        certificate_path = Path(self.certificate_file)
        key_path = Path(self.certificate_key_file or "")

        for path in (certificate_path, key_path):
            if not path.is_file():
                logger.error("Cannot open client certificate file: %s", path)
                raise InexistentFileError(f"Client certificate file {path} not found")

        try:
            x509.load_pem_x509_certificate(certificate_path.read_bytes())
        except ValueError as e:
            logger.error("Invalid client certificate %s: %s", certificate_path, e)
            raise BadFileFormatError(f"Invalid client certificate {certificate_path}")

        password = self.certificate_key_password
        try:
            serialization.load_pem_private_key(
                key_path.read_bytes(),
                password=password.encode("utf-8") if password else None,
            )
        except (ValueError, TypeError) as e:
            logger.error("Invalid client certificate key %s: %s", key_path, e)
            raise BadFileFormatError(f"Invalid client certificate key {key_path}")

    def __str__(self):
        return self.url
