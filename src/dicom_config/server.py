"""
MCP server exposing the configuration of the DICOM server.
"""

import logging
from pathlib import Path
from typing import Any, Dict, Optional, Union

from mcp.server.fastmcp import FastMCP

from .configuration import ServerConfiguration
from .modality import ModalityManufacturer, RemoteModalityParameters
from .peer import WebServiceParameters

logger = logging.getLogger("dicom_config")


def create_dicom_config_server(config_path: Optional[Union[str, Path]] = None,
                               name: str = "DICOM configuration") -> FastMCP:
    """Create an MCP server managing the modalities and peers of a configuration."""
    config = ServerConfiguration.read(config_path)

    logger.info(f"Configuration loaded: {len(config.modalities)} modalities, {len(config.peers)} peers")

    mcp = FastMCP(name)

    @mcp.tool()
    def list_dicom_modalities() -> Dict[str, Any]:
        """List the DICOM modalities known to the server.

        Returns:
            Dictionary mapping each symbolic name to "AET@host:port"
        """
        return {
            "modalities": {name: str(modality) for name, modality in config.modalities.items()},
            "status": "success"
        }

    @mcp.tool()
    def get_dicom_modality(name: str) -> Dict[str, Any]:
        """Get the connection parameters of a DICOM modality.

        Args:
            name: Symbolic name of the modality
        """
        modality = config.get_modality_using_symbolic_name(name)
        return modality.to_config(force_advanced_format=True)

    @mcp.tool()
    def update_dicom_modality(name: str, aet: str, host: str, port: int,
                              manufacturer: str = "Generic") -> Dict[str, Any]:
        """Add or replace a DICOM modality.

        Args:
            name: Symbolic name (alphanumeric and dash characters only)
            aet: Application entity title of the modality
            host: Hostname or IP address of the modality
            port: DICOM port of the modality
            manufacturer: Vendor-specific behavior, "Generic" by default
        """
        modality = RemoteModalityParameters.from_config([aet, host, port, manufacturer])
        config.update_modality(name, modality)
        return {
            "success": True,
            "message": f"Modality {name} set to {modality}"
        }

    @mcp.tool()
    def remove_dicom_modality(name: str) -> Dict[str, Any]:
        """Remove a DICOM modality. Unknown names are ignored."""
        config.remove_modality(name)
        return {
            "success": True,
            "message": f"Modality {name} removed"
        }

    @mcp.tool()
    def check_ae_title(aet: str, host: str) -> Dict[str, Any]:
        """Check whether a remote AE title, calling from a host, is known to the server."""
        return {
            "aet": aet,
            "host": host,
            "known": config.is_known_ae_title(aet, host)
        }

    @mcp.tool()
    def list_orthanc_peers() -> Dict[str, Any]:
        """List the HTTP peers known to the server, without their credentials."""
        return {
            "peers": {
                name: {
                    "url": peer.url,
                    "has_credentials": peer.username is not None,
                    "has_client_certificate": bool(peer.certificate_file),
                }
                for name, peer in config.peers.items()
            },
            "status": "success"
        }

    @mcp.tool()
    def update_orthanc_peer(name: str, url: str, username: Optional[str] = None,
                            password: Optional[str] = None) -> Dict[str, Any]:
        """Add or replace an HTTP peer.

        Args:
            name: Symbolic name (alphanumeric and dash characters only)
            url: Base URL of the peer (http:// or https://)
            username: Optional HTTP username
            password: Optional HTTP password
        """
        value = [url] if username is None else [url, username, password or ""]
        peer = WebServiceParameters.from_config(value)
        config.update_peer(name, peer)
        return {
            "success": True,
            "message": f"Peer {name} set to {peer.url}"
        }

    @mcp.tool()
    def remove_orthanc_peer(name: str) -> Dict[str, Any]:
        """Remove an HTTP peer. Unknown names are ignored."""
        config.remove_peer(name)
        return {
            "success": True,
            "message": f"Peer {name} removed"
        }

    @mcp.tool()
    def list_manufacturers() -> Dict[str, Any]:
        """List the manufacturers accepted for DICOM modalities."""
        return {"manufacturers": [m.value for m in ModalityManufacturer]}

    @mcp.tool()
    def show_configuration() -> str:
        """Return the configuration currently in memory, as JSON, without passwords."""
        return config.format(include_passwords=False)

    @mcp.tool()
    def configuration_changed() -> Dict[str, Any]:
        """Tell whether the configuration files changed since the server started."""
        return {"changed": config.has_changed()}

    return mcp
