"""
Main entry point for the DICOM configuration server.
"""
import argparse
import logging
import sys

from .configuration import ServerConfiguration
from .errors import ConfigurationError
from .server import create_dicom_config_server


def main():
    parser = argparse.ArgumentParser(description="DICOM server configuration")
    parser.add_argument("config_path", nargs="?", default=None,
                        help="Configuration file, or directory of .json configuration files")
    parser.add_argument("--transport", help="MCP transport type ('sse' or 'stdio')", default='stdio')
    parser.add_argument("--format", action="store_true",
                        help="Print the merged configuration and exit")
    parser.add_argument("--verbose", action="store_true", help="Enable debug logging")

    args = parser.parse_args()

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        stream=sys.stderr,
    )

    try:
        if args.format:
            print(ServerConfiguration.read(args.config_path).format(), end="")
            return 0

        mcp = create_dicom_config_server(args.config_path)
    except ConfigurationError as e:
        logging.getLogger("dicom_config").error("Cannot load the configuration: %s", e)
        return 1

    mcp.run(args.transport)
    return 0


if __name__ == "__main__":
    sys.exit(main())
