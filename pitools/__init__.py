"""Serial-link tools for a Raspberry Pi: NBN file transfer, version query and CRC32."""

__version__ = "1.18.0"