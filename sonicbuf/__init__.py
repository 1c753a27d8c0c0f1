"""Byte buffers and codec connections for networking code."""

__version__ = "0.1.0"
__all__ = ["bip_buffer", "byte_buffer", "codec"]