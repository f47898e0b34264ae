"""
Wire-level transport implementation.

This module contains the lowest-level communication components:
- TRexTransport - Raw TCP communication with a T-Rex server
- Frame - One packet type byte plus payload, as carried on the wire
- Frame delimiting and connection management
"""

from .transport import TRexTransport, Frame, TransportConst

__all__ = [
    "TRexTransport",
    "Frame",
    "TransportConst",
]
