"""
T-Rex client library exceptions.

This module defines all custom exceptions used throughout the library.
"""


class TRexError(Exception):
    """Base exception for T-Rex client errors"""
    pass


class TRexConnectionError(TRexError, ConnectionError):
    """Raised when the connection to the server cannot be established or is lost"""
    pass


class TRexSendError(TRexError):
    """Raised when a single packet could not be written to the connection"""
    pass


class TRexNotConnectedError(TRexError):
    """Raised when an operation is attempted on a session that is not connected"""
    pass


class TRexParseError(TRexError):
    """Raised when rule text is rejected by the rule parser"""
    pass


class TRexArgumentError(TRexError, ValueError):
    """Raised when a request is malformed before any packet is built"""
    pass


class TRexDecodeError(TRexError):
    """Raised when a single received frame cannot be decoded"""
    pass


class TRexConfigurationError(TRexError):
    """Raised when configuration is invalid"""
    pass
