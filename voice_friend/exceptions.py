"""
Error types raised by the response-resolution services.
"""


class VoiceFriendError(Exception):
    """Base class for errors raised inside the service."""


class ParseError(VoiceFriendError):
    """The conversation corpus could not be read or parsed. Fatal at startup."""


class BackendError(VoiceFriendError):
    """The generative backend failed (network, timeout, malformed response)."""
