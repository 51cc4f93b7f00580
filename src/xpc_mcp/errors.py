"""Error kinds raised by the codec, transport, and client.

Every error carries an :class:`ErrorKind` so callers can branch on
``err.kind`` instead of matching exception classes.
"""

from __future__ import annotations

from enum import Enum


class ErrorKind(str, Enum):
    """Broad category of a client failure."""

    ARGUMENT = "argument"
    TRANSPORT = "transport"
    PROTOCOL = "protocol"
    NO_RESPONSE = "no_response"


class XPCError(Exception):
    """Base class for all client errors."""

    kind: ErrorKind


class ArgumentError(XPCError, ValueError):
    """Caller-supplied value out of range. Raised before any I/O."""

    kind = ErrorKind.ARGUMENT


class TransportError(XPCError, ConnectionError):
    """The UDP socket could not send, receive, or bind."""

    kind = ErrorKind.TRANSPORT


class ProtocolError(XPCError):
    """A reply was malformed or did not match the request."""

    kind = ErrorKind.PROTOCOL


class NoResponseError(XPCError, TimeoutError):
    """Every poll attempt timed out without a reply."""

    kind = ErrorKind.NO_RESPONSE
