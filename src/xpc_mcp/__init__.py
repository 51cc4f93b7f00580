"""Client for the X-Plane Connect UDP protocol, with an MCP server front end."""

from .client import XPlaneConnect
from .errors import (
    ErrorKind,
    XPCError,
    ArgumentError,
    TransportError,
    ProtocolError,
    NoResponseError,
)

__version__ = "0.1.0"
