"""UDP connection to the X-Plane Connect plugin.

One socket is bound to a local receive port; every frame is sent as a
single datagram to the configured X-Plane host and port. Reads block for at
most the configured timeout and report a timeout as ``None``.
"""

from __future__ import annotations

import logging
import socket
from dataclasses import dataclass

from ..errors import ArgumentError, TransportError
from ..protocol.commands import validate_port
from ..protocol.framing import HEADER_SIZE, LENGTH_OFFSET, check_frame_size

logger = logging.getLogger(__name__)

DEFAULT_RECV_PORT = 49008
DEFAULT_XPLANE_HOST = "127.0.0.1"
DEFAULT_XPLANE_PORT = 49009
DEFAULT_TIMEOUT_MS = 100
RECV_BUFFER_SIZE = 2048


@dataclass
class EndpointInfo:
    """Where the connection receives from and sends to."""

    local_port: int
    xplane_host: str
    xplane_port: int
    timeout_ms: int


def resolve_host(host: str) -> str:
    """Resolve a hostname to an IPv4 address string."""
    try:
        return socket.gethostbyname(host)
    except (socket.gaierror, UnicodeError) as e:
        raise ArgumentError(f"Unknown X-Plane host {host!r}: {e}") from e


class UDPConnection:
    """Owns the UDP socket used to talk to X-Plane.

    Usage::

        conn = UDPConnection()
        conn.open()
        conn.write(frame_bytes)
        data = conn.read()
        conn.close()
    """

    def __init__(
        self,
        port: int = DEFAULT_RECV_PORT,
        xplane_host: str = DEFAULT_XPLANE_HOST,
        xplane_port: int = DEFAULT_XPLANE_PORT,
        timeout_ms: int = DEFAULT_TIMEOUT_MS,
    ) -> None:
        if timeout_ms <= 0:
            raise ArgumentError(f"Timeout must be positive, got {timeout_ms}")
        self._port = validate_port(port)
        self._xplane_port = validate_port(xplane_port)
        self._xplane_host = resolve_host(xplane_host)
        self._timeout_ms = timeout_ms
        self._socket: socket.socket | None = None

    @property
    def connected(self) -> bool:
        return self._socket is not None

    @property
    def local_port(self) -> int:
        """Port the socket is bound to (the real port once an ephemeral bind is open)."""
        if self._socket is not None:
            return self._socket.getsockname()[1]
        return self._port

    @property
    def xplane_host(self) -> str:
        return self._xplane_host

    @xplane_host.setter
    def xplane_host(self, host: str) -> None:
        self._xplane_host = resolve_host(host)

    @property
    def xplane_port(self) -> int:
        return self._xplane_port

    @xplane_port.setter
    def xplane_port(self, port: int) -> None:
        self._xplane_port = validate_port(port)

    @property
    def timeout_ms(self) -> int:
        return self._timeout_ms

    @property
    def endpoint_info(self) -> EndpointInfo:
        return EndpointInfo(
            local_port=self.local_port,
            xplane_host=self._xplane_host,
            xplane_port=self._xplane_port,
            timeout_ms=self._timeout_ms,
        )

    def open(self) -> EndpointInfo:
        """Bind the receive socket.

        Raises:
            TransportError: If the port cannot be bound.
        """
        if self._socket is not None:
            return self.endpoint_info

        sock = socket.socket(socket.AF_INET, socket.SOCK_DGRAM)
        try:
            sock.settimeout(self._timeout_ms / 1000.0)
            sock.bind(("", self._port))
        except OSError as e:
            sock.close()
            raise TransportError(
                f"Could not bind UDP port {self._port}: {e}"
            ) from e

        self._socket = sock
        logger.info(
            "Listening on UDP port %d, sending to %s:%d",
            self.local_port,
            self._xplane_host,
            self._xplane_port,
        )
        return self.endpoint_info

    def close(self) -> None:
        """Close the socket. Safe to call more than once."""
        if self._socket is None:
            return

        port = self.local_port
        try:
            self._socket.close()
        finally:
            self._socket = None
            logger.info("Closed UDP port %d", port)

    def rebind(self, port: int) -> EndpointInfo:
        """Close the current socket and bind a new one on ``port``.

        If the new bind fails the connection is left closed.
        """
        validate_port(port)
        logger.info("Rebinding receive socket from port %d to %d", self.local_port, port)
        self.close()
        self._port = port
        return self.open()

    def write(self, data: bytes) -> int:
        """Send one frame as a datagram.

        The length byte is overwritten with the actual frame size.

        Returns:
            Number of bytes sent.

        Raises:
            ArgumentError: If the frame is not 5-255 bytes.
            TransportError: If not connected or the send fails.
        """
        check_frame_size(len(data))
        if self._socket is None:
            raise TransportError("Not connected to X-Plane")

        frame = bytearray(data)
        frame[LENGTH_OFFSET] = len(frame)

        try:
            sent = self._socket.sendto(bytes(frame), (self._xplane_host, self._xplane_port))
        except OSError as e:
            raise TransportError(f"UDP send failed: {e}") from e

        logger.debug("Sent %s (%d bytes)", bytes(frame[:4]), sent)
        return sent

    def read(self) -> bytes | None:
        """Read one datagram.

        Returns:
            The datagram, trimmed to its declared length when that length is
            plausible, or ``None`` if the read timed out.

        Raises:
            TransportError: If not connected or the receive fails.
        """
        if self._socket is None:
            raise TransportError("Not connected to X-Plane")

        try:
            data, addr = self._socket.recvfrom(RECV_BUFFER_SIZE)
        except socket.timeout:
            return None
        except OSError as e:
            raise TransportError(f"UDP receive failed: {e}") from e

        logger.debug("Received %d bytes from %s:%d", len(data), addr[0], addr[1])
        if len(data) > LENGTH_OFFSET:
            declared = data[LENGTH_OFFSET]
            if HEADER_SIZE <= declared <= len(data):
                data = data[:declared]
        return data

    def __enter__(self) -> UDPConnection:
        self.open()
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()
