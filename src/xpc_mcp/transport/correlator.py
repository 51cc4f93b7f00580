"""Matching dataref replies to requests over lossy UDP.

A request is sent once. The connection is then polled a bounded number of
times; timeouts use up attempts but are otherwise ignored. The first
datagram that arrives is treated as the reply. A malformed reply is fatal
because retrying cannot fix a protocol mismatch.
"""

from __future__ import annotations

import logging
from typing import Sequence

from ..errors import ArgumentError, NoResponseError
from ..protocol.commands import build_get_datarefs
from ..protocol.parser import parse_dataref_reply

logger = logging.getLogger(__name__)

MAX_POLL_ATTEMPTS = 40


class Correlator:
    """Sends a GETD request and waits for its reply.

    ``connection`` is anything with ``write(bytes)`` and
    ``read() -> bytes | None``, normally a :class:`UDPConnection`.
    """

    def __init__(
        self,
        connection,
        max_attempts: int = MAX_POLL_ATTEMPTS,
    ) -> None:
        if max_attempts < 1:
            raise ArgumentError(f"max_attempts must be at least 1, got {max_attempts}")
        self._connection = connection
        self.max_attempts = max_attempts

    def request(self, frame: bytes, expected_count: int) -> list[list[float]]:
        """Send ``frame`` and return the decoded values of its reply.

        Args:
            frame: An encoded GETD frame.
            expected_count: Number of datarefs the frame asks for.

        Raises:
            ProtocolError: If the reply is malformed or its count differs.
            NoResponseError: If every poll attempt timed out.
            TransportError: If the connection fails.
        """
        self._connection.write(frame)

        for attempt in range(1, self.max_attempts + 1):
            data = self._connection.read()
            if data is None:
                logger.debug("No reply on attempt %d/%d", attempt, self.max_attempts)
                continue
            return parse_dataref_reply(data, expected_count)

        raise NoResponseError(
            f"No response received after {self.max_attempts} attempts"
        )

    def request_datarefs(self, names: Sequence[str]) -> list[list[float]]:
        """Build a GETD frame for ``names`` and return one value list per name."""
        frame = build_get_datarefs(names)
        return self.request(frame, len(names))
