"""Client for the X-Plane Connect plugin.

Each public method maps to one protocol command. Arguments are validated
and the whole frame is built before anything is sent, so a bad argument
never results in a partial send.
"""

from __future__ import annotations

import logging
from numbers import Real
from typing import Sequence, Union

from .errors import ArgumentError
from .models.state import ControlState, DataRow, PositionState
from .protocol.commands import (
    PLAYER_AIRCRAFT,
    build_pause,
    build_set_connection,
    build_set_controls,
    build_set_data,
    build_set_dataref,
    build_set_position,
)
from .transport.correlator import Correlator, MAX_POLL_ATTEMPTS
from .transport.udp_connection import (
    DEFAULT_RECV_PORT,
    DEFAULT_TIMEOUT_MS,
    DEFAULT_XPLANE_HOST,
    DEFAULT_XPLANE_PORT,
    UDPConnection,
)

logger = logging.getLogger(__name__)

Values = Sequence[float]


class XPlaneConnect:
    """Talks to X-Plane through the X-Plane Connect plugin.

    The receive socket is bound on construction and released by
    :meth:`close` or on leaving a ``with`` block::

        with XPlaneConnect() as xpc:
            xpc.send_ctrl([0.0, 0.0, 0.0, 0.8])
            altitude = xpc.request_dref("sim/flightmodel/position/elevation")
    """

    def __init__(
        self,
        port: int = DEFAULT_RECV_PORT,
        xplane_host: str = DEFAULT_XPLANE_HOST,
        xplane_port: int = DEFAULT_XPLANE_PORT,
        timeout_ms: int = DEFAULT_TIMEOUT_MS,
        *,
        connection: UDPConnection | None = None,
        max_attempts: int = MAX_POLL_ATTEMPTS,
    ) -> None:
        if connection is None:
            connection = UDPConnection(port, xplane_host, xplane_port, timeout_ms)
        self._connection = connection
        self._correlator = Correlator(self._connection, max_attempts)
        self._connection.open()

    @property
    def connection(self) -> UDPConnection:
        return self._connection

    @property
    def recv_port(self) -> int:
        """Port on which replies from the plugin are received."""
        return self._connection.local_port

    @property
    def xplane_port(self) -> int:
        """Port the plugin listens on."""
        return self._connection.xplane_port

    @xplane_port.setter
    def xplane_port(self, port: int) -> None:
        self._connection.xplane_port = port

    @property
    def xplane_host(self) -> str:
        """Address of the machine running X-Plane."""
        return self._connection.xplane_host

    @xplane_host.setter
    def xplane_host(self, host: str) -> None:
        self._connection.xplane_host = host

    def close(self) -> None:
        """Release the receive socket."""
        self._connection.close()

    def __enter__(self) -> XPlaneConnect:
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    # ─── Commands ─────────────────────────────────────────────────────

    def pause_sim(self, pause: bool) -> None:
        """Pause (True) or resume (False) the simulator."""
        self._connection.write(build_pause(pause))

    def request_dref(self, name: str) -> list[float]:
        """Read a single dataref."""
        return self.request_drefs([name])[0]

    def request_drefs(self, names: Sequence[str]) -> list[list[float]]:
        """Read several datarefs in one round trip.

        Returns:
            One list of floats per requested name, in request order.

        Raises:
            ArgumentError: If no names, more than 255 names, or an empty or
                oversized name is given.
            ProtocolError: If the reply does not match the request.
            NoResponseError: If X-Plane did not answer.
        """
        if isinstance(names, str):
            raise ArgumentError("names must be a sequence of strings, not a string")
        return self._correlator.request_datarefs(names)

    def send_dref(self, name: str, values: Union[float, Values]) -> None:
        """Write one dataref. ``values`` may be a single number or an array."""
        if isinstance(values, Real):
            values = [values]
        self._connection.write(build_set_dataref(name, values))

    def send_ctrl(
        self,
        values: Union[Values, ControlState],
        aircraft: int = PLAYER_AIRCRAFT,
    ) -> None:
        """Set control surfaces.

        Args:
            values: Up to six values: lateral stick [-1, 1], longitudinal
                stick [-1, 1], rudder [-1, 1], throttle [-1, 1], gear
                (0 up, 1 down), flaps [0, 1]. Trailing values that are left
                out are not changed; use -998 to skip a value in the middle.
            aircraft: Only the player aircraft (0) is supported.
        """
        if isinstance(values, ControlState):
            values = values.to_values()
        self._connection.write(build_set_controls(values, aircraft))

    def send_posi(
        self,
        values: Union[Values, PositionState],
        aircraft: int = PLAYER_AIRCRAFT,
    ) -> None:
        """Set aircraft position.

        Args:
            values: Up to seven values: latitude, longitude, altitude
                (m MSL), roll, pitch, true heading, gear. Missing values are
                not changed.
            aircraft: Aircraft index 0-255; 0 is the player aircraft.
        """
        if isinstance(values, PositionState):
            values = values.to_values()
        self._connection.write(build_set_position(values, aircraft))

    def send_data(self, rows: Sequence[Union[Values, DataRow]]) -> None:
        """Send rows of the simulator's Data Output table (9 values each)."""
        if rows:
            rows = [r.to_values() if isinstance(r, DataRow) else r for r in rows]
        self._connection.write(build_set_data(rows))

    def set_conn(self, port: int) -> None:
        """Ask the plugin to reply on ``port`` and rebind to it."""
        frame = build_set_connection(port)
        self._connection.write(frame)
        self._connection.rebind(port)
        logger.info("Receive port changed to %d", port)
