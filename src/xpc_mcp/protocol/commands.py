"""Command tags and per-command frame builders.

Each builder validates its arguments and returns a complete datagram, or
raises :class:`~xpc_mcp.errors.ArgumentError` without building anything.
"""

from __future__ import annotations

import struct
from enum import Enum
from typing import Sequence

from ..errors import ArgumentError
from .fields import CONTROLS_LAYOUT, DATA_ROW_LAYOUT, POSITION_LAYOUT
from .framing import HEADER_SIZE, MAX_FRAME_SIZE, build_frame

MAX_DATAREFS = 255
MAX_NAME_BYTES = 255
MAX_VALUES = 255
MAX_PORT = 0xFFFF  # exclusive
PLAYER_AIRCRAFT = 0
MAX_DATA_ROWS = (MAX_FRAME_SIZE - HEADER_SIZE) // DATA_ROW_LAYOUT.size


class Command(str, Enum):
    """Command tags."""

    PAUSE = "SIMU"
    GET_DATAREFS = "GETD"
    SET_DATAREF = "DREF"
    SET_CONTROLS = "CTRL"
    SET_POSITION = "POSI"
    SET_DATA = "DATA"
    SET_CONNECTION = "CONN"


def build_command(command: Command, payload: bytes = b"") -> bytes:
    """Build a frame for a command."""
    return build_frame(command.value, payload)


def validate_port(port: int) -> int:
    """Check that ``port`` is in [0, 65535)."""
    if not 0 <= port < MAX_PORT:
        raise ArgumentError(
            f"Port must be non-negative and less than {MAX_PORT}, got {port}"
        )
    return port


def encode_name(name: str, label: str = "dataref") -> bytes:
    """UTF-8 encode a dataref name and check it fits a length byte."""
    if name is None:
        raise ArgumentError(f"{label} must be a string")
    encoded = name.encode("utf-8")
    if not encoded:
        raise ArgumentError(f"{label} is an empty string")
    if len(encoded) > MAX_NAME_BYTES:
        raise ArgumentError(
            f"{label} is {len(encoded)} bytes in UTF-8 "
            f"(limit {MAX_NAME_BYTES}). Is it a valid dataref?"
        )
    return encoded


def build_pause(pause: bool) -> bytes:
    """Build a SIMU command.

    Args:
        pause: True to pause the simulator, False to resume.
    """
    return build_command(Command.PAUSE, bytes([1 if pause else 0]))


def build_get_datarefs(names: Sequence[str]) -> bytes:
    """Build a GETD command requesting the values of several datarefs."""
    if not names:
        raise ArgumentError("At least one dataref must be requested")
    if len(names) > MAX_DATAREFS:
        raise ArgumentError(
            f"Can not request more than {MAX_DATAREFS} datarefs at once, "
            f"got {len(names)}"
        )

    payload = bytearray([len(names)])
    for i, name in enumerate(names):
        encoded = encode_name(name, f"dataref {i}")
        payload.append(len(encoded))
        payload += encoded
    return build_command(Command.GET_DATAREFS, bytes(payload))


def build_set_dataref(name: str, values: Sequence[float]) -> bytes:
    """Build a DREF command writing an array of floats to one dataref."""
    encoded = encode_name(name)
    if not values:
        raise ArgumentError("At least one value must be supplied")
    if len(values) > MAX_VALUES:
        raise ArgumentError(
            f"Can not send more than {MAX_VALUES} values, got {len(values)}"
        )

    try:
        packed = struct.pack(f"<{len(values)}f", *(float(v) for v in values))
    except (struct.error, OverflowError) as e:
        raise ArgumentError(f"Dataref value out of range: {e}") from e

    payload = bytes([len(encoded)]) + encoded + bytes([len(values)]) + packed
    return build_command(Command.SET_DATAREF, payload)


def build_set_controls(values: Sequence[float], aircraft: int = PLAYER_AIRCRAFT) -> bytes:
    """Build a CTRL command.

    Args:
        values: Zero to six values: lateral stick, longitudinal stick,
            rudder, throttle, gear, flaps. Missing floats are sent as -998;
            a missing gear byte is sent as 0.
        aircraft: Aircraft index. Only the player aircraft (0) is supported.
    """
    if values is None:
        raise ArgumentError("Control values must not be None")
    if aircraft < 0:
        raise ArgumentError(f"Aircraft must be non-negative, got {aircraft}")
    if aircraft != PLAYER_AIRCRAFT:
        raise ArgumentError("Non-player aircraft are not supported yet")

    payload = CONTROLS_LAYOUT.pack(values) + bytes([aircraft])
    return build_command(Command.SET_CONTROLS, payload)


def build_set_position(values: Sequence[float], aircraft: int = PLAYER_AIRCRAFT) -> bytes:
    """Build a POSI command.

    Args:
        values: Zero to seven values: latitude, longitude, altitude (m MSL),
            roll, pitch, true heading, gear. Missing values are sent as -998.
        aircraft: Aircraft index (0-255); 0 is the player aircraft.
    """
    if values is None:
        raise ArgumentError("Position values must not be None")
    if not 0 <= aircraft <= 255:
        raise ArgumentError(f"Aircraft must be 0-255, got {aircraft}")

    payload = bytes([aircraft]) + POSITION_LAYOUT.pack(values)
    return build_command(Command.SET_POSITION, payload)


def build_set_data(rows: Sequence[Sequence[float]]) -> bytes:
    """Build a DATA command from rows of exactly nine values.

    The first value of each row is truncated to a 32-bit integer row index.
    """
    if not rows:
        raise ArgumentError("Data must contain at least one row")
    if len(rows) > MAX_DATA_ROWS:
        raise ArgumentError(
            f"Can not send more than {MAX_DATA_ROWS} data rows, got {len(rows)}"
        )

    payload = bytearray()
    for i, row in enumerate(rows):
        if row is None or len(row) != len(DATA_ROW_LAYOUT):
            got = "None" if row is None else len(row)
            raise ArgumentError(
                f"Rows must contain exactly {len(DATA_ROW_LAYOUT)} items "
                f"(row {i} has {got})"
            )
        payload += DATA_ROW_LAYOUT.pack(row)
    return build_command(Command.SET_DATA, bytes(payload))


def build_set_connection(port: int) -> bytes:
    """Build a CONN command telling the host which port to reply to."""
    validate_port(port)
    return build_command(Command.SET_CONNECTION, port.to_bytes(2, "little"))
