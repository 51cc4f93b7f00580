"""Parsing for dataref replies and for the request frames the client sends.

The client only ever receives one kind of message: the reply to a GETD
request. The request parsers are the inverse of the builders in
:mod:`.commands` and are what a host (or a test double of one) needs to read
client traffic.
"""

from __future__ import annotations

import struct
from dataclasses import dataclass

from ..errors import ProtocolError
from ..models.state import ControlState, DataRow, PositionState
from .commands import Command
from .fields import CONTROLS_LAYOUT, DATA_ROW_LAYOUT, POSITION_LAYOUT
from .framing import Frame

REPLY_COUNT_OFFSET = 5
MIN_REPLY_SIZE = REPLY_COUNT_OFFSET + 1
FLOAT_SIZE = 4


def parse_dataref_reply(data: bytes, expected_count: int) -> list[list[float]]:
    """Decode a dataref reply datagram.

    Layout: 5-byte header, a count byte at offset 5, then one group per
    requested dataref of ``(1-byte n, n x float32-LE)``.

    Raises:
        ProtocolError: If the datagram is too short, its count does not match
            ``expected_count``, or a value group runs past the end.
    """
    if len(data) < MIN_REPLY_SIZE:
        raise ProtocolError(
            f"Response too short ({len(data)} bytes, need {MIN_REPLY_SIZE})"
        )

    count = data[REPLY_COUNT_OFFSET]
    if count != expected_count:
        raise ProtocolError(
            f"Unexpected response length: got {count} values, "
            f"requested {expected_count}"
        )

    result: list[list[float]] = []
    cur = MIN_REPLY_SIZE
    for i in range(count):
        if cur >= len(data):
            raise ProtocolError(f"Response truncated before value group {i}")
        n = data[cur]
        cur += 1
        end = cur + n * FLOAT_SIZE
        if end > len(data):
            raise ProtocolError(
                f"Response truncated in value group {i} "
                f"({n} values need {n * FLOAT_SIZE} bytes)"
            )
        result.append(list(struct.unpack_from(f"<{n}f", data, cur)))
        cur = end
    return result


@dataclass
class DatarefWrite:
    """Parsed DREF request."""

    name: str
    values: list[float]


@dataclass
class ControlsMessage:
    """Parsed CTRL request."""

    controls: ControlState
    aircraft: int


@dataclass
class PositionMessage:
    """Parsed POSI request."""

    aircraft: int
    position: PositionState


def parse_pause(frame: Frame) -> bool | None:
    """Parse a SIMU request. Returns True for pause, False for resume."""
    if frame.tag != Command.PAUSE or len(frame.payload) < 1:
        return None
    return frame.payload[0] != 0


def parse_get_datarefs_request(frame: Frame) -> list[str] | None:
    """Parse a GETD request into the list of requested names."""
    if frame.tag != Command.GET_DATAREFS or len(frame.payload) < 1:
        return None

    payload = frame.payload
    names = []
    cur = 1
    for _ in range(payload[0]):
        if cur >= len(payload):
            return None
        size = payload[cur]
        cur += 1
        if cur + size > len(payload):
            return None
        try:
            names.append(payload[cur : cur + size].decode("utf-8"))
        except UnicodeDecodeError:
            return None
        cur += size
    return names


def parse_set_dataref(frame: Frame) -> DatarefWrite | None:
    """Parse a DREF request."""
    if frame.tag != Command.SET_DATAREF or len(frame.payload) < 1:
        return None

    payload = frame.payload
    name_size = payload[0]
    count_at = 1 + name_size
    if count_at >= len(payload):
        return None
    count = payload[count_at]
    if len(payload) < count_at + 1 + count * FLOAT_SIZE:
        return None

    try:
        name = payload[1:count_at].decode("utf-8")
    except UnicodeDecodeError:
        return None
    values = list(struct.unpack_from(f"<{count}f", payload, count_at + 1))
    return DatarefWrite(name=name, values=values)


def parse_controls(frame: Frame) -> ControlsMessage | None:
    """Parse a CTRL request. The aircraft byte follows the control vector."""
    if frame.tag != Command.SET_CONTROLS:
        return None
    if len(frame.payload) < CONTROLS_LAYOUT.size + 1:
        return None

    values = CONTROLS_LAYOUT.unpack(frame.payload[: CONTROLS_LAYOUT.size])
    return ControlsMessage(
        controls=ControlState.from_values(values),
        aircraft=frame.payload[CONTROLS_LAYOUT.size],
    )


def parse_position(frame: Frame) -> PositionMessage | None:
    """Parse a POSI request. The aircraft byte precedes the position vector."""
    if frame.tag != Command.SET_POSITION:
        return None
    if len(frame.payload) < 1 + POSITION_LAYOUT.size:
        return None

    values = POSITION_LAYOUT.unpack(frame.payload[1 : 1 + POSITION_LAYOUT.size])
    return PositionMessage(
        aircraft=frame.payload[0],
        position=PositionState.from_values(values),
    )


def parse_data(frame: Frame) -> list[DataRow] | None:
    """Parse a DATA request into its rows."""
    if frame.tag != Command.SET_DATA:
        return None

    size = DATA_ROW_LAYOUT.size
    if not frame.payload or len(frame.payload) % size:
        return None

    return [
        DataRow.from_values(DATA_ROW_LAYOUT.unpack(frame.payload[off : off + size]))
        for off in range(0, len(frame.payload), size)
    ]


def parse_connection(frame: Frame) -> int | None:
    """Parse a CONN request into the new receive port."""
    if frame.tag != Command.SET_CONNECTION or len(frame.payload) < 2:
        return None
    return int.from_bytes(frame.payload[:2], "little")


def parse_request(frame: Frame):
    """Auto-dispatch a frame to the matching request parser.

    Returns the parsed value, or the raw Frame if no parser matches or the
    payload is malformed.
    """
    parsers = {
        Command.PAUSE: parse_pause,
        Command.GET_DATAREFS: parse_get_datarefs_request,
        Command.SET_DATAREF: parse_set_dataref,
        Command.SET_CONTROLS: parse_controls,
        Command.SET_POSITION: parse_position,
        Command.SET_DATA: parse_data,
        Command.SET_CONNECTION: parse_connection,
    }
    try:
        parser = parsers.get(Command(frame.tag))
    except ValueError:
        return frame
    if parser:
        result = parser(frame)
        if result is not None:
            return result
    return frame
