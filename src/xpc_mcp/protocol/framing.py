"""Frame builder and parser for X-Plane Connect UDP datagrams.

Frame layout::

    +-------------+--------+---------------------+
    | Tag         | Length | Payload             |
    | 4 bytes     | 1 byte | 0-250 bytes         |
    +-------------+--------+---------------------+

- Tag: four ASCII characters naming the command (``CTRL``, ``GETD``, ...)
- Length: total frame length including the 5-byte header
- Frames are never split across datagrams, so a frame is at most 255 bytes
"""

from __future__ import annotations

from dataclasses import dataclass

from ..errors import ArgumentError

TAG_SIZE = 4
HEADER_SIZE = 5
LENGTH_OFFSET = 4
MIN_FRAME_SIZE = HEADER_SIZE
MAX_FRAME_SIZE = 255
MAX_PAYLOAD_SIZE = MAX_FRAME_SIZE - HEADER_SIZE


@dataclass
class Frame:
    """A parsed protocol frame."""

    tag: str
    payload: bytes

    @property
    def length(self) -> int:
        return HEADER_SIZE + len(self.payload)

    def __repr__(self) -> str:
        return (
            f"Frame(tag={self.tag!r}, length={self.length}, "
            f"payload={self.payload.hex(' ') if self.payload else '(empty)'})"
        )


def check_frame_size(size: int) -> None:
    """Raise :class:`ArgumentError` unless ``size`` fits one frame."""
    if not MIN_FRAME_SIZE <= size <= MAX_FRAME_SIZE:
        raise ArgumentError(
            f"Frame must be {MIN_FRAME_SIZE}-{MAX_FRAME_SIZE} bytes, got {size}"
        )


def build_frame(tag: str, payload: bytes = b"") -> bytes:
    """Build a single datagram containing one protocol frame.

    Args:
        tag: Four-character ASCII command tag.
        payload: Command-specific payload bytes.

    Returns:
        Header plus payload, with the length byte set to the total size.

    Raises:
        ArgumentError: If the tag is not 4 ASCII bytes or the frame would
            exceed 255 bytes.
    """
    tag_bytes = tag.encode("ascii")
    if len(tag_bytes) != TAG_SIZE:
        raise ArgumentError(f"Tag must be {TAG_SIZE} ASCII bytes, got {tag!r}")

    size = HEADER_SIZE + len(payload)
    check_frame_size(size)
    return tag_bytes + bytes([size]) + payload


def parse_frame(data: bytes) -> Frame | None:
    """Parse a received datagram into a Frame.

    The length byte is only used as a sanity check: if it is shorter than
    the datagram, trailing bytes are dropped.

    Returns:
        A ``Frame``, or ``None`` if the datagram is too short, the tag is not
        ASCII, or the declared length is impossible.
    """
    if len(data) < HEADER_SIZE:
        return None

    try:
        tag = data[:TAG_SIZE].decode("ascii")
    except UnicodeDecodeError:
        return None

    declared = data[LENGTH_OFFSET]
    if declared < HEADER_SIZE or declared > len(data):
        return None

    return Frame(tag=tag, payload=bytes(data[HEADER_SIZE:declared]))
