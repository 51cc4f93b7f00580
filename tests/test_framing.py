"""Tests for frame building and parsing."""

import pytest

from xpc_mcp.errors import ArgumentError, ErrorKind
from xpc_mcp.protocol.framing import (
    build_frame,
    parse_frame,
    check_frame_size,
    Frame,
    HEADER_SIZE,
    MAX_FRAME_SIZE,
    MAX_PAYLOAD_SIZE,
)


def test_build_frame_header():
    """Tag occupies bytes 0-3 and the length byte is at offset 4."""
    frame = build_frame("SIMU", b"\x01")
    assert frame[:4] == b"SIMU"
    assert frame[4] == 6
    assert frame[5] == 0x01


def test_build_frame_empty_payload():
    """A bare header is a valid 5-byte frame."""
    frame = build_frame("CONN")
    assert len(frame) == HEADER_SIZE
    assert frame[4] == HEADER_SIZE


def test_build_frame_max_size():
    """A 250-byte payload produces exactly a 255-byte frame."""
    frame = build_frame("DATA", bytes(MAX_PAYLOAD_SIZE))
    assert len(frame) == MAX_FRAME_SIZE
    assert frame[4] == 255


def test_build_frame_too_large():
    """Frames over 255 bytes cannot be built."""
    with pytest.raises(ArgumentError) as excinfo:
        build_frame("DATA", bytes(MAX_PAYLOAD_SIZE + 1))
    assert excinfo.value.kind is ErrorKind.ARGUMENT


def test_build_frame_bad_tag():
    """Tags must be exactly four ASCII characters."""
    with pytest.raises(ArgumentError):
        build_frame("SIM")
    with pytest.raises(ArgumentError):
        build_frame("SIMUL")


def test_check_frame_size_bounds():
    check_frame_size(5)
    check_frame_size(255)
    with pytest.raises(ArgumentError):
        check_frame_size(4)
    with pytest.raises(ArgumentError):
        check_frame_size(256)


def test_roundtrip_parse():
    """Build a frame and parse it back."""
    frame = build_frame("DREF", b"\x03abc")
    parsed = parse_frame(frame)

    assert parsed is not None
    assert parsed.tag == "DREF"
    assert parsed.payload == b"\x03abc"
    assert parsed.length == len(frame)


def test_parse_too_short():
    """Datagrams shorter than the header are rejected."""
    assert parse_frame(b"RESP") is None


def test_parse_trims_to_declared_length():
    """Bytes past the declared length are ignored."""
    data = b"RESP\x07\x01\x02\xff\xff"
    parsed = parse_frame(data)
    assert parsed is not None
    assert parsed.payload == b"\x01\x02"


def test_parse_impossible_length():
    """A length byte larger than the datagram or smaller than the header is invalid."""
    assert parse_frame(b"RESP\x09\x01") is None
    assert parse_frame(b"RESP\x02\x01") is None


def test_parse_non_ascii_tag():
    assert parse_frame(b"\xff\xfe\xfd\xfc\x05") is None


def test_frame_repr():
    """Frame repr should be readable."""
    r = repr(Frame(tag="SIMU", payload=b"\x01"))
    assert "SIMU" in r
    assert "length=6" in r
