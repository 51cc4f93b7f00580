"""Tests for request/response correlation against a simulated transport."""

from __future__ import annotations

import struct

import pytest

from xpc_mcp.errors import ArgumentError, ErrorKind, NoResponseError, ProtocolError
from xpc_mcp.protocol.commands import build_get_datarefs
from xpc_mcp.transport.correlator import Correlator, MAX_POLL_ATTEMPTS


class ScriptedTransport:
    """Returns queued read results in order, then times out forever."""

    def __init__(self, reads: list[bytes | None]) -> None:
        self.reads = list(reads)
        self.written: list[bytes] = []
        self.read_count = 0

    def write(self, data: bytes) -> int:
        self.written.append(data)
        return len(data)

    def read(self) -> bytes | None:
        self.read_count += 1
        if self.reads:
            return self.reads.pop(0)
        return None


def make_reply(groups: list[list[float]], count: int | None = None) -> bytes:
    body = bytearray([len(groups) if count is None else count])
    for values in groups:
        body.append(len(values))
        body += struct.pack(f"<{len(values)}f", *values)
    return b"RESP" + bytes([5 + len(body)]) + bytes(body)


def test_default_attempt_budget():
    assert MAX_POLL_ATTEMPTS == 40


def test_immediate_reply():
    transport = ScriptedTransport([make_reply([[3.14], [1.0, 2.0]])])
    result = Correlator(transport).request_datarefs(["a", "bb"])

    assert transport.written == [build_get_datarefs(["a", "bb"])]
    assert transport.read_count == 1
    assert result[0] == [pytest.approx(3.14)]
    assert result[1] == [1.0, 2.0]


def test_reply_on_last_attempt():
    """39 timeouts followed by a reply still succeeds."""
    transport = ScriptedTransport([None] * 39 + [make_reply([[7.0]])])
    result = Correlator(transport).request_datarefs(["a"])

    assert result == [[7.0]]
    assert transport.read_count == 40
    assert len(transport.written) == 1


def test_no_response_after_budget():
    """40 timeouts raise NoResponseError after exactly 40 reads."""
    transport = ScriptedTransport([None] * 40 + [make_reply([[7.0]])])

    with pytest.raises(NoResponseError) as excinfo:
        Correlator(transport).request_datarefs(["a"])

    assert excinfo.value.kind is ErrorKind.NO_RESPONSE
    assert transport.read_count == 40
    assert len(transport.written) == 1


def test_count_mismatch_is_not_retried():
    transport = ScriptedTransport([make_reply([[1.0]]), make_reply([[1.0], [2.0]])])

    with pytest.raises(ProtocolError):
        Correlator(transport).request_datarefs(["a", "b"])

    assert transport.read_count == 1


def test_short_reply_is_fatal():
    transport = ScriptedTransport([None, b"RESP\x05"])

    with pytest.raises(ProtocolError) as excinfo:
        Correlator(transport).request_datarefs(["a"])

    assert excinfo.value.kind is ErrorKind.PROTOCOL
    assert transport.read_count == 2


def test_custom_attempt_budget():
    transport = ScriptedTransport([])
    with pytest.raises(NoResponseError):
        Correlator(transport, max_attempts=3).request_datarefs(["a"])
    assert transport.read_count == 3


def test_invalid_attempt_budget():
    with pytest.raises(ArgumentError):
        Correlator(ScriptedTransport([]), max_attempts=0)


def test_bad_names_send_nothing():
    transport = ScriptedTransport([])
    with pytest.raises(ArgumentError):
        Correlator(transport).request_datarefs([])
    assert transport.written == []
    assert transport.read_count == 0
