"""Tests for the MCP tool handlers."""

from __future__ import annotations

import json
import sys
from unittest.mock import MagicMock, patch

import pytest

from xpc_mcp.errors import NoResponseError, TransportError


def _get_server_module():
    """Import server module with FastMCP mocked to avoid init issues."""
    mock_fastmcp_cls = MagicMock()
    mock_fastmcp_instance = MagicMock()
    # Make the @mcp.tool() decorator a no-op that returns the function unchanged
    mock_fastmcp_instance.tool.return_value = lambda fn: fn
    mock_fastmcp_instance.resource.return_value = lambda fn: fn
    mock_fastmcp_instance.prompt.return_value = lambda fn: fn
    mock_fastmcp_cls.return_value = mock_fastmcp_instance

    with patch("mcp.server.fastmcp.FastMCP", mock_fastmcp_cls):
        # Remove cached server module so it re-imports with our mock
        sys.modules.pop("xpc_mcp.server", None)
        import xpc_mcp.server as server_mod

    return server_mod


@pytest.fixture
def server():
    return _get_server_module()


def test_tools_require_connection(server):
    with pytest.raises(RuntimeError):
        server.pause_sim(True)


def test_get_datarefs_keeps_request_order(server):
    client = MagicMock()
    client.request_drefs.return_value = [[1.0], [2.0, 3.0], [1.5]]

    with patch.object(server, "_get_client", return_value=client):
        result = server.get_datarefs(["sim/a", "sim/b", "sim/a"])

    assert result == {
        "datarefs": [
            {"name": "sim/a", "values": [1.0]},
            {"name": "sim/b", "values": [2.0, 3.0]},
            {"name": "sim/a", "values": [1.5]},
        ]
    }


def test_errors_become_result_values(server):
    client = MagicMock()
    client.request_dref.side_effect = NoResponseError("No response received after 40 attempts")

    with patch.object(server, "_get_client", return_value=client):
        result = server.get_dataref("sim/a")

    assert result["kind"] == "no_response"
    assert "40 attempts" in result["error"]


def test_set_controls_reports_named_fields(server):
    client = MagicMock()

    with patch.object(server, "_get_client", return_value=client):
        result = server.set_controls([0.0, 0.1, 0.0, 0.9])

    client.send_ctrl.assert_called_once_with([0.0, 0.1, 0.0, 0.9], 0)
    assert result["controls"]["throttle"] == 0.9
    assert result["controls"]["flaps"] == -998.0


def test_set_controls_argument_error(server):
    client = MagicMock()

    with patch.object(server, "_get_client", return_value=client):
        result = server.set_controls([0.0] * 7)

    assert result["kind"] == "argument"
    client.send_ctrl.assert_not_called()


def test_set_position(server):
    client = MagicMock()

    with patch.object(server, "_get_client", return_value=client):
        result = server.set_position([10.0, 20.0], aircraft=0)

    client.send_posi.assert_called_once_with([10.0, 20.0], 0)
    assert result["position"]["latitude"] == 10.0


def test_send_data_and_set_dataref(server):
    client = MagicMock()

    with patch.object(server, "_get_client", return_value=client):
        assert server.send_data([[1.0] * 9]) == {"rows_sent": 1}
        assert server.set_dataref("sim/a", [1.5])["values"] == [1.5]

    client.send_data.assert_called_once_with([[1.0] * 9])
    client.send_dref.assert_called_once_with("sim/a", [1.5])


def test_set_connection_transport_error(server):
    client = MagicMock()
    client.set_conn.side_effect = TransportError("Could not bind UDP port 49010")

    with patch.object(server, "_get_client", return_value=client):
        result = server.set_connection(49010)

    assert result["kind"] == "transport"


def test_connect_and_disconnect(server):
    fake = MagicMock()
    fake.recv_port = 49008
    fake.xplane_host = "127.0.0.1"
    fake.xplane_port = 49009
    fake.connection.timeout_ms = 100

    with patch.object(server, "XPlaneConnect", return_value=fake) as cls:
        result = server.connect()
        again = server.connect()

    cls.assert_called_once_with(49008, "127.0.0.1", 49009, 100)
    assert result["connected"] is True
    assert result["recv_port"] == 49008
    assert again["message"] == "Already connected"

    assert server.disconnect() == {"disconnected": True}
    fake.close.assert_called_once()
    assert json.loads(server.resource_connection_status()) == {"connected": False}


def test_layout_resource(server):
    layouts = json.loads(server.resource_layouts())
    controls = layouts["layouts"]["controls"]
    assert [f["name"] for f in controls][4] == "gear"
    assert controls[4]["format"] == "B"
    assert layouts["commands"]["SET_CONTROLS"] == "CTRL"
    assert layouts["max_poll_attempts"] == 40


def test_dataref_catalog(server):
    catalog = json.loads(server.resource_dataref_catalog())
    assert catalog["count"] == len(catalog["datarefs"])
