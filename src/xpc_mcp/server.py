"""MCP server entry point for X-Plane Connect.

Exposes tools, resources, and prompts via the Model Context Protocol
using the official Python MCP SDK with stdio transport.
"""

from __future__ import annotations

import json
import logging
from typing import Any

from mcp.server.fastmcp import FastMCP

from .client import XPlaneConnect
from .errors import XPCError
from .models.state import ControlState, PositionState
from .protocol.commands import MAX_DATA_ROWS, Command
from .protocol.fields import CONTROLS_LAYOUT, DATA_ROW_LAYOUT, POSITION_LAYOUT, SENTINEL
from .transport.correlator import MAX_POLL_ATTEMPTS
from .transport.udp_connection import (
    DEFAULT_RECV_PORT,
    DEFAULT_TIMEOUT_MS,
    DEFAULT_XPLANE_HOST,
    DEFAULT_XPLANE_PORT,
)

logger = logging.getLogger(__name__)

mcp = FastMCP(
    "xplane-connect",
    instructions="Read and write X-Plane simulator state through the X-Plane Connect plugin",
)

# Global client state
_client: XPlaneConnect | None = None


def _get_client() -> XPlaneConnect:
    """Get the active client, raising if not connected."""
    if _client is None or not _client.connection.connected:
        raise RuntimeError(
            "Not connected to X-Plane. Use the 'connect' tool first."
        )
    return _client


def _error(e: XPCError) -> dict[str, Any]:
    return {"error": str(e), "kind": e.kind.value}


# ─── DATAREF CATALOG ─────────────────────────────────────────────────

COMMON_DATAREFS = {
    "sim/flightmodel/position/latitude": "Latitude (deg)",
    "sim/flightmodel/position/longitude": "Longitude (deg)",
    "sim/flightmodel/position/elevation": "Altitude above MSL (m)",
    "sim/flightmodel/position/phi": "Roll (deg)",
    "sim/flightmodel/position/theta": "Pitch (deg)",
    "sim/flightmodel/position/psi": "True heading (deg)",
    "sim/flightmodel/position/indicated_airspeed": "Indicated airspeed (kt)",
    "sim/flightmodel/position/vh_ind": "Vertical speed (m/s)",
    "sim/cockpit/switches/gear_handle_status": "Gear handle (0 up, 1 down)",
    "sim/flightmodel/controls/flaprqst": "Requested flap ratio (0-1)",
    "sim/flightmodel/engine/ENGN_thro": "Throttle ratio per engine",
    "sim/time/paused": "Simulator paused (0/1)",
}


# ─── CONNECTION TOOLS ─────────────────────────────────────────────────

@mcp.tool()
def connect(
    port: int = DEFAULT_RECV_PORT,
    xplane_host: str = DEFAULT_XPLANE_HOST,
    xplane_port: int = DEFAULT_XPLANE_PORT,
    timeout_ms: int = DEFAULT_TIMEOUT_MS,
) -> dict[str, Any]:
    """Bind the receive socket and point it at the X-Plane Connect plugin.

    Args:
        port: Local UDP port replies arrive on (default 49008).
        xplane_host: Host running X-Plane (default 127.0.0.1).
        xplane_port: Port the plugin listens on (default 49009).
        timeout_ms: Per-read timeout in milliseconds (default 100).
    """
    global _client
    if _client is not None and _client.connection.connected:
        return {
            "connected": True,
            "message": "Already connected",
            **_connection_summary(_client),
        }

    try:
        _client = XPlaneConnect(port, xplane_host, xplane_port, timeout_ms)
    except XPCError as e:
        return _error(e)

    return {"connected": True, **_connection_summary(_client)}


@mcp.tool()
def disconnect() -> dict[str, bool]:
    """Release the receive socket."""
    global _client
    if _client is None:
        return {"disconnected": True}
    _client.close()
    _client = None
    return {"disconnected": True}


@mcp.tool()
def set_connection(port: int) -> dict[str, Any]:
    """Ask the plugin to send replies to a different local port.

    Args:
        port: New local receive port (0-65534).
    """
    client = _get_client()
    try:
        client.set_conn(port)
    except XPCError as e:
        return _error(e)
    return {"recv_port": client.recv_port}


def _connection_summary(client: XPlaneConnect) -> dict[str, Any]:
    return {
        "recv_port": client.recv_port,
        "xplane_host": client.xplane_host,
        "xplane_port": client.xplane_port,
        "timeout_ms": client.connection.timeout_ms,
    }


# ─── SIMULATOR TOOLS ─────────────────────────────────────────────────

@mcp.tool()
def pause_sim(pause: bool) -> dict[str, Any]:
    """Pause or resume the simulator.

    Args:
        pause: True to pause, False to resume.
    """
    client = _get_client()
    try:
        client.pause_sim(pause)
    except XPCError as e:
        return _error(e)
    return {"paused": pause}


@mcp.tool()
def get_dataref(name: str) -> dict[str, Any]:
    """Read the current value of one dataref.

    Args:
        name: Dataref path, e.g. 'sim/flightmodel/position/elevation'.
    """
    client = _get_client()
    try:
        values = client.request_dref(name)
    except XPCError as e:
        return _error(e)
    return {"name": name, "values": values}


@mcp.tool()
def get_datarefs(names: list[str]) -> dict[str, Any]:
    """Read several datarefs in one request (1-255 names).

    Args:
        names: Dataref paths.
    """
    client = _get_client()
    try:
        results = client.request_drefs(names)
    except XPCError as e:
        return _error(e)
    return {
        "datarefs": [
            {"name": name, "values": values}
            for name, values in zip(names, results)
        ]
    }


@mcp.tool()
def set_dataref(name: str, values: list[float]) -> dict[str, Any]:
    """Write a dataref.

    Args:
        name: Dataref path.
        values: One or more floats; array datarefs take several.
    """
    client = _get_client()
    try:
        client.send_dref(name, values)
    except XPCError as e:
        return _error(e)
    return {"name": name, "values": values}


@mcp.tool()
def set_controls(values: list[float], aircraft: int = 0) -> dict[str, Any]:
    """Set control surfaces on the player aircraft.

    Args:
        values: Up to six values in order: lateral stick, longitudinal
                stick, rudder, throttle, gear (0/1), flaps. Omitted
                trailing values are left unchanged; -998 skips a value.
        aircraft: Aircraft index. Only 0 (player) is supported.
    """
    client = _get_client()
    try:
        controls = ControlState.from_values(values)
        client.send_ctrl(values, aircraft)
    except XPCError as e:
        return _error(e)
    return {"aircraft": aircraft, "controls": controls.to_dict()}


@mcp.tool()
def set_position(values: list[float], aircraft: int = 0) -> dict[str, Any]:
    """Move an aircraft.

    Args:
        values: Up to seven values in order: latitude, longitude, altitude
                (m MSL), roll, pitch, true heading, gear. Omitted trailing
                values are left unchanged; -998 skips a value.
        aircraft: Aircraft index (0-255); 0 is the player aircraft.
    """
    client = _get_client()
    try:
        position = PositionState.from_values(values)
        client.send_posi(values, aircraft)
    except XPCError as e:
        return _error(e)
    return {"aircraft": aircraft, "position": position.to_dict()}


@mcp.tool()
def send_data(rows: list[list[float]]) -> dict[str, Any]:
    """Send rows of the Data Output table.

    Args:
        rows: One to six rows of exactly nine values. The first value of
              each row is the row index.
    """
    client = _get_client()
    try:
        client.send_data(rows)
    except XPCError as e:
        return _error(e)
    return {"rows_sent": len(rows)}


# ─── MCP RESOURCES ───────────────────────────────────────────────────

@mcp.resource("xpc://connection/status")
def resource_connection_status() -> str:
    """Connection state and addressing."""
    if _client is None or not _client.connection.connected:
        return json.dumps({"connected": False})
    return json.dumps({"connected": True, **_connection_summary(_client)})


@mcp.resource("xpc://catalog/datarefs")
def resource_dataref_catalog() -> str:
    """Commonly used datarefs with descriptions."""
    datarefs = [{"name": name, "description": desc} for name, desc in COMMON_DATAREFS.items()]
    return json.dumps({"datarefs": datarefs, "count": len(datarefs)})


@mcp.resource("xpc://protocol/layouts")
def resource_layouts() -> str:
    """Field order and encoding of the control, position, and data vectors."""
    layouts = {}
    for layout in (CONTROLS_LAYOUT, POSITION_LAYOUT, DATA_ROW_LAYOUT):
        layouts[layout.name] = [
            {"name": f.name, "format": f.fmt, "default": f.default}
            for f in layout.fields
        ]
    return json.dumps({
        "layouts": layouts,
        "sentinel": SENTINEL,
        "commands": {c.name: c.value for c in Command},
        "max_data_rows": MAX_DATA_ROWS,
        "max_poll_attempts": MAX_POLL_ATTEMPTS,
    })


# ─── MCP PROMPTS ─────────────────────────────────────────────────────

@mcp.prompt()
def check_flight_state() -> str:
    """Guide the AI to read and summarize the aircraft's current state."""
    names = ", ".join(list(COMMON_DATAREFS)[:8])
    return f"""Read the aircraft state with the get_datarefs tool.
Request these datarefs in one call: {names}.

Summarize:
- Position (latitude, longitude, altitude in feet and meters)
- Attitude (roll, pitch, heading)
- Airspeed and vertical speed
- Gear position

If a call returns an error with kind "no_response", check that X-Plane is
running with the X-Plane Connect plugin and that connect used the right host."""


@mcp.prompt()
def reposition_aircraft(location: str) -> str:
    """Help move the player aircraft to a described location.

    Args:
        location: Airport, landmark, or coordinates.
    """
    return f"""Move the player aircraft to {location}.

1. Pause the simulator with pause_sim(true).
2. Work out latitude, longitude, and a sensible altitude in meters MSL.
3. Call set_position with [latitude, longitude, altitude, 0, 0, heading].
4. Read back sim/flightmodel/position/latitude and longitude to confirm.
5. Resume with pause_sim(false)."""


# ─── ENTRY POINT ─────────────────────────────────────────────────────

def main():
    """Run the MCP server with stdio transport."""
    logging.basicConfig(level=logging.INFO)
    mcp.run(transport="stdio")


if __name__ == "__main__":
    main()
