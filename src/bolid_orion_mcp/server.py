"""MCP server entry point for Bolid Orion RS-485 buses.

Exposes discovery and address-change tools, plus catalog resources, via the
Model Context Protocol using the official Python MCP SDK with stdio
transport.
"""

from __future__ import annotations

import json
import logging
from concurrent.futures import TimeoutError as FutureTimeout
from typing import Any

from mcp.server.fastmcp import FastMCP

from .config import load_settings
from .errors import OrionError
from .models.device_types import device_type_catalog
from .models.link import describe
from .session import BusSession
from .transport.serial_connection import list_serial_ports

logger = logging.getLogger(__name__)

mcp = FastMCP(
    "bolid-orion",
    instructions="Discover and re-address Bolid Orion devices on an RS-485 bus",
)

# Global session state
_session: BusSession | None = None


def _get_session() -> BusSession:
    """Get the bus session, creating it from the environment on first use."""
    global _session
    if _session is None:
        config = load_settings()
        _session = BusSession(config.port, config.serial)
    return _session


# ─── CONNECTION TOOLS ─────────────────────────────────────────────────

@mcp.tool()
def list_ports() -> dict[str, Any]:
    """List serial ports visible to the host (USB/RS-485 adapters)."""
    ports = list_serial_ports()
    return {"ports": [p.to_dict() for p in ports], "count": len(ports)}


@mcp.tool()
def connect(port: str | None = None) -> dict[str, Any]:
    """Select the serial adapter used for bus operations.

    Args:
        port: Device path such as /dev/ttyUSB0 or COM3. When omitted the
            first adapter found is used.
    """
    global _session
    if _session is not None:
        if _session.is_scanning:
            return {"error": "A scan is running; stop it first", "port": _session.port}
        if _session.port == port:
            state = _session.link_state()
            return {"port": port, "link": state.to_dict(), "message": "Already connected"}
        _session.close()
    _session = BusSession(port, load_settings().serial)
    state = _session.link_state()
    return {"port": port, "link": state.to_dict(), "message": describe(state)}


@mcp.tool()
def disconnect() -> dict[str, bool]:
    """Stop any running scan and release the session."""
    global _session
    if _session is not None:
        _session.close()
        _session = None
    return {"disconnected": True}


@mcp.tool()
def link_status() -> dict[str, Any]:
    """Report whether the serial adapter is present and usable."""
    state = _get_session().link_state()
    return {"link": state.to_dict(), "message": describe(state)}


# ─── DISCOVERY TOOLS ─────────────────────────────────────────────────

@mcp.tool()
def scan_devices(wait: bool = True, timeout_s: float = 180.0) -> dict[str, Any]:
    """Sweep bus addresses 127, 1-126 and identify responding devices.

    Args:
        wait: Block until the sweep finishes (or the timeout expires).
        timeout_s: Maximum time to wait when ``wait`` is true.
    """
    session = _get_session()
    try:
        future = session.start_scan()
    except OrionError as e:
        return {"error": str(e)}

    if not wait:
        return {"scanning": True, "message": "Scan started"}

    try:
        outcome = future.result(timeout=timeout_s)
    except FutureTimeout:
        return {
            "scanning": True,
            "current_address": session.current_address,
            "message": "Scan still running; use scan_status to follow it",
        }
    except OrionError as e:
        return {"error": str(e)}
    return outcome.to_dict()


@mcp.tool()
def stop_scan() -> dict[str, Any]:
    """Stop the running scan before its next probe."""
    session = _get_session()
    session.stop_scan()
    return {"stopping": session.is_scanning}


@mcp.tool()
def scan_status() -> dict[str, Any]:
    """Progress of the current or last scan."""
    return _get_session().status()


@mcp.tool()
def list_devices() -> dict[str, Any]:
    """Devices discovered by the last scan."""
    devices = _get_session().devices
    return {"devices": [d.to_dict() for d in devices], "count": len(devices)}


# ─── CONFIGURATION TOOLS ─────────────────────────────────────────────

@mcp.tool()
def change_address(
    current_address: int,
    new_address: int,
    type_code: int | None = None,
    timeout_s: float = 10.0,
) -> dict[str, Any]:
    """Move a device to a new bus address.

    Args:
        current_address: Address the device answers on now (1-127).
        new_address: Address to assign (1-127, different from the current one).
        type_code: Device type, to pick the right entry when several
            discovered devices share ``current_address``.
        timeout_s: Maximum time to wait for the exchange.
    """
    session = _get_session()
    try:
        future = session.change_address(current_address, new_address, type_code)
        success = future.result(timeout=timeout_s)
    except OrionError as e:
        return {"error": str(e)}
    except FutureTimeout:
        return {"error": "Address change did not complete in time"}

    result: dict[str, Any] = {
        "success": success,
        "current_address": current_address,
        "new_address": new_address,
    }
    if not success:
        result["error"] = session.error_message or "Address change failed"
    return result


# ─── LOG TOOLS ───────────────────────────────────────────────────────

@mcp.tool()
def get_logs(limit: int = 100) -> dict[str, Any]:
    """Most recent exchange log lines.

    Args:
        limit: Maximum number of entries to return.
    """
    entries = _get_session().logs(limit)
    return {"logs": [e.to_dict() for e in entries], "count": len(entries)}


@mcp.tool()
def clear_logs() -> dict[str, bool]:
    """Discard the exchange log."""
    _get_session().clear_logs()
    return {"cleared": True}


# ─── MCP RESOURCES ───────────────────────────────────────────────────

@mcp.resource("orion://catalog/device-types")
def resource_device_types() -> str:
    """All known device type codes with product names."""
    types = device_type_catalog()
    return json.dumps({"device_types": types, "count": len(types)}, ensure_ascii=False)


@mcp.resource("orion://devices/list")
def resource_devices_list() -> str:
    """Devices discovered by the last scan."""
    devices = [d.to_dict() for d in _get_session().devices]
    return json.dumps({"devices": devices}, ensure_ascii=False)


# ─── ENTRY POINT ─────────────────────────────────────────────────────

def main():
    """Run the MCP server with stdio transport."""
    config = load_settings()
    logging.basicConfig(level=getattr(logging, config.log_level, logging.INFO))
    mcp.run(transport="stdio")


if __name__ == "__main__":
    main()
