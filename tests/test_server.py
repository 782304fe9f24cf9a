"""Tests for the MCP tool surface."""

from __future__ import annotations

import json
import sys
from unittest.mock import MagicMock, patch

from bolid_orion_mcp.models.link import NoLink, Ready
from bolid_orion_mcp.session import BusSession

from fakes import FakeBus, FakeTransport


def _get_server_module():
    """Import server module with FastMCP mocked to avoid init issues."""
    mock_fastmcp_cls = MagicMock()
    mock_fastmcp_instance = MagicMock()
    # Make the @mcp.tool() decorator a no-op that returns the function unchanged
    mock_fastmcp_instance.tool.return_value = lambda fn: fn
    mock_fastmcp_instance.resource.return_value = lambda fn: fn
    mock_fastmcp_cls.return_value = mock_fastmcp_instance

    with patch("mcp.server.fastmcp.FastMCP", mock_fastmcp_cls):
        # Remove cached server module so it re-imports with our mock
        sys.modules.pop("bolid_orion_mcp.server", None)
        import bolid_orion_mcp.server as server_mod

    return server_mod


def _fake_session(transport, link=None):
    link = link or Ready(port="/dev/ttyFAKE0")
    return BusSession(
        "/dev/ttyFAKE0",
        transport_factory=lambda port: transport,
        link_probe=lambda port: link,
    )


def test_scan_devices_returns_found_devices():
    server = _get_server_module()
    session = _fake_session(FakeTransport(FakeBus({5: (1, 3)})))

    with patch.object(server, "_get_session", return_value=session):
        result = server.scan_devices(wait=True, timeout_s=10)
        listed = server.list_devices()

    assert result["state"] == "completed"
    assert result["device_count"] == 1
    assert result["devices"][0]["type_name"] == "Сигнал-20"
    assert listed["count"] == 1
    session.close()


def test_scan_devices_without_adapter():
    server = _get_server_module()
    session = _fake_session(FakeTransport(), NoLink())

    with patch.object(server, "_get_session", return_value=session):
        result = server.scan_devices()

    assert "error" in result
    session.close()


def test_change_address_tool():
    server = _get_server_module()
    session = _fake_session(FakeTransport(FakeBus({5: (1, 3)})))

    with patch.object(server, "_get_session", return_value=session):
        server.scan_devices(wait=True, timeout_s=10)
        result = server.change_address(5, 10)
        devices = server.list_devices()["devices"]

    assert result == {"success": True, "current_address": 5, "new_address": 10}
    assert devices[0]["address"] == 10
    session.close()


def test_change_address_tool_rejects_same_address():
    server = _get_server_module()
    session = _fake_session(FakeTransport())

    with patch.object(server, "_get_session", return_value=session):
        result = server.change_address(7, 7)

    assert "error" in result
    session.close()


def test_change_address_tool_reports_failure():
    server = _get_server_module()
    session = _fake_session(FakeTransport())

    with patch.object(server, "_get_session", return_value=session):
        result = server.change_address(5, 10)

    assert result["success"] is False
    assert result["error"] == "Address change failed"
    session.close()


def test_logs_tools():
    server = _get_server_module()
    session = _fake_session(FakeTransport())
    session.add_log("hello")

    with patch.object(server, "_get_session", return_value=session):
        logs = server.get_logs(limit=10)
        server.clear_logs()
        after = server.get_logs()

    assert logs["logs"][-1]["message"] == "hello"
    assert after["count"] == 0
    session.close()


def test_link_status_tool():
    server = _get_server_module()
    session = _fake_session(FakeTransport(), Ready(port="/dev/ttyFAKE0", description="CP2102"))

    with patch.object(server, "_get_session", return_value=session):
        result = server.link_status()

    assert result["link"] == {"state": "ready", "port": "/dev/ttyFAKE0", "description": "CP2102"}
    assert "CP2102" in result["message"]
    session.close()


def test_device_types_resource():
    server = _get_server_module()
    data = json.loads(server.resource_device_types())
    assert data["count"] == len(data["device_types"])
    assert {"code": 1, "name": "Сигнал-20"} in data["device_types"]
