"""Tests for the pyserial transport and adapter probing."""

from unittest.mock import MagicMock, patch

import pytest
import serial

from bolid_orion_mcp.config import SerialSettings
from bolid_orion_mcp.errors import TransportUnavailable
from bolid_orion_mcp.models.link import NoLink, PermissionPending, Ready
from bolid_orion_mcp.transport.serial_connection import (
    SerialTransport,
    list_serial_ports,
    open_port,
    probe_link,
)

from fakes import FakeTransport

MODULE = "bolid_orion_mcp.transport.serial_connection"


def _opened_transport():
    port = MagicMock()
    port.is_open = True
    with patch("serial.Serial", return_value=port):
        transport = SerialTransport("/dev/ttyUSB0")
        transport.open()
    return transport, port


def test_open_failure_is_transport_unavailable():
    port = MagicMock()
    port.open.side_effect = serial.SerialException("No such file")
    with patch("serial.Serial", return_value=port):
        with pytest.raises(TransportUnavailable, match="/dev/ttyUSB0"):
            SerialTransport("/dev/ttyUSB0").open()


def test_configure_sets_line_parameters():
    transport, port = _opened_transport()
    transport.configure(9600, bytesize=8, stopbits=1, parity="N")
    assert port.baudrate == 9600
    assert port.bytesize == 8
    assert port.stopbits == serial.STOPBITS_ONE
    assert port.parity == serial.PARITY_NONE


def test_control_lines():
    transport, port = _opened_transport()
    transport.set_control_lines(dtr=True, rts=False)
    assert port.dtr is True
    assert port.rts is False


def test_read_takes_buffered_bytes():
    transport, port = _opened_transport()
    port.read.side_effect = [b"\x05", b"\x07\x00"]
    port.in_waiting = 2
    assert transport.read(64, 120) == b"\x05\x07\x00"
    assert port.timeout == pytest.approx(0.12)


def test_read_timeout_returns_empty():
    transport, port = _opened_transport()
    port.read.return_value = b""
    assert transport.read(64, 120) == b""


def test_read_bounded_by_size():
    transport, port = _opened_transport()
    port.read.side_effect = [b"\x05", b"\x07\x00\x01"]
    port.in_waiting = 40
    transport.read(4, 120)
    port.read.assert_called_with(3)


def test_write_sets_timeout():
    transport, port = _opened_transport()
    port.write.return_value = 7
    transport.write(b"\x05\x06\x00\x0D\x00\x00\x6B", 100)
    assert port.write_timeout == pytest.approx(0.1)
    port.flush.assert_called_once()


def test_short_write_raises():
    transport, port = _opened_transport()
    port.write.return_value = 3
    with pytest.raises(serial.SerialException):
        transport.write(b"\x05\x06\x00\x0D\x00\x00\x6B", 100)


def test_not_open():
    transport = SerialTransport("/dev/ttyUSB0")
    with pytest.raises(ConnectionError):
        transport.read(64, 120)


def test_close_idempotent():
    transport, port = _opened_transport()
    transport.close()
    transport.close()
    port.close.assert_called_once()
    assert not transport.connected


def test_open_port_releases_on_error():
    class Broken(FakeTransport):
        def configure(self, *args, **kwargs):
            raise OSError("unsupported baud rate")

    transport = Broken()
    with pytest.raises(OSError):
        with open_port(transport, SerialSettings()):
            pass
    assert transport.close_count == 1


def _port(device, description=""):
    return MagicMock(device=device, description=description, hwid="USB VID:PID=10C4:EA60")


def test_list_serial_ports_sorted():
    with patch(f"{MODULE}.list_ports.comports",
               return_value=[_port("/dev/ttyUSB1"), _port("/dev/ttyUSB0")]):
        assert [p.device for p in list_serial_ports()] == ["/dev/ttyUSB0", "/dev/ttyUSB1"]


def test_probe_no_adapter():
    with patch(f"{MODULE}.list_ports.comports", return_value=[]):
        assert probe_link() == NoLink()


def test_probe_ready():
    with patch(f"{MODULE}.list_ports.comports", return_value=[_port("/dev/ttyUSB0", "CP2102")]), \
            patch(f"{MODULE}.os.path.exists", return_value=True), \
            patch(f"{MODULE}.os.access", return_value=True):
        assert probe_link() == Ready(port="/dev/ttyUSB0", description="CP2102")


def test_probe_permission_pending():
    with patch(f"{MODULE}.list_ports.comports", return_value=[_port("/dev/ttyUSB0")]), \
            patch(f"{MODULE}.os.path.exists", return_value=True), \
            patch(f"{MODULE}.os.access", return_value=False):
        assert probe_link("/dev/ttyUSB0") == PermissionPending(port="/dev/ttyUSB0")


def test_probe_missing_configured_port():
    with patch(f"{MODULE}.list_ports.comports", return_value=[_port("/dev/ttyUSB0")]), \
            patch(f"{MODULE}.os.path.exists", return_value=False):
        assert probe_link("/dev/ttyUSB9") == NoLink()
