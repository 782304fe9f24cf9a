"""Serial connection to a USB/RS-485 adapter.

Built on ``pyserial``. The bus engine only talks to the small ``Transport``
protocol below, so tests and other adapters can stand in for the port.
"""

from __future__ import annotations

import logging
import os
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Iterator, Protocol

import serial
from serial.tools import list_ports

from ..config import SerialSettings
from ..errors import TransportUnavailable
from ..models.link import Error, LinkState, NoLink, PermissionPending, Ready

logger = logging.getLogger(__name__)

_PARITIES = {
    "N": serial.PARITY_NONE,
    "E": serial.PARITY_EVEN,
    "O": serial.PARITY_ODD,
}
_STOPBITS = {1: serial.STOPBITS_ONE, 2: serial.STOPBITS_TWO}


class Transport(Protocol):
    """Byte transport consumed by the bus engine."""

    def open(self) -> None: ...

    def configure(
        self, baudrate: int, bytesize: int = 8, stopbits: int = 1, parity: str = "N"
    ) -> None: ...

    def set_control_lines(self, dtr: bool = True, rts: bool = True) -> None: ...

    def write(self, data: bytes, timeout_ms: int) -> None: ...

    def read(self, size: int, timeout_ms: int) -> bytes: ...

    def close(self) -> None: ...


@dataclass
class PortInfo:
    """A serial port as reported by the operating system."""

    device: str
    description: str = ""
    hwid: str = ""

    def to_dict(self) -> dict:
        return {"device": self.device, "description": self.description, "hwid": self.hwid}


class SerialTransport:
    """``Transport`` backed by a ``serial.Serial`` port.

    Usage::

        transport = SerialTransport("/dev/ttyUSB0")
        transport.open()
        transport.configure(9600)
        transport.write(frame, timeout_ms=100)
        data = transport.read(64, timeout_ms=120)
        transport.close()
    """

    def __init__(self, port: str) -> None:
        self._port_name = port
        self._serial: serial.Serial | None = None

    @property
    def port(self) -> str:
        return self._port_name

    @property
    def connected(self) -> bool:
        return self._serial is not None and self._serial.is_open

    def open(self) -> None:
        """Open the port.

        Raises:
            TransportUnavailable: If the port does not exist or cannot be opened.
        """
        if self.connected:
            return
        port = serial.Serial()
        port.port = self._port_name
        try:
            port.open()
        except serial.SerialException as e:
            raise TransportUnavailable(
                f"Could not open serial port {self._port_name}: {e}"
            ) from e
        self._serial = port
        logger.info("Opened %s", self._port_name)

    def configure(
        self, baudrate: int, bytesize: int = 8, stopbits: int = 1, parity: str = "N"
    ) -> None:
        port = self._require_open()
        port.baudrate = baudrate
        port.bytesize = bytesize
        port.stopbits = _STOPBITS[stopbits]
        port.parity = _PARITIES[parity]
        logger.debug(
            "Configured %s: %d %d%s%d", self._port_name, baudrate, bytesize, parity, stopbits
        )

    def set_control_lines(self, dtr: bool = True, rts: bool = True) -> None:
        port = self._require_open()
        port.dtr = dtr
        port.rts = rts

    def write(self, data: bytes, timeout_ms: int) -> None:
        """Write a whole frame.

        Raises:
            serial.SerialException: On a driver error or write timeout.
        """
        port = self._require_open()
        port.write_timeout = timeout_ms / 1000
        written = port.write(data)
        if written is not None and written != len(data):
            raise serial.SerialException(
                f"Short write: {written} of {len(data)} bytes"
            )
        port.flush()
        logger.debug("TX %s", data.hex(" ").upper())

    def read(self, size: int, timeout_ms: int) -> bytes:
        """Read up to ``size`` bytes.

        Waits at most ``timeout_ms`` for the first byte, then takes whatever
        else is already buffered. Returns ``b""`` on timeout.
        """
        port = self._require_open()
        port.timeout = timeout_ms / 1000
        first = port.read(1)
        if not first:
            return b""
        pending = min(port.in_waiting, size - 1)
        rest = port.read(pending) if pending > 0 else b""
        data = bytes(first + rest)
        logger.debug("RX %s", data.hex(" ").upper())
        return data

    def close(self) -> None:
        """Close the port. Safe to call more than once."""
        if self._serial is None:
            return
        try:
            self._serial.close()
        except serial.SerialException as e:
            logger.warning("Error closing %s: %s", self._port_name, e)
        finally:
            self._serial = None
            logger.info("Closed %s", self._port_name)

    def _require_open(self) -> serial.Serial:
        if self._serial is None or not self._serial.is_open:
            raise ConnectionError(f"Serial port {self._port_name} is not open")
        return self._serial


@contextmanager
def open_port(transport: Transport, settings: SerialSettings) -> Iterator[Transport]:
    """Open and configure ``transport`` for one bus operation.

    The port is closed on every exit path, including errors raised while
    configuring it.
    """
    transport.open()
    try:
        transport.configure(
            settings.baudrate,
            bytesize=settings.bytesize,
            stopbits=settings.stopbits,
            parity=settings.parity,
        )
        transport.set_control_lines(dtr=True, rts=True)
        yield transport
    finally:
        transport.close()


def list_serial_ports() -> list[PortInfo]:
    """Enumerate serial ports visible to the operating system."""
    return [
        PortInfo(device=p.device, description=p.description or "", hwid=p.hwid or "")
        for p in sorted(list_ports.comports(), key=lambda p: p.device)
    ]


def probe_link(port: str | None = None) -> LinkState:
    """Work out whether ``port`` (or the first adapter found) can be used.

    Args:
        port: Explicit device path. When omitted the first enumerated port
            is used.
    """
    try:
        ports = list_serial_ports()
    except OSError as e:
        return Error(reason=f"Port enumeration failed: {e}")

    if port is None:
        if not ports:
            return NoLink()
        info = ports[0]
    else:
        info = next((p for p in ports if p.device == port), None)
        if info is None:
            if not os.path.exists(port):
                return NoLink()
            info = PortInfo(device=port)

    if os.path.exists(info.device) and not os.access(info.device, os.R_OK | os.W_OK):
        return PermissionPending(port=info.device)
    return Ready(port=info.device, description=info.description)
