"""Bus discovery sweep.

Probes every bus address with a type/version request and reports what
answers. Address 127, the factory default, goes first, then 1-126 in
ascending order. Each address is probed twice to absorb one lost response;
a device that answers both probes is reported once.
"""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass, field
from enum import Enum

from ..config import SerialSettings
from ..errors import ExchangeFailure
from ..models.device import DiscoveredDevice
from ..protocol.commands import build_type_request
from ..protocol.framing import BROADCAST_ADDRESS, MAX_ADDRESS, MIN_ADDRESS, to_hex
from ..protocol.parser import parse_partial_response, parse_type_response
from ..transport.reader import read_frame
from ..transport.serial_connection import Transport, open_port
from ..utils.crc import Checksum, crc8

logger = logging.getLogger(__name__)

SCAN_ORDER: tuple[int, ...] = (BROADCAST_ADDRESS,) + tuple(
    a for a in range(MIN_ADDRESS, MAX_ADDRESS + 1) if a != BROADCAST_ADDRESS
)
PROBES_PER_ADDRESS = 2


class ScanState(Enum):
    IDLE = "idle"
    SCANNING = "scanning"
    STOPPED = "stopped"
    COMPLETED = "completed"
    FAILED = "failed"


class ScanListener:
    """Receives scan progress. Override the hooks you need."""

    def on_address_probe(self, address: int) -> None:
        pass

    def on_device_found(self, device: DiscoveredDevice) -> None:
        pass

    def on_log(self, message: str, raw_hex: str = "") -> None:
        pass


@dataclass
class SendResult:
    """Outcome of writing one request frame."""

    ok: bool
    error: str = ""


@dataclass
class ScanOutcome:
    """Final state of a sweep and the devices it found."""

    state: ScanState
    devices: list[DiscoveredDevice] = field(default_factory=list)
    error: str = ""

    def raise_for_failure(self) -> None:
        if self.state is ScanState.FAILED:
            raise ExchangeFailure(self.error)

    def to_dict(self) -> dict:
        return {
            "state": self.state.value,
            "device_count": len(self.devices),
            "devices": [d.to_dict() for d in self.devices],
            "error": self.error,
        }


class ScanOrchestrator:
    """Runs one discovery sweep over a transport.

    Usage::

        cancel = threading.Event()
        scan = ScanOrchestrator(SerialTransport("/dev/ttyUSB0"), listener, cancel=cancel)
        outcome = scan.run()   # cancel.set() from another thread stops it
    """

    def __init__(
        self,
        transport: Transport,
        listener: ScanListener | None = None,
        settings: SerialSettings | None = None,
        checksum: Checksum = crc8,
        cancel: threading.Event | None = None,
        addresses: tuple[int, ...] = SCAN_ORDER,
        probes_per_address: int = PROBES_PER_ADDRESS,
    ) -> None:
        self._transport = transport
        self._listener = listener or ScanListener()
        self._settings = settings or SerialSettings()
        self._checksum = checksum
        self._cancel = cancel or threading.Event()
        self._addresses = addresses
        self._probes = probes_per_address
        self._state = ScanState.IDLE
        # Dedup keys for this sweep only
        self._seen: set[tuple[int, int]] = set()
        self._silent_logged: set[int] = set()
        self._devices: list[DiscoveredDevice] = []

    @property
    def state(self) -> ScanState:
        return self._state

    def cancel(self) -> None:
        self._cancel.set()

    def run(self) -> ScanOutcome:
        """Sweep the bus once.

        Opens the transport, probes every address and always releases the
        transport before returning.

        Raises:
            TransportUnavailable: If the port cannot be opened.
        """
        if self._state is not ScanState.IDLE:
            raise RuntimeError(f"Scan already ran (state {self._state.value})")

        self._state = ScanState.SCANNING
        error = ""
        try:
            with open_port(self._transport, self._settings):
                error = self._sweep()
        except Exception:
            self._state = ScanState.FAILED
            raise

        if error:
            self._state = ScanState.FAILED
        elif self._cancel.is_set():
            self._state = ScanState.STOPPED
        else:
            self._state = ScanState.COMPLETED
        logger.info(
            "Scan %s, %d device(s) found", self._state.value, len(self._devices)
        )
        return ScanOutcome(state=self._state, devices=list(self._devices), error=error)

    def _sweep(self) -> str:
        """Probe every address; returns an error message if the bus failed."""
        for address in self._addresses:
            for _ in range(self._probes):
                if self._cancel.is_set():
                    return ""
                sent = self._probe(address)
                if not sent.ok:
                    message = f"Device exchange error: {sent.error}"
                    logger.error("%s", message)
                    return message
        return ""

    def _probe(self, address: int) -> SendResult:
        self._listener.on_address_probe(address)

        sent = self._send(build_type_request(address, self._checksum))
        if not sent.ok:
            return sent

        response = read_frame(
            self._transport,
            initial_timeout_ms=self._settings.initial_timeout_ms,
            continuation_timeout_ms=self._settings.continuation_timeout_ms,
            max_frame_size=self._settings.max_frame_size,
        )
        if response is None:
            if address not in self._silent_logged:
                self._silent_logged.add(address)
                self._listener.on_log(f"Address {address}: no response", "")
            return sent

        raw_hex = to_hex(response)
        device = parse_type_response(response, self._checksum)
        if device is None:
            self._listener.on_log(parse_partial_response(response, self._checksum), raw_hex)
        elif device.key not in self._seen:
            self._seen.add(device.key)
            self._devices.append(device)
            logger.info("Found %s", device.summary())
            self._listener.on_log(device.summary(), raw_hex)
            self._listener.on_device_found(device)
        return sent

    def _send(self, frame: bytes) -> SendResult:
        try:
            self._transport.write(frame, self._settings.write_timeout_ms)
        except OSError as e:
            return SendResult(ok=False, error=str(e) or type(e).__name__)
        return SendResult(ok=True)
