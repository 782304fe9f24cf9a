"""Bus session: owns the adapter, the worker thread and the scan results.

All bus operations run on one worker thread, so a scan and an address
change can never interleave on the wire, and the caller is never blocked
by a sweep.
"""

from __future__ import annotations

import logging
import threading
import time
from collections import deque
from concurrent.futures import Future, ThreadPoolExecutor
from dataclasses import dataclass, field
from enum import Enum
from typing import Callable

from .config import MAX_LOG_ENTRIES, SerialSettings
from .errors import BusBusyError, InvalidAddressError, OrionError, TransportUnavailable
from .models.device import DiscoveredDevice
from .models.link import Error, LinkState, NoLink, PermissionPending, Ready, describe
from .operations.change_address import change_address
from .operations.scan import ScanListener, ScanOrchestrator, ScanOutcome, ScanState
from .protocol.framing import MAX_ADDRESS, MIN_ADDRESS, is_valid_address
from .transport.serial_connection import SerialTransport, Transport, probe_link

logger = logging.getLogger(__name__)


class LogKind(Enum):
    INFO = "info"
    REQUEST = "request"
    RESPONSE = "response"
    ERROR = "error"
    SUCCESS = "success"


@dataclass
class LogEntry:
    message: str
    kind: LogKind = LogKind.INFO
    timestamp: float = field(default_factory=time.time)

    def to_dict(self) -> dict:
        return {"timestamp": self.timestamp, "kind": self.kind.value, "message": self.message}


class _SessionListener(ScanListener):
    """Mirrors engine callbacks into the session state."""

    def __init__(self, session: BusSession) -> None:
        self._session = session

    def on_address_probe(self, address: int) -> None:
        self._session._set_current_address(address)

    def on_device_found(self, device: DiscoveredDevice) -> None:
        self._session._add_device(device)

    def on_log(self, message: str, raw_hex: str = "") -> None:
        if raw_hex:
            self._session.add_log(message, LogKind.REQUEST)
            self._session.add_log(raw_hex, LogKind.RESPONSE)
        else:
            self._session.add_log(message)


class BusSession:
    """Serial adapter plus the state of the last scan.

    Usage::

        session = BusSession("/dev/ttyUSB0")
        outcome = session.start_scan().result()
        ok = session.change_address(5, 10).result()
        session.close()
    """

    def __init__(
        self,
        port: str | None = None,
        settings: SerialSettings | None = None,
        transport_factory: Callable[[str], Transport] = SerialTransport,
        link_probe: Callable[[str | None], LinkState] = probe_link,
    ) -> None:
        self._port = port
        self._settings = settings or SerialSettings()
        self._transport_factory = transport_factory
        self._link_probe = link_probe
        self._executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="orion-bus")
        self._lock = threading.Lock()
        self._cancel = threading.Event()

        self._devices: list[DiscoveredDevice] = []
        self._logs: deque[LogEntry] = deque(maxlen=MAX_LOG_ENTRIES)
        self._current_address: int | None = None
        self._error_message: str | None = None
        self._scanning = False
        self._changing_address = False
        self._last_outcome: ScanOutcome | None = None

    # ─── link ────────────────────────────────────────────────────────

    @property
    def port(self) -> str | None:
        return self._port

    def link_state(self) -> LinkState:
        return self._link_probe(self._port)

    def _ready_port(self) -> str:
        """Port to open, or raise if the link cannot carry an exchange."""
        state = self.link_state()
        if isinstance(state, Ready):
            return state.port
        if isinstance(state, (NoLink, PermissionPending, Error)):
            raise TransportUnavailable(describe(state))
        raise TypeError(f"Unknown link state: {state!r}")

    # ─── scan ────────────────────────────────────────────────────────

    @property
    def is_scanning(self) -> bool:
        return self._scanning

    def start_scan(self) -> Future:
        """Start a sweep on the worker thread.

        Returns:
            A future resolving to the ``ScanOutcome``.

        Raises:
            BusBusyError: If a scan is already running.
            TransportUnavailable: If the adapter is not ready.
        """
        with self._lock:
            if self._scanning:
                raise BusBusyError("A scan is already running")
            port = self._ready_port()
            self._scanning = True
            self._devices = []
            self._error_message = None
            self._current_address = None
            self._cancel.clear()
        self.add_log("Scan started")
        return self._executor.submit(self._run_scan, port)

    def stop_scan(self) -> None:
        """Ask the running sweep to stop before its next probe."""
        self._cancel.set()

    def _run_scan(self, port: str) -> ScanOutcome:
        orchestrator = ScanOrchestrator(
            self._transport_factory(port),
            _SessionListener(self),
            settings=self._settings,
            cancel=self._cancel,
        )
        try:
            outcome = orchestrator.run()
        except OrionError as e:
            self._fail(f"Scan error: {e}")
            raise
        finally:
            with self._lock:
                self._scanning = False
                self._current_address = None

        self._last_outcome = outcome
        if outcome.state is ScanState.FAILED:
            self._fail(outcome.error)
        elif outcome.state is ScanState.STOPPED:
            self.add_log(f"Scan stopped. Devices found: {len(outcome.devices)}")
        else:
            self.add_log(f"Scan finished. Devices found: {len(outcome.devices)}")
        return outcome

    # ─── address change ──────────────────────────────────────────────

    def change_address(
        self, current_address: int, new_address: int, type_code: int | None = None
    ) -> Future:
        """Queue an address change on the worker thread.

        A running scan is stopped first; the change runs once it has released
        the bus.

        Returns:
            A future resolving to ``True`` if the device confirmed the change.

        Raises:
            InvalidAddressError: For an out-of-range or unchanged address.
            TransportUnavailable: If the adapter is not ready.
        """
        for name, value in (("Current address", current_address), ("New address", new_address)):
            if not is_valid_address(value):
                message = f"{name} must be {MIN_ADDRESS}-{MAX_ADDRESS}, got {value}"
                self.add_log(message, LogKind.ERROR)
                raise InvalidAddressError(message)
        if new_address == current_address:
            self.add_log("New address matches the current one", LogKind.ERROR)
            raise InvalidAddressError("New address matches the current one")

        if self._scanning:
            self.stop_scan()
        port = self._ready_port()
        return self._executor.submit(
            self._run_change, port, current_address, new_address, type_code
        )

    def _run_change(
        self, port: str, current_address: int, new_address: int, type_code: int | None
    ) -> bool:
        with self._lock:
            self._changing_address = True
            self._error_message = None
        try:
            success = change_address(
                self._transport_factory(port),
                current_address,
                new_address,
                listener=_SessionListener(self),
                settings=self._settings,
            )
        except OrionError as e:
            self._fail(str(e))
            raise
        finally:
            with self._lock:
                self._changing_address = False

        if success:
            self._move_device(current_address, new_address, type_code)
            self.add_log(
                f"Address changed from {current_address} to {new_address}", LogKind.SUCCESS
            )
        else:
            self._fail("Address change failed")
        return success

    # ─── state ───────────────────────────────────────────────────────

    @property
    def devices(self) -> list[DiscoveredDevice]:
        with self._lock:
            return list(self._devices)

    @property
    def current_address(self) -> int | None:
        return self._current_address

    @property
    def error_message(self) -> str | None:
        return self._error_message

    def logs(self, limit: int | None = None) -> list[LogEntry]:
        with self._lock:
            entries = list(self._logs)
        if limit is not None:
            entries = entries[-limit:] if limit > 0 else []
        return entries

    def add_log(self, message: str, kind: LogKind = LogKind.INFO) -> None:
        with self._lock:
            self._logs.append(LogEntry(message=message, kind=kind))

    def clear_logs(self) -> None:
        with self._lock:
            self._logs.clear()

    def clear_devices(self) -> None:
        with self._lock:
            self._devices = []

    def status(self) -> dict:
        return {
            "port": self._port,
            "link": self.link_state().to_dict(),
            "scanning": self._scanning,
            "changing_address": self._changing_address,
            "current_address": self._current_address,
            "device_count": len(self._devices),
            "error": self._error_message,
            "last_scan": self._last_outcome.state.value if self._last_outcome else None,
        }

    def close(self) -> None:
        """Stop any sweep and wait for the worker to finish."""
        self.stop_scan()
        self._executor.shutdown(wait=True)

    def _set_current_address(self, address: int) -> None:
        self._current_address = address

    def _add_device(self, device: DiscoveredDevice) -> None:
        with self._lock:
            if all(d.key != device.key for d in self._devices):
                self._devices.append(device)

    def _move_device(self, current_address: int, new_address: int, type_code: int | None) -> None:
        with self._lock:
            self._devices = [
                d.with_address(new_address)
                if d.address == current_address and type_code in (None, d.type_code)
                else d
                for d in self._devices
            ]

    def _fail(self, message: str) -> None:
        logger.error("%s", message)
        with self._lock:
            self._error_message = message
            self._logs.append(LogEntry(message=message, kind=LogKind.ERROR))
