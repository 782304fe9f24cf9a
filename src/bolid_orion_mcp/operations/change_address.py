"""Single-shot bus address reassignment."""

from __future__ import annotations

import logging

from ..config import SerialSettings
from ..errors import ExchangeFailure
from ..protocol.commands import build_change_address_request
from ..protocol.framing import to_hex
from ..protocol.parser import parse_change_address_response
from ..transport.reader import read_frame
from ..transport.serial_connection import Transport, open_port
from ..utils.crc import Checksum, crc8
from .scan import ScanListener

logger = logging.getLogger(__name__)


def change_address(
    transport: Transport,
    current_address: int,
    new_address: int,
    listener: ScanListener | None = None,
    settings: SerialSettings | None = None,
    checksum: Checksum = crc8,
) -> bool:
    """Move the device at ``current_address`` to ``new_address``.

    One request, one response, no retries. ``False`` covers both a silent
    device and an invalid confirmation; the log lines tell them apart.

    Raises:
        InvalidAddressError: If either address is outside 1-127 (before any I/O).
        TransportUnavailable: If the port cannot be opened.
        ExchangeFailure: If the request could not be written.
    """
    listener = listener or ScanListener()
    settings = settings or SerialSettings()
    request = build_change_address_request(current_address, new_address, checksum)

    with open_port(transport, settings):
        listener.on_log(f"Sending change-address request: {to_hex(request)}", "")
        try:
            transport.write(request, settings.write_timeout_ms)
        except OSError as e:
            raise ExchangeFailure(f"Device exchange error: {e}") from e

        response = read_frame(
            transport,
            initial_timeout_ms=settings.initial_timeout_ms,
            continuation_timeout_ms=settings.continuation_timeout_ms,
            max_frame_size=settings.max_frame_size,
        )
        if response is None:
            listener.on_log("No response to change-address request", "")
            return False

        listener.on_log(f"Received change-address response: {to_hex(response)}", "")
        success = parse_change_address_response(response, new_address, checksum)

    if success:
        logger.info("Device moved from address %d to %d", current_address, new_address)
        listener.on_log("Address changed successfully", "")
    else:
        logger.warning(
            "Address change %d -> %d not confirmed", current_address, new_address
        )
        listener.on_log("Address change failed (invalid response)", "")
    return success
