"""Variable-length frame collection with a two-phase read timeout.

The frame size is unknown until its second byte arrives. The first read
uses a short timeout so a silent address is detected quickly; once any data
has arrived the reader switches to a longer timeout to ride out gaps
between bytes of the same frame.
"""

from __future__ import annotations

import logging

from ..config import (
    BASE_RESPONSE_TIMEOUT_MS,
    CONTINUATION_TIMEOUT_MS,
    MAX_FRAME_SIZE,
    READ_CHUNK_SIZE,
)
from ..protocol.framing import expected_size
from .serial_connection import Transport

logger = logging.getLogger(__name__)


def read_frame(
    transport: Transport,
    initial_timeout_ms: int = BASE_RESPONSE_TIMEOUT_MS,
    continuation_timeout_ms: int = CONTINUATION_TIMEOUT_MS,
    max_frame_size: int = MAX_FRAME_SIZE,
    chunk_size: int = READ_CHUNK_SIZE,
) -> bytes | None:
    """Collect one response frame from ``transport``.

    Stops when the announced size has been reached, when ``max_frame_size``
    bytes have accumulated, or when a read times out or fails.

    Returns:
        The bytes received (possibly an incomplete frame), or ``None`` if
        nothing arrived at all.
    """
    buffer = bytearray()
    expected: int | None = None
    timeout = initial_timeout_ms

    while True:
        try:
            chunk = transport.read(
                min(chunk_size, max_frame_size - len(buffer)), timeout
            )
        except OSError as e:
            logger.debug("Read error: %s", e)
            break
        if not chunk:
            break

        buffer += chunk

        if expected is None:
            expected = expected_size(buffer)
        if expected is not None and len(buffer) >= expected:
            break

        timeout = continuation_timeout_ms
        if len(buffer) >= max_frame_size:
            logger.debug("Frame cap of %d bytes reached", max_frame_size)
            break

    if not buffer:
        return None
    return bytes(buffer)
