"""Serial defaults, protocol timing and environment overrides."""

from __future__ import annotations

import os
from dataclasses import dataclass, field

DEFAULT_BAUDRATE = 9600
DEFAULT_BYTESIZE = 8
DEFAULT_STOPBITS = 1
DEFAULT_PARITY = "N"

# Short first read to detect a silent address, longer wait between bytes
# once a frame has started.
BASE_RESPONSE_TIMEOUT_MS = 120
CONTINUATION_TIMEOUT_MS = 200
WRITE_TIMEOUT_MS = 100

MAX_FRAME_SIZE = 64
READ_CHUNK_SIZE = 64

MAX_LOG_ENTRIES = 1000

ENV_PORT = "ORION_PORT"
ENV_BAUDRATE = "ORION_BAUDRATE"
ENV_LOG_LEVEL = "ORION_LOG_LEVEL"


@dataclass(frozen=True)
class SerialSettings:
    """Line and timing parameters for one bus session."""

    baudrate: int = DEFAULT_BAUDRATE
    bytesize: int = DEFAULT_BYTESIZE
    stopbits: int = DEFAULT_STOPBITS
    parity: str = DEFAULT_PARITY
    write_timeout_ms: int = WRITE_TIMEOUT_MS
    initial_timeout_ms: int = BASE_RESPONSE_TIMEOUT_MS
    continuation_timeout_ms: int = CONTINUATION_TIMEOUT_MS
    max_frame_size: int = MAX_FRAME_SIZE

    def __post_init__(self) -> None:
        if self.baudrate <= 0:
            raise ValueError(f"Baud rate must be positive, got {self.baudrate}")
        if self.initial_timeout_ms <= 0 or self.continuation_timeout_ms <= 0:
            raise ValueError("Read timeouts must be positive")


@dataclass(frozen=True)
class AppConfig:
    """Process-level configuration for the MCP server."""

    port: str | None = None
    serial: SerialSettings = field(default_factory=SerialSettings)
    log_level: str = "INFO"


def load_settings(environ: dict[str, str] | None = None) -> AppConfig:
    """Build the configuration from ``ORION_*`` environment variables."""
    env = os.environ if environ is None else environ

    baud_text = env.get(ENV_BAUDRATE)
    try:
        baudrate = int(baud_text) if baud_text else DEFAULT_BAUDRATE
    except ValueError:
        raise ValueError(f"{ENV_BAUDRATE} must be an integer, got {baud_text!r}") from None

    return AppConfig(
        port=env.get(ENV_PORT) or None,
        serial=SerialSettings(baudrate=baudrate),
        log_level=env.get(ENV_LOG_LEVEL, "INFO").upper(),
    )
