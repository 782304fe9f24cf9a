"""Orion bus frame layout, integrity checks and hex formatting.

Frame layout::

    +---------+--------+-------------------------+----------+
    | Address | Length |         Payload         | Checksum |
    | 1 byte  | 1 byte | Length - 2 bytes        | 1 byte   |
    +---------+--------+-------------------------+----------+

- Address: bus address of the addressed (request) or answering (response) device
- Length: number of bytes in the frame excluding the checksum, so the whole
  frame is ``Length + 1`` bytes
- Checksum: CRC-8 over every preceding byte

The total size is only known once the second byte has been received, which
is why the reader and the parsers all start from ``data[1]``.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from ..utils.crc import Checksum, crc8

MIN_ADDRESS = 1
MAX_ADDRESS = 127
BROADCAST_ADDRESS = 127

OFF_ADDRESS = 0
OFF_LENGTH = 1
OFF_CODE = 2


class FrameCheck(Enum):
    """Outcome of the size and checksum gate."""

    OK = "ok"
    TOO_SHORT = "too_short"
    SIZE_MISMATCH = "size_mismatch"
    BAD_CHECKSUM = "bad_checksum"


@dataclass
class Frame:
    """A validated frame split into its fields."""

    address: int
    body: bytes  # bytes after the length field, checksum excluded

    def __repr__(self) -> str:
        return (
            f"Frame(address={self.address}, "
            f"body={self.body.hex(' ').upper() if self.body else '(empty)'})"
        )


def is_valid_address(address: int) -> bool:
    return MIN_ADDRESS <= address <= MAX_ADDRESS


def expected_size(data: bytes) -> int | None:
    """Total frame size announced by the length byte, or None if unknown yet."""
    if len(data) < 2:
        return None
    return data[OFF_LENGTH] + 1


def seal(body: bytes, checksum: Checksum = crc8) -> bytes:
    """Append the checksum byte to a frame body."""
    return bytes(body) + bytes([checksum(bytes(body)) & 0xFF])


def validate_frame(data: bytes, checksum: Checksum = crc8) -> FrameCheck:
    """Apply the size gate, then the checksum gate.

    The size is always checked first so a truncated frame is rejected
    without consulting the checksum.
    """
    size = expected_size(data)
    if size is None:
        return FrameCheck.TOO_SHORT
    if len(data) != size:
        return FrameCheck.SIZE_MISMATCH
    if checksum(bytes(data[:-1])) & 0xFF != data[-1]:
        return FrameCheck.BAD_CHECKSUM
    return FrameCheck.OK


def parse_frame(data: bytes, checksum: Checksum = crc8) -> Frame | None:
    """Split a raw frame into address and body.

    Returns:
        A ``Frame`` if the size and checksum gates pass, else ``None``.
    """
    if validate_frame(data, checksum) is not FrameCheck.OK:
        return None
    return Frame(address=data[OFF_ADDRESS], body=bytes(data[OFF_CODE:-1]))


def to_hex(data: bytes) -> str:
    """Uppercase, space-separated hex dump (``"05 07 00"``)."""
    return bytes(data).hex(" ").upper()
