"""Response parsing for device messages.

Type/version response::

    [address][length][0x00][type][version][...][crc]

Change-address response::

    [new address][0x05][0x10][new address][new address][crc]
"""

from __future__ import annotations

from ..models.device import DiscoveredDevice
from ..models.device_types import device_type_name
from ..utils.crc import Checksum, crc8
from .commands import Opcode
from .framing import FrameCheck, expected_size, parse_frame, to_hex, validate_frame

# Offsets within the raw frame
OFF_TYPE = 3
OFF_VERSION = 4

# Offsets within Frame.body
BODY_CODE = 0
BODY_TYPE = 1
BODY_VERSION = 2
BODY_ECHO_1 = 1
BODY_ECHO_2 = 2


def _has_field(data: bytes, offset: int) -> bool:
    """True if ``offset`` lies in the body, i.e. before the checksum byte."""
    return offset < len(data) - 1


def parse_type_response(data: bytes, checksum: Checksum = crc8) -> DiscoveredDevice | None:
    """Decode a type/version response into a device record.

    Returns:
        A ``DiscoveredDevice``, or ``None`` if the frame has the wrong size,
        a bad checksum, an unexpected response code or no type/version bytes.
    """
    frame = parse_frame(bytes(data), checksum)
    if frame is None:
        return None

    body = frame.body
    if len(body) <= BODY_VERSION or body[BODY_CODE] != Opcode.TYPE_RESPONSE:
        return None

    type_code = body[BODY_TYPE]
    return DiscoveredDevice(
        address=frame.address,
        type_code=type_code,
        type_name=device_type_name(type_code),
        version=str(body[BODY_VERSION]),
        raw_hex=to_hex(data),
    )


def parse_partial_response(data: bytes, checksum: Checksum = crc8) -> str:
    """Describe as much of a response as can be recognised.

    Used for frames ``parse_type_response`` rejected. Walks the same gate
    and stops at the first point where the data runs out or is invalid.
    Never raises.
    """
    data = bytes(data or b"")
    if not data:
        return "Unknown response (empty)"

    address = data[0]
    size = expected_size(data)
    if size is None:
        return f"Address {address} - unknown response"

    check = validate_frame(data, checksum)
    if check is FrameCheck.SIZE_MISMATCH:
        return (
            f"Address {address} - invalid message size "
            f"(received {len(data)}, expected {size})"
        )
    if check is FrameCheck.BAD_CHECKSUM:
        return f"Address {address} - invalid response checksum"

    if not _has_field(data, 2):
        return f"Address {address} - unknown response"
    code = data[2]
    if code != Opcode.TYPE_RESPONSE:
        return f"Address {address} - unknown response (response code 0x{code:02X})"

    if not _has_field(data, OFF_TYPE):
        return f"Address {address} - device type unknown"
    type_name = device_type_name(data[OFF_TYPE])

    if not _has_field(data, OFF_VERSION):
        return f"Address {address} - {type_name} (version unknown)"
    return f"Address {address} - {type_name} (version {data[OFF_VERSION]})"


def parse_change_address_response(
    data: bytes, expected_new_address: int, checksum: Checksum = crc8
) -> bool:
    """Check that a device confirmed a move to ``expected_new_address``.

    The device answers from its new address and echoes that address twice.
    Every one of these must match for the change to count as done.
    """
    frame = parse_frame(bytes(data), checksum)
    if frame is None or frame.address != expected_new_address:
        return False
    body = frame.body
    if len(body) <= BODY_ECHO_2 or body[BODY_CODE] != Opcode.CHANGE_ADDRESS_RESPONSE:
        return False
    return (
        body[BODY_ECHO_1] == expected_new_address
        and body[BODY_ECHO_2] == expected_new_address
    )
