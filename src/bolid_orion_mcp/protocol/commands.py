"""Opcode constants and request builders.

Every request is a fixed 7-byte frame::

    [address][0x06][key 0x00][opcode][arg1][arg2][crc]
"""

from __future__ import annotations

from enum import IntEnum

from ..errors import InvalidAddressError
from ..utils.crc import Checksum, crc8
from .framing import MAX_ADDRESS, MIN_ADDRESS, is_valid_address, seal

REQUEST_LENGTH = 0x06
ENCRYPTION_KEY = 0x00
FILLER = 0x00


class Opcode(IntEnum):
    """Request and response codes."""

    TYPE_RESPONSE = 0x00
    GET_TYPE = 0x0D
    CHANGE_ADDRESS = 0x0F
    CHANGE_ADDRESS_RESPONSE = 0x10


def _check_address(name: str, address: int) -> None:
    if not is_valid_address(address):
        raise InvalidAddressError(
            f"{name} must be {MIN_ADDRESS}-{MAX_ADDRESS}, got {address}"
        )


def build_request(
    address: int, opcode: Opcode, arg1: int = FILLER, arg2: int = FILLER,
    checksum: Checksum = crc8,
) -> bytes:
    """Build a 7-byte request frame for ``opcode`` addressed to ``address``."""
    _check_address("Address", address)
    body = bytes([address, REQUEST_LENGTH, ENCRYPTION_KEY, opcode.value, arg1, arg2])
    return seal(body, checksum)


def build_type_request(address: int, checksum: Checksum = crc8) -> bytes:
    """Build a type/version probe for one bus address.

    Args:
        address: Bus address 1-127.
    """
    return build_request(address, Opcode.GET_TYPE, checksum=checksum)


def build_change_address_request(
    current_address: int, new_address: int, checksum: Checksum = crc8
) -> bytes:
    """Build a request moving a device from ``current_address`` to ``new_address``.

    The new address is sent twice; the device rejects the request unless
    both copies agree.
    """
    _check_address("Current address", current_address)
    _check_address("New address", new_address)
    return build_request(
        current_address, Opcode.CHANGE_ADDRESS, new_address, new_address,
        checksum=checksum,
    )
