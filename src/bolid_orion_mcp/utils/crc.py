"""CRC-8 checksum for Orion bus frames.

Every frame ends with a single checksum byte computed over all preceding
bytes (address, length and payload). The default variant is CRC-8/MAXIM-DOW
(poly 0x31, init 0x00, reflected input and output, no final XOR), check
value ``0xA1`` for ``b"123456789"``.
"""

from __future__ import annotations

from typing import Callable

from crc import Calculator, Configuration

CRC8_MAXIM_DOW = Configuration(
    width=8,
    polynomial=0x31,
    init_value=0x00,
    final_xor_value=0x00,
    reverse_input=True,
    reverse_output=True,
)

# Any callable mapping the frame body to one checksum byte.
Checksum = Callable[[bytes], int]


class Crc8Checksum:
    """Table-driven CRC-8 provider with a pluggable configuration."""

    def __init__(self, configuration: Configuration = CRC8_MAXIM_DOW) -> None:
        if configuration.width != 8:
            raise ValueError(
                f"Frame checksum must be 8 bits wide, got {configuration.width}"
            )
        self._calculator = Calculator(configuration, optimized=True)

    def calculate(self, data: bytes) -> int:
        return self._calculator.checksum(bytes(data)) & 0xFF

    __call__ = calculate


_default = Crc8Checksum()


def crc8(data: bytes) -> int:
    """Compute the frame checksum byte of ``data`` with the default variant."""
    return _default.calculate(data)
