"""Discovered device record."""

from __future__ import annotations

from dataclasses import dataclass, replace


@dataclass(frozen=True)
class DiscoveredDevice:
    """A device that answered a type/version probe.

    Two records describe the same unit when ``key`` matches. Records are
    immutable; an address change produces a new record via ``with_address``.
    """

    address: int
    type_code: int
    type_name: str
    version: str
    raw_hex: str = ""

    @property
    def key(self) -> tuple[int, int]:
        return (self.address, self.type_code)

    def with_address(self, address: int) -> DiscoveredDevice:
        return replace(self, address=address)

    def summary(self) -> str:
        return f"Address {self.address}: {self.type_name} (version {self.version})"

    def to_dict(self) -> dict:
        return {
            "address": self.address,
            "type_code": self.type_code,
            "type_name": self.type_name,
            "version": self.version,
            "raw_hex": self.raw_hex,
        }
