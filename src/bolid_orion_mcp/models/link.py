"""Serial link state.

``LinkState`` is a closed union of four variants. Code that gates bus access
on the link state checks each variant explicitly.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Union


@dataclass(frozen=True)
class NoLink:
    """No serial adapter is present."""

    def to_dict(self) -> dict:
        return {"state": "no_link"}


@dataclass(frozen=True)
class PermissionPending:
    """An adapter is present but the process may not open it yet."""

    port: str

    def to_dict(self) -> dict:
        return {"state": "permission_pending", "port": self.port}


@dataclass(frozen=True)
class Ready:
    """The adapter can be opened."""

    port: str
    description: str = ""

    def to_dict(self) -> dict:
        return {"state": "ready", "port": self.port, "description": self.description}


@dataclass(frozen=True)
class Error:
    """Probing the adapter failed."""

    reason: str

    def to_dict(self) -> dict:
        return {"state": "error", "reason": self.reason}


LinkState = Union[NoLink, PermissionPending, Ready, Error]


def describe(state: LinkState) -> str:
    """One-line human-readable description of a link state."""
    if isinstance(state, Ready):
        return f"Adapter ready on {state.port}" + (
            f" ({state.description})" if state.description else ""
        )
    if isinstance(state, PermissionPending):
        return f"No permission to open {state.port}"
    if isinstance(state, NoLink):
        return "No serial adapter found"
    if isinstance(state, Error):
        return f"Adapter error: {state.reason}"
    raise TypeError(f"Unknown link state: {state!r}")
