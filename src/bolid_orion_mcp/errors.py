"""Exception hierarchy for the Orion bus engine.

Only failures that end the current operation are raised. A silent address
or a malformed frame is reported as diagnostic text instead.
"""


class OrionError(Exception):
    """Base class for all bus errors."""


class InvalidAddressError(OrionError, ValueError):
    """A bus address outside 1-127 was given to a request builder."""


class TransportUnavailable(OrionError, ConnectionError):
    """No usable serial adapter or the port could not be opened."""


class ExchangeFailure(OrionError, IOError):
    """Writing a request to the bus failed; the whole exchange is aborted."""


class BusBusyError(OrionError, RuntimeError):
    """Another operation already owns the bus."""
