"""Data models for discovered devices, device types, and link state."""

from .device import DiscoveredDevice
from .device_types import DEVICE_TYPES, device_type_name
from .link import Error, LinkState, NoLink, PermissionPending, Ready
