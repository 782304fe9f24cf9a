"""Tests for device records and link states."""

import dataclasses

import pytest

from bolid_orion_mcp.models.device import DiscoveredDevice
from bolid_orion_mcp.models.link import Error, NoLink, PermissionPending, Ready, describe


def _device(address=5):
    return DiscoveredDevice(
        address=address, type_code=1, type_name="Сигнал-20", version="3",
        raw_hex="05 07 00 01 03 00 00 5A",
    )


def test_device_is_immutable():
    device = _device()
    with pytest.raises(dataclasses.FrozenInstanceError):
        device.address = 10


def test_with_address_keeps_type():
    moved = _device().with_address(10)
    assert moved.address == 10
    assert moved.type_code == 1
    assert moved.key == (10, 1)
    assert _device().key == (5, 1)


def test_summary_and_dict():
    device = _device()
    assert device.summary() == "Address 5: Сигнал-20 (version 3)"
    assert device.to_dict()["type_name"] == "Сигнал-20"


def test_describe_every_variant():
    assert describe(NoLink()) == "No serial adapter found"
    assert describe(PermissionPending(port="/dev/ttyUSB0")) == "No permission to open /dev/ttyUSB0"
    assert describe(Ready(port="/dev/ttyUSB0")) == "Adapter ready on /dev/ttyUSB0"
    assert describe(Error(reason="boom")) == "Adapter error: boom"


def test_describe_rejects_unknown_state():
    with pytest.raises(TypeError):
        describe("ready")
