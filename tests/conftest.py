from __future__ import annotations

import pytest

from svdgen.svd.cascade import cascade_device
from svdgen.svd.derive import resolve_device
from svdgen.svd.loader import parse_svd
from svdgen.svd.model import Device

DEVICE_XML = """<?xml version="1.0" encoding="utf-8"?>
<device>
  <name>{name}</name>
  <version>1.0</version>
  <description>{description}</description>
  <addressUnitBits>8</addressUnitBits>
  <width>32</width>
  {props}
  <peripherals>{peripherals}</peripherals>
</device>
"""


def device_xml(peripherals: str, props: str = "<size>32</size>", name: str = "TESTDEV",
               description: str = "Test device") -> str:
    return DEVICE_XML.format(name=name, description=description, props=props, peripherals=peripherals)


@pytest.fixture
def svd_xml():
    """Build a complete ``<device>`` document around a peripherals snippet."""
    return device_xml


@pytest.fixture
def load():
    def _load(peripherals: str, props: str = "<size>32</size>") -> Device:
        return parse_svd(device_xml(peripherals, props))

    return _load


@pytest.fixture
def resolved(load):
    """Load, resolve derivations and cascade properties."""

    def _resolved(peripherals: str, props: str = "<size>32</size>") -> Device:
        device = load(peripherals, props)
        resolve_device(device)
        cascade_device(device)
        return device

    return _resolved
