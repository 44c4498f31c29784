from __future__ import annotations

from typing import List, Optional

from svdgen.svd.model import Cluster, Device, RegisterOrCluster, RegisterProperties
from svdgen.utils.logger import get_logger

log = get_logger(__name__)


def _cascade_registers(registers: Optional[List[RegisterOrCluster]], parent: RegisterProperties) -> None:
    for rc in registers or ():
        rc.register_properties = rc.register_properties.merge(parent)
        if isinstance(rc, Cluster):
            _cascade_registers(rc.registers, rc.register_properties)


def cascade_device(device: Device) -> Device:
    """Fill unset register properties from the nearest enclosing level.

    Must run after derivation so that inherited values take part.
    """
    for p in device.peripherals:
        p.register_properties = p.register_properties.merge(device.register_properties)
        _cascade_registers(p.registers, p.register_properties)
    log.debug("cascaded register properties for %d peripherals", len(device.peripherals))
    return device
