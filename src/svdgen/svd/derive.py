from __future__ import annotations

import copy
from typing import Callable, Dict, List, Optional, Sequence

from svdgen.errors import DerivationCycle, UnresolvedReference
from svdgen.svd.model import Cluster, Device, DimElement, Field, Peripheral, Register, RegisterOrCluster
from svdgen.utils.logger import get_logger

log = get_logger(__name__)


def _fill(target: object, source: object, names: Sequence[str]) -> None:
    for n in names:
        if getattr(target, n) is None:
            setattr(target, n, getattr(source, n))


def _merge_dim(target: DimElement, source: DimElement) -> None:
    _fill(target, source, ("dim", "dim_increment", "dim_index"))


def merge_field(f: Field, source: Field) -> None:
    _fill(f, source, ("description", "access", "modified_write_values", "read_action"))
    if not f.enumerated_values:
        f.enumerated_values = copy.deepcopy(source.enumerated_values)


def merge_register(r: Register, source: Register) -> None:
    _merge_dim(r.dim, source.dim)
    _fill(
        r,
        source,
        (
            "display_name",
            "description",
            "alternate_group",
            "alternate_register",
            "data_type",
            "modified_write_values",
            "read_action",
        ),
    )
    r.register_properties = r.register_properties.merge(source.register_properties)
    if not r.fields:
        r.fields = copy.deepcopy(source.fields)


def merge_cluster(c: Cluster, source: Cluster) -> None:
    _merge_dim(c.dim, source.dim)
    _fill(c, source, ("description", "alternate_cluster", "header_struct_name"))
    c.register_properties = c.register_properties.merge(source.register_properties)
    if not c.registers:
        c.registers = copy.deepcopy(source.registers)


def merge_peripheral(p: Peripheral, source: Peripheral) -> None:
    # interrupts belong to the instance and are never inherited
    _merge_dim(p.dim, source.dim)
    _fill(
        p,
        source,
        (
            "version",
            "description",
            "alternate_peripheral",
            "group_name",
            "prepend_to_name",
            "append_to_name",
            "header_struct_name",
            "disable_condition",
        ),
    )
    p.register_properties = p.register_properties.merge(source.register_properties)
    if not p.address_blocks:
        p.address_blocks = copy.deepcopy(source.address_blocks)
    if not p.registers:
        p.registers = copy.deepcopy(source.registers)


def _merge_register_or_cluster(item: RegisterOrCluster, source: RegisterOrCluster) -> None:
    if isinstance(item, Register):
        merge_register(item, source)
    else:
        merge_cluster(item, source)


def _kind(item: object) -> str:
    return type(item).__name__.lower()


def resolve_scope(items: Sequence, merge: Callable[[object, object], None]) -> None:
    """Resolve ``derivedFrom`` for one list of siblings.

    Every sibling is complete before it is used as a merge source, so chains
    (A <- B <- C) resolve regardless of document order.
    """
    index: Dict[str, object] = {}
    for item in items:
        index.setdefault(item.name, item)

    stack: List[object] = []

    def resolve(item) -> None:
        if item.derived_from is None:
            return
        if any(s is item for s in stack):
            start = next(i for i, s in enumerate(stack) if s is item)
            chain = [s.name for s in stack[start:]] + [item.name]
            raise DerivationCycle(_kind(item), chain)

        stack.append(item)
        while item.derived_from is not None:
            ref = item.derived_from
            source = index.get(ref)
            if source is None or type(source) is not type(item):
                raise UnresolvedReference(_kind(item), item.name, ref)
            resolve(source)
            log.debug("%s %s: merging from %s", _kind(item), item.name, ref)
            merge(item, source)
            if item.resolved_from is None:
                item.resolved_from = ref
            item.derived_from = source.derived_from
        stack.pop()

    for item in items:
        resolve(item)


def _resolve_fields(fields: Optional[List[Field]]) -> None:
    if fields:
        resolve_scope(fields, merge_field)


def _resolve_registers(registers: Optional[List[RegisterOrCluster]]) -> None:
    if not registers:
        return
    resolve_scope(registers, _merge_register_or_cluster)
    for rc in registers:
        if isinstance(rc, Register):
            _resolve_fields(rc.fields)
        else:
            _resolve_registers(rc.registers)


def resolve_device(device: Device) -> Device:
    resolve_scope(device.peripherals, merge_peripheral)
    for p in device.peripherals:
        _resolve_registers(p.registers)
    return device
