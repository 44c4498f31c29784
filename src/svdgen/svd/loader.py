from __future__ import annotations

import re
import xml.etree.ElementTree as ET
from enum import Enum
from pathlib import Path
from typing import Optional, Type, TypeVar, Union

from svdgen.errors import MissingField, UnexpectedValue
from svdgen.svd.model import (
    Access,
    AddressBlock,
    AddressBlockUsage,
    BitRange,
    Cluster,
    Cpu,
    DataType,
    Device,
    DimElement,
    Endian,
    EnumeratedValue,
    EnumeratedValues,
    EnumUsage,
    Field,
    Interrupt,
    ModifiedWriteValues,
    Peripheral,
    Protection,
    ReadAction,
    Register,
    RegisterOrCluster,
    RegisterProperties,
)
from svdgen.utils.logger import get_logger

log = get_logger(__name__)

E = TypeVar("E", bound=Enum)

_INT_RE = re.compile(r"\+?(?:0[xX](?P<hex>[0-9a-fA-F]+)|#(?P<bin>[01]+)|(?P<dec>[0-9]+))")
_ENUM_BIN_RE = re.compile(r"(?:#|0[bB])(?P<bits>[01xX]+)")
_BIT_RANGE_RE = re.compile(r"\[(?P<msb>[0-9]+):(?P<lsb>[0-9]+)\]")


def _t(node: Optional[ET.Element], tag: str) -> Optional[str]:
    if node is None:
        return None
    e = node.find(tag)
    if e is None:
        return None
    return e.text.strip() if e.text else ""


def _required(node: ET.Element, element: str, tag: str) -> str:
    s = _t(node, tag)
    if s is None:
        raise MissingField(element, tag)
    return s


def parse_int(s: str) -> int:
    """Parse a scaledNonNegativeInteger: decimal, ``0x`` hex or ``#`` binary."""
    m = _INT_RE.fullmatch(s.strip())
    if not m:
        raise UnexpectedValue("scaledNonNegativeInteger", s)
    if m.group("hex") is not None:
        return int(m.group("hex"), 16)
    if m.group("bin") is not None:
        return int(m.group("bin"), 2)
    return int(m.group("dec"), 10)


def parse_enum(cls: Type[E], s: str) -> E:
    try:
        return cls(s)
    except ValueError:
        choices = [m.value for m in cls]
        expected = "one of " + ", ".join(choices[:-1]) + " or " + choices[-1]
        raise UnexpectedValue(expected, s) from None


def _opt_int(node: ET.Element, tag: str) -> Optional[int]:
    s = _t(node, tag)
    return None if s is None else parse_int(s)


def _opt_enum(node: ET.Element, cls: Type[E], tag: str) -> Optional[E]:
    s = _t(node, tag)
    return None if s is None else parse_enum(cls, s)


def parse_bool(s: str) -> bool:
    if s in ("true", "1"):
        return True
    if s in ("false", "0"):
        return False
    raise UnexpectedValue("true or false", s)


def _opt_bool(node: ET.Element, tag: str) -> Optional[bool]:
    s = _t(node, tag)
    return None if s is None else parse_bool(s)


def load_register_properties(node: ET.Element) -> RegisterProperties:
    return RegisterProperties(
        size=_opt_int(node, "size"),
        access=_opt_enum(node, Access, "access"),
        protection=_opt_enum(node, Protection, "protection"),
        reset_value=_opt_int(node, "resetValue"),
        reset_mask=_opt_int(node, "resetMask"),
    )


def load_dim(node: ET.Element) -> DimElement:
    return DimElement(
        dim=_opt_int(node, "dim"),
        dim_increment=_opt_int(node, "dimIncrement"),
        dim_index=_t(node, "dimIndex"),
    )


def load_bit_range(node: ET.Element) -> BitRange:
    offset, width = _t(node, "bitOffset"), _t(node, "bitWidth")
    lsb, msb = _t(node, "lsb"), _t(node, "msb")
    bit_range = _t(node, "bitRange")

    if offset is not None and width is not None:
        lo, w = parse_int(offset), parse_int(width)
        if w == 0:
            raise UnexpectedValue("a non-zero bitWidth", width)
        return BitRange(lsb=lo, msb=lo + w - 1)

    if lsb is not None and msb is not None:
        lo, hi = parse_int(lsb), parse_int(msb)
    elif bit_range is not None:
        m = _BIT_RANGE_RE.fullmatch(bit_range)
        if not m:
            raise UnexpectedValue("a bitRange of the form [msb:lsb]", bit_range)
        lo, hi = int(m.group("lsb")), int(m.group("msb"))
    else:
        raise MissingField("field", "bitRange")

    if hi < lo:
        raise UnexpectedValue("msb >= lsb", f"[{hi}:{lo}]")
    return BitRange(lsb=lo, msb=hi)


def load_enumerated_value(node: ET.Element) -> EnumeratedValue:
    name = _required(node, "enumeratedValue", "name")
    description = _t(node, "description")

    is_default = _t(node, "isDefault")
    if is_default is not None:
        if is_default not in ("true", "false"):
            raise UnexpectedValue("true or false", is_default)
        return EnumeratedValue(name=name, description=description, is_default=is_default == "true")

    value = _t(node, "value")
    if value is None:
        raise MissingField("enumeratedValue", "value")

    m = _ENUM_BIN_RE.fullmatch(value)
    if m:
        bits = m.group("bits")
        v = int("".join("1" if c == "1" else "0" for c in bits), 2)
        dont_care = int("".join("1" if c in "xX" else "0" for c in bits), 2)
        return EnumeratedValue(name=name, description=description, value=v, do_not_care=dont_care)

    return EnumeratedValue(name=name, description=description, value=parse_int(value))


def load_enumerated_values(node: ET.Element) -> EnumeratedValues:
    values = [load_enumerated_value(e) for e in node.findall("enumeratedValue")]
    if not values:
        raise MissingField("enumeratedValues", "enumeratedValue")
    return EnumeratedValues(
        values=values,
        derived_from=node.get("derivedFrom"),
        name=_t(node, "name"),
        usage=_opt_enum(node, EnumUsage, "usage"),
    )


def load_field(node: ET.Element) -> Field:
    return Field(
        name=_required(node, "field", "name"),
        bit_range=load_bit_range(node),
        derived_from=node.get("derivedFrom"),
        description=_t(node, "description"),
        access=_opt_enum(node, Access, "access"),
        modified_write_values=_opt_enum(node, ModifiedWriteValues, "modifiedWriteValues"),
        read_action=_opt_enum(node, ReadAction, "readAction"),
        enumerated_values=[load_enumerated_values(e) for e in node.findall("enumeratedValues")],
    )


def load_register(node: ET.Element) -> Register:
    name = _required(node, "register", "name")
    offset = parse_int(_required(node, "register", "addressOffset"))

    fields = None
    fields_node = node.find("fields")
    if fields_node is not None:
        fields = [load_field(f) for f in fields_node.findall("field")]

    return Register(
        name=name,
        address_offset=offset,
        derived_from=node.get("derivedFrom"),
        dim=load_dim(node),
        display_name=_t(node, "displayName"),
        description=_t(node, "description"),
        alternate_group=_t(node, "alternateGroup"),
        alternate_register=_t(node, "alternateRegister"),
        register_properties=load_register_properties(node),
        data_type=_opt_enum(node, DataType, "dataType"),
        modified_write_values=_opt_enum(node, ModifiedWriteValues, "modifiedWriteValues"),
        read_action=_opt_enum(node, ReadAction, "readAction"),
        fields=fields,
    )


def load_cluster(node: ET.Element) -> Cluster:
    name = _required(node, "cluster", "name")
    offset = parse_int(_required(node, "cluster", "addressOffset"))
    children = [load_register_or_cluster(e) for e in node if e.tag in ("register", "cluster")]
    return Cluster(
        name=name,
        address_offset=offset,
        derived_from=node.get("derivedFrom"),
        dim=load_dim(node),
        description=_t(node, "description"),
        alternate_cluster=_t(node, "alternateCluster"),
        header_struct_name=_t(node, "headerStructName"),
        register_properties=load_register_properties(node),
        registers=children,
    )


def load_register_or_cluster(node: ET.Element) -> RegisterOrCluster:
    if node.tag == "register":
        return load_register(node)
    if node.tag == "cluster":
        return load_cluster(node)
    raise UnexpectedValue("register or cluster", node.tag)


def load_address_block(node: ET.Element) -> AddressBlock:
    offset = _required(node, "addressBlock", "offset")
    size = _required(node, "addressBlock", "size")
    usage = _required(node, "addressBlock", "usage")
    return AddressBlock(
        offset=parse_int(offset),
        size=parse_int(size),
        usage=parse_enum(AddressBlockUsage, usage),
        protection=_opt_enum(node, Protection, "protection"),
    )


def load_interrupt(node: ET.Element) -> Interrupt:
    name = _required(node, "interrupt", "name")
    value = _required(node, "interrupt", "value")
    return Interrupt(name=name, value=parse_int(value), description=_t(node, "description"))


def load_peripheral(node: ET.Element) -> Peripheral:
    name = _required(node, "peripheral", "name")
    base = parse_int(_required(node, "peripheral", "baseAddress"))

    registers = None
    regs_node = node.find("registers")
    if regs_node is not None:
        registers = [load_register_or_cluster(e) for e in regs_node]

    return Peripheral(
        name=name,
        base_address=base,
        derived_from=node.get("derivedFrom"),
        dim=load_dim(node),
        version=_t(node, "version"),
        description=_t(node, "description"),
        alternate_peripheral=_t(node, "alternatePeripheral"),
        group_name=_t(node, "groupName"),
        prepend_to_name=_t(node, "prependToName"),
        append_to_name=_t(node, "appendToName"),
        header_struct_name=_t(node, "headerStructName"),
        disable_condition=_t(node, "disableCondition"),
        register_properties=load_register_properties(node),
        address_blocks=[load_address_block(e) for e in node.findall("addressBlock")],
        interrupts=[load_interrupt(e) for e in node.findall("interrupt")],
        registers=registers,
    )


def load_cpu(node: ET.Element) -> Cpu:
    return Cpu(
        name=_required(node, "cpu", "name"),
        revision=_required(node, "cpu", "revision"),
        endian=parse_enum(Endian, _required(node, "cpu", "endian")),
        mpu_present=_opt_bool(node, "mpuPresent"),
        fpu_present=_opt_bool(node, "fpuPresent"),
        nvic_prio_bits=_opt_int(node, "nvicPrioBits"),
        vendor_systick_config=_opt_bool(node, "vendorSystickConfig"),
    )


def load_device(root: ET.Element) -> Device:
    name = _required(root, "device", "name")
    version = _required(root, "device", "version")
    description = _required(root, "device", "description")
    address_unit_bits = parse_int(_required(root, "device", "addressUnitBits"))
    width = parse_int(_required(root, "device", "width"))

    cpu_node = root.find("cpu")
    perips_node = root.find("peripherals")
    if perips_node is None:
        raise MissingField("device", "peripherals")

    device = Device(
        name=name,
        version=version,
        description=description,
        address_unit_bits=address_unit_bits,
        width=width,
        vendor=_t(root, "vendor"),
        vendor_id=_t(root, "vendorID"),
        series=_t(root, "series"),
        license_text=_t(root, "licenseText"),
        header_system_filename=_t(root, "headerSystemFilename"),
        header_definitions_prefix=_t(root, "headerDefinitionsPrefix"),
        cpu=load_cpu(cpu_node) if cpu_node is not None else None,
        register_properties=load_register_properties(root),
        peripherals=[load_peripheral(p) for p in perips_node.findall("peripheral")],
    )
    log.info("Loaded SVD device=%s peripherals=%d", device.name, len(device.peripherals))
    return device


def parse_svd(text: Union[str, bytes]) -> Device:
    return load_device(ET.fromstring(text))


def load_svd(path: Path) -> Device:
    return load_device(ET.parse(path).getroot())
