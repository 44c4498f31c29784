from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional, Union

DEFAULT_REGISTER_SIZE = 32


class Access(Enum):
    READ_ONLY = "read-only"
    WRITE_ONLY = "write-only"
    READ_WRITE = "read-write"
    WRITE_ONCE = "writeOnce"
    READ_WRITE_ONCE = "read-writeOnce"

    @property
    def is_read(self) -> bool:
        return self in (Access.READ_ONLY, Access.READ_WRITE, Access.READ_WRITE_ONCE)

    @property
    def is_write(self) -> bool:
        return self is not Access.READ_ONLY


class Protection(Enum):
    SECURE = "s"
    NON_SECURE = "n"
    PRIVILEGED = "p"


class AddressBlockUsage(Enum):
    REGISTERS = "registers"
    BUFFER = "buffer"
    RESERVED = "reserved"


class EnumUsage(Enum):
    READ = "read"
    WRITE = "write"
    READ_WRITE = "read-write"


class ModifiedWriteValues(Enum):
    ONE_TO_CLEAR = "oneToClear"
    ONE_TO_SET = "oneToSet"
    ONE_TO_TOGGLE = "oneToToggle"
    ZERO_TO_CLEAR = "zeroToClear"
    ZERO_TO_SET = "zeroToSet"
    ZERO_TO_TOGGLE = "zeroToToggle"
    CLEAR = "clear"
    SET = "set"
    MODIFY = "modify"


class ReadAction(Enum):
    CLEAR = "clear"
    SET = "set"
    MODIFY = "modify"
    MODIFY_EXTERNAL = "modifyExternal"


class DataType(Enum):
    UINT8 = "uint8_t"
    UINT16 = "uint16_t"
    UINT32 = "uint32_t"
    UINT64 = "uint64_t"
    INT8 = "int8_t"
    INT16 = "int16_t"
    INT32 = "int32_t"
    INT64 = "int64_t"
    UINT8_PTR = "uint8_t *"
    UINT16_PTR = "uint16_t *"
    UINT32_PTR = "uint32_t *"
    UINT64_PTR = "uint64_t *"
    INT8_PTR = "int8_t *"
    INT16_PTR = "int16_t *"
    INT32_PTR = "int32_t *"
    INT64_PTR = "int64_t *"


class Endian(Enum):
    LITTLE = "little"
    BIG = "big"
    SELECTABLE = "selectable"
    OTHER = "other"


@dataclass
class RegisterProperties:
    """Register defaults; ``None`` means inherit from the enclosing level."""

    size: Optional[int] = None
    access: Optional[Access] = None
    protection: Optional[Protection] = None
    reset_value: Optional[int] = None
    reset_mask: Optional[int] = None

    def merge(self, other: RegisterProperties) -> RegisterProperties:
        return RegisterProperties(
            size=self.size if self.size is not None else other.size,
            access=self.access if self.access is not None else other.access,
            protection=self.protection if self.protection is not None else other.protection,
            reset_value=self.reset_value if self.reset_value is not None else other.reset_value,
            reset_mask=self.reset_mask if self.reset_mask is not None else other.reset_mask,
        )


@dataclass
class DimElement:
    dim: Optional[int] = None
    dim_increment: Optional[int] = None
    dim_index: Optional[str] = None


@dataclass(frozen=True)
class BitRange:
    lsb: int
    msb: int

    @property
    def width(self) -> int:
        return self.msb - self.lsb + 1


@dataclass(frozen=True)
class EnumeratedValue:
    name: str
    description: Optional[str] = None
    value: Optional[int] = None
    do_not_care: int = 0
    is_default: bool = False


@dataclass
class EnumeratedValues:
    values: List[EnumeratedValue]
    derived_from: Optional[str] = None
    name: Optional[str] = None
    usage: Optional[EnumUsage] = None


@dataclass
class Field:
    name: str
    bit_range: BitRange
    derived_from: Optional[str] = None
    resolved_from: Optional[str] = None
    description: Optional[str] = None
    access: Optional[Access] = None
    modified_write_values: Optional[ModifiedWriteValues] = None
    read_action: Optional[ReadAction] = None
    enumerated_values: List[EnumeratedValues] = field(default_factory=list)

    @property
    def lsb(self) -> int:
        return self.bit_range.lsb

    @property
    def width(self) -> int:
        return self.bit_range.width


@dataclass
class Register:
    name: str
    address_offset: int
    derived_from: Optional[str] = None
    resolved_from: Optional[str] = None
    dim: DimElement = field(default_factory=DimElement)
    display_name: Optional[str] = None
    description: Optional[str] = None
    alternate_group: Optional[str] = None
    alternate_register: Optional[str] = None
    register_properties: RegisterProperties = field(default_factory=RegisterProperties)
    data_type: Optional[DataType] = None
    modified_write_values: Optional[ModifiedWriteValues] = None
    read_action: Optional[ReadAction] = None
    fields: Optional[List[Field]] = None

    @property
    def size(self) -> int:
        size = self.register_properties.size
        return DEFAULT_REGISTER_SIZE if size is None else size

    @property
    def access(self) -> Optional[Access]:
        return self.register_properties.access

    @property
    def is_read(self) -> bool:
        return self.access is None or self.access.is_read

    @property
    def is_write(self) -> bool:
        return self.access is None or self.access.is_write


@dataclass
class Cluster:
    name: str
    address_offset: int
    derived_from: Optional[str] = None
    resolved_from: Optional[str] = None
    dim: DimElement = field(default_factory=DimElement)
    description: Optional[str] = None
    alternate_cluster: Optional[str] = None
    header_struct_name: Optional[str] = None
    register_properties: RegisterProperties = field(default_factory=RegisterProperties)
    registers: List[RegisterOrCluster] = field(default_factory=list)


RegisterOrCluster = Union[Register, Cluster]


@dataclass(frozen=True)
class AddressBlock:
    offset: int
    size: int
    usage: AddressBlockUsage
    protection: Optional[Protection] = None


@dataclass(frozen=True)
class Interrupt:
    name: str
    value: int
    description: Optional[str] = None


@dataclass
class Peripheral:
    name: str
    base_address: int
    derived_from: Optional[str] = None
    resolved_from: Optional[str] = None
    dim: DimElement = field(default_factory=DimElement)
    version: Optional[str] = None
    description: Optional[str] = None
    alternate_peripheral: Optional[str] = None
    group_name: Optional[str] = None
    prepend_to_name: Optional[str] = None
    append_to_name: Optional[str] = None
    header_struct_name: Optional[str] = None
    disable_condition: Optional[str] = None
    register_properties: RegisterProperties = field(default_factory=RegisterProperties)
    address_blocks: List[AddressBlock] = field(default_factory=list)
    interrupts: List[Interrupt] = field(default_factory=list)
    registers: Optional[List[RegisterOrCluster]] = None


@dataclass
class Cpu:
    name: str
    revision: str
    endian: Endian
    mpu_present: Optional[bool] = None
    fpu_present: Optional[bool] = None
    nvic_prio_bits: Optional[int] = None
    vendor_systick_config: Optional[bool] = None


@dataclass
class Device:
    name: str
    version: str
    description: str
    address_unit_bits: int
    width: int
    vendor: Optional[str] = None
    vendor_id: Optional[str] = None
    series: Optional[str] = None
    license_text: Optional[str] = None
    header_system_filename: Optional[str] = None
    header_definitions_prefix: Optional[str] = None
    cpu: Optional[Cpu] = None
    register_properties: RegisterProperties = field(default_factory=RegisterProperties)
    peripherals: List[Peripheral] = field(default_factory=list)
