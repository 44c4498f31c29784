"""Rust accessor generation.

Each device becomes a ``pub mod``; peripherals become nested modules with
``read_*``/``write_*``/``*_ptr`` functions at fixed addresses, and groups of
similar peripherals share a handle struct carrying the base address.
Registers with sub-fields get a newtype wrapper with mask/shift accessors.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, List, Optional

from svdgen.codegen.writer import CodeWriter
from svdgen.errors import UnsupportedFeature
from svdgen.svd.grouping import (
    FieldsGroup,
    NamedPeripheral,
    PeripheralsGroup,
    group_fields,
    group_peripherals,
    make_names_unique,
)
from svdgen.svd.model import Access, Cluster, Device, Field, Interrupt, Peripheral, Register, RegisterOrCluster
from svdgen.svd.similar import SimilarityOptions
from svdgen.utils.bits import rust_get_body, rust_set_body
from svdgen.utils.logger import get_logger
from svdgen.utils.names import doc_text

log = get_logger(__name__)

_STORAGE_TYPES = {8: "u8", 16: "u16", 32: "u32", 64: "u64"}
INTERRUPT_MODULE = "interrupt"


@dataclass(frozen=True)
class EmitterOptions:
    with_fields: bool = True  # newtype wrappers with field accessors
    group_fields: bool = True  # NAME0..NAMEn as one indexed accessor
    bool_fields: bool = True  # 1-bit fields as bool
    group_peripherals: bool = True
    with_doc: bool = True


def storage_type(size: int) -> str:
    try:
        return _STORAGE_TYPES[size]
    except KeyError:
        raise UnsupportedFeature(f"{size}-bit register") from None


def _can_read(access: Optional[Access]) -> bool:
    return access is None or access.is_read


def _can_write(access: Optional[Access]) -> bool:
    return access is None or access.is_write


def _distinct_interrupts(d: Device) -> List[Interrupt]:
    """One entry per interrupt name, ordered by number."""
    interrupts: Dict[str, Interrupt] = {}
    for p in d.peripherals:
        for i in p.interrupts:
            interrupts.setdefault(i.name, i)
    return sorted(interrupts.values(), key=lambda i: (i.value, i.name))


class RustGenerator:
    def __init__(self, options: Optional[EmitterOptions] = None) -> None:
        self.options = options or EmitterOptions()

    def generate_device(self, device: Device) -> str:
        """Return the Rust module for ``device``; raises before producing any text on failure."""
        w = CodeWriter()
        self._device(w, device)
        return w.getvalue()

    # -- helpers

    def _doc(self, w: CodeWriter, text: Optional[str]) -> None:
        if self.options.with_doc and text:
            w.line(f'#[doc = "{doc_text(text)}"]')

    # -- device / peripherals

    def _device(self, w: CodeWriter, d: Device) -> None:
        w.line("#[allow(non_snake_case)]")
        w.line("#[allow(dead_code)]")
        w.line("#[allow(non_camel_case_types)]")
        self._doc(w, d.description)
        interrupts = _distinct_interrupts(d)
        taken = (INTERRUPT_MODULE,) if interrupts else ()
        with w.block(f"pub mod {d.name}"):
            if d.cpu is not None and d.cpu.nvic_prio_bits is not None:
                w.line(f"pub const NVIC_PRIO_BITS: u8 = {d.cpu.nvic_prio_bits};")

            if self.options.group_peripherals:
                options = SimilarityOptions(ignore_fields=not self.options.with_fields)
                groups, individuals = group_peripherals(d.peripherals, options, taken)
            else:
                groups = []
                names = make_names_unique((p.name for p in d.peripherals), taken)
                individuals = [NamedPeripheral(name=n, peripheral=p) for n, p in zip(names, d.peripherals)]

            by_name: Dict[str, Peripheral] = {}
            for p in d.peripherals:
                by_name.setdefault(p.name, p)

            for g in groups:
                self._peripherals_group(w, g, by_name)
            for np in individuals:
                self._peripheral(w, np)
            self._interrupts(w, interrupts)

    def _peripheral(self, w: CodeWriter, np: NamedPeripheral) -> None:
        p = np.peripheral
        log.debug("peripheral %s at 0x%08X", np.name, p.base_address)
        self._doc(w, p.description)
        with w.block(f"pub mod {np.name}"):
            w.line("use core;")
            self._registers(w, p.registers, p.base_address)

    def _registers(self, w: CodeWriter, registers: Optional[List[RegisterOrCluster]], base: int) -> None:
        for rc in registers or ():
            if isinstance(rc, Register):
                self._register(w, rc, base + rc.address_offset)
                continue
            self._doc(w, rc.description)
            with w.block(f"pub mod {rc.name}"):
                w.line("use core;")
                self._registers(w, rc.registers, base + rc.address_offset)

    def _register(self, w: CodeWriter, r: Register, address: int) -> None:
        ty = self._fields(w, r)

        if r.is_read:
            self._doc(w, r.description)
            with w.block(f"pub unsafe fn read_{r.name}() -> {ty}"):
                w.line(f"let ptr = 0x{address:x} as *const {ty};")
                w.line("core::ptr::read_volatile(ptr)")

        if r.is_write:
            self._doc(w, r.description)
            with w.block(f"pub unsafe fn write_{r.name}<T: Into<{ty}>>(value: T)"):
                w.line(f"let ptr = 0x{address:x} as *mut {ty};")
                w.line("core::ptr::write_volatile(ptr, value.into());")

        constness = "mut" if r.is_write else "const"
        self._doc(w, r.description)
        with w.block(f"pub fn {r.name}_ptr() -> *{constness} {ty}"):
            w.line(f"0x{address:x} as *{constness} {ty}")

    def _group_registers(self, g: PeripheralsGroup, by_name: Dict[str, Peripheral]) -> List[Register]:
        p: Optional[Peripheral] = next((p for p in g.peripherals if p.registers), g.peripherals[0])
        registers: List[Register] = []
        seen_regs: set[str] = set()
        visited: set[int] = set()
        while p is not None and id(p) not in visited:
            visited.add(id(p))
            for rc in p.registers or ():
                if isinstance(rc, Cluster):
                    raise UnsupportedFeature(f"cluster {rc.name} in peripheral group {g.struct_name}")
                if rc.name not in seen_regs:
                    seen_regs.add(rc.name)
                    registers.append(rc)
            source = p.derived_from or p.resolved_from
            p = by_name.get(source) if source else None
        return registers

    def _peripherals_group(self, w: CodeWriter, g: PeripheralsGroup, by_name: Dict[str, Peripheral]) -> None:
        log.debug("peripheral group %s: %s", g.struct_name, ", ".join(p.name for p in g.peripherals))
        s = g.struct_name
        self._doc(w, g.description)
        with w.block(f"pub mod {g.module_name}"):
            w.line("use core;")
            w.line("#[derive(Copy, Clone, PartialEq, Eq)]")
            w.line(f"pub struct {s} {{ pub base_address: usize }}")
            for p in g.peripherals:
                w.line(f"pub const {p.name}: {s} = {s} {{ base_address: 0x{p.base_address:x} }};")
            for r in self._group_registers(g, by_name):
                self._register_for_group(w, r, s)

    def _register_for_group(self, w: CodeWriter, r: Register, struct_name: str) -> None:
        ty = self._fields(w, r)
        offset = r.address_offset
        with w.block(f"impl {struct_name}"):
            if r.is_read:
                self._doc(w, r.description)
                with w.block(f"pub unsafe fn read_{r.name}(&self) -> {ty}"):
                    w.line(f"let ptr = (self.base_address + 0x{offset:x}) as *const {ty};")
                    w.line("core::ptr::read_volatile(ptr)")

            if r.is_write:
                self._doc(w, r.description)
                with w.block(f"pub unsafe fn write_{r.name}<T: Into<{ty}>>(&self, value: T)"):
                    w.line(f"let ptr = (self.base_address + 0x{offset:x}) as *mut {ty};")
                    w.line("core::ptr::write_volatile(ptr, value.into());")

            constness = "mut" if r.is_write else "const"
            self._doc(w, r.description)
            with w.block(f"pub fn {r.name}_ptr(&self) -> *{constness} {ty}"):
                w.line(f"(self.base_address + 0x{offset:x}) as *{constness} {ty}")

    def _interrupts(self, w: CodeWriter, interrupts: List[Interrupt]) -> None:
        if not interrupts:
            return
        with w.block(f"pub mod {INTERRUPT_MODULE}"):
            for i in interrupts:
                self._doc(w, i.description)
                w.line(f"pub const {i.name}: u32 = {i.value};")

    # -- fields

    def _fields(self, w: CodeWriter, r: Register) -> str:
        """Emit the wrapper type for ``r`` if it needs one; return the value type."""
        ty = storage_type(r.size)
        fields = r.fields or []
        for f in fields:
            if f.bit_range.msb >= r.size:
                raise UnsupportedFeature(
                    f"field {r.name}.{f.name} bits [{f.bit_range.msb}:{f.lsb}] outside a {r.size}-bit register"
                )

        needs_wrapper = bool(fields) and (len(fields) > 1 or fields[0].width != r.size)
        if not (self.options.with_fields and needs_wrapper):
            return ty

        self._doc(w, r.description)
        w.line("#[repr(transparent)]")
        w.line("#[derive(Copy, Clone, PartialEq, Eq)]")
        w.line(f"pub struct {r.name}(pub {ty});")
        with w.block(f"impl From<{ty}> for {r.name}"):
            with w.block(f"fn from(value: {ty}) -> {r.name}"):
                w.line(f"{r.name}(value)")

        with w.block(f"impl {r.name}"):
            if self.options.group_fields:
                groups, individuals = group_fields(fields)
            else:
                groups, individuals = [], fields
            for g in groups:
                self._fields_group(w, g, ty, r)
            for f in individuals:
                self._field(w, f, ty, r)

        return r.name

    def _as_bool(self, width: int) -> bool:
        return self.options.bool_fields and width == 1

    def _bits_get(self, w: CodeWriter, width: int, ty: str) -> None:
        for line in rust_get_body(width, ty, self._as_bool(width)):
            w.line(line)

    def _bits_set(self, w: CodeWriter, width: int, ty: str) -> None:
        for line in rust_set_body(width, ty, self._as_bool(width)):
            w.line(line)

    def _value_type(self, width: int, ty: str) -> str:
        return "bool" if self._as_bool(width) else ty

    def _field(self, w: CodeWriter, f: Field, ty: str, r: Register) -> None:
        access = f.access if f.access is not None else r.access
        vty = self._value_type(f.width, ty)

        if _can_read(access):
            self._doc(w, f.description)
            with w.block(f"pub fn {f.name}(&self) -> {vty}"):
                w.line(f"let lsb = {f.lsb};")
                self._bits_get(w, f.width, ty)

        if _can_write(access):
            self._doc(w, f.description)
            with w.block(f"pub fn set_{f.name}(&mut self, value: {vty})"):
                w.line(f"let lsb = {f.lsb};")
                self._bits_set(w, f.width, ty)

    def _fields_group(self, w: CodeWriter, g: FieldsGroup, ty: str, r: Register) -> None:
        access = g.access if g.access is not None else r.access
        vty = self._value_type(g.width, ty)

        if _can_read(access):
            self._doc(w, g.description)
            with w.block(f"pub fn {g.prefix}(&self, index: usize) -> {vty}"):
                w.line(f"assert!(index < {g.count});")
                w.line(f"let lsb = {g.lsb} + index * {g.lsb_increment};")
                self._bits_get(w, g.width, ty)

        if _can_write(access):
            self._doc(w, g.description)
            with w.block(f"pub fn set_{g.prefix}(&mut self, index: usize, value: {vty})"):
                w.line(f"assert!(index < {g.count});")
                w.line(f"let lsb = {g.lsb} + index * {g.lsb_increment};")
                self._bits_set(w, g.width, ty)
