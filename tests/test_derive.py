from __future__ import annotations

import pytest

from svdgen.errors import DerivationCycle, UnresolvedReference
from svdgen.svd.derive import merge_field, resolve_device, resolve_scope
from svdgen.svd.model import Access, BitRange, Field, Protection, ReadAction


def _field(name, derived_from=None, **kw):
    return Field(name=name, bit_range=BitRange(lsb=0, msb=0), derived_from=derived_from, **kw)


def test_resolving_underived_entity_is_noop():
    f = _field("A", description="a", access=Access.READ_ONLY)
    before = (f.description, f.access, f.resolved_from)
    resolve_scope([f], merge_field)
    assert (f.description, f.access, f.resolved_from) == before


def test_chain_is_transitive_and_first_wins():
    a = _field("A", "B", description="from A")
    b = _field("B", "C", access=Access.WRITE_ONLY)
    c = _field("C", description="from C", read_action=ReadAction.CLEAR, access=Access.READ_ONLY)
    resolve_scope([a, b, c], merge_field)

    assert a.derived_from is None
    assert a.description == "from A"
    assert a.access is Access.WRITE_ONLY
    assert a.read_action is ReadAction.CLEAR
    assert a.resolved_from == "B"
    assert b.description == "from C"
    assert b.resolved_from == "C"


def test_chain_resolves_regardless_of_order():
    c = _field("C", description="c")
    b = _field("B", "C")
    a = _field("A", "B")
    resolve_scope([a, b, c], merge_field)
    assert a.description == b.description == "c"


def test_unresolved_reference():
    with pytest.raises(UnresolvedReference) as exc:
        resolve_scope([_field("A", "NOPE")], merge_field)
    assert exc.value.reference == "NOPE"
    assert exc.value.name == "A"


def test_cycle_detected():
    a, b = _field("A", "B"), _field("B", "A")
    with pytest.raises(DerivationCycle) as exc:
        resolve_scope([a, b], merge_field)
    assert exc.value.chain == ("A", "B", "A")


def test_self_reference_is_a_cycle():
    with pytest.raises(DerivationCycle):
        resolve_scope([_field("A", "A")], merge_field)


PERIPHERALS = """
<peripheral>
  <name>TIMER0</name>
  <description>Timer</description>
  <baseAddress>0x40010000</baseAddress>
  <protection>s</protection>
  <addressBlock><offset>0</offset><size>0x100</size><usage>registers</usage></addressBlock>
  <interrupt><name>TIMER0</name><value>1</value></interrupt>
  <registers>
    <register>
      <name>CTRL</name>
      <description>Control</description>
      <addressOffset>0</addressOffset>
      <fields>
        <field><name>EN</name><bitOffset>0</bitOffset><bitWidth>1</bitWidth><access>read-write</access></field>
        <field derivedFrom="EN"><name>IE</name><bitOffset>1</bitOffset><bitWidth>1</bitWidth></field>
      </fields>
    </register>
    <register derivedFrom="CTRL">
      <name>CTRL2</name>
      <addressOffset>4</addressOffset>
    </register>
  </registers>
</peripheral>
<peripheral derivedFrom="TIMER0">
  <name>TIMER1</name>
  <baseAddress>0x40011000</baseAddress>
  <interrupt><name>TIMER1</name><value>2</value></interrupt>
</peripheral>
<peripheral derivedFrom="TIMER1">
  <name>TIMER2</name>
  <baseAddress>0x40012000</baseAddress>
</peripheral>
"""


def test_peripheral_derivation(load):
    device = resolve_device(load(PERIPHERALS))
    t0, t1, t2 = device.peripherals

    assert t1.description == "Timer"
    assert t1.base_address == 0x40011000
    assert t1.register_properties.protection is Protection.SECURE
    assert [r.name for r in t1.registers] == ["CTRL", "CTRL2"]
    assert t1.address_blocks == t0.address_blocks
    # interrupts stay with the instance
    assert [i.name for i in t1.interrupts] == ["TIMER1"]
    assert t2.interrupts == []
    assert [r.name for r in t2.registers] == ["CTRL", "CTRL2"]
    assert t2.resolved_from == "TIMER1"
    assert t2.derived_from is None


def test_inherited_registers_are_copies(load):
    device = resolve_device(load(PERIPHERALS))
    t0, t1, _ = device.peripherals
    assert t1.registers[0] is not t0.registers[0]
    t1.registers[0].description = "changed"
    assert t0.registers[0].description == "Control"


def test_nested_scopes_resolved(load):
    device = resolve_device(load(PERIPHERALS))
    for p in device.peripherals:
        ctrl, ctrl2 = p.registers
        assert ctrl2.description == "Control"
        assert [f.name for f in ctrl2.fields] == ["EN", "IE"]
        ie = ctrl.fields[1]
        assert ie.access is Access.READ_WRITE
        assert ie.derived_from is None
        assert ie.bit_range.lsb == 1


def test_own_list_not_replaced(load):
    device = resolve_device(
        load(
            """
            <peripheral>
              <name>A</name><baseAddress>0</baseAddress>
              <registers><register><name>X</name><addressOffset>0</addressOffset></register></registers>
            </peripheral>
            <peripheral derivedFrom="A">
              <name>B</name><baseAddress>0x100</baseAddress>
              <registers><register><name>Y</name><addressOffset>0</addressOffset></register></registers>
            </peripheral>
            """
        )
    )
    assert [r.name for r in device.peripherals[1].registers] == ["Y"]


def test_register_cannot_derive_from_cluster(load):
    device = load(
        """
        <peripheral>
          <name>P</name><baseAddress>0</baseAddress>
          <registers>
            <cluster><name>C</name><addressOffset>0</addressOffset></cluster>
            <register derivedFrom="C"><name>R</name><addressOffset>0x10</addressOffset></register>
          </registers>
        </peripheral>
        """
    )
    with pytest.raises(UnresolvedReference):
        resolve_device(device)


def test_cluster_derivation_and_nested_registers(load):
    device = resolve_device(
        load(
            """
            <peripheral>
              <name>DMA</name><baseAddress>0x40020000</baseAddress>
              <registers>
                <cluster>
                  <name>CH0</name><addressOffset>0</addressOffset><size>16</size>
                  <register><name>CFG</name><addressOffset>0</addressOffset></register>
                  <register derivedFrom="CFG"><name>CFG2</name><addressOffset>2</addressOffset></register>
                </cluster>
                <cluster derivedFrom="CH0"><name>CH1</name><addressOffset>0x10</addressOffset></cluster>
              </registers>
            </peripheral>
            """
        )
    )
    ch0, ch1 = device.peripherals[0].registers
    assert ch1.register_properties.size == 16
    assert [r.name for r in ch1.registers] == ["CFG", "CFG2"]
    assert ch1.registers[1].resolved_from == "CFG"


def test_peripheral_cycle(load):
    device = load(
        """
        <peripheral derivedFrom="B"><name>A</name><baseAddress>0</baseAddress></peripheral>
        <peripheral derivedFrom="C"><name>B</name><baseAddress>0x10</baseAddress></peripheral>
        <peripheral derivedFrom="A"><name>C</name><baseAddress>0x20</baseAddress></peripheral>
        """
    )
    with pytest.raises(DerivationCycle) as exc:
        resolve_device(device)
    assert exc.value.chain == ("A", "B", "C", "A")


def test_unresolved_peripheral(load):
    device = load('<peripheral derivedFrom="GHOST"><name>A</name><baseAddress>0</baseAddress></peripheral>')
    with pytest.raises(UnresolvedReference):
        resolve_device(device)
