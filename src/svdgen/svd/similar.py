"""Relaxed structural equality used to decide which entities can share code.

Descriptions, display names and reset values are ignored.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Optional, Sequence, TypeVar

from svdgen.svd.model import Cluster, Field, Peripheral, Register, RegisterOrCluster, RegisterProperties

T = TypeVar("T")


@dataclass(frozen=True)
class SimilarityOptions:
    ignore_fields: bool = False


def _all_similar(
    xs: Optional[Sequence[T]],
    ys: Optional[Sequence[T]],
    fn: Callable[[T, T, SimilarityOptions], bool],
    options: SimilarityOptions,
) -> bool:
    xs, ys = xs or (), ys or ()
    if len(xs) != len(ys):
        return False
    return all(fn(x, y, options) for x, y in zip(xs, ys))


def properties_similar(a: RegisterProperties, b: RegisterProperties) -> bool:
    return a.size == b.size and a.access == b.access and a.protection == b.protection


def fields_similar(a: Field, b: Field, options: SimilarityOptions) -> bool:
    if options.ignore_fields:
        return True
    return (
        a.name == b.name
        and a.bit_range == b.bit_range
        and a.access == b.access
        and a.modified_write_values == b.modified_write_values
        and a.read_action == b.read_action
        and a.enumerated_values == b.enumerated_values
    )


def registers_similar(a: Register, b: Register, options: SimilarityOptions) -> bool:
    return (
        a.name == b.name
        and a.address_offset == b.address_offset
        and properties_similar(a.register_properties, b.register_properties)
        and a.modified_write_values == b.modified_write_values
        and a.read_action == b.read_action
        and (options.ignore_fields or _all_similar(a.fields, b.fields, fields_similar, options))
    )


def clusters_similar(a: Cluster, b: Cluster, options: SimilarityOptions) -> bool:
    return (
        a.name == b.name
        and a.address_offset == b.address_offset
        and a.register_properties == b.register_properties
        and _all_similar(a.registers, b.registers, register_or_cluster_similar, options)
    )


def register_or_cluster_similar(a: RegisterOrCluster, b: RegisterOrCluster, options: SimilarityOptions) -> bool:
    if isinstance(a, Register) and isinstance(b, Register):
        return registers_similar(a, b, options)
    if isinstance(a, Cluster) and isinstance(b, Cluster):
        return clusters_similar(a, b, options)
    return False


def _source(p: Peripheral) -> Optional[str]:
    return p.derived_from or p.resolved_from


def peripherals_similar(a: Peripheral, b: Peripheral, options: SimilarityOptions) -> bool:
    sa, sb = _source(a), _source(b)
    if sa == b.name or sb == a.name:
        return True
    if sa is not None and sa == sb:
        return True
    return _all_similar(a.registers, b.registers, register_or_cluster_similar, options)
