from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Iterable, List, Optional, Sequence, Tuple

from svdgen.svd.model import Access, Field, Peripheral
from svdgen.svd.similar import SimilarityOptions, peripherals_similar
from svdgen.utils.logger import get_logger
from svdgen.utils.names import common_prefix, extract_prefix

log = get_logger(__name__)


@dataclass
class PeripheralsGroup:
    module_name: str
    struct_name: str
    peripherals: List[Peripheral]

    @property
    def description(self) -> Optional[str]:
        return next((p.description for p in self.peripherals if p.description), None)


@dataclass
class NamedPeripheral:
    name: str
    peripheral: Peripheral


def group_struct_name(peripherals: Sequence[Peripheral]) -> str:
    for p in peripherals:
        if p.header_struct_name:
            return p.header_struct_name

    first = peripherals[0].name
    if first[-1:].isdigit():
        return extract_prefix(first)[0]

    return common_prefix(p.name for p in peripherals)


def make_names_unique(names: Iterable[str], taken: Iterable[str] = ()) -> List[str]:
    """Rename later duplicates to ``NAME_N`` with the smallest free ``N``.

    Names in ``taken`` are already in use, so even their first occurrence
    in ``names`` is renamed.
    """
    names = list(names)
    seen: set[str] = set(taken)
    reserved = set(names) | seen
    out: List[str] = []
    for name in names:
        if name in seen:
            n = 0
            while f"{name}_{n}" in reserved:
                n += 1
            new_name = f"{name}_{n}"
            reserved.add(new_name)
            log.debug("renaming duplicate %s to %s", name, new_name)
            name = new_name
        seen.add(name)
        out.append(name)
    return out


def group_peripherals(
    peripherals: Iterable[Peripheral],
    options: SimilarityOptions,
    taken: Iterable[str] = (),
) -> Tuple[List[PeripheralsGroup], List[NamedPeripheral]]:
    """Cluster similar peripherals so they can share one handle type.

    Returns the groups (two or more members) and the peripherals that are
    emitted on their own, with module names made unique across both.
    """
    buckets: List[List[Peripheral]] = []
    for p in peripherals:
        for bucket in buckets:
            if peripherals_similar(bucket[0], p, options):
                bucket.append(p)
                break
        else:
            buckets.append([p])

    groups: List[PeripheralsGroup] = []
    individuals: List[Peripheral] = []
    for bucket in buckets:
        if len(bucket) == 1:
            individuals.extend(bucket)
            continue
        name = group_struct_name(bucket)
        if not name:
            log.debug("no shared name for %s, emitting individually", [p.name for p in bucket])
            individuals.extend(bucket)
            continue
        groups.append(PeripheralsGroup(module_name=name, struct_name=name, peripherals=bucket))

    names = make_names_unique([p.name for p in individuals] + [g.module_name for g in groups], taken)
    named = [NamedPeripheral(name=n, peripheral=p) for n, p in zip(names, individuals)]
    for g, n in zip(groups, names[len(individuals):]):
        g.module_name = n

    log.info("grouped peripherals: %d groups, %d individual", len(groups), len(named))
    return groups, named


@dataclass(frozen=True)
class FieldsGroup:
    prefix: str
    lsb: int
    width: int
    count: int
    lsb_increment: int
    description: Optional[str] = None
    access: Optional[Access] = None


def _as_group(prefix: str, members: List[Tuple[Field, Optional[int]]]) -> Optional[FieldsGroup]:
    if not prefix or len(members) < 2:
        return None
    if any(suffix is None for _, suffix in members):
        return None

    ordered = sorted(members, key=lambda m: m[1])
    if [suffix for _, suffix in ordered] != list(range(len(ordered))):
        return None

    fields = [f for f, _ in ordered]
    width = fields[0].width
    access = fields[0].access
    stride = fields[1].lsb - fields[0].lsb
    if stride <= 0:
        return None
    if any(f.width != width or f.access != access for f in fields):
        return None
    if any(b.lsb - a.lsb != stride for a, b in zip(fields, fields[1:])):
        return None

    description = next((f.description for f, _ in members if f.description), None)
    return FieldsGroup(
        prefix=prefix,
        lsb=fields[0].lsb,
        width=width,
        count=len(fields),
        lsb_increment=stride,
        description=description,
        access=access,
    )


def group_fields(fields: Iterable[Field]) -> Tuple[List[FieldsGroup], List[Field]]:
    """Group ``NAME0..NAMEn`` fields with a regular layout into indexed accessors.

    Fields that do not form a group are returned in their original order.
    """
    fields = list(fields)
    buckets: Dict[str, List[Tuple[Field, Optional[int]]]] = {}
    for f in fields:
        prefix, suffix = extract_prefix(f.name)
        buckets.setdefault(prefix, []).append((f, suffix))

    groups: List[FieldsGroup] = []
    grouped: set[int] = set()
    for prefix, members in buckets.items():
        g = _as_group(prefix, members)
        if g is not None:
            groups.append(g)
            grouped.update(id(f) for f, _ in members)

    individuals = [f for f in fields if id(f) not in grouped]
    return groups, individuals
