"""Dense ordering rules for categories and topics.

Every function here is pure: it takes a group (records exposing ``id`` and
``order``; topics also ``completed``) and returns a fresh ``{id: order}``
mapping. Inputs are never mutated. Records are read in their current
``order``; ties keep their position in the input (``sorted`` is stable), so
repeated operations never make entries jump around.
"""

from collections.abc import Iterable, Sequence
from typing import Protocol


class Orderable(Protocol):
    id: int
    order: int


class Completable(Orderable, Protocol):
    completed: bool


def _in_order(group: Iterable[Orderable]) -> list[Orderable]:
    return sorted(group, key=lambda record: record.order)


def _enumerate_ids(ids: Iterable[int]) -> dict[int, int]:
    return {entity_id: position for position, entity_id in enumerate(ids)}


def append_to_end(group: Sequence[Orderable]) -> int:
    """Order for a new entity placed after everything in the group."""
    return len(group)


def compact_after_removal(group: Iterable[Orderable], removed_id: int) -> dict[int, int]:
    """Re-index the survivors of a removal to 0..count-2, keeping their relative order."""
    return _enumerate_ids(record.id for record in _in_order(group) if record.id != removed_id)


def insert_at(group: Iterable[Orderable], entity_id: int, target_index: int) -> dict[int, int]:
    """Place ``entity_id`` at ``target_index`` and shift the entities at or after it.

    The index is clamped to ``[0, count]``, where ``count`` excludes the
    inserted entity. If the entity already belongs to the group it is taken
    out first, which turns the insert into a within-group move.
    """
    ids = [record.id for record in _in_order(group) if record.id != entity_id]
    index = max(0, min(target_index, len(ids)))
    ids.insert(index, entity_id)
    return _enumerate_ids(ids)


def sort_by_completion_then_order(group: Iterable[Completable]) -> dict[int, int]:
    """Completed entities first, each half keeping its prior order."""
    ordered = sorted(_in_order(group), key=lambda record: not record.completed)
    return _enumerate_ids(record.id for record in ordered)


def reindex_by_explicit_sequence(ids: Iterable[int]) -> dict[int, int]:
    """Order equals position in the given sequence."""
    return _enumerate_ids(ids)


def changed_orders(group: Iterable[Orderable], mapping: dict[int, int]) -> dict[int, int]:
    """Subset of ``mapping`` whose order differs from the record's current one."""
    current = {record.id: record.order for record in group}
    return {
        entity_id: order for entity_id, order in mapping.items() if current.get(entity_id) != order
    }


def is_dense(orders: Iterable[int]) -> bool:
    """True when the orders are exactly 0..n-1."""
    values = sorted(orders)
    return values == list(range(len(values)))
