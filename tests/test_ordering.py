"""Tests for dense ordering rules."""

from types import SimpleNamespace

from planboard.services.ordering import (
    append_to_end,
    changed_orders,
    compact_after_removal,
    insert_at,
    is_dense,
    reindex_by_explicit_sequence,
    sort_by_completion_then_order,
)


def make_group(*orders, completed=()):
    """Records with ids 1..n at the given orders."""
    return [
        SimpleNamespace(id=index + 1, order=order, completed=(index + 1) in completed)
        for index, order in enumerate(orders)
    ]


def test_append_to_end():
    assert append_to_end([]) == 0
    assert append_to_end(make_group(0, 1, 2)) == 3


def test_compact_after_removal_middle():
    group = make_group(0, 1, 2, 3)
    assert compact_after_removal(group, 2) == {1: 0, 3: 1, 4: 2}


def test_compact_after_removal_follows_prior_order_not_input_order():
    group = make_group(2, 0, 1)  # ids 2, 3, 1 in display order
    assert compact_after_removal(group, 3) == {2: 0, 1: 1}


def test_compact_after_removal_missing_id_reindexes_everything():
    group = make_group(0, 2, 5)
    assert compact_after_removal(group, 99) == {1: 0, 2: 1, 3: 2}


def test_insert_at_shifts_following_entities():
    group = make_group(0, 1, 2)
    assert insert_at(group, 10, 1) == {1: 0, 10: 1, 2: 2, 3: 3}


def test_insert_at_clamps_index():
    group = make_group(0, 1)
    assert insert_at(group, 10, 99) == {1: 0, 2: 1, 10: 2}
    assert insert_at(group, 10, -5) == {10: 0, 1: 1, 2: 2}


def test_insert_at_into_empty_group():
    assert insert_at([], 7, 3) == {7: 0}


def test_insert_at_existing_member_moves_within_group():
    group = make_group(0, 1, 2, 3)
    # Move id 1 (order 0) to index 2
    assert insert_at(group, 1, 2) == {2: 0, 3: 1, 1: 2, 4: 3}


def test_insert_at_does_not_mutate_input():
    group = make_group(0, 1)
    insert_at(group, 10, 0)
    assert [record.order for record in group] == [0, 1]


def test_sort_by_completion_then_order():
    group = make_group(0, 1, 2, completed={2})
    assert sort_by_completion_then_order(group) == {2: 0, 1: 1, 3: 2}


def test_sort_by_completion_is_stable_within_each_half():
    group = make_group(0, 1, 2, 3, 4, completed={2, 4})
    assert sort_by_completion_then_order(group) == {2: 0, 4: 1, 1: 2, 3: 3, 5: 4}


def test_sort_by_completion_repeated_is_idempotent():
    group = make_group(0, 1, 2, completed={3})
    first = sort_by_completion_then_order(group)
    resorted = [
        SimpleNamespace(id=r.id, order=first[r.id], completed=r.completed) for r in group
    ]
    assert sort_by_completion_then_order(resorted) == first


def test_reindex_by_explicit_sequence():
    assert reindex_by_explicit_sequence([5, 3, 9]) == {5: 0, 3: 1, 9: 2}


def test_changed_orders_keeps_only_differences():
    group = make_group(0, 1, 2)
    assert changed_orders(group, {1: 0, 2: 2, 3: 1}) == {2: 2, 3: 1}


def test_changed_orders_includes_new_ids():
    group = make_group(0)
    assert changed_orders(group, {1: 0, 7: 1}) == {7: 1}


def test_is_dense():
    assert is_dense([])
    assert is_dense([2, 0, 1])
    assert not is_dense([0, 2])
    assert not is_dense([0, 0, 1])
