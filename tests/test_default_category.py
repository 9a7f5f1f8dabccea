"""Tests for the default category guarantee."""

from datetime import UTC, datetime

from planboard.schemas.board import OrderPatch
from planboard.schemas.category import CategoryResponse
from planboard.services.default_category import find_default_category, plan_default_category


def make_category(category_id, name, order):
    return CategoryResponse(
        id=category_id, user_id=1, name=name, order=order, created_at=datetime.now(UTC)
    )


def test_empty_board_creates_default_at_zero():
    plan = plan_default_category([])

    assert plan.needs_default
    assert plan.create_at == 0
    assert plan.order_patches == []
    assert plan.categories == []


def test_existing_default_is_left_alone():
    categories = [make_category(1, "General", 0), make_category(2, "Work", 1)]

    plan = plan_default_category(categories)

    assert not plan.needs_default
    assert plan.order_patches == []
    assert plan.categories == categories


def test_missing_default_shifts_when_zero_is_taken():
    categories = [make_category(1, "Work", 0), make_category(2, "Personal", 1)]

    plan = plan_default_category(categories)

    assert plan.create_at == 0
    assert plan.order_patches == [OrderPatch(id=1, order=1), OrderPatch(id=2, order=2)]
    assert [(c.name, c.order) for c in plan.categories] == [("Work", 1), ("Personal", 2)]
    # Inputs are untouched
    assert [c.order for c in categories] == [0, 1]


def test_missing_default_without_shift_when_zero_is_free():
    categories = [make_category(1, "Work", 1), make_category(2, "Personal", 2)]

    plan = plan_default_category(categories)

    assert plan.create_at == 0
    assert plan.order_patches == []
    assert plan.categories == categories


def test_custom_default_name():
    categories = [make_category(1, "General", 0)]

    plan = plan_default_category(categories, name="Inbox")

    assert plan.needs_default
    assert [p.id for p in plan.order_patches] == [1]


def test_find_default_category():
    general = make_category(2, "General", 1)
    assert find_default_category([make_category(1, "Work", 0), general]) == general
    assert find_default_category([make_category(1, "Work", 0)]) is None
