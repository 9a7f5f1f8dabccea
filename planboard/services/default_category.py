"""Guarantee that every board has its default catch-all category."""

import logging
from dataclasses import dataclass, field

from planboard.schemas.board import OrderPatch
from planboard.schemas.category import CategoryResponse

logger = logging.getLogger(__name__)

DEFAULT_CATEGORY_NAME = "General"


@dataclass(frozen=True)
class DefaultCategoryPlan:
    """What has to happen for the default category to exist at order 0.

    ``categories`` is the fetched set with any shifts already applied,
    ``order_patches`` are the shifts to persist, and ``create_at`` is the order
    for the default category to insert (``None`` when it already exists).
    """

    categories: list[CategoryResponse]
    order_patches: list[OrderPatch] = field(default_factory=list)
    create_at: int | None = None

    @property
    def needs_default(self) -> bool:
        return self.create_at is not None


def find_default_category(
    categories: list[CategoryResponse], name: str = DEFAULT_CATEGORY_NAME
) -> CategoryResponse | None:
    """Return the default category, if present."""
    return next((category for category in categories if category.name == name), None)


def plan_default_category(
    categories: list[CategoryResponse], name: str = DEFAULT_CATEGORY_NAME
) -> DefaultCategoryPlan:
    """Plan the insert (and shifts) that put the default category at order 0.

    Existing categories are never deleted or renamed. When order 0 is taken,
    every category moves up by one; when it is free, nothing moves.
    """
    if find_default_category(categories, name) is not None:
        return DefaultCategoryPlan(categories=list(categories))

    if not any(category.order == 0 for category in categories):
        return DefaultCategoryPlan(categories=list(categories), create_at=0)

    shifted = [category.model_copy(update={"order": category.order + 1}) for category in categories]
    patches = [OrderPatch(id=category.id, order=category.order) for category in shifted]
    logger.info(f"Shifting {len(shifted)} categories to make room for '{name}'")
    return DefaultCategoryPlan(categories=shifted, order_patches=patches, create_at=0)
