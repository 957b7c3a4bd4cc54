"""Category hierarchy helpers."""

from __future__ import annotations

import pytest

from examprep.domain.models import CategoryNode
from examprep.services.categories import (
    CategoryService,
    build_category_tree,
    descendant_ids,
    find_category,
    flatten_categories,
)


def _rows() -> list[CategoryNode]:
    return [
        CategoryNode(id=1, name="Science"),
        CategoryNode(id=2, name="Physics", parent_id=1),
        CategoryNode(id=3, name="Chemistry", parent_id=1),
        CategoryNode(id=4, name="Mechanics", parent_id=2),
        CategoryNode(id=5, name="Arts"),
        CategoryNode(id=6, name="Lost", parent_id=99),
    ]


def test_tree_is_sorted_by_name_and_drops_orphans():
    tree = build_category_tree(_rows())

    assert [node.name for node in tree] == ["Arts", "Science"]
    science = tree[1]
    assert [node.name for node in science.subcategories] == ["Chemistry", "Physics"]
    assert find_category(tree, 6) is None


def test_descendant_ids_are_breadth_first_and_include_start():
    tree = build_category_tree(_rows())

    assert descendant_ids(tree, 1) == [1, 3, 2, 4]
    assert descendant_ids(tree, 4) == [4]
    assert descendant_ids(tree, 404) == []


def test_flatten_reports_depth():
    flat = flatten_categories(build_category_tree(_rows()))

    assert [(item.name, item.level) for item in flat] == [
        ("Arts", 0),
        ("Science", 0),
        ("Chemistry", 1),
        ("Physics", 1),
        ("Mechanics", 2),
    ]


@pytest.mark.asyncio
async def test_service_caches_tree_until_invalidated(session):
    service = CategoryService(session)
    root = await service.create("Maths")
    await service.create("Algebra", parent_id=root.id)

    tree = await service.fetch_tree()
    assert await service.fetch_tree() is tree
    assert len(await service.descendant_ids(root.id)) == 2

    # Rows added behind the service's back stay invisible until invalidated.
    other = CategoryService(session)
    await other.create("Geometry", parent_id=root.id)
    assert len(await service.descendant_ids(root.id)) == 2
    service.invalidate()
    assert len(await service.descendant_ids(root.id)) == 3
