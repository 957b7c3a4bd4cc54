"""Question category hierarchy helpers."""

from __future__ import annotations

from collections import deque
from typing import Iterable

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from examprep.db.models.core import QuestionCategory
from examprep.domain.models import CategoryNode, FlatCategory


def build_category_tree(rows: Iterable[QuestionCategory | CategoryNode]) -> list[CategoryNode]:
    """Nest flat ``(id, name, parent_id)`` rows into a name-sorted forest.

    Rows whose parent is missing are dropped, as they cannot be reached from a
    root.
    """

    nodes = {
        row.id: CategoryNode(id=row.id, name=row.name, parent_id=row.parent_id) for row in rows
    }
    roots: list[CategoryNode] = []
    for node in nodes.values():
        if node.parent_id is None:
            roots.append(node)
            continue
        parent = nodes.get(node.parent_id)
        if parent is not None:
            parent.subcategories.append(node)

    roots.sort(key=lambda node: node.name.lower())
    for node in nodes.values():
        node.subcategories.sort(key=lambda child: child.name.lower())
    return roots


def find_category(tree: list[CategoryNode], category_id: int) -> CategoryNode | None:
    stack = list(tree)
    while stack:
        node = stack.pop()
        if node.id == category_id:
            return node
        stack.extend(node.subcategories)
    return None


def descendant_ids(tree: list[CategoryNode], category_id: int) -> list[int]:
    """Breadth-first ids of ``category_id`` and everything beneath it."""

    start = find_category(tree, category_id)
    if start is None:
        return []
    ids: list[int] = []
    queue = deque([start])
    while queue:
        node = queue.popleft()
        ids.append(node.id)
        queue.extend(node.subcategories)
    return ids


def flatten_categories(tree: list[CategoryNode]) -> list[FlatCategory]:
    flat: list[FlatCategory] = []

    def _walk(nodes: list[CategoryNode], level: int) -> None:
        for node in nodes:
            flat.append(FlatCategory(id=node.id, name=node.name, level=level))
            _walk(node.subcategories, level + 1)

    _walk(tree, 0)
    return flat


class CategoryService:
    """Loads the category tree once per instance; create one per request."""

    def __init__(self, session: AsyncSession) -> None:
        self.session = session
        self._tree: list[CategoryNode] | None = None

    async def fetch_tree(self) -> list[CategoryNode]:
        if self._tree is None:
            result = await self.session.execute(select(QuestionCategory))
            self._tree = build_category_tree(result.scalars())
        return self._tree

    def invalidate(self) -> None:
        self._tree = None

    async def descendant_ids(self, category_id: int) -> list[int]:
        return descendant_ids(await self.fetch_tree(), category_id)

    async def create(self, name: str, parent_id: int | None = None) -> QuestionCategory:
        category = QuestionCategory(name=name, parent_id=parent_id)
        self.session.add(category)
        await self.session.flush()
        self.invalidate()
        return category


__all__ = [
    "CategoryService",
    "build_category_tree",
    "descendant_ids",
    "find_category",
    "flatten_categories",
]
