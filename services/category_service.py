"""
services/category_service.py
-----------------------------
Listing and creating expense categories.
"""

from typing import Optional

from models.category import Category
from repositories.category_repo import CategoryRepository


class CategoryService:
    """System default categories plus the user's own ones."""

    def __init__(self, repo: Optional[CategoryRepository] = None):
        self.repo = repo or CategoryRepository()

    def add(self, user_id: int, name: str, parent_name: Optional[str] = None) -> Category:
        """
        Create a custom category, optionally under an existing main category.

        Raises:
            ValueError: Empty/duplicate name or unknown parent.
        """
        name = (name or "").strip()
        if not name:
            raise ValueError("Category name is required.")
        existing = self.repo.find_by_name(user_id, name)
        if existing is not None:
            raise ValueError(f"Category {existing.name!r} already exists.")

        parent_id = None
        if parent_name:
            parent = self.repo.find_by_name(user_id, parent_name)
            if parent is None:
                raise ValueError(f"Unknown parent category: {parent_name!r}.")
            parent_id = parent.id

        return self.repo.add(Category(name=name, parent_id=parent_id, user_id=user_id))

    def format_tree(self, user_id: int) -> str:
        """Main categories with their subcategories, one block per main category."""
        categories = self.repo.get_all(user_id)
        if not categories:
            return "📭 No categories defined."

        children: dict[int, list[Category]] = {}
        roots = []
        for c in categories:
            if c.parent_id is None:
                roots.append(c)
            else:
                children.setdefault(c.parent_id, []).append(c)

        lines = ["🏷️ Categories:"]
        for root in roots:
            mark = "" if root.is_default else " *"
            lines.append(f"\n{root.name}{mark}")
            for child in children.get(root.id, []):
                mark = "" if child.is_default else " *"
                lines.append(f"  • {child.name}{mark}")
        lines.append("\n* = your own category")
        return "\n".join(lines)
