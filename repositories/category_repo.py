"""
repositories/category_repo.py
------------------------------
Data access layer for categories (system defaults + per-user custom ones).
"""

from typing import Optional

from db.connection import cursor
from models.category import Category
from utils.logger import get_logger

logger = get_logger(__name__)

_COLUMNS = "id, name, description, parent_id, user_id"


class CategoryRepository:
    """Repository for the categories table and id -> name lookups."""

    def add(self, category: Category) -> Category:
        """Insert a custom category and populate its `id`."""
        sql = """
            INSERT INTO categories (name, description, parent_id, user_id)
            VALUES (%s, %s, %s, %s)
            RETURNING id;
        """
        with cursor() as cur:
            cur.execute(sql, (
                category.name, category.description,
                category.parent_id, category.user_id,
            ))
            category.id = cur.fetchone()[0]
        logger.info(f"Added category '{category.name}' #{category.id} for user {category.user_id}")
        return category

    def get_by_id(self, category_id: int, user_id: int) -> Optional[Category]:
        """Fetch a category visible to ``user_id`` (own or system default)."""
        sql = f"""
            SELECT {_COLUMNS} FROM categories
            WHERE id = %s AND (user_id = %s OR user_id IS NULL);
        """
        with cursor() as cur:
            cur.execute(sql, (category_id, user_id))
            row = cur.fetchone()
            return self._row_to_category(row) if row else None

    def find_by_name(self, user_id: int, name: str) -> Optional[Category]:
        """
        Case-insensitive lookup by name. A user's own category shadows a
        system default with the same name.
        """
        sql = f"""
            SELECT {_COLUMNS} FROM categories
            WHERE LOWER(name) = LOWER(%s) AND (user_id = %s OR user_id IS NULL)
            ORDER BY user_id NULLS LAST
            LIMIT 1;
        """
        with cursor() as cur:
            cur.execute(sql, (name.strip(), user_id))
            row = cur.fetchone()
            return self._row_to_category(row) if row else None

    def get_all(self, user_id: int) -> list[Category]:
        """All categories visible to a user, main categories first."""
        sql = f"""
            SELECT {_COLUMNS} FROM categories
            WHERE user_id = %s OR user_id IS NULL
            ORDER BY parent_id NULLS FIRST, name;
        """
        with cursor() as cur:
            cur.execute(sql, (user_id,))
            return [self._row_to_category(r) for r in cur.fetchall()]

    def get_name(self, category_id: int) -> Optional[str]:
        """Resolve a category id to its display name."""
        with cursor() as cur:
            cur.execute("SELECT name FROM categories WHERE id = %s;", (category_id,))
            row = cur.fetchone()
            return row[0] if row else None

    @staticmethod
    def _row_to_category(row: tuple) -> Category:
        return Category(
            id=row[0],
            name=row[1],
            description=row[2],
            parent_id=row[3],
            user_id=row[4],
        )
