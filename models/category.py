"""
models/category.py
------------------
Domain model for expense categories.
"""

from dataclasses import dataclass
from typing import Optional


@dataclass
class Category:
    """
    An expense category. ``user_id`` is None for system defaults;
    ``parent_id`` links a subcategory to its main category.
    """
    name: str
    description: Optional[str] = None
    parent_id: Optional[int] = None
    user_id: Optional[int] = None
    id: Optional[int] = None

    @property
    def is_default(self) -> bool:
        return self.user_id is None
