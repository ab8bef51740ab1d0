"""
services/export_service.py
---------------------------
Generates CSV and Excel exports of a month of expenses.
"""

import io
from datetime import date
from typing import Optional

import pandas as pd

from repositories.expense_repo import ExpenseRepository
from services.date_rules import month_bounds
from utils.logger import get_logger

logger = get_logger(__name__)

COLUMNS = ["Date", "Description", "Category", "Amount", "Currency", "Recurring"]


class ExportService:
    """Builds downloadable spreadsheets of a user's expenses."""

    def __init__(self, repo: Optional[ExpenseRepository] = None):
        self.repo = repo or ExpenseRepository()

    def month_frame(self, user_id: int, year: int, month: int) -> pd.DataFrame:
        """One row per expense of the month, oldest first."""
        start, end = month_bounds(date(year, month, 1))
        expenses = self.repo.get_by_date_range(user_id, start, end)
        rows = [
            {
                "Date": e.date.isoformat(),
                "Description": e.description,
                "Category": e.category_name or "",
                "Amount": float(e.amount),
                "Currency": e.currency,
                "Recurring": "Yes" if e.is_recurring else "No",
            }
            for e in sorted(expenses, key=lambda e: (e.date, e.id or 0))
        ]
        return pd.DataFrame(rows, columns=COLUMNS)

    def export_month_csv(self, user_id: int, year: int, month: int) -> io.BytesIO:
        """
        Export a month's expenses as a CSV file.

        Returns:
            A BytesIO buffer containing the CSV data.
        """
        df = self.month_frame(user_id, year, month)
        buffer = io.BytesIO()
        df.to_csv(buffer, index=False, encoding="utf-8-sig")
        buffer.seek(0)
        logger.info(f"Exported {len(df)} expenses as CSV for user {user_id}")
        return buffer

    def export_month_excel(self, user_id: int, year: int, month: int) -> io.BytesIO:
        """
        Export a month's expenses as an Excel (.xlsx) file with a
        per-category summary sheet.
        """
        df = self.month_frame(user_id, year, month)

        buffer = io.BytesIO()
        with pd.ExcelWriter(buffer, engine="openpyxl") as writer:
            df.to_excel(writer, sheet_name="Expenses", index=False)
            if not df.empty:
                summary = (
                    df.groupby(["Category", "Currency"])["Amount"]
                    .sum()
                    .reset_index()
                    .sort_values("Amount", ascending=False)
                )
                summary.to_excel(writer, sheet_name="Summary", index=False)

        buffer.seek(0)
        logger.info(f"Exported {len(df)} expenses as Excel for user {user_id}")
        return buffer
