"""
services/alert_service.py
--------------------------
Monthly budget thresholds per category and the weekly alert digest email.
"""

import html
import threading
from datetime import date, datetime
from decimal import ROUND_HALF_UP, Decimal
from typing import Callable, Optional

from config import ALERT_RATIO, BUDGET_THRESHOLDS, TIMEZONE
from repositories.category_repo import CategoryRepository
from repositories.expense_repo import ExpenseRepository
from repositories.user_repo import UserRepository
from services.date_rules import month_bounds
from services.mail_service import MailService
from utils.errors import BudgetError
from utils.logger import get_logger

logger = get_logger(__name__)

ALERT_SUBJECT = "Budget Alert: Categories approaching limits"


class AlertService:
    """
    Compares current-month spending with configured thresholds.

    Thresholds map a category *name* to a monthly limit and come from
    configuration; they are the same for every user.
    """

    def __init__(
        self,
        user_repo: Optional[UserRepository] = None,
        expense_repo: Optional[ExpenseRepository] = None,
        category_repo: Optional[CategoryRepository] = None,
        mailer: Optional[MailService] = None,
        thresholds: Optional[dict[str, Decimal]] = None,
        ratio: Optional[Decimal] = None,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        self.user_repo = user_repo or UserRepository()
        self.expense_repo = expense_repo or ExpenseRepository()
        self.category_repo = category_repo or CategoryRepository()
        self.mailer = mailer or MailService()
        self.thresholds = dict(BUDGET_THRESHOLDS if thresholds is None else thresholds)
        self.ratio = ALERT_RATIO if ratio is None else Decimal(str(ratio))
        self.clock = clock or (lambda: datetime.now(TIMEZONE))
        self._lock = threading.Lock()

    # ── Computation ───────────────────────────────────────

    def category_status(self, user_id: int, today: date) -> list[dict]:
        """
        Spending vs threshold for every thresholded category with spending
        this month.

        Returns:
            [{'category', 'spent', 'threshold', 'percent_used'}, ...],
            highest percentage first.
        """
        start, end = month_bounds(today)
        status = []
        for row in self.expense_repo.get_category_totals(user_id, start, end):
            name = self.category_repo.get_name(row["category_id"])
            threshold = self.thresholds.get(name) if name else None
            if not threshold:
                continue
            spent = Decimal(row["total"])
            status.append({
                "category": name,
                "spent": spent,
                "threshold": threshold,
                "percent_used": int((spent / threshold * 100).to_integral_value(rounding=ROUND_HALF_UP)),
            })
        status.sort(key=lambda s: s["spent"] / s["threshold"], reverse=True)
        return status

    def build_digest(self, user_id: int, today: date) -> list[dict]:
        """Categories whose spending reached ``ratio`` of their threshold."""
        return [
            s for s in self.category_status(user_id, today)
            if s["spent"] >= s["threshold"] * self.ratio
        ]

    @staticmethod
    def render_digest(entries: list[dict], currency: str) -> str:
        """HTML body listing every qualifying category."""
        items = "".join(
            f"<li><strong>{html.escape(e['category'])}:</strong> "
            f"{e['spent']:.2f} / {e['threshold']:.2f} {html.escape(currency)} "
            f"({e['percent_used']}% of budget)</li>"
            for e in entries
        )
        return (
            "<h2>Budget Alert</h2>"
            "<p>The following categories are approaching or exceeding their monthly budget:</p>"
            f"<ul>{items}</ul>"
            "<p>Open the budget bot and send /budget to review your spending.</p>"
        )

    # ── Scheduled job ─────────────────────────────────────

    def run(self) -> dict:
        """
        Send one digest email per user with qualifying categories.

        Returns:
            Counts: 'users', 'sent', 'failed'; 'running' / 'unconfigured'
            flag a run that did nothing.
        """
        stats = {"users": 0, "sent": 0, "failed": 0, "running": False, "unconfigured": False}
        if not self._lock.acquire(blocking=False):
            logger.warning("Budget alert job already running; skipping this trigger.")
            stats["running"] = True
            return stats

        try:
            if not self.mailer.is_configured:
                logger.info("Mail transport not configured; budget alerts disabled.")
                stats["unconfigured"] = True
                return stats

            today = self.clock().date()
            logger.info(f"Checking budget alerts for {today:%Y-%m}...")

            try:
                users = self.user_repo.get_all()
            except BudgetError as e:
                logger.error(f"Could not load users for budget alerts: {e}")
                return stats

            for user in users:
                stats["users"] += 1
                if not user.email:
                    continue
                try:
                    entries = self.build_digest(user.telegram_id, today)
                    if not entries:
                        continue
                    body = self.render_digest(entries, user.base_currency)
                    self.mailer.send(user.email, ALERT_SUBJECT, body)
                    stats["sent"] += 1
                except BudgetError as e:
                    stats["failed"] += 1
                    logger.error(f"Budget alert for user {user.telegram_id} failed: {e}")

            logger.info(f"Budget alerts done: {stats['sent']} sent, {stats['failed']} failed")
            return stats
        finally:
            self._lock.release()

    # ── Chat rendering ────────────────────────────────────

    def format_status(self, user_id: int, currency: str) -> str:
        """Current month's threshold status for the /budget command."""
        today = self.clock().date()
        status = self.category_status(user_id, today)
        if not status:
            limits = ", ".join(f"{name} {limit:.0f}" for name, limit in self.thresholds.items())
            return f"📭 No spending yet this month in budgeted categories.\nLimits: {limits}"

        lines = [f"💰 Budget status - {today:%B %Y}\n"]
        for s in status:
            pct = s["percent_used"]
            if pct >= 100:
                icon = "🔴"
            elif s["spent"] >= s["threshold"] * self.ratio:
                icon = "🟡"
            else:
                icon = "🟢"
            lines.append(
                f"{icon} {s['category']}: {s['spent']:.2f} / {s['threshold']:.2f} {currency} ({pct}%)\n"
                f"  {self._progress_bar(pct)}"
            )
        return "\n".join(lines)

    @staticmethod
    def _progress_bar(pct: float, length: int = 15) -> str:
        """Generate a text progress bar."""
        filled = int(min(pct, 100) / 100 * length)
        bar = "█" * filled + "░" * (length - filled)
        return bar + " ⚠️" if pct >= 100 else bar
