"""
Shared fixtures: in-memory stand-ins for the repositories and the mail
transport, plus a fixed clock. No test touches PostgreSQL, SMTP or the
wall clock.
"""

import copy
from datetime import date, datetime, timedelta
from decimal import Decimal

import psycopg2
import psycopg2.pool
import pytest

from models.category import Category
from models.recurring import RecurringExpense
from models.user import User
from utils.errors import MailError, PersistenceError


def clock_at(year: int, month: int, day: int, hour: int = 0, minute: int = 5):
    """A clock callable frozen at the given moment."""
    moment = datetime(year, month, day, hour, minute)
    return lambda: moment


class FakeRecurringRepository:
    def __init__(self):
        self.rules: dict[int, RecurringExpense] = {}
        self._next_id = 1
        self.fail_advance_for: set[int] = set()
        self.fail_reads = False

    def add(self, rule):
        rule.id = self._next_id
        self._next_id += 1
        self.rules[rule.id] = copy.copy(rule)
        return rule

    def get_all(self, user_id):
        return sorted(
            (copy.copy(r) for r in self.rules.values() if r.user_id == user_id),
            key=lambda r: (r.next_occurrence, r.id),
        )

    def get_by_id(self, rule_id, user_id):
        rule = self.rules.get(rule_id)
        return copy.copy(rule) if rule and rule.user_id == user_id else None

    def get_due(self, today):
        if self.fail_reads:
            raise PersistenceError("read failed")
        tomorrow = today + timedelta(days=1)
        return [
            copy.copy(r) for r in sorted(self.rules.values(), key=lambda r: r.id)
            if today <= r.next_occurrence < tomorrow
            and (r.end_date is None or r.end_date > today)
        ]

    def get_stale(self, today):
        if self.fail_reads:
            raise PersistenceError("read failed")
        return [
            copy.copy(r) for r in sorted(self.rules.values(), key=lambda r: r.id)
            if r.next_occurrence < today and (r.end_date is None or r.end_date > today)
        ]

    def update(self, rule):
        stored = self.rules.get(rule.id)
        if stored is None or stored.user_id != rule.user_id:
            return False
        self.rules[rule.id] = copy.copy(rule)
        return True

    def advance_next_occurrence(self, rule_id, current, new_date):
        if rule_id in self.fail_advance_for:
            raise PersistenceError("write failed")
        stored = self.rules.get(rule_id)
        if stored is None or stored.next_occurrence != current:
            return False
        stored.next_occurrence = new_date
        return True

    def delete(self, rule_id, user_id):
        rule = self.rules.get(rule_id)
        if rule is None or rule.user_id != user_id:
            return False
        del self.rules[rule_id]
        return True


class FakeExpenseRepository:
    def __init__(self, category_names=None):
        self.expenses = []
        self._next_id = 1
        self.fail_for_users: set[int] = set()
        self.category_names = category_names or {}

    def add(self, expense):
        if expense.user_id in self.fail_for_users:
            raise PersistenceError("insert failed")
        expense.id = self._next_id
        self._next_id += 1
        self.expenses.append(expense)
        return expense

    def get_by_date_range(self, user_id, start, end):
        rows = [e for e in self.expenses if e.user_id == user_id and start <= e.date <= end]
        for e in rows:
            e.category_name = self.category_names.get(e.category_id)
        return sorted(rows, key=lambda e: (e.date, e.id), reverse=True)

    def get_category_totals(self, user_id, start, end):
        if user_id in self.fail_for_users:
            raise PersistenceError("query failed")
        totals: dict[int, list] = {}
        for e in self.expenses:
            if e.user_id == user_id and start <= e.date <= end:
                entry = totals.setdefault(e.category_id, [Decimal("0"), 0])
                entry[0] += e.amount
                entry[1] += 1
        rows = [{"category_id": cid, "total": t, "count": n} for cid, (t, n) in totals.items()]
        return sorted(rows, key=lambda r: r["total"], reverse=True)

    def get_monthly_totals(self, user_id, year):
        totals: dict[int, list] = {}
        for e in self.expenses:
            if e.user_id == user_id and e.date.year == year:
                entry = totals.setdefault(e.date.month, [Decimal("0"), 0])
                entry[0] += e.amount
                entry[1] += 1
        return [{"month": m, "total": t, "count": n} for m, (t, n) in sorted(totals.items())]

    def delete(self, expense_id, user_id):
        for e in self.expenses:
            if e.id == expense_id and e.user_id == user_id:
                self.expenses.remove(e)
                return True
        return False


class FakeCategoryRepository:
    def __init__(self, categories=()):
        self.categories = list(categories)

    def add(self, category):
        category.id = max((c.id for c in self.categories), default=0) + 1
        self.categories.append(category)
        return category

    def _visible(self, user_id):
        return [c for c in self.categories if c.user_id in (None, user_id)]

    def get_by_id(self, category_id, user_id):
        return next((c for c in self._visible(user_id) if c.id == category_id), None)

    def find_by_name(self, user_id, name):
        matches = [c for c in self._visible(user_id) if c.name.lower() == name.strip().lower()]
        matches.sort(key=lambda c: c.user_id is None)
        return matches[0] if matches else None

    def get_all(self, user_id):
        return self._visible(user_id)

    def get_name(self, category_id):
        return next((c.name for c in self.categories if c.id == category_id), None)


class FakeUserRepository:
    def __init__(self, users=()):
        self.users = {u.telegram_id: u for u in users}
        self.fail_reads = False

    def get_by_telegram_id(self, telegram_id):
        return self.users.get(telegram_id)

    def get_all(self):
        if self.fail_reads:
            raise PersistenceError("read failed")
        return list(self.users.values())

    def ensure_user(self, telegram_id, first_name=None):
        return self.users.setdefault(telegram_id, User(telegram_id=telegram_id, first_name=first_name))

    def update_preferences(self, telegram_id, email=None, base_currency=None):
        user = self.users.get(telegram_id)
        if user is None:
            return False
        user.email = email or user.email
        user.base_currency = base_currency or user.base_currency
        return True


class FakeMailer:
    def __init__(self, configured=True):
        self.is_configured = configured
        self.sent: list[tuple[str, str, str]] = []
        self.fail_for: set[str] = set()

    def send(self, recipient, subject, html):
        if recipient in self.fail_for:
            raise MailError(f"rejected {recipient}")
        self.sent.append((recipient, subject, html))


# Ids mirror a small slice of the seeded default tree.
HOUSING, FOOD, TRANSPORTATION, UTILITIES, PERSONAL, GROCERIES = 1, 2, 3, 4, 5, 6

ALICE = 111
BOB = 222


@pytest.fixture
def categories():
    return FakeCategoryRepository([
        Category(id=HOUSING, name="Housing"),
        Category(id=FOOD, name="Food"),
        Category(id=TRANSPORTATION, name="Transportation"),
        Category(id=UTILITIES, name="Utilities"),
        Category(id=PERSONAL, name="Personal"),
        Category(id=GROCERIES, name="Groceries", parent_id=FOOD),
    ])


@pytest.fixture
def users():
    return FakeUserRepository([
        User(telegram_id=ALICE, first_name="Alice", email="alice@example.com", base_currency="EUR"),
        User(telegram_id=BOB, first_name="Bob", email="bob@example.com", base_currency="USD"),
    ])


@pytest.fixture
def recurring_repo():
    return FakeRecurringRepository()


@pytest.fixture
def expense_repo(categories):
    return FakeExpenseRepository({c.id: c.name for c in categories.categories})


@pytest.fixture
def mailer():
    return FakeMailer()


@pytest.fixture
def make_rule(recurring_repo):
    """Insert a rule straight into the fake store."""
    def _make(**overrides):
        fields = dict(
            user_id=ALICE,
            description="Rent",
            amount=Decimal("1200.00"),
            currency="EUR",
            category_id=HOUSING,
            frequency="monthly",
            start_date=date(2023, 1, 15),
            next_occurrence=date(2024, 3, 15),
        )
        fields.update(overrides)
        return recurring_repo.add(RecurringExpense(**fields))
    return _make


class FakeDbCursor:
    """Records statements; a connection marked dead fails every execute."""

    def __init__(self, conn):
        self.conn = conn
        self.rowcount = 0

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        return False

    def execute(self, sql, params=None):
        if self.conn.dead:
            self.conn.closed = 2
            raise psycopg2.OperationalError("server closed the connection unexpectedly")
        self.conn.executed.append((sql, params))
        self.rowcount = self.conn.rowcount

    def fetchone(self):
        return self.conn.rows[0] if self.conn.rows else None

    def fetchall(self):
        return list(self.conn.rows)


class FakeDbConnection:
    def __init__(self, rows=(), rowcount=1, dead=False):
        self.rows = list(rows)
        self.rowcount = rowcount
        self.dead = dead
        self.closed = 0
        self.committed = False
        self.executed = []

    def cursor(self):
        return FakeDbCursor(self)

    def commit(self):
        self.committed = True

    def rollback(self):
        if self.closed:
            raise psycopg2.InterfaceError("connection already closed")


class FakeDbPool:
    def __init__(self, connections):
        self.connections = list(connections)
        self.returned = []

    def getconn(self):
        if not self.connections:
            raise psycopg2.pool.PoolError("connection pool exhausted")
        return self.connections.pop(0)

    def putconn(self, conn, close=False):
        self.returned.append((conn, close))


@pytest.fixture
def db_pool(monkeypatch):
    """Install a FakeDbPool holding the given connections in place of the real pool."""
    import db.connection

    def _install(*connections):
        fake = FakeDbPool(connections)
        monkeypatch.setattr(db.connection, "_pool", fake)
        return fake
    return _install
