"""
db/init_db.py
-------------
Creates the database schema (tables) if they do not already exist and
seeds the system-default category tree on a fresh database.
Run this module directly to initialize a fresh database:
    python -m db.init_db
"""

from db.connection import cursor
from utils.logger import get_logger

logger = get_logger(__name__)

SCHEMA_SQL = """
-- Users: Telegram accounts plus their alert email and preferences
CREATE TABLE IF NOT EXISTS users (
    id              SERIAL PRIMARY KEY,
    telegram_id     BIGINT UNIQUE NOT NULL,
    first_name      VARCHAR(100),
    email           VARCHAR(255),
    base_currency   VARCHAR(3) NOT NULL DEFAULT 'USD',
    monthly_income  NUMERIC(12,2) NOT NULL DEFAULT 0,
    created_at      TIMESTAMPTZ DEFAULT NOW()
);

-- Categories: user_id NULL marks a system default shared by everyone
CREATE TABLE IF NOT EXISTS categories (
    id              SERIAL PRIMARY KEY,
    name            VARCHAR(100) NOT NULL,
    description     TEXT,
    parent_id       INT REFERENCES categories(id) ON DELETE SET NULL,
    user_id         BIGINT REFERENCES users(telegram_id) ON DELETE CASCADE,
    created_at      TIMESTAMPTZ DEFAULT NOW()
);

-- Expenses: concrete transactions, typed in by hand or materialized from a rule
CREATE TABLE IF NOT EXISTS expenses (
    id              SERIAL PRIMARY KEY,
    user_id         BIGINT NOT NULL REFERENCES users(telegram_id) ON DELETE CASCADE,
    amount          NUMERIC(12,2) NOT NULL CHECK (amount > 0),
    currency        VARCHAR(3) NOT NULL,
    category_id     INT NOT NULL REFERENCES categories(id),
    description     TEXT NOT NULL,
    date            DATE NOT NULL DEFAULT CURRENT_DATE,
    is_recurring    BOOLEAN NOT NULL DEFAULT FALSE,
    created_at      TIMESTAMPTZ DEFAULT NOW()
);

-- Recurring expenses: templates that the daily job turns into expenses
CREATE TABLE IF NOT EXISTS recurring_expenses (
    id              SERIAL PRIMARY KEY,
    user_id         BIGINT NOT NULL REFERENCES users(telegram_id) ON DELETE CASCADE,
    description     TEXT NOT NULL,
    amount          NUMERIC(12,2) NOT NULL CHECK (amount > 0),
    currency        VARCHAR(3) NOT NULL,
    category_id     INT NOT NULL REFERENCES categories(id),
    frequency       VARCHAR(10) NOT NULL CHECK (frequency IN ('daily', 'weekly', 'monthly', 'yearly')),
    start_date      DATE NOT NULL,
    end_date        DATE,
    next_occurrence DATE NOT NULL,
    created_at      TIMESTAMPTZ DEFAULT NOW()
);

CREATE UNIQUE INDEX IF NOT EXISTS idx_categories_name_owner
    ON categories (LOWER(name), COALESCE(user_id, 0));
CREATE INDEX IF NOT EXISTS idx_expenses_user_date ON expenses(user_id, date);
CREATE INDEX IF NOT EXISTS idx_expenses_category ON expenses(user_id, category_id);
CREATE INDEX IF NOT EXISTS idx_recurring_next ON recurring_expenses(next_occurrence);
CREATE INDEX IF NOT EXISTS idx_recurring_user ON recurring_expenses(user_id, next_occurrence);
"""

# Main category -> subcategories, seeded as system defaults.
DEFAULT_CATEGORIES: dict[str, list[str]] = {
    "Housing": [
        "Rent/Mortgage", "Property Taxes", "Home Insurance",
        "Home Maintenance/Repairs", "HOA Fees",
    ],
    "Utilities": [
        "Electricity", "Water", "Gas", "Internet", "Phone",
        "Cable/Satellite TV", "Trash/Recycling",
    ],
    "Food": ["Groceries", "Dining Out", "Takeout/Delivery", "Coffee/Snacks"],
    "Transportation": [
        "Car Payments", "Fuel", "Car Insurance", "Car Maintenance/Repairs",
        "Public Transit", "Parking", "Tolls", "Rideshare/Taxi",
    ],
    "Health": [
        "Health Insurance Premiums", "Doctor Visits", "Prescriptions",
        "Dental Care", "Vision Care", "Gym Memberships", "Wellness",
    ],
    "Personal": [
        "Clothing", "Shoes", "Accessories", "Grooming", "Entertainment",
        "Hobbies", "Subscriptions", "Education",
    ],
    "Debt": [
        "Credit Card Payments", "Student Loans", "Personal Loans",
        "Other Debt Payments",
    ],
    "Savings": [
        "Emergency Fund", "Retirement Accounts", "Investments",
        "College Savings", "Vacation Fund",
    ],
    "Miscellaneous": [
        "Gifts", "Donations", "Pet Care", "Childcare", "School Supplies",
        "Toys/Games", "Household Supplies", "Home Decor", "Electronics",
        "Travel", "Taxes", "Legal Fees", "Bank Fees", "Other Expenses",
    ],
}


def create_tables() -> None:
    """
    Execute the schema SQL to create all tables.
    Safe to call multiple times (uses IF NOT EXISTS).
    """
    with cursor() as cur:
        cur.execute(SCHEMA_SQL)
    logger.info("Database schema initialized successfully.")


def seed_default_categories() -> int:
    """
    Insert the default category tree if no system category exists yet.

    Returns:
        Number of categories inserted (0 when already seeded).
    """
    with cursor() as cur:
        cur.execute("SELECT COUNT(*) FROM categories WHERE user_id IS NULL;")
        if cur.fetchone()[0] > 0:
            return 0

        inserted = 0
        for main_name, subcategories in DEFAULT_CATEGORIES.items():
            cur.execute(
                "INSERT INTO categories (name, description) VALUES (%s, %s) RETURNING id;",
                (main_name, f"{main_name} expenses"),
            )
            parent_id = cur.fetchone()[0]
            inserted += 1
            for sub_name in subcategories:
                cur.execute(
                    "INSERT INTO categories (name, description, parent_id) VALUES (%s, %s, %s);",
                    (sub_name, f"{sub_name} ({main_name})", parent_id),
                )
                inserted += 1

    logger.info(f"Seeded {inserted} default categories.")
    return inserted


if __name__ == "__main__":
    from db.connection import init_pool
    init_pool()
    create_tables()
    seed_default_categories()
    print("Database schema created successfully.")
