"""
models/ - Domain Layer
=======================
Plain dataclasses for users, categories, expenses and recurring expenses.
No database or Telegram code lives here.
"""
