"""
services/ - Business Logic Layer
=================================
Date rules, recurring-expense lifecycle, the scheduled jobs, mail and exports.
Services receive repositories (and a clock) in their constructors so they can
run against in-memory fakes in tests.
"""
