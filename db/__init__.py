"""
db/ - Database Layer
====================
Handles the PostgreSQL connection pool, schema initialization and default seed data.
This layer is the lowest in the architecture and only depends on config and utils.
"""
