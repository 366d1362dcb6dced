"""Framework-free booking rules: slots, status transitions, refunds and money roll-ups.

Nothing in this package touches Flask or the database; callers pass in rows
(or any objects with the same attributes) and explicit clock values.
"""
