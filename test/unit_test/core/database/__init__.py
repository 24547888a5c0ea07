"""Unit tests for the G-Club database layer.

Covers the repository queries behind the game-mate roster and waiting
list, the notification inbox, the game catalogue and the default data
seeding. Everything runs against in-memory SQLite.
"""
