"""
UMS: University Management System

Tracks students, teachers and courses in memory and keeps them synchronised
with a durable store (SQLite/PostgreSQL, a flat-file directory, or nothing).
"""

__version__ = "1.3.0"
__author__ = "UMS Development Team"
__description__ = "University Management System with write-through persistence"
