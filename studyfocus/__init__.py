"""
Study Focus: a desktop study tracker.

Subjects hold chapters, chapters hold topics, and a single stopwatch records
timed sessions against a topic. Totals roll up the tree and the whole ledger
is saved as one JSON blob in SQLite.
"""

__version__ = "1.0.0"
