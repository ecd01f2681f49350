"""
Error taxonomy for Study Focus.

Every error raised by the core derives from StudyFocusError so callers at the
recovery boundary (StudyContext) can catch the whole family in one place.
"""

from __future__ import annotations


class StudyFocusError(Exception):
    """Base class for all recoverable Study Focus errors."""


class ValidationError(StudyFocusError):
    """Bad user input: empty name, unusable numeric value."""


class NotFoundError(StudyFocusError):
    """An operation referenced a subject/chapter/topic id that does not exist."""


class PersistenceError(StudyFocusError):
    """The key-value store could not load or save a value."""
