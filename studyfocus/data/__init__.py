from .database import Database
from .models import ActiveTimer, AppSnapshot, Chapter, Session, Subject, Topic
from .repository import Repository

__all__ = [
    "Database", "Repository",
    "ActiveTimer", "AppSnapshot", "Chapter", "Session", "Subject", "Topic",
]
