# models/__init__.py

from .attendance import Attendance, Subject, SubjectKind
from .message import Message

__all__ = [
    "Attendance",
    "Subject",
    "SubjectKind",
    "Message"
]
