"""API Routes"""

from . import code, email, playground, sessions

__all__ = [
    "code",
    "email",
    "playground",
    "sessions",
]
