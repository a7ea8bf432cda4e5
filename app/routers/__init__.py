"""Router package exports."""

from . import career, system, users

__all__ = [
    "career",
    "system",
    "users",
]
