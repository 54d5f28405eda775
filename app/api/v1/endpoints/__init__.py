"""
API endpoints module
"""

from . import auth, users, events, registrations, waitinglist, admin, health

__all__ = [
    "auth",
    "users",
    "events",
    "registrations",
    "waitinglist",
    "admin",
    "health"
]
