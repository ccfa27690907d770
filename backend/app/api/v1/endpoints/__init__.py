# API endpoints
from . import auth, register, public, health, employee, student, events, newsfeed

__all__ = ["auth", "register", "public", "health", "employee", "student", "events", "newsfeed"]
