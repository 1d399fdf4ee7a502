"""HTTP routers, one per resource type, mounted under the API prefix."""

from . import collections, questions, users

__all__ = ["collections", "questions", "users"]
