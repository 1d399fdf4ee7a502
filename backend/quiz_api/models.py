"""SQLModel data models.

This module defines the application's database tables using SQLModel.
List-valued fields (options, tags, question ids) are stored as JSON
columns; references between tables are plain integer ids so deleting a
row never cascades into the rows that point at it.
"""

from datetime import datetime, timezone
from typing import Dict, List, Optional

from sqlalchemy import JSON, Column
from sqlmodel import Field, SQLModel

from .permissions import DEFAULT_PERMISSIONS, Permission, permissions_to_map


def _utcnow():
    return datetime.now(timezone.utc)


class User(SQLModel, table=True):
    """A registered user.

    Fields:
    - `name`: unique login name
    - `email`: unique, stored lower-cased
    - `password_hash`: hashed password string (never store plaintext)
    - `permissions`: `Permission` bitset
    """
    id: Optional[int] = Field(default=None, primary_key=True)
    name: str = Field(index=True, nullable=False, unique=True)
    email: str = Field(index=True, nullable=False, unique=True)
    password_hash: str
    score: int = Field(default=0, ge=0)
    permissions: int = Field(default=int(DEFAULT_PERMISSIONS))
    created_at: datetime = Field(default_factory=_utcnow, index=True)
    updated_at: datetime = Field(default_factory=_utcnow)

    def has_permission(self, perm: Permission) -> bool:
        return bool(Permission(self.permissions) & perm)

    def grant_permission(self, perm: Permission) -> None:
        self.permissions = int(Permission(self.permissions) | perm)

    def revoke_permission(self, perm: Permission) -> None:
        self.permissions = int(Permission(self.permissions) & ~perm)

    def permission_map(self) -> Dict[str, bool]:
        return permissions_to_map(self.permissions)


class Question(SQLModel, table=True):
    """A multiple-choice question; `answer` is always one of `options`."""
    id: Optional[int] = Field(default=None, primary_key=True)
    question: str = Field(index=True)
    options: List[str] = Field(default_factory=list, sa_column=Column(JSON, nullable=False))
    answer: str
    owner_id: Optional[int] = Field(default=None, index=True)
    tags: List[str] = Field(default_factory=list, sa_column=Column(JSON, nullable=False))
    created_at: datetime = Field(default_factory=_utcnow, index=True)
    updated_at: datetime = Field(default_factory=_utcnow)


class QuizCollection(SQLModel, table=True):
    """A named, owned list of question ids."""
    id: Optional[int] = Field(default=None, primary_key=True)
    name: str = Field(index=True)
    tags: List[str] = Field(default_factory=list, sa_column=Column(JSON, nullable=False))
    questions: List[int] = Field(default_factory=list, sa_column=Column(JSON, nullable=False))
    owner_id: Optional[int] = Field(default=None, index=True)
    created_at: datetime = Field(default_factory=_utcnow, index=True)
    updated_at: datetime = Field(default_factory=_utcnow)
