"""Repository classes encapsulating database operations.

Each repository is small and focused on a single aggregate (users,
questions, collections). Repositories return SQLModel objects and perform
commits/refreshes where appropriate.

Scalar filters (id, owner, case-insensitive name substring) run in SQL.
Filters over the JSON list columns (tags, question ids) are applied in
Python after the SQL query, so pagination happens after them.
"""

from datetime import datetime, timezone
from typing import Callable, Dict, Iterable, List, Optional

from sqlmodel import Session, col, select

from . import models
from .utils.pagination import offset_for


def _page(session: Session, stmt, page: int, limit: int, keep: Optional[Callable] = None) -> list:
    """Run `stmt` and return one page of results.

    When `keep` is given, rows are filtered through it before slicing.
    """
    if keep is None:
        return session.exec(stmt.offset(offset_for(page, limit)).limit(limit)).all()
    rows = [r for r in session.exec(stmt).all() if keep(r)]
    start = offset_for(page, limit)
    return rows[start:start + limit]


def _touch(obj) -> None:
    obj.updated_at = datetime.now(timezone.utc)


class UserRepository:
    """CRUD operations for `User` objects."""
    def __init__(self, session: Session):
        self.session = session

    def create(self, user: models.User) -> models.User:
        """Persist a new user and return the managed instance."""
        self.session.add(user)
        self.session.commit()
        self.session.refresh(user)
        return user

    def save(self, user: models.User) -> models.User:
        _touch(user)
        self.session.add(user)
        self.session.commit()
        self.session.refresh(user)
        return user

    def delete(self, user: models.User) -> None:
        self.session.delete(user)
        self.session.commit()

    def get(self, user_id: int) -> Optional[models.User]:
        """Get a `User` by primary key."""
        return self.session.get(models.User, user_id)

    def get_by_name(self, name: str) -> Optional[models.User]:
        """Return a `User` by name or `None` if not found."""
        stmt = select(models.User).where(models.User.name == name)
        return self.session.exec(stmt).first()

    def name_taken(self, name: str, exclude_id: Optional[int] = None) -> bool:
        stmt = select(models.User.id).where(models.User.name == name)
        if exclude_id is not None:
            stmt = stmt.where(models.User.id != exclude_id)
        return self.session.exec(stmt).first() is not None

    def email_taken(self, email: str, exclude_id: Optional[int] = None) -> bool:
        stmt = select(models.User.id).where(models.User.email == email)
        if exclude_id is not None:
            stmt = stmt.where(models.User.id != exclude_id)
        return self.session.exec(stmt).first() is not None

    def search(self, page: int, limit: int, user_id: Optional[int] = None,
               name: Optional[str] = None, email: Optional[str] = None) -> List[models.User]:
        """Newest-first listing with optional id and substring filters."""
        stmt = select(models.User)
        if user_id is not None:
            stmt = stmt.where(models.User.id == user_id)
        if name:
            stmt = stmt.where(col(models.User.name).icontains(name, autoescape=True))
        if email:
            stmt = stmt.where(col(models.User.email).icontains(email, autoescape=True))
        stmt = stmt.order_by(col(models.User.created_at).desc(), col(models.User.id).desc())
        return _page(self.session, stmt, page, limit)


class QuestionRepository:
    """CRUD operations for `Question` records."""
    def __init__(self, session: Session):
        self.session = session

    def create(self, question: models.Question) -> models.Question:
        self.session.add(question)
        self.session.commit()
        self.session.refresh(question)
        return question

    def save(self, question: models.Question) -> models.Question:
        _touch(question)
        self.session.add(question)
        self.session.commit()
        self.session.refresh(question)
        return question

    def delete(self, question: models.Question) -> None:
        self.session.delete(question)
        self.session.commit()

    def get(self, question_id: int) -> Optional[models.Question]:
        """Fetch a question by id."""
        return self.session.get(models.Question, question_id)

    def exists_for_owner(self, text: str, owner_id: Optional[int], exclude_id: Optional[int] = None) -> bool:
        """Return True if `owner_id` already has a question with this text."""
        stmt = select(models.Question.id).where(
            models.Question.question == text,
            models.Question.owner_id == owner_id
        )
        if exclude_id is not None:
            stmt = stmt.where(models.Question.id != exclude_id)
        return self.session.exec(stmt).first() is not None

    def get_many(self, ids: Iterable[int]) -> Dict[int, models.Question]:
        """Return the questions among `ids` that still exist, keyed by id."""
        ids = list(set(ids))
        if not ids:
            return {}
        stmt = select(models.Question).where(col(models.Question.id).in_(ids))
        return {q.id: q for q in self.session.exec(stmt).all()}

    def search(self, page: int, limit: int, owner_id: Optional[int] = None,
               text: Optional[str] = None, tags: Optional[List[str]] = None) -> List[models.Question]:
        stmt = select(models.Question)
        if owner_id is not None:
            stmt = stmt.where(models.Question.owner_id == owner_id)
        if text:
            stmt = stmt.where(col(models.Question.question).icontains(text, autoescape=True))
        stmt = stmt.order_by(col(models.Question.created_at).desc(), col(models.Question.id).desc())
        keep = None
        if tags:
            wanted = set(tags)
            keep = lambda q: bool(wanted.intersection(q.tags or []))
        return _page(self.session, stmt, page, limit, keep)


class CollectionRepository:
    """CRUD operations for `QuizCollection` records."""
    def __init__(self, session: Session):
        self.session = session

    def create(self, collection: models.QuizCollection) -> models.QuizCollection:
        self.session.add(collection)
        self.session.commit()
        self.session.refresh(collection)
        return collection

    def save(self, collection: models.QuizCollection) -> models.QuizCollection:
        _touch(collection)
        self.session.add(collection)
        self.session.commit()
        self.session.refresh(collection)
        return collection

    def delete(self, collection: models.QuizCollection) -> None:
        self.session.delete(collection)
        self.session.commit()

    def get(self, collection_id: int) -> Optional[models.QuizCollection]:
        return self.session.get(models.QuizCollection, collection_id)

    def exists_for_owner(self, name: str, owner_id: Optional[int], exclude_id: Optional[int] = None) -> bool:
        """Return True if `owner_id` already has a collection called `name`."""
        stmt = select(models.QuizCollection.id).where(
            models.QuizCollection.name == name,
            models.QuizCollection.owner_id == owner_id
        )
        if exclude_id is not None:
            stmt = stmt.where(models.QuizCollection.id != exclude_id)
        return self.session.exec(stmt).first() is not None

    def search(self, page: int, limit: int, collection_id: Optional[int] = None,
               name: Optional[str] = None, owner_id: Optional[int] = None,
               tags: Optional[List[str]] = None,
               question_ids: Optional[List[int]] = None) -> List[models.QuizCollection]:
        """List collections.

        `tags` matches collections sharing at least one tag; `question_ids`
        matches collections containing all of the given questions.
        """
        stmt = select(models.QuizCollection)
        if collection_id is not None:
            stmt = stmt.where(models.QuizCollection.id == collection_id)
        if name:
            stmt = stmt.where(col(models.QuizCollection.name).icontains(name, autoescape=True))
        if owner_id is not None:
            stmt = stmt.where(models.QuizCollection.owner_id == owner_id)
        stmt = stmt.order_by(col(models.QuizCollection.created_at).desc(), col(models.QuizCollection.id).desc())
        if not tags and not question_ids:
            return _page(self.session, stmt, page, limit)
        wanted_tags = set(tags or [])
        wanted_questions = set(question_ids or [])

        def keep(c: models.QuizCollection) -> bool:
            if wanted_tags and not wanted_tags.intersection(c.tags or []):
                return False
            return wanted_questions.issubset(c.questions or [])

        return _page(self.session, stmt, page, limit, keep)
