"""Business logic services used by HTTP controllers.

This module holds small service classes that coordinate repositories,
validation and the permission model. Services are intentionally thin:
they validate input, resolve the acting user, apply the
ownership-or-admin rule and persist through repositories. Failures are
raised as `errors.QuizApiError` subclasses.

Uniqueness checks (user name/email, question text per owner, collection
name per owner) are check-then-insert and not atomic with the write.
User name and email also carry unique indexes, so a lost race there
surfaces as an `IntegrityError` and is reported as the same conflict.
"""

import logging
from datetime import datetime, timedelta, timezone
from functools import lru_cache
from typing import Any, Dict, List, Optional

import jwt
from passlib.context import CryptContext
from sqlalchemy.exc import IntegrityError
from sqlmodel import Session

from . import models, repositories
from .config import Settings
from .errors import (
    AuthenticationError,
    ConflictError,
    ErrorMessages,
    NotFoundError,
    ValidationError,
)
from .permissions import DEFAULT_PERMISSIONS, has_ownership_or_admin
from .schemas import collection_out, question_out, user_out
from .utils.validators import (
    has_valid_email,
    has_valid_name,
    has_valid_options,
    has_valid_password,
    has_valid_question_ids,
    has_valid_tags,
    is_valid_string,
)

logger = logging.getLogger("quiz_api.services")

EDITABLE_QUESTION_FIELDS = ('question', 'options', 'answer')


@lru_cache(maxsize=8)
def password_context(rounds: int) -> CryptContext:
    """Return a `CryptContext` hashing with pbkdf2_sha256 at `rounds`."""
    return CryptContext(
        schemes=["pbkdf2_sha256"],
        deprecated="auto",
        pbkdf2_sha256__default_rounds=rounds,
    )


def issue_token(settings: Settings, name: str, permissions: Dict[str, bool]) -> str:
    """Sign a bearer token carrying the user name and permission map."""
    now = datetime.now(timezone.utc)
    payload = {
        "name": name,
        "permissions": dict(permissions),
        "iat": int(now.timestamp()),
        "exp": int((now + timedelta(minutes=settings.JWT_EXPIRE_MINUTES)).timestamp()),
    }
    return jwt.encode(payload, settings.JWT_SECRET, algorithm=settings.JWT_ALGORITHM)


def decode_token(settings: Settings, token: str) -> Dict[str, Any]:
    """Verify signature and expiry and return the claims.

    Any verification failure raises `AuthenticationError` with status 403.
    """
    try:
        payload = jwt.decode(token, settings.JWT_SECRET, algorithms=[settings.JWT_ALGORITHM],
                             options={"require": ["exp", "name"]})
    except jwt.InvalidTokenError:
        raise AuthenticationError(ErrorMessages.INVALID_TOKEN, status_code=403)
    if not isinstance(payload.get("name"), str):
        raise AuthenticationError(ErrorMessages.INVALID_TOKEN, status_code=403)
    return payload


def _unique_conflict(user_repo: repositories.UserRepository, name: str,
                     exclude_id: Optional[int] = None) -> ConflictError:
    """Map a unique-index violation on `User` to the name or email conflict."""
    holder = user_repo.get_by_name(name)
    if holder is not None and holder.id != exclude_id:
        return ConflictError(ErrorMessages.USER_EXISTS)
    return ConflictError(ErrorMessages.EMAIL_TAKEN)


def resolve_user(session: Session, name: Optional[str]) -> models.User:
    """Look up the acting user by the name carried in their token."""
    user = repositories.UserRepository(session).get_by_name(name) if name else None
    if not user:
        raise NotFoundError(ErrorMessages.NOT_FOUND_USER)
    return user


class AuthService:
    """Authentication related operations (register + login)."""
    def __init__(self, session: Session, settings: Settings):
        self.session = session
        self.settings = settings
        self.user_repo = repositories.UserRepository(session)
        self.pwd_ctx = password_context(settings.PASSWORD_HASH_ROUNDS)

    def hash_password(self, password: str) -> str:
        return self.pwd_ctx.hash(password)

    def verify_password(self, password: str, password_hash: str) -> bool:
        return self.pwd_ctx.verify(password, password_hash)

    def register(self, name: Any, email: Any, password: Any) -> models.User:
        """Validate, check uniqueness and create a user with default permissions.

        Returns the persisted `User` instance.
        """
        name = has_valid_name(name)
        email = has_valid_email(email)
        password = has_valid_password(password, self.settings.PASSWORD_PATTERN)
        if self.user_repo.name_taken(name):
            raise ConflictError(ErrorMessages.USER_EXISTS)
        if self.user_repo.email_taken(email):
            raise ConflictError(ErrorMessages.EMAIL_TAKEN)
        user = models.User(
            name=name,
            email=email,
            password_hash=self.hash_password(password),
            score=0,
            permissions=int(DEFAULT_PERMISSIONS),
        )
        try:
            user = self.user_repo.create(user)
        except IntegrityError:
            self.session.rollback()
            raise _unique_conflict(self.user_repo, name)
        logger.info("user registered id=%s name=%s", user.id, user.name)
        return user

    def login(self, name: str, password: str) -> Dict[str, Any]:
        """Verify credentials and return the user plus a signed token."""
        user = self.user_repo.get_by_name(name)
        if not user:
            raise NotFoundError(ErrorMessages.NOT_FOUND_USER)
        if not self.verify_password(password, user.password_hash):
            raise AuthenticationError(ErrorMessages.INVALID_PASSWORD)
        permissions = user.permission_map()
        token = issue_token(self.settings, user.name, permissions)
        return {
            'user': {**user_out(user), 'permissions': permissions},
            'accessToken': token,
        }


class UserService:
    """Listing, editing and deleting users."""
    def __init__(self, session: Session, settings: Settings):
        self.session = session
        self.settings = settings
        self.user_repo = repositories.UserRepository(session)

    def _get(self, user_id: int) -> models.User:
        user = self.user_repo.get(user_id)
        if not user:
            raise NotFoundError(ErrorMessages.NOT_FOUND_USER)
        return user

    def list(self, page: int, limit: int, user_id: Optional[int] = None,
             name: Optional[str] = None, email: Optional[str] = None) -> List[Dict[str, Any]]:
        users = self.user_repo.search(page, limit, user_id=user_id, name=name, email=email)
        return [user_out(u, full=True) for u in users]

    def edit(self, actor: models.User, user_id: int, new_name: Any = None,
             new_email: Any = None, new_password: Any = None) -> Dict[str, Any]:
        """Apply the provided changes to `user_id` after the ownership check."""
        target = self._get(user_id)
        has_ownership_or_admin(actor, target.id)
        target_id = target.id
        if new_name is not None:
            new_name = has_valid_name(new_name)
            if self.user_repo.name_taken(new_name, exclude_id=target_id):
                raise ConflictError(ErrorMessages.USER_EXISTS)
        if new_email is not None:
            new_email = has_valid_email(new_email)
            if self.user_repo.email_taken(new_email, exclude_id=target_id):
                raise ConflictError(ErrorMessages.EMAIL_TAKEN)
        if new_name is not None:
            target.name = new_name
        if new_email is not None:
            target.email = new_email
        if new_password is not None:
            new_password = has_valid_password(new_password, self.settings.PASSWORD_PATTERN)
            target.password_hash = password_context(self.settings.PASSWORD_HASH_ROUNDS).hash(new_password)
        try:
            target = self.user_repo.save(target)
        except IntegrityError:
            self.session.rollback()
            if new_name is None:
                raise ConflictError(ErrorMessages.EMAIL_TAKEN)
            raise _unique_conflict(self.user_repo, new_name, exclude_id=target_id)
        return user_out(target)

    def delete(self, actor: models.User, user_id: int) -> Dict[str, Any]:
        target = self._get(user_id)
        has_ownership_or_admin(actor, target.id)
        self.user_repo.delete(target)
        logger.info("user deleted id=%s by=%s", user_id, actor.name)
        return {'_id': user_id}


class QuestionService:
    """Create, edit, delete and list questions."""
    def __init__(self, session: Session):
        self.session = session
        self.q_repo = repositories.QuestionRepository(session)

    def _get(self, question_id: int) -> models.Question:
        q = self.q_repo.get(question_id)
        if not q:
            raise NotFoundError(ErrorMessages.QUESTION_NOT_FOUND)
        return q

    def create(self, actor: models.User, question_text: Any, options: Any,
               answer: Any, tags: Any = None) -> Dict[str, Any]:
        """Validate and store a question owned by `actor`."""
        if tags is None:
            tags = []
        if not is_valid_string(question_text):
            raise ValidationError(ErrorMessages.INVALID_STRING)
        if not is_valid_string(answer):
            raise ValidationError(ErrorMessages.NEED_ANSWER)
        options = has_valid_options(options)
        tags = has_valid_tags(tags)
        if answer not in options:
            raise ValidationError(ErrorMessages.OPTIONS_MUST_INCLUDE_ANSWER)
        text = question_text.strip()
        if self.q_repo.exists_for_owner(text, actor.id):
            raise ConflictError(ErrorMessages.QUESTION_ALREADY_EXISTS)
        q = models.Question(question=text, options=options, answer=answer, tags=tags, owner_id=actor.id)
        q = self.q_repo.create(q)
        logger.info("question created id=%s owner=%s", q.id, actor.id)
        return question_out(q)

    def edit(self, actor: models.User, question_id: int, field: Any, value: Any) -> Dict[str, Any]:
        """Change one of the editable fields, keeping `answer` inside `options`."""
        if field not in EDITABLE_QUESTION_FIELDS:
            raise ValidationError(ErrorMessages.FIELD_NOT_EDITABLE)
        q = self._get(question_id)
        has_ownership_or_admin(actor, q.owner_id)
        if field == 'question':
            if not is_valid_string(value):
                raise ValidationError(ErrorMessages.INVALID_STRING)
            text = value.strip()
            if self.q_repo.exists_for_owner(text, q.owner_id, exclude_id=q.id):
                raise ConflictError(ErrorMessages.QUESTION_ALREADY_EXISTS)
            q.question = text
        elif field == 'options':
            options = has_valid_options(value)
            q.options = options
            if q.answer not in options:
                logger.info("question %s answer reset after options edit", q.id)
                q.answer = options[0]
        else:
            if not is_valid_string(value):
                raise ValidationError(ErrorMessages.NEED_ANSWER)
            if value not in (q.options or []):
                raise ValidationError(ErrorMessages.OPTIONS_MUST_INCLUDE_ANSWER)
            q.answer = value
        return question_out(self.q_repo.save(q))

    def delete(self, actor: models.User, question_id: int) -> Dict[str, Any]:
        q = self._get(question_id)
        has_ownership_or_admin(actor, q.owner_id)
        out = question_out(q)
        self.q_repo.delete(q)
        logger.info("question deleted id=%s by=%s", question_id, actor.name)
        return out

    def list(self, page: int, limit: int, question_id: Optional[int] = None,
             ownername: Optional[str] = None, text: Optional[str] = None,
             tags: Optional[List[str]] = None) -> List[Dict[str, Any]]:
        """List questions newest first.

        With `question_id` the result is exactly that question (404 if it
        does not exist); other filters are ignored.
        """
        if question_id is not None:
            return [question_out(self._get(question_id))]
        owner_id = None
        if ownername:
            owner_id = resolve_user(self.session, ownername).id
        qs = self.q_repo.search(page, limit, owner_id=owner_id, text=text, tags=tags)
        return [question_out(q) for q in qs]


class CollectionService:
    """Create, edit, delete and list quiz collections."""
    def __init__(self, session: Session):
        self.session = session
        self.c_repo = repositories.CollectionRepository(session)
        self.q_repo = repositories.QuestionRepository(session)

    def _get(self, collection_id: int) -> models.QuizCollection:
        c = self.c_repo.get(collection_id)
        if not c:
            raise NotFoundError(ErrorMessages.COLLECTION_NOT_FOUND)
        return c

    def _populate(self, collections: List[models.QuizCollection]) -> List[Dict[str, Any]]:
        ids = [qid for c in collections for qid in (c.questions or [])]
        found = self.q_repo.get_many(ids)
        return [collection_out(c, found) for c in collections]

    def create(self, actor: models.User, name: Any, tags: Any = None, questions: Any = None) -> Dict[str, Any]:
        if not is_valid_string(name):
            raise ValidationError(ErrorMessages.INVALID_STRING)
        tags = has_valid_tags([] if tags is None else tags)
        question_ids = has_valid_question_ids([] if questions is None else questions)
        name = name.strip()
        if self.c_repo.exists_for_owner(name, actor.id):
            raise ConflictError(ErrorMessages.COLLECTION_ALREADY_EXISTS)
        c = models.QuizCollection(name=name, tags=tags, questions=question_ids, owner_id=actor.id)
        c = self.c_repo.create(c)
        logger.info("collection created id=%s owner=%s", c.id, actor.id)
        return collection_out(c)

    def edit(self, actor: models.User, collection_id: int, changes: Dict[str, Any]) -> Dict[str, Any]:
        """Apply the keys present in `changes` (name, tags, questions)."""
        c = self._get(collection_id)
        has_ownership_or_admin(actor, c.owner_id)
        if 'name' in changes:
            name = changes['name']
            if not is_valid_string(name):
                raise ValidationError(ErrorMessages.INVALID_STRING)
            name = name.strip()
            if name != c.name and self.c_repo.exists_for_owner(name, c.owner_id, exclude_id=c.id):
                raise ConflictError(ErrorMessages.COLLECTION_ALREADY_EXISTS)
            c.name = name
        if 'tags' in changes:
            c.tags = has_valid_tags(changes['tags'])
        if 'questions' in changes:
            c.questions = has_valid_question_ids(changes['questions'])
        return collection_out(self.c_repo.save(c))

    def delete(self, actor: models.User, collection_id: int) -> Dict[str, Any]:
        c = self._get(collection_id)
        has_ownership_or_admin(actor, c.owner_id)
        out = collection_out(c)
        self.c_repo.delete(c)
        logger.info("collection deleted id=%s by=%s", collection_id, actor.name)
        return out

    def list(self, page: int, limit: int, collection_id: Optional[int] = None,
             name: Optional[str] = None, owner_id: Optional[int] = None,
             ownername: Optional[str] = None, tags: Optional[List[str]] = None,
             question_ids: Optional[List[int]] = None) -> List[Dict[str, Any]]:
        """List collections with their questions populated."""
        if ownername:
            owner = resolve_user(self.session, ownername)
            if owner_id is not None and owner_id != owner.id:
                return []
            owner_id = owner.id
        collections = self.c_repo.search(
            page, limit,
            collection_id=collection_id,
            name=name,
            owner_id=owner_id,
            tags=tags,
            question_ids=question_ids,
        )
        return self._populate(collections)
