"""Pydantic request schemas and response serializers used by the API.

Request schemas are deliberately loose about list-valued fields (`Any`)
so that the services, not pydantic, decide the error message for a bad
`options`, `tags` or `questions` value. Serializers turn models into the
JSON shape clients see: ids as `_id`, owners as `owner`, and never a
password hash.
"""

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field

from . import models


class RegisterIn(BaseModel):
    """Payload for user registration."""
    name: Optional[str] = None
    email: Optional[str] = None
    password: Optional[str] = None


class LoginIn(BaseModel):
    name: str
    password: str


class UserEditIn(BaseModel):
    """Fields a user (or an admin) may change; omitted fields stay as they are."""
    model_config = ConfigDict(populate_by_name=True)

    new_name: Optional[str] = Field(default=None, alias="newName")
    new_email: Optional[str] = Field(default=None, alias="newEmail")
    new_password: Optional[str] = Field(default=None, alias="newPassword")


class QuestionIn(BaseModel):
    question_text: Optional[str] = None
    options: Any = None
    answer: Optional[str] = None
    tags: Any = Field(default_factory=list)


class QuestionEditIn(BaseModel):
    """Single-field edit: `field` is one of question/options/answer."""
    field: Optional[str] = None
    value: Any = None


class CollectionIn(BaseModel):
    name: Optional[str] = None
    tags: Any = Field(default_factory=list)
    questions: Any = Field(default_factory=list)


class CollectionEditIn(BaseModel):
    name: Optional[str] = None
    tags: Any = None
    questions: Any = None


def _ts(value):
    return value.isoformat() if value is not None else None


def user_out(user: models.User, full: bool = False) -> Dict[str, Any]:
    """Public view of a user. `full` adds permissions, score and timestamps."""
    out = {'_id': user.id, 'name': user.name, 'email': user.email}
    if full:
        out.update({
            'permissions': user.permission_map(),
            'score': user.score,
            'createdAt': _ts(user.created_at),
        })
    return out


def question_out(q: models.Question) -> Dict[str, Any]:
    return {
        '_id': q.id,
        'question': q.question,
        'options': list(q.options or []),
        'answer': q.answer,
        'owner': q.owner_id,
        'tags': list(q.tags or []),
        'createdAt': _ts(q.created_at),
        'updatedAt': _ts(q.updated_at),
    }


def collection_out(c: models.QuizCollection, populated: Optional[Dict[int, models.Question]] = None) -> Dict[str, Any]:
    """Serialize a collection.

    With `populated`, question ids are replaced by full question objects;
    ids with no matching question are left out.
    """
    if populated is None:
        questions: List[Any] = list(c.questions or [])
    else:
        questions = [question_out(populated[qid]) for qid in (c.questions or []) if qid in populated]
    return {
        '_id': c.id,
        'name': c.name,
        'tags': list(c.tags or []),
        'questions': questions,
        'owner': c.owner_id,
        'createdAt': _ts(c.created_at),
        'updatedAt': _ts(c.updated_at),
    }
