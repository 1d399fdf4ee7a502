"""Question endpoints."""

from typing import List, Optional

from fastapi import APIRouter, Depends, Query
from sqlmodel import Session

from .. import models, services
from ..auth import get_current_user, require_permissions
from ..database import get_session
from ..permissions import Permission
from ..responses import send_created, send_successful
from ..schemas import QuestionEditIn, QuestionIn
from ..utils.pagination import parse_pagination

router = APIRouter(prefix="/questions", tags=["Questions"])


@router.post("", status_code=201, dependencies=[Depends(require_permissions(Permission.CREATE_QUESTION))])
def create_question(payload: QuestionIn, db: Session = Depends(get_session),
                    user: models.User = Depends(get_current_user)):
    data = services.QuestionService(db).create(
        user, payload.question_text, payload.options, payload.answer, payload.tags
    )
    return send_created('Question created successfully', data)


@router.get("")
def list_questions(
    id: Optional[int] = None,
    ownername: Optional[str] = None,
    question: Optional[str] = None,
    tags: Optional[List[str]] = Query(default=None),
    page: Optional[str] = None,
    limit: Optional[str] = None,
    db: Session = Depends(get_session),
):
    """List questions (newest first), optionally filtered.

    `id` returns just that question; `ownername` restricts to one author;
    `question` is a case-insensitive substring; `tags` matches any.
    """
    page_n, limit_n = parse_pagination(page, limit)
    data = services.QuestionService(db).list(
        page_n, limit_n, question_id=id, ownername=ownername, text=question, tags=tags
    )
    return send_successful('Questions', data)


@router.patch("/{question_id}", dependencies=[Depends(require_permissions(Permission.EDIT_QUESTION))])
def edit_question(question_id: int, payload: QuestionEditIn, db: Session = Depends(get_session),
                  user: models.User = Depends(get_current_user)):
    data = services.QuestionService(db).edit(user, question_id, payload.field, payload.value)
    return send_successful('Question edited successfully', data)


@router.delete("/{question_id}", dependencies=[Depends(require_permissions(Permission.DELETE_QUESTION))])
def delete_question(question_id: int, db: Session = Depends(get_session),
                    user: models.User = Depends(get_current_user)):
    data = services.QuestionService(db).delete(user, question_id)
    return send_successful('Question deleted successfully', data)
