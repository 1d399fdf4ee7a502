"""Quiz collection endpoints."""

from typing import List, Optional

from fastapi import APIRouter, Depends, Query
from sqlmodel import Session

from .. import models, services
from ..auth import get_current_user, require_permissions
from ..database import get_session
from ..permissions import Permission
from ..responses import send_created, send_successful
from ..schemas import CollectionEditIn, CollectionIn
from ..utils.pagination import parse_pagination

router = APIRouter(prefix="/collections", tags=["Collections"])


@router.post("", status_code=201, dependencies=[Depends(require_permissions(Permission.CREATE_COLLECTION))])
def create_collection(payload: CollectionIn, db: Session = Depends(get_session),
                      user: models.User = Depends(get_current_user)):
    data = services.CollectionService(db).create(user, payload.name, payload.tags, payload.questions)
    return send_created('Collection created', data)


@router.get("")
def list_collections(
    id: Optional[int] = None,
    name: Optional[str] = None,
    owner: Optional[int] = None,
    ownername: Optional[str] = None,
    tags: Optional[List[str]] = Query(default=None),
    questions: Optional[List[int]] = Query(default=None),
    page: Optional[str] = None,
    limit: Optional[str] = None,
    db: Session = Depends(get_session),
):
    """List collections with their questions populated.

    `tags` matches collections with any of the tags, `questions` those
    containing all of the given question ids.
    """
    page_n, limit_n = parse_pagination(page, limit)
    data = services.CollectionService(db).list(
        page_n, limit_n,
        collection_id=id,
        name=name,
        owner_id=owner,
        ownername=ownername,
        tags=tags,
        question_ids=questions,
    )
    return send_successful('Quizz Collections', data)


@router.patch("/{collection_id}", dependencies=[Depends(require_permissions(Permission.EDIT_COLLECTION))])
def edit_collection(collection_id: int, payload: CollectionEditIn, db: Session = Depends(get_session),
                    user: models.User = Depends(get_current_user)):
    changes = payload.model_dump(exclude_unset=True)
    data = services.CollectionService(db).edit(user, collection_id, changes)
    return send_successful('Collection edited successfully', data)


@router.delete("/{collection_id}", dependencies=[Depends(require_permissions(Permission.DELETE_COLLECTION))])
def delete_collection(collection_id: int, db: Session = Depends(get_session),
                      user: models.User = Depends(get_current_user)):
    data = services.CollectionService(db).delete(user, collection_id)
    return send_successful('Collection deleted successfully', data)
