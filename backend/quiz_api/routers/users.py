"""User endpoints: register, login, list, edit, delete."""

from typing import Optional

from fastapi import APIRouter, Depends
from sqlmodel import Session

from .. import models, services
from ..auth import get_current_user, get_settings, require_permissions
from ..config import Settings
from ..database import get_session
from ..permissions import Permission
from ..responses import send_created, send_successful
from ..schemas import LoginIn, RegisterIn, UserEditIn, user_out
from ..utils.pagination import parse_pagination

router = APIRouter(prefix="/users", tags=["Users"])


@router.post("/register", status_code=201)
def register(payload: RegisterIn, db: Session = Depends(get_session), settings: Settings = Depends(get_settings)):
    """Create a user with the default (non-admin) permission set."""
    user = services.AuthService(db, settings).register(payload.name, payload.email, payload.password)
    return send_created('User created successfully', user_out(user))


@router.post("/login")
def login(payload: LoginIn, db: Session = Depends(get_session), settings: Settings = Depends(get_settings)):
    """Authenticate a user and return a one-hour bearer token.

    The token carries the user name and permission map and is signed
    with the configured JWT secret.
    """
    result = services.AuthService(db, settings).login(payload.name.strip(), payload.password)
    return send_successful('Login successful', result)


@router.get("")
def list_users(
    id: Optional[int] = None,
    name: Optional[str] = None,
    email: Optional[str] = None,
    page: Optional[str] = None,
    limit: Optional[str] = None,
    db: Session = Depends(get_session),
    settings: Settings = Depends(get_settings),
):
    page_n, limit_n = parse_pagination(page, limit)
    users = services.UserService(db, settings).list(page_n, limit_n, user_id=id, name=name, email=email)
    return send_successful('Users retrieved', users)


@router.patch("/{user_id}", dependencies=[Depends(require_permissions(Permission.EDIT_USER))])
def edit_user(
    user_id: int,
    payload: UserEditIn,
    db: Session = Depends(get_session),
    settings: Settings = Depends(get_settings),
    user: models.User = Depends(get_current_user),
):
    svc = services.UserService(db, settings)
    data = svc.edit(user, user_id, payload.new_name, payload.new_email, payload.new_password)
    return send_successful('User edited successfully', data)


@router.delete("/{user_id}", dependencies=[Depends(require_permissions(Permission.DELETE_USER))])
def delete_user(
    user_id: int,
    db: Session = Depends(get_session),
    settings: Settings = Depends(get_settings),
    user: models.User = Depends(get_current_user),
):
    data = services.UserService(db, settings).delete(user, user_id)
    return send_successful('User deleted successfully', data)
