from __future__ import annotations

import uuid

import jwt
from fastapi import APIRouter, Depends, Request, Response
from sqlalchemy import delete, func, or_, select, update
from sqlalchemy.orm import Session

from taskboard.auth.deps import ACCESS_COOKIE, REFRESH_COOKIE, get_current_user
from taskboard.auth.passwords import hash_password, verify_password
from taskboard.auth.tokens import (
    decode_refresh_token,
    hash_refresh_token,
    issue_access_token,
    issue_refresh_token,
)
from taskboard.config import settings
from taskboard.db import get_db
from taskboard.errors import BadRequest, Conflict, Unauthorized
from taskboard.models.project import Project
from taskboard.models.project_member import ProjectMember
from taskboard.models.subtask import SubTask
from taskboard.models.task import Task
from taskboard.models.user import User
from taskboard.ratelimit import rate_limit
from taskboard.schemas.auth import (
    ChangePasswordIn,
    LoginIn,
    LoginOut,
    RefreshIn,
    RegisterIn,
    TokenPairOut,
)
from taskboard.schemas.users import UserPublic

router = APIRouter(prefix="/auth", tags=["auth"])

def _set_auth_cookies(response: Response, access_token: str, refresh_token: str) -> None:
    opts = {
        "httponly": True,
        "secure": settings.cookie_secure,
        "samesite": "none" if settings.cookie_secure else "lax",
    }
    response.set_cookie(ACCESS_COOKIE, access_token, **opts)
    response.set_cookie(REFRESH_COOKIE, refresh_token, **opts)

def _issue_pair(db: Session, user: User) -> TokenPairOut:
    access_token = issue_access_token(user.id)
    refresh_token = issue_refresh_token(user.id)

    # only the latest refresh token stays valid
    user.refresh_token_hash = hash_refresh_token(refresh_token)
    db.add(user)
    db.commit()
    return TokenPairOut(access_token=access_token, refresh_token=refresh_token)

@router.post("/register", response_model=UserPublic, status_code=201)
def register(
    payload: RegisterIn,
    db: Session = Depends(get_db),
    _: None = Depends(
        rate_limit(
            "auth:register",
            limit_per_window=settings.rate_limit_register_per_min,
            window_seconds=60,
        )
    ),
) -> UserPublic:
    email = payload.email.lower().strip()
    username = payload.username.strip()

    existing = db.scalar(select(User).where(or_(User.email == email, User.username == username)))
    if existing is not None:
        raise Conflict("user with email or username already exists")

    user = User(
        email=email,
        username=username,
        full_name=payload.full_name,
        password_hash=hash_password(payload.password),
    )
    db.add(user)
    # a concurrent registration that wins the unique index surfaces as 409
    db.commit()
    db.refresh(user)
    return UserPublic.model_validate(user)

@router.post("/login", response_model=LoginOut)
def login(
    payload: LoginIn,
    response: Response,
    db: Session = Depends(get_db),
    _: None = Depends(
        rate_limit(
            "auth:login",
            limit_per_window=settings.rate_limit_login_per_min,
            window_seconds=60,
        )
    ),
) -> LoginOut:
    identifier = payload.identifier.strip()

    user = db.scalar(
        select(User).where(or_(User.email == identifier.lower(), User.username == identifier))
    )
    if user is None or not verify_password(payload.password, user.password_hash):
        raise BadRequest("invalid credentials")

    pair = _issue_pair(db, user)
    _set_auth_cookies(response, pair.access_token, pair.refresh_token)
    return LoginOut(**pair.model_dump(), user=UserPublic.model_validate(user))

@router.post("/refresh-token", response_model=TokenPairOut)
def refresh_token(
    request: Request,
    response: Response,
    payload: RefreshIn | None = None,
    db: Session = Depends(get_db),
) -> TokenPairOut:
    incoming = (payload.refresh_token if payload else None) or request.cookies.get(REFRESH_COOKIE)
    if not incoming:
        raise Unauthorized("missing refresh token")

    try:
        claims = decode_refresh_token(incoming)
        user_id = uuid.UUID(claims["sub"])
    except (jwt.InvalidTokenError, KeyError, ValueError):
        raise Unauthorized("invalid refresh token")

    user = db.get(User, user_id)
    if user is None or user.refresh_token_hash != hash_refresh_token(incoming):
        raise Unauthorized("refresh token expired or invalid")

    pair = _issue_pair(db, user)
    _set_auth_cookies(response, pair.access_token, pair.refresh_token)
    return pair

@router.post("/logout")
def logout(
    response: Response,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> dict:
    user.refresh_token_hash = None
    db.add(user)
    db.commit()

    response.delete_cookie(ACCESS_COOKIE)
    response.delete_cookie(REFRESH_COOKIE)
    return {"logged_out": True}

@router.get("/me", response_model=UserPublic)
def me(user: User = Depends(get_current_user)) -> UserPublic:
    return UserPublic.model_validate(user)

@router.patch("/me/change-password")
def change_password(
    payload: ChangePasswordIn,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> dict:
    if not verify_password(payload.old_password, user.password_hash):
        raise BadRequest("invalid old password")

    user.password_hash = hash_password(payload.new_password)
    # existing sessions must log in again
    user.refresh_token_hash = None
    db.add(user)
    db.commit()
    return {"changed": True}

@router.delete("/me")
def delete_account(
    response: Response,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> dict:
    owned_ids = select(Project.id).where(Project.created_by == user.id)

    authored_tasks = db.scalar(
        select(func.count())
        .select_from(Task)
        .where(Task.created_by == user.id, Task.project_id.not_in(owned_ids))
    ) or 0
    authored_subtasks = db.scalar(
        select(func.count())
        .select_from(SubTask)
        .join(Task, Task.id == SubTask.task_id)
        .where(SubTask.created_by == user.id, Task.project_id.not_in(owned_ids))
    ) or 0
    if authored_tasks or authored_subtasks:
        raise Conflict("account has authored tasks in projects owned by other users")

    # owned projects take their members, tasks and subtasks with them
    for p in db.scalars(select(Project).where(Project.created_by == user.id)).all():
        db.delete(p)
    db.flush()

    db.execute(update(Task).where(Task.assigned_to_id == user.id).values(assigned_to_id=None))
    db.execute(delete(ProjectMember).where(ProjectMember.user_id == user.id))
    db.delete(user)
    db.commit()

    response.delete_cookie(ACCESS_COOKIE)
    response.delete_cookie(REFRESH_COOKIE)
    return {"deleted": True}
