import uuid

import jwt
from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from taskboard.auth.tokens import decode_access_token
from taskboard.db import get_db
from taskboard.errors import Unauthorized
from taskboard.models.user import User

ACCESS_COOKIE = "accessToken"
REFRESH_COOKIE = "refreshToken"

bearer = HTTPBearer(auto_error=False)

def get_current_user(
    request: Request,
    creds: HTTPAuthorizationCredentials | None = Depends(bearer),
    db: Session = Depends(get_db),
) -> User:
    if creds is not None and creds.scheme.lower() == "bearer":
        token = creds.credentials
    else:
        token = request.cookies.get(ACCESS_COOKIE)
    if not token:
        raise Unauthorized("missing bearer token")

    try:
        payload = decode_access_token(token)
        user_id = uuid.UUID(payload["sub"])
    except jwt.ExpiredSignatureError:
        raise Unauthorized("token expired")
    except (jwt.InvalidTokenError, KeyError, ValueError):
        raise Unauthorized("invalid token")

    user = db.get(User, user_id)
    if user is None:
        raise Unauthorized("user not found")

    return user
