import hashlib
import hmac
import uuid
import jwt
from datetime import datetime, timedelta, timezone
from taskboard.config import settings

ACCESS = "access"
REFRESH = "refresh"

def now_utc() -> datetime:
    return datetime.now(timezone.utc)

def hash_refresh_token(token: str) -> str:
    msg = token.encode("utf-8")
    key = settings.token_pepper.encode("utf-8")
    digest = hmac.new(key, msg, hashlib.sha256).hexdigest()
    return digest

def _issue(user_id: str | uuid.UUID, token_type: str, secret: str, expires_minutes: int) -> str:
    iat = now_utc()
    exp = iat + timedelta(minutes=expires_minutes)
    payload = {
        "sub": str(user_id),
        "typ": token_type,
        # unique per issue so two refreshes in the same second still rotate
        "jti": uuid.uuid4().hex,
        "iss": settings.jwt_issuer,
        "aud": settings.jwt_audience,
        "iat": int(iat.timestamp()),
        "exp": int(exp.timestamp()),
    }
    return jwt.encode(payload, secret, algorithm="HS256")

def _decode(token: str, token_type: str, secret: str) -> dict:
    payload = jwt.decode(
        token,
        secret,
        algorithms=["HS256"],
        audience=settings.jwt_audience,
        issuer=settings.jwt_issuer,
    )
    if payload.get("typ") != token_type:
        raise jwt.InvalidTokenError(f"expected {token_type} token")
    return payload

def issue_access_token(user_id: str | uuid.UUID) -> str:
    return _issue(user_id, ACCESS, settings.jwt_secret, settings.jwt_expires_minutes)

def issue_refresh_token(user_id: str | uuid.UUID) -> str:
    return _issue(user_id, REFRESH, settings.jwt_refresh_secret, settings.jwt_refresh_expires_minutes)

def decode_access_token(token: str) -> dict:
    return _decode(token, ACCESS, settings.jwt_secret)

def decode_refresh_token(token: str) -> dict:
    return _decode(token, REFRESH, settings.jwt_refresh_secret)
