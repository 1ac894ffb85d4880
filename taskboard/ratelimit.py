from __future__ import annotations

import hashlib
from fastapi import HTTPException, Request
from redis import RedisError

from taskboard.config import settings
from taskboard.redis_client import redis_client

def _hash(s: str) -> str:
    return hashlib.sha256(s.encode("utf-8")).hexdigest()[:24]

# fixed-window limiter using redis INCR + EXPIRE
def rate_limit(name: str, limit_per_window: int, window_seconds: int):
    def _dep(request: Request) -> None:
        if not settings.rate_limit_enabled:
            return

        ip = (request.client.host if request.client else "unknown").strip()
        key = f"rl:{name}:{_hash(ip)}"

        try:
            pipe = redis_client.pipeline()
            pipe.incr(key)
            pipe.expire(key, window_seconds, nx=True)
            count, _ = pipe.execute()
        except RedisError:
            # fail-open if redis is down
            return

        if int(count) > int(limit_per_window):
            raise HTTPException(status_code=429, detail="rate_limited")

    return _dep
