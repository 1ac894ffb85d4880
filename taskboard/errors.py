from fastapi import HTTPException

class AppError(HTTPException):
    """Typed failure raised by the core; rendered as ``{"detail": ...}``."""

    status_code = 500
    default_detail = "internal server error"

    def __init__(self, detail: str | None = None):
        super().__init__(status_code=self.status_code, detail=detail or self.default_detail)

class BadRequest(AppError):
    status_code = 400
    default_detail = "bad request"

class Unauthorized(AppError):
    status_code = 401
    default_detail = "unauthorized"

class Forbidden(AppError):
    status_code = 403
    default_detail = "forbidden"

class NotFound(AppError):
    status_code = 404
    default_detail = "not found"

class Conflict(AppError):
    status_code = 409
    default_detail = "resource already exists"
