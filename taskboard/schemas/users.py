import uuid
from typing import Annotated

from pydantic import AfterValidator, BaseModel, ConfigDict, Field

def _fits_bcrypt(v: str) -> str:
    # bcrypt rejects input over 72 bytes, not characters
    if len(v.encode("utf-8")) > 72:
        raise ValueError("password must be at most 72 bytes when UTF-8 encoded")
    return v

PasswordStr = Annotated[str, Field(min_length=6, max_length=72), AfterValidator(_fits_bcrypt)]

class UserPublic(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    email: str
    username: str
    full_name: str | None = None
