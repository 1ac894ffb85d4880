from pydantic import BaseModel, EmailStr, Field

from taskboard.schemas.users import PasswordStr, UserPublic

class RegisterIn(BaseModel):
    email: EmailStr
    username: str = Field(min_length=3, max_length=30, pattern=r"^[a-z0-9_]+$")
    password: PasswordStr
    full_name: str | None = Field(default=None, max_length=200)

class LoginIn(BaseModel):
    # email or username
    identifier: str = Field(min_length=3)
    password: str = Field(min_length=1, max_length=72)

class RefreshIn(BaseModel):
    refresh_token: str | None = None

class ChangePasswordIn(BaseModel):
    old_password: str = Field(min_length=1, max_length=72)
    new_password: PasswordStr

class TokenPairOut(BaseModel):
    access_token: str
    refresh_token: str
    token_type: str = "bearer"

class LoginOut(TokenPairOut):
    user: UserPublic
