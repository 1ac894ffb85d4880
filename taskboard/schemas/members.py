import uuid
from datetime import datetime

from pydantic import BaseModel, ConfigDict, EmailStr

from taskboard.models.enums import Role
from taskboard.schemas.users import UserPublic

class MemberAddIn(BaseModel):
    email: EmailStr
    role: Role = Role.member

class MemberRoleIn(BaseModel):
    new_role: Role

class MemberOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    user_id: uuid.UUID
    project_id: uuid.UUID
    role: Role
    created_at: datetime
    user: UserPublic

class MemberRemovedOut(BaseModel):
    removed_user: UserPublic
