import uuid
from pydantic import BaseModel, ConfigDict, Field

from taskboard.models.enums import Role
from taskboard.schemas.users import UserPublic

class ProjectCreateIn(BaseModel):
    name: str = Field(min_length=3, max_length=100)
    description: str | None = Field(default=None, max_length=500)

class ProjectUpdateIn(BaseModel):
    name: str | None = Field(default=None, min_length=3, max_length=100)
    description: str | None = Field(default=None, max_length=500)

class ProjectOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    name: str
    description: str | None
    created_by: uuid.UUID

class ProjectSummaryOut(BaseModel):
    id: uuid.UUID
    name: str
    description: str | None
    members_count: int
    role: Role
    creator: UserPublic
