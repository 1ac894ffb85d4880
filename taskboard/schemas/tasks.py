import uuid
from pydantic import BaseModel, ConfigDict, Field

from taskboard.models.enums import TaskStatus

class TaskCreateIn(BaseModel):
    title: str = Field(min_length=1, max_length=300)
    description: str | None = None
    status: TaskStatus = TaskStatus.todo
    assigned_to_id: uuid.UUID | None = None

class TaskUpdateIn(BaseModel):
    title: str | None = Field(default=None, min_length=1, max_length=300)
    description: str | None = None
    status: TaskStatus | None = None
    assigned_to_id: uuid.UUID | None = None

class SubTaskCreateIn(BaseModel):
    title: str = Field(min_length=1, max_length=300)

class SubTaskUpdateIn(BaseModel):
    title: str | None = Field(default=None, min_length=1, max_length=300)
    is_completed: bool | None = None

class SubTaskOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    task_id: uuid.UUID
    title: str
    is_completed: bool
    created_by: uuid.UUID

class TaskOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    project_id: uuid.UUID
    title: str
    description: str | None
    status: TaskStatus
    created_by: uuid.UUID
    assigned_to_id: uuid.UUID | None

class TaskDetailOut(TaskOut):
    subtasks: list[SubTaskOut] = []
