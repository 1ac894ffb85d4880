import uuid

from fastapi import APIRouter, Depends
from sqlalchemy import select
from sqlalchemy.orm import Session

from taskboard.db import get_db
from taskboard.errors import BadRequest, NotFound
from taskboard.models.subtask import SubTask
from taskboard.models.task import Task
from taskboard.rbac.gate import ProjectContext, require_perm
from taskboard.schemas.tasks import (
    SubTaskCreateIn,
    SubTaskOut,
    SubTaskUpdateIn,
    TaskCreateIn,
    TaskDetailOut,
    TaskOut,
    TaskUpdateIn,
)
from taskboard.store import MembershipStore, get_membership_store

router = APIRouter(tags=["tasks"])

def _get_task(db: Session, ctx: ProjectContext, task_id: uuid.UUID) -> Task:
    t = db.scalar(select(Task).where(Task.id == task_id, Task.project_id == ctx.project_id))
    if t is None:
        raise NotFound("task not found in this project")
    return t

def _get_subtask(db: Session, task_id: uuid.UUID, subtask_id: uuid.UUID) -> SubTask:
    s = db.get(SubTask, subtask_id)
    if s is None:
        raise NotFound("subtask not found")
    if s.task_id != task_id:
        raise BadRequest("subtask does not belong to this task")
    return s

def _check_assignee(store: MembershipStore, project_id: uuid.UUID, assignee_id: uuid.UUID) -> None:
    # row lock holds off a concurrent member removal until the task write commits
    if store.find_membership(assignee_id, project_id, for_update=True) is None:
        raise BadRequest("Cannot assign task to user who is not a project member")

@router.get("/projects/{project_id}/tasks", response_model=list[TaskOut])
def list_tasks(
    project_id: uuid.UUID,
    ctx: ProjectContext = Depends(require_perm("tasks:read")),
    db: Session = Depends(get_db),
) -> list[TaskOut]:
    q = select(Task).where(Task.project_id == ctx.project_id).order_by(Task.created_at.desc())
    return [TaskOut.model_validate(t) for t in db.scalars(q).all()]

@router.post("/projects/{project_id}/tasks", response_model=TaskOut, status_code=201)
def create_task(
    project_id: uuid.UUID,
    payload: TaskCreateIn,
    ctx: ProjectContext = Depends(require_perm("tasks:create")),
    store: MembershipStore = Depends(get_membership_store),
    db: Session = Depends(get_db),
) -> TaskOut:
    with store.transaction():
        if payload.assigned_to_id is not None:
            if store.find_user_by_id(payload.assigned_to_id) is None:
                raise NotFound("assigned user not found")
            _check_assignee(store, ctx.project_id, payload.assigned_to_id)

        t = Task(
            project_id=ctx.project_id,
            title=payload.title,
            description=payload.description,
            status=payload.status,
            created_by=ctx.actor_id,
            assigned_to_id=payload.assigned_to_id,
        )
        db.add(t)

    db.refresh(t)
    return TaskOut.model_validate(t)

@router.get("/projects/{project_id}/tasks/{task_id}", response_model=TaskDetailOut)
def get_task(
    project_id: uuid.UUID,
    task_id: uuid.UUID,
    ctx: ProjectContext = Depends(require_perm("tasks:read")),
    db: Session = Depends(get_db),
) -> TaskDetailOut:
    return TaskDetailOut.model_validate(_get_task(db, ctx, task_id))

@router.patch("/projects/{project_id}/tasks/{task_id}", response_model=TaskOut)
def update_task(
    project_id: uuid.UUID,
    task_id: uuid.UUID,
    payload: TaskUpdateIn,
    ctx: ProjectContext = Depends(require_perm("tasks:update")),
    store: MembershipStore = Depends(get_membership_store),
    db: Session = Depends(get_db),
) -> TaskOut:
    with store.transaction():
        t = _get_task(db, ctx, task_id)

        # explicit null unassigns
        if "assigned_to_id" in payload.model_fields_set:
            if payload.assigned_to_id is not None:
                _check_assignee(store, t.project_id, payload.assigned_to_id)
            t.assigned_to_id = payload.assigned_to_id

        if payload.title is not None:
            t.title = payload.title
        if "description" in payload.model_fields_set:
            t.description = payload.description
        if payload.status is not None:
            t.status = payload.status

        db.add(t)

    db.refresh(t)
    return TaskOut.model_validate(t)

@router.delete("/projects/{project_id}/tasks/{task_id}")
def delete_task(
    project_id: uuid.UUID,
    task_id: uuid.UUID,
    ctx: ProjectContext = Depends(require_perm("tasks:delete")),
    db: Session = Depends(get_db),
) -> dict:
    t = _get_task(db, ctx, task_id)
    db.delete(t)
    db.commit()
    return {"deleted": True}

# subtasks resolve their project through the parent task

@router.post("/tasks/{task_id}/subtasks", response_model=SubTaskOut, status_code=201)
def create_subtask(
    task_id: uuid.UUID,
    payload: SubTaskCreateIn,
    ctx: ProjectContext = Depends(require_perm("subtasks:create")),
    db: Session = Depends(get_db),
) -> SubTaskOut:
    t = _get_task(db, ctx, task_id)
    s = SubTask(task_id=t.id, title=payload.title, created_by=ctx.actor_id)
    db.add(s)
    db.commit()
    db.refresh(s)
    return SubTaskOut.model_validate(s)

@router.patch("/tasks/{task_id}/subtasks/{subtask_id}", response_model=SubTaskOut)
def update_subtask(
    task_id: uuid.UUID,
    subtask_id: uuid.UUID,
    payload: SubTaskUpdateIn,
    ctx: ProjectContext = Depends(require_perm("subtasks:update")),
    db: Session = Depends(get_db),
) -> SubTaskOut:
    t = _get_task(db, ctx, task_id)
    s = _get_subtask(db, t.id, subtask_id)
    if payload.title is not None:
        s.title = payload.title
    if payload.is_completed is not None:
        s.is_completed = payload.is_completed
    db.add(s)
    db.commit()
    db.refresh(s)
    return SubTaskOut.model_validate(s)

@router.delete("/tasks/{task_id}/subtasks/{subtask_id}")
def delete_subtask(
    task_id: uuid.UUID,
    subtask_id: uuid.UUID,
    ctx: ProjectContext = Depends(require_perm("subtasks:delete")),
    db: Session = Depends(get_db),
) -> dict:
    t = _get_task(db, ctx, task_id)
    s = _get_subtask(db, t.id, subtask_id)
    db.delete(s)
    db.commit()
    return {"deleted": True}
