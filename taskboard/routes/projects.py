import uuid

from fastapi import APIRouter, Depends
from sqlalchemy import func, select
from sqlalchemy.orm import Session

from taskboard.auth.deps import get_current_user
from taskboard.db import get_db
from taskboard.errors import NotFound
from taskboard.models.enums import Role
from taskboard.models.project import Project
from taskboard.models.project_member import ProjectMember
from taskboard.models.user import User
from taskboard.rbac.gate import ProjectContext, require_perm
from taskboard.rbac.lifecycle import MembershipManager
from taskboard.schemas.members import MemberAddIn, MemberOut, MemberRemovedOut, MemberRoleIn
from taskboard.schemas.projects import ProjectCreateIn, ProjectOut, ProjectSummaryOut, ProjectUpdateIn
from taskboard.schemas.users import UserPublic
from taskboard.store import MembershipStore, get_membership_store

router = APIRouter(prefix="/projects", tags=["projects"])

def _get_project(db: Session, project_id: uuid.UUID) -> Project:
    p = db.get(Project, project_id)
    if p is None:
        raise NotFound("project not found")
    return p

@router.get("", response_model=list[ProjectSummaryOut])
def list_projects(
    user: User = Depends(get_current_user),
    store: MembershipStore = Depends(get_membership_store),
    db: Session = Depends(get_db),
) -> list[ProjectSummaryOut]:
    memberships = store.find_memberships_by_user(user.id)
    if not memberships:
        return []

    project_ids = [m.project_id for m in memberships]
    counts = dict(
        db.execute(
            select(ProjectMember.project_id, func.count())
            .where(ProjectMember.project_id.in_(project_ids))
            .group_by(ProjectMember.project_id)
        ).all()
    )
    return [
        ProjectSummaryOut(
            id=m.project.id,
            name=m.project.name,
            description=m.project.description,
            members_count=counts.get(m.project_id, 0),
            role=m.role,
            creator=UserPublic.model_validate(m.project.creator),
        )
        for m in memberships
    ]

@router.post("", response_model=ProjectOut, status_code=201)
def create_project(
    payload: ProjectCreateIn,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> ProjectOut:
    p = Project(name=payload.name, description=payload.description, created_by=user.id)
    db.add(p)
    db.flush()

    # the creator's OWNER row is written in the same transaction as the project
    db.add(ProjectMember(user_id=user.id, project_id=p.id, role=Role.owner))
    db.commit()
    db.refresh(p)
    return ProjectOut.model_validate(p)

@router.get("/{project_id}", response_model=ProjectOut)
def get_project(
    project_id: uuid.UUID,
    ctx: ProjectContext = Depends(require_perm("projects:read")),
    db: Session = Depends(get_db),
) -> ProjectOut:
    return ProjectOut.model_validate(_get_project(db, ctx.project_id))

@router.patch("/{project_id}", response_model=ProjectOut)
def update_project(
    project_id: uuid.UUID,
    payload: ProjectUpdateIn,
    ctx: ProjectContext = Depends(require_perm("projects:update")),
    db: Session = Depends(get_db),
) -> ProjectOut:
    p = _get_project(db, ctx.project_id)
    if payload.name is not None:
        p.name = payload.name
    if "description" in payload.model_fields_set:
        p.description = payload.description
    db.add(p)
    db.commit()
    db.refresh(p)
    return ProjectOut.model_validate(p)

@router.delete("/{project_id}")
def delete_project(
    project_id: uuid.UUID,
    ctx: ProjectContext = Depends(require_perm("projects:delete")),
    db: Session = Depends(get_db),
) -> dict:
    p = _get_project(db, ctx.project_id)
    db.delete(p)
    db.commit()
    return {"deleted": True}

@router.get("/{project_id}/members", response_model=list[MemberOut])
def list_members(
    project_id: uuid.UUID,
    ctx: ProjectContext = Depends(require_perm("members:read")),
    store: MembershipStore = Depends(get_membership_store),
) -> list[MemberOut]:
    return [MemberOut.model_validate(m) for m in store.find_memberships_by_project(ctx.project_id)]

@router.post("/{project_id}/members", response_model=MemberOut)
def add_member(
    project_id: uuid.UUID,
    payload: MemberAddIn,
    ctx: ProjectContext = Depends(require_perm("members:add")),
    store: MembershipStore = Depends(get_membership_store),
) -> MemberOut:
    m = MembershipManager(store).add_or_update_member(ctx.project_id, payload.email, payload.role)
    return MemberOut.model_validate(m)

@router.patch("/{project_id}/members/{user_id}/role", response_model=MemberOut)
def update_member_role(
    project_id: uuid.UUID,
    user_id: uuid.UUID,
    payload: MemberRoleIn,
    ctx: ProjectContext = Depends(require_perm("members:update_role")),
    store: MembershipStore = Depends(get_membership_store),
) -> MemberOut:
    m = MembershipManager(store).change_member_role(
        ctx.project_id, user_id, payload.new_role, requester_id=ctx.actor_id
    )
    return MemberOut.model_validate(m)

@router.delete("/{project_id}/members/{member_id}", response_model=MemberRemovedOut)
def remove_member(
    project_id: uuid.UUID,
    member_id: uuid.UUID,
    ctx: ProjectContext = Depends(require_perm("members:remove")),
    store: MembershipStore = Depends(get_membership_store),
) -> MemberRemovedOut:
    removed = MembershipManager(store).remove_member(ctx.project_id, member_id, requester_id=ctx.actor_id)
    return MemberRemovedOut(removed_user=UserPublic.model_validate(removed))
