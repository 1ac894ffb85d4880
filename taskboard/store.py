import logging
import uuid
from collections.abc import Iterator
from contextlib import contextmanager

from fastapi import Depends
from sqlalchemy import select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from taskboard.db import get_db
from taskboard.errors import Conflict
from taskboard.models.enums import Role
from taskboard.models.project import Project
from taskboard.models.project_member import ProjectMember
from taskboard.models.task import Task
from taskboard.models.user import User

logger = logging.getLogger(__name__)

class MembershipStore:
    """Entity operations over (user, project, role) rows and the records they hang off.

    Holds no business rules. Reads and writes share the injected session, so a
    caller can group several of them under :meth:`transaction`.
    """

    def __init__(self, db: Session):
        self.db = db

    @contextmanager
    def transaction(self) -> Iterator["MembershipStore"]:
        try:
            yield self
            self.db.commit()
        except IntegrityError:
            self.db.rollback()
            # race loser on a constraint; driver details stay in the log
            logger.info("write lost a constraint race", exc_info=True)
            raise Conflict("record was modified concurrently")
        except Exception:
            self.db.rollback()
            raise

    # memberships

    def find_membership(
        self, user_id: uuid.UUID, project_id: uuid.UUID, for_update: bool = False
    ) -> ProjectMember | None:
        q = select(ProjectMember).where(
            ProjectMember.user_id == user_id, ProjectMember.project_id == project_id
        )
        if for_update:
            q = q.with_for_update()
        return self.db.scalar(q)

    def find_membership_by_id(self, member_id: uuid.UUID, project_id: uuid.UUID) -> ProjectMember | None:
        q = select(ProjectMember).where(
            ProjectMember.id == member_id, ProjectMember.project_id == project_id
        )
        return self.db.scalar(q)

    def find_memberships_by_user(self, user_id: uuid.UUID) -> list[ProjectMember]:
        q = (
            select(ProjectMember)
            .where(ProjectMember.user_id == user_id)
            .order_by(ProjectMember.created_at.asc(), ProjectMember.id.asc())
        )
        return list(self.db.scalars(q).all())

    def find_memberships_by_project(self, project_id: uuid.UUID) -> list[ProjectMember]:
        q = (
            select(ProjectMember)
            .where(ProjectMember.project_id == project_id)
            .order_by(ProjectMember.created_at.asc(), ProjectMember.id.asc())
        )
        return list(self.db.scalars(q).all())

    def upsert_membership(self, user_id: uuid.UUID, project_id: uuid.UUID, role: Role) -> ProjectMember:
        m = self.find_membership(user_id, project_id)
        if m is None:
            m = ProjectMember(user_id=user_id, project_id=project_id, role=role)
            self.db.add(m)
        else:
            m.role = role
        self.db.flush()
        return m

    def update_membership_role(self, membership: ProjectMember, role: Role) -> ProjectMember:
        membership.role = role
        self.db.flush()
        return membership

    def delete_membership(self, membership: ProjectMember) -> None:
        self.db.delete(membership)
        self.db.flush()

    def unassign_tasks(self, user_id: uuid.UUID, project_id: uuid.UUID) -> int:
        res = self.db.execute(
            update(Task)
            .where(Task.project_id == project_id, Task.assigned_to_id == user_id)
            .values(assigned_to_id=None)
        )
        return res.rowcount

    # referenced entities

    def find_project_by_id(self, project_id: uuid.UUID) -> Project | None:
        return self.db.get(Project, project_id)

    def find_task_by_id(self, task_id: uuid.UUID) -> Task | None:
        return self.db.get(Task, task_id)

    def find_user_by_id(self, user_id: uuid.UUID) -> User | None:
        return self.db.get(User, user_id)

    def find_user_by_email(self, email: str, for_update: bool = False) -> User | None:
        q = select(User).where(User.email == email.lower().strip())
        if for_update:
            # blocks a concurrent account deletion until the membership write commits
            q = q.with_for_update()
        return self.db.scalar(q)

def get_membership_store(db: Session = Depends(get_db)) -> MembershipStore:
    return MembershipStore(db)
