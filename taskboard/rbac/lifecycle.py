import logging
import uuid

from taskboard.errors import BadRequest, Forbidden, NotFound
from taskboard.models.enums import Role
from taskboard.models.project import Project
from taskboard.models.project_member import ProjectMember
from taskboard.models.user import User
from taskboard.rbac.policy import can_assign_role, can_remove_member
from taskboard.store import MembershipStore

logger = logging.getLogger(__name__)

class MembershipManager:
    """Add, re-role and remove project members.

    The gate has already checked the requester's role when these run; each
    method re-reads the rows it depends on and writes inside one store
    transaction, so a failed check leaves nothing written.
    """

    def __init__(self, store: MembershipStore):
        self.store = store

    def _project(self, project_id: uuid.UUID) -> Project:
        project = self.store.find_project_by_id(project_id)
        if project is None:
            raise NotFound("project not found")
        return project

    def add_or_update_member(self, project_id: uuid.UUID, email: str, role: Role) -> ProjectMember:
        with self.store.transaction():
            user = self.store.find_user_by_email(email, for_update=True)
            if user is None:
                raise NotFound("user does not exist")
            if not can_assign_role(role):
                raise Forbidden("cannot assign OWNER role")

            project = self._project(project_id)
            if user.id == project.created_by:
                raise Forbidden("cannot change the project owner's role")

            m = self.store.upsert_membership(user.id, project_id, role)

        logger.info("member %s set to %s in project %s", user.id, role.value, project_id)
        return m

    def change_member_role(
        self,
        project_id: uuid.UUID,
        target_user_id: uuid.UUID,
        new_role: Role,
        requester_id: uuid.UUID,
    ) -> ProjectMember:
        with self.store.transaction():
            m = self.store.find_membership(target_user_id, project_id)
            if m is None:
                raise NotFound("project member not found")

            project = self._project(project_id)
            if target_user_id == project.created_by or m.role == Role.owner:
                raise Forbidden("cannot change the project owner's role")
            if not can_assign_role(new_role):
                raise Forbidden("cannot assign OWNER role")

            self.store.update_membership_role(m, new_role)

        logger.info(
            "member %s changed to %s in project %s by %s",
            target_user_id,
            new_role.value,
            project_id,
            requester_id,
        )
        return m

    def remove_member(self, project_id: uuid.UUID, member_id: uuid.UUID, requester_id: uuid.UUID) -> User:
        with self.store.transaction():
            target = self.store.find_membership_by_id(member_id, project_id)
            if target is None:
                raise NotFound("project member not found")

            project = self._project(project_id)
            requester = self.store.find_membership(requester_id, project_id)
            if requester is None:
                raise NotFound("not a member of this project")

            target_is_owner = target.user_id == project.created_by or target.role == Role.owner
            if target_is_owner:
                raise BadRequest("cannot remove the project owner")

            allowed = can_remove_member(
                requester_role=requester.role,
                requester_is_project_owner=requester_id == project.created_by,
                target_role=target.role,
                target_is_project_owner=target_is_owner,
            )
            if not allowed:
                raise Forbidden("only the owner can remove admins")

            removed = target.user
            # assignees must stay project members
            unassigned = self.store.unassign_tasks(removed.id, project_id)
            self.store.delete_membership(target)

        logger.info(
            "member %s removed from project %s by %s (%d tasks unassigned)",
            removed.id,
            project_id,
            requester_id,
            unassigned,
        )
        return removed
