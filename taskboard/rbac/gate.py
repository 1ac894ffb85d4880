import uuid
from collections.abc import Collection, Mapping
from dataclasses import dataclass

from fastapi import Depends, Request

from taskboard.auth.deps import get_current_user
from taskboard.errors import BadRequest, Forbidden, NotFound
from taskboard.models.enums import Role
from taskboard.models.user import User
from taskboard.rbac.policy import PERMS, is_allowed
from taskboard.store import MembershipStore, get_membership_store

@dataclass(frozen=True)
class ProjectContext:
    """Resolved authorization for one request, passed to the handler explicitly."""

    actor_id: uuid.UUID
    project_id: uuid.UUID
    role: Role

def _parse_id(raw: str, name: str) -> uuid.UUID:
    try:
        return uuid.UUID(str(raw))
    except ValueError:
        raise BadRequest(f"invalid {name}")

def resolve_project_id(store: MembershipStore, path_params: Mapping[str, str]) -> uuid.UUID:
    raw_project_id = path_params.get("project_id")
    if raw_project_id:
        return _parse_id(raw_project_id, "project_id")

    raw_task_id = path_params.get("task_id")
    if raw_task_id:
        task = store.find_task_by_id(_parse_id(raw_task_id, "task_id"))
        if task is None:
            raise NotFound("task not found")
        return task.project_id

    raise BadRequest("missing project scope")

def authorize(
    store: MembershipStore,
    actor_id: uuid.UUID,
    path_params: Mapping[str, str],
    required_roles: Collection[Role] = (),
) -> ProjectContext:
    project_id = resolve_project_id(store, path_params)

    membership = store.find_membership(actor_id, project_id)
    if membership is None:
        # non-members always get 404, never 403
        raise NotFound("not a member of this project")

    if not is_allowed(membership.role, required_roles):
        raise Forbidden("you do not have permission to perform this action")

    return ProjectContext(actor_id=actor_id, project_id=project_id, role=membership.role)

def require_roles(*roles: Role):
    required = frozenset(roles)

    def _checker(
        request: Request,
        user: User = Depends(get_current_user),
        store: MembershipStore = Depends(get_membership_store),
    ) -> ProjectContext:
        return authorize(store, user.id, request.path_params, required)

    return _checker

def require_perm(action: str):
    allowed = PERMS.get(action)
    if allowed is None:
        raise RuntimeError(f"unknown permission action: {action}")
    return require_roles(*allowed)
