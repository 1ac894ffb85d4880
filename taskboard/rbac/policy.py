"""Fixed role table for project-scoped actions.

Checks are set membership, not rank comparison: every action lists the full
set of roles it admits.
"""
from collections.abc import Collection

from taskboard.models.enums import Role

_RANK: dict[Role, int] = {
    Role.owner: 4,
    Role.admin: 3,
    Role.manager: 2,
    Role.member: 1,
    Role.viewer: 0,
}

ANY_MEMBER: frozenset[Role] = frozenset()
OWNER_ONLY = frozenset({Role.owner})
ADMIN_ROLES = frozenset({Role.owner, Role.admin})
MANAGER_ROLES = frozenset({Role.owner, Role.admin, Role.manager})
CONTRIBUTOR_ROLES = frozenset({Role.owner, Role.admin, Role.manager, Role.member})

PERMS: dict[str, frozenset[Role]] = {
    "projects:read": ANY_MEMBER,
    "projects:update": MANAGER_ROLES,
    "projects:delete": OWNER_ONLY,

    "members:read": ANY_MEMBER,
    "members:add": MANAGER_ROLES,
    "members:update_role": ADMIN_ROLES,
    "members:remove": ADMIN_ROLES,

    "tasks:read": ANY_MEMBER,
    "tasks:create": CONTRIBUTOR_ROLES,
    "tasks:update": CONTRIBUTOR_ROLES,
    "tasks:delete": MANAGER_ROLES,

    "subtasks:create": CONTRIBUTOR_ROLES,
    "subtasks:update": CONTRIBUTOR_ROLES,
    "subtasks:delete": MANAGER_ROLES,
}

def rank(role: Role) -> int:
    return _RANK[role]

def is_allowed(actor_role: Role, required_roles: Collection[Role]) -> bool:
    # an empty requirement admits any member
    if not required_roles:
        return True
    return actor_role in required_roles

def can_assign_role(target_role: Role) -> bool:
    # OWNER is only ever set at project creation
    return target_role != Role.owner

def can_remove_member(
    requester_role: Role,
    requester_is_project_owner: bool,
    target_role: Role,
    target_is_project_owner: bool,
) -> bool:
    if target_is_project_owner:
        return False
    if target_role == Role.admin and not requester_is_project_owner:
        return False
    return True
