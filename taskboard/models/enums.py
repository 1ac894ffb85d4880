from enum import Enum

class Role(str, Enum):
    owner = "OWNER"
    admin = "ADMIN"
    manager = "MANAGER"
    member = "MEMBER"
    viewer = "VIEWER"

class TaskStatus(str, Enum):
    todo = "TODO"
    in_progress = "IN_PROGRESS"
    done = "DONE"
