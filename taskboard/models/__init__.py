from taskboard.models.base import Base
from taskboard.models.project import Project
from taskboard.models.project_member import ProjectMember
from taskboard.models.subtask import SubTask
from taskboard.models.task import Task
from taskboard.models.user import User

__all__ = ["Base", "User", "Project", "ProjectMember", "Task", "SubTask"]
