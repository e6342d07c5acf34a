"""Model exports for SQLAlchemy/SQLModel metadata discovery."""

from crewboard.models.member_skills import MemberSkill
from crewboard.models.projects import Project
from crewboard.models.tasks import Task
from crewboard.models.users import User
from crewboard.models.workspace_members import WorkspaceMember
from crewboard.models.workspaces import Workspace

__all__ = [
    "MemberSkill",
    "Project",
    "Task",
    "User",
    "Workspace",
    "WorkspaceMember",
]
