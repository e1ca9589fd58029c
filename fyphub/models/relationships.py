from sqlalchemy.orm import relationship

from fyphub.models.user import User
from fyphub.models.group import Group, GroupMember, GroupInvite
from fyphub.models.rule import Rule
from fyphub.models.project import Project, ProjectEvaluator, ProjectRepository
from fyphub.models.task import Task
from fyphub.models.repository import Repository, Branch, Commit, FileChange
from fyphub.models.feedback import Feedback
from fyphub.models.evaluation import Evaluation
from fyphub.models.notification import Notification
from fyphub.models.advisor_request import AdvisorRequest
from fyphub.models.advice_request import AdviceRequest
from fyphub.models.document import Document

# Отношения для User
User.group_memberships = relationship("GroupMember", back_populates="user", passive_deletes=True)

# Отношения для GroupMember
GroupMember.group = relationship("Group", back_populates="members")
GroupMember.user = relationship("User", back_populates="group_memberships")

# Отношения для Group
Group.leader = relationship("User", foreign_keys=[Group.leader_id])
Group.members = relationship("GroupMember", back_populates="group", passive_deletes=True, order_by=GroupMember.joined_at)
Group.projects = relationship("Project", back_populates="group", passive_deletes=True)
Group.repositories = relationship("Repository", back_populates="group", passive_deletes=True)
Group.advisor_requests = relationship("AdvisorRequest", passive_deletes=True)

# Отношения для Project
Project.group = relationship("Group", back_populates="projects")
Project.advisor = relationship("User", foreign_keys=[Project.advisor_id])

# Отношения для Repository
Repository.group = relationship("Group", back_populates="repositories")
Repository.branches = relationship("Branch", passive_deletes=True, order_by=Branch.name)

# Отношения для Commit
Commit.file_changes = relationship("FileChange", passive_deletes=True)

__all__ = [
    "User",
    "Group",
    "GroupMember",
    "GroupInvite",
    "Rule",
    "Project",
    "ProjectEvaluator",
    "ProjectRepository",
    "Task",
    "Repository",
    "Branch",
    "Commit",
    "FileChange",
    "Feedback",
    "Evaluation",
    "Notification",
    "AdvisorRequest",
    "AdviceRequest",
    "Document",
]
