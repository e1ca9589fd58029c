from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field

from fyphub.models.project import ProjectStatus


class ProjectBase(BaseModel):
    title: str = Field(..., min_length=1, max_length=255)
    description: Optional[str] = Field(None, max_length=1000)
    milestones: List[Dict[str, Any]] = []


class ProjectCreate(ProjectBase):
    pass


class ProjectUpdate(BaseModel):
    title: Optional[str] = Field(None, min_length=1, max_length=255)
    description: Optional[str] = Field(None, max_length=1000)
    milestones: Optional[List[Dict[str, Any]]] = None
    status: Optional[ProjectStatus] = None


class Project(ProjectBase):
    id: int
    status: ProjectStatus
    group_id: int
    advisor_id: Optional[int] = None
    submission_date: Optional[datetime] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class ProjectCounters(BaseModel):
    tasks: int = 0
    repositories: int = 0
    evaluations: int = 0
    feedback: int = 0


class ProjectWithCounters(Project):
    stats: ProjectCounters


class ProjectStats(BaseModel):
    project_id: int
    tasks: Dict[str, int]
    tasks_total: int
    feedback: Dict[str, int]
    evaluations_total: int
    commits_total: int
    members_total: int


class ProjectRepositoryLink(BaseModel):
    repository_name: str = Field(..., min_length=1, max_length=255)


class TopProjectGroup(BaseModel):
    name: str
    group_user_name: str

    class Config:
        from_attributes = True


class TopProject(BaseModel):
    id: int
    title: str
    description: Optional[str] = None
    status: ProjectStatus
    created_at: Optional[datetime] = None
    group: TopProjectGroup

    class Config:
        from_attributes = True
