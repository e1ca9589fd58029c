from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import BaseModel

from fyphub.models.project import ProjectStatus
from fyphub.models.user import UserRole
from fyphub.schemas.user import UserSummary


class SearchGroupRef(BaseModel):
    name: str
    group_user_name: str


class SearchProject(BaseModel):
    id: int
    title: str
    description: Optional[str] = None
    status: ProjectStatus
    group: SearchGroupRef
    advisor: Optional[UserSummary] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class RepositoryStats(BaseModel):
    commits: int
    branches: int
    projects: int


class SearchRepository(BaseModel):
    id: int
    name: str
    description: Optional[str] = None
    is_private: bool
    group_user_name: str
    group_name: str
    last_activity: str
    stats: RepositoryStats
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class GroupStats(BaseModel):
    members: int
    projects: int


class SearchGroup(BaseModel):
    id: int
    name: str
    group_user_name: str
    description: Optional[str] = None
    leader: Optional[UserSummary] = None
    stats: GroupStats
    created_at: Optional[datetime] = None


class UserStats(BaseModel):
    groups: int
    advised_projects: int


# email в результатах поиска не раскрывается
class SearchUser(BaseModel):
    id: int
    username: str
    first_name: str
    last_name: str
    role: UserRole
    profile_info: Optional[str] = None
    stats: UserStats


class SearchPagination(BaseModel):
    total_count: int
    total_pages: int
    current_page: int
    limit: int
    has_next_page: bool
    has_prev_page: bool


class SearchMeta(BaseModel):
    query: Optional[str] = None
    type: str
    filters: Dict[str, Any]
    sidebar_counts: Optional[Dict[str, int]] = None


class SearchResponse(BaseModel):
    data: List[Dict[str, Any]]
    type: str
    pagination: SearchPagination
    meta: SearchMeta
