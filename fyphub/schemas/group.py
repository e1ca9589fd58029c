from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, EmailStr, Field

from fyphub.models.advisor_request import AdvisorRequestStatus
from fyphub.models.project import ProjectStatus
from fyphub.models.user import UserRole
from fyphub.schemas.user import UserPublic, UserSummary


class GroupBase(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)
    description: Optional[str] = Field(None, max_length=500)


class GroupCreate(GroupBase):
    group_user_name: str = Field(..., min_length=3, max_length=50, pattern=r"^[A-Za-z0-9_-]+$")


class GroupUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=100)
    description: Optional[str] = Field(None, max_length=500)


class Group(GroupBase):
    id: int
    group_user_name: str
    leader_id: Optional[int] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class GroupWithLeader(Group):
    leader: Optional[UserPublic] = None
    members_count: int = 0


class Pagination(BaseModel):
    total: int
    pages: int
    current_page: int
    limit: int


class GroupList(BaseModel):
    groups: List[GroupWithLeader]
    pagination: Pagination


class GroupStats(BaseModel):
    member_count: int
    project_count: int
    repository_count: int


class GroupRecentMember(UserSummary):
    is_leader: bool


class GroupSearchItem(BaseModel):
    id: int
    name: str
    group_user_name: str
    description: Optional[str] = None
    created_at: Optional[datetime] = None
    leader: Optional[UserSummary] = None
    stats: GroupStats
    recent_members: List[GroupRecentMember] = []


class GroupSearchFilters(BaseModel):
    query: str
    has_member: Optional[int] = None
    has_projects: bool
    has_repositories: bool


class GroupSearchResult(BaseModel):
    groups: List[GroupSearchItem]
    pagination: Pagination
    filters: GroupSearchFilters


class GroupCreated(BaseModel):
    group: Group
    max_group_size: int


class GroupMemberCreate(BaseModel):
    user_id: int


class GroupMember(BaseModel):
    id: int
    user_id: int
    username: str
    email: str
    first_name: str
    last_name: str
    role: UserRole
    is_leader: bool
    joined_at: Optional[datetime] = None


class TransferLeadership(BaseModel):
    new_leader_id: int


class InviteCreate(BaseModel):
    email: Optional[EmailStr] = None


class Invite(BaseModel):
    code: str
    group_id: int
    email: Optional[str] = None
    expires_at: datetime
    used_at: Optional[datetime] = None
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class InviteLookup(BaseModel):
    code: str
    expires_at: datetime
    group: Group


class JoinGroup(BaseModel):
    invite_code: str = Field(..., min_length=1, max_length=64)


class GroupDetailProject(BaseModel):
    id: int
    title: str
    status: ProjectStatus
    advisor_id: Optional[int] = None

    class Config:
        from_attributes = True


class GroupDetailRepository(BaseModel):
    id: int
    name: str
    visibility: str

    class Config:
        from_attributes = True


class GroupDetailAdvisorRequest(BaseModel):
    id: int
    project_id: int
    requested_advisor_id: int
    status: AdvisorRequestStatus

    class Config:
        from_attributes = True


class GroupDetail(Group):
    leader: Optional[UserPublic] = None
    members: List[GroupMember] = []
    projects: List[GroupDetailProject] = []
    repositories: List[GroupDetailRepository] = []
    advisor_requests: List[GroupDetailAdvisorRequest] = []
    max_group_size: int


class GroupActivity(BaseModel):
    id: str
    type: str
    timestamp: Optional[datetime] = None
    actor: Optional[UserSummary] = None
    entity_name: str
    entity_id: str
