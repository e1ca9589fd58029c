from datetime import datetime
from typing import List, Literal, Optional

from pydantic import BaseModel, Field, field_validator, model_validator

from fyphub.models.repository import ChangeType, DEFAULT_BRANCH

NAME_PATTERN = r"^[A-Za-z0-9._-]+$"


def check_visibility_agreement(visibility: Optional[str], is_private: Optional[bool]) -> None:
    if visibility is not None and is_private is not None:
        if (visibility == "private") != is_private:
            raise ValueError("visibility and is_private disagree")


class RepositoryCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=255, pattern=NAME_PATTERN)
    description: Optional[str] = Field(None, max_length=1000)
    visibility: Optional[Literal["public", "private"]] = None
    is_private: Optional[bool] = None

    @field_validator("name")
    @classmethod
    def check_name(cls, value: str) -> str:
        if set(value) == {"."}:
            raise ValueError("Name cannot consist of dots only")
        return value

    @model_validator(mode="after")
    def check_visibility(self):
        if self.visibility is None and self.is_private is None:
            raise ValueError("Either visibility or is_private is required")
        check_visibility_agreement(self.visibility, self.is_private)
        return self

    @property
    def private(self) -> bool:
        if self.visibility is not None:
            return self.visibility == "private"
        return bool(self.is_private)


class RepositoryUpdate(BaseModel):
    description: Optional[str] = Field(None, max_length=1000)
    visibility: Optional[Literal["public", "private"]] = None
    is_private: Optional[bool] = None

    @model_validator(mode="after")
    def check_visibility(self):
        check_visibility_agreement(self.visibility, self.is_private)
        return self


class Repository(BaseModel):
    id: int
    name: str
    description: Optional[str] = None
    is_private: bool
    visibility: Literal["public", "private"]
    group_id: int
    owner_id: Optional[int] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class RepositoryListItem(Repository):
    updated_ago: str


class RepositoryPagination(BaseModel):
    total: int
    offset: int
    limit: int
    has_more: bool


class RepositoryList(BaseModel):
    repositories: List[RepositoryListItem]
    pagination: RepositoryPagination


class BranchCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=255, pattern=r"^[A-Za-z0-9._/-]+$")
    source_branch: str = DEFAULT_BRANCH


class Branch(BaseModel):
    id: int
    name: str
    repository_id: int
    head_commit_id: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class FileChangeBase(BaseModel):
    file_path: str = Field(..., min_length=1, max_length=1024)
    change_type: ChangeType
    file_content_hash: Optional[str] = None
    previous_file_content_hash: Optional[str] = None


class FileChange(FileChangeBase):
    id: int
    commit_id: str

    class Config:
        from_attributes = True


class CommitCreate(BaseModel):
    message: str = Field(..., min_length=1, max_length=5000)
    branch_name: str = DEFAULT_BRANCH
    file_changes: List[FileChangeBase] = Field(..., min_length=1)


class Commit(BaseModel):
    id: str
    message: str
    repository_id: int
    author_id: Optional[int] = None
    parent_commit_ids: List[str] = []
    timestamp: Optional[datetime] = None

    class Config:
        from_attributes = True


class CommitWithChanges(Commit):
    file_changes: List[FileChange] = []
