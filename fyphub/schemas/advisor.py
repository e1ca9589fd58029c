from datetime import datetime
from typing import Literal, Optional

from pydantic import BaseModel, Field

from fyphub.models.advisor_request import AdvisorRequestStatus


class AdvisorRequestCreate(BaseModel):
    advisor_id: int
    message: Optional[str] = Field(None, max_length=1000)


class AdvisorRequest(BaseModel):
    id: int
    group_id: int
    project_id: int
    requested_advisor_id: int
    request_message: Optional[str] = None
    response_message: Optional[str] = None
    status: AdvisorRequestStatus
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class AdvisorRequestResponse(BaseModel):
    action: Literal["accept", "reject"]
    message: Optional[str] = Field(None, max_length=1000)


class AvailableAdvisor(BaseModel):
    id: int
    username: str
    email: str
    first_name: str
    last_name: str
    profile_info: Optional[str] = None
    advised_projects: int


class AdvisorRating(BaseModel):
    advisor_id: int
    rating: int = Field(..., ge=1, le=5)
    comments: Optional[str] = Field(None, max_length=1000)
