from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field


class Rule(BaseModel):
    max_group_size: int
    advisor_request_deadline: Optional[datetime] = None
    project_submission_deadline: Optional[datetime] = None


class RuleUpdate(BaseModel):
    max_group_size: Optional[int] = Field(None, ge=1, le=50)
    advisor_request_deadline: Optional[datetime] = None
    project_submission_deadline: Optional[datetime] = None
