from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field


class DocumentBase(BaseModel):
    title: str = Field(..., min_length=1, max_length=255)
    content: Optional[str] = None
    type: Optional[str] = Field(None, max_length=100)
    url: Optional[str] = Field(None, max_length=2048)
    size: Optional[int] = Field(None, ge=0)
    category: str = Field("GENERAL", max_length=50)


class DocumentCreate(DocumentBase):
    pass


class DocumentUpdate(BaseModel):
    title: Optional[str] = Field(None, min_length=1, max_length=255)
    content: Optional[str] = None
    type: Optional[str] = Field(None, max_length=100)
    url: Optional[str] = Field(None, max_length=2048)
    size: Optional[int] = Field(None, ge=0)
    category: Optional[str] = Field(None, max_length=50)


class Document(DocumentBase):
    id: int
    project_id: int
    uploaded_by_id: Optional[int] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True
