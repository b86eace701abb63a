from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field


class SubmissionRead(BaseModel):
    id: int
    kid_id: int
    comic_id: int
    description: Optional[str] = None
    comments: Optional[str] = None
    files: list[str] = []
    marks: Optional[int] = None
    status: str  # "pending" | "graded"
    graded_at: Optional[datetime] = None
    created_at: datetime

    class Config:
        from_attributes = True


class SubmissionKidSummary(BaseModel):
    id: int
    name: str
    avatar: Optional[str] = None
    email: Optional[str] = None

    class Config:
        from_attributes = True


class SubmissionComicSummary(BaseModel):
    id: int
    title: str
    subtitle: str
    image: Optional[str] = None

    class Config:
        from_attributes = True


class SubmissionAdminRow(SubmissionRead):
    kid: SubmissionKidSummary
    comic: SubmissionComicSummary


class SubmissionGradeUpdate(BaseModel):
    marks: int = Field(ge=0)
