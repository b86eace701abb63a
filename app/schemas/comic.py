from datetime import datetime

from pydantic import BaseModel


class ComicRead(BaseModel):
    id: int
    title: str
    subtitle: str
    description: str
    category: str | None = None
    image: str | None = None
    documents: list[str] = []
    submission_deadline: datetime | None = None
    bonus: int
    total_marks: int
    max_uploads: int
    created_at: datetime

    class Config:
        from_attributes = True


class ComicListRow(ComicRead):
    submission_count: int
    total_kids: int
