from datetime import datetime

from pydantic import BaseModel


class AdminRead(BaseModel):
    id: int
    name: str
    email: str
    role: str
    avatar: str | None = None
    created_at: datetime

    class Config:
        from_attributes = True
