from datetime import date, datetime
from typing import Optional

from pydantic import BaseModel


class ActivityBucketRead(BaseModel):
    label: str
    total: int
    active: int
    offline: int


class ChartData(BaseModel):
    monthly: list[ActivityBucketRead]
    weekly: list[ActivityBucketRead]
    daily: list[ActivityBucketRead]


class AdminDashboardStats(BaseModel):
    total_comics: int
    total_submissions: int
    total_kids: int
    total_admins: int
    greeting: str
    chart_data: ChartData


class NotificationStats(BaseModel):
    pending_count: int


class ProgressRow(BaseModel):
    id: int  # comic id
    submission_id: int
    title: str
    cover: Optional[str] = None
    progress: float
    status: str
    submission_date: datetime
    marks: int
    total_marks: int


class KidDashboard(BaseModel):
    kid_name: str
    email: Optional[str] = None
    avatar: str
    parent_phone: Optional[str] = None
    date_of_birth: Optional[date] = None
    standing: int
    rank: int
    score: int
    overall_percentage: float
    comics_read: int
    recent_progress: list[ProgressRow]
