import logging
from datetime import datetime

from fastapi import Depends
from sqlalchemy import func
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, selectinload

from app.core.deps import get_db
from app.models.admin import Admin
from app.models.comic import Comic
from app.models.kid import Kid
from app.models.submission import SUBMISSION_PENDING, Submission

logger = logging.getLogger(__name__)


class StatsRepository:
    """Read side used by the dashboards. Routers receive it via ``get_stats_repository``."""

    def __init__(self, db: Session):
        self.db = db

    def kids_with_submissions(self) -> list[Kid]:
        return (
            self.db.query(Kid)
            .options(selectinload(Kid.submissions))
            .order_by(Kid.id.asc())
            .all()
        )

    def comics(self) -> list[Comic]:
        return self.db.query(Comic).all()

    def kid_activity_rows(self):
        return self.db.query(Kid.created_at, Kid.last_login).all()

    def totals(self) -> dict[str, int]:
        return {
            "total_comics": self.db.query(func.count(Comic.id)).scalar() or 0,
            "total_submissions": self.db.query(func.count(Submission.id)).scalar() or 0,
            "total_kids": self.db.query(func.count(Kid.id)).scalar() or 0,
            "total_admins": self.db.query(func.count(Admin.id)).scalar() or 0,
        }

    def pending_submissions(self) -> int:
        return (
            self.db.query(func.count(Submission.id))
            .filter(Submission.status == SUBMISSION_PENDING)
            .scalar()
        ) or 0

    def touch_last_login(self, kid_id: int, now: datetime) -> None:
        """Best-effort: a failed update is logged, never raised to the caller."""
        try:
            self.db.query(Kid).filter(Kid.id == kid_id).update({Kid.last_login: now})
            self.db.commit()
        except SQLAlchemyError:
            self.db.rollback()
            logger.exception("Failed to update last_login for kid %s", kid_id)


def get_stats_repository(db: Session = Depends(get_db)) -> StatsRepository:
    return StatsRepository(db)
