from sqlalchemy import JSON, Column, Integer, ForeignKey, DateTime, Text, String, UniqueConstraint, func
from sqlalchemy.orm import relationship

from app.db.base_class import Base

SUBMISSION_PENDING = "pending"
SUBMISSION_GRADED = "graded"


class Submission(Base):
    __tablename__ = "submissions"

    id = Column(Integer, primary_key=True, index=True)

    kid_id = Column(Integer, ForeignKey("kids.id", ondelete="CASCADE"), nullable=False, index=True)
    comic_id = Column(Integer, ForeignKey("comics.id", ondelete="CASCADE"), nullable=False, index=True)

    description = Column(Text, nullable=True)
    comments = Column(Text, nullable=True)
    files = Column(JSON, nullable=False, default=list)

    # Grading fields (null / pending until an admin grades)
    marks = Column(Integer, nullable=True)
    status = Column(String(20), nullable=False, default=SUBMISSION_PENDING, index=True)
    graded_at = Column(DateTime(timezone=True), nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    __table_args__ = (
        UniqueConstraint("kid_id", "comic_id", name="uq_submission_kid_comic"),
    )

    kid = relationship("Kid", back_populates="submissions")
    comic = relationship("Comic", back_populates="submissions")
