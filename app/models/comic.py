from sqlalchemy import JSON, Column, DateTime, Integer, String, Text, func
from sqlalchemy.orm import relationship

from app.db.base_class import Base


class Comic(Base):
    __tablename__ = "comics"

    id = Column(Integer, primary_key=True, index=True)

    title = Column(String(255), nullable=False)
    subtitle = Column(String(255), nullable=False)
    description = Column(Text, nullable=False)
    category = Column(String(100), nullable=True)

    image = Column(String(512), nullable=True)  # cover URL
    documents = Column(JSON, nullable=False, default=list)  # list of URLs

    submission_deadline = Column(DateTime(timezone=True), nullable=True)
    bonus = Column(Integer, nullable=False, default=0)
    total_marks = Column(Integer, nullable=False, default=0)
    max_uploads = Column(Integer, nullable=False, default=1)

    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    submissions = relationship("Submission", back_populates="comic", cascade="all, delete-orphan")
