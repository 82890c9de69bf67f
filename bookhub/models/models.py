import uuid
from datetime import datetime, timezone

from sqlalchemy import (
    Column,
    Integer,
    Float,
    String,
    Text,
    DateTime,
    ForeignKey,
    UniqueConstraint,
)
from sqlalchemy.orm import relationship
from ..database import Base


class SubmissionStatus:
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"

    ALL = (PENDING, APPROVED, REJECTED)


def utcnow() -> datetime:
    # Naive UTC, the form every backend round-trips unchanged
    return datetime.now(timezone.utc).replace(tzinfo=None)


def new_id() -> str:
    return str(uuid.uuid4())


class Submission(Base):
    __tablename__ = "submissions"

    id = Column(String(36), primary_key=True, default=new_id)
    title = Column(String(255), nullable=False)
    creator = Column(String(255), nullable=False)
    description = Column(Text, nullable=False)
    owner_id = Column(String(64), nullable=False, index=True)

    # Attached file, all four set or all null
    file_name = Column(String(255), nullable=True)
    file_path = Column(String(512), nullable=True)
    file_type = Column(String(100), nullable=True)
    file_size = Column(Integer, nullable=True)

    status = Column(
        String(20), nullable=False, default=SubmissionStatus.PENDING, index=True
    )
    created_at = Column(DateTime, nullable=False, default=utcnow)
    approved_at = Column(DateTime, nullable=True)
    rejected_at = Column(DateTime, nullable=True)

    average_score = Column(Float, nullable=False, default=0.0)
    rating_count = Column(Integer, nullable=False, default=0)

    ratings = relationship(
        "Rating",
        back_populates="submission",
        cascade="all, delete-orphan",
        order_by="Rating.rated_at",
        lazy="selectin",
    )

    @property
    def has_file(self) -> bool:
        return self.file_path is not None

    def rating_map(self) -> dict:
        return {r.rater_id: r.score for r in self.ratings}


class Rating(Base):
    __tablename__ = "ratings"

    rating_id = Column(Integer, primary_key=True, autoincrement=True)
    submission_id = Column(
        String(36),
        ForeignKey("submissions.id", ondelete="CASCADE"),
        nullable=False,
    )
    rater_id = Column(String(64), nullable=False)
    score = Column(Integer, nullable=False)
    rated_at = Column(DateTime, nullable=False, default=utcnow)
    updated_at = Column(DateTime, nullable=False, default=utcnow)

    submission = relationship("Submission", back_populates="ratings")

    __table_args__ = (
        UniqueConstraint(
            "submission_id", "rater_id", name="unique_rater_submission"
        ),
    )
