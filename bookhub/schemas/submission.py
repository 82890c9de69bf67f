from pydantic import BaseModel
from datetime import datetime
from typing import List, Optional

from ..models.models import Submission


class FileInfo(BaseModel):
    name: str
    media_type: str
    size: int


class RatingEntry(BaseModel):
    rater_id: str
    score: int

    class Config:
        from_attributes = True


class SubmissionResponse(BaseModel):
    id: str
    title: str
    creator: str
    description: str
    owner_id: str
    file: Optional[FileInfo] = None
    status: str
    created_at: datetime
    approved_at: Optional[datetime] = None
    rejected_at: Optional[datetime] = None
    ratings: List[RatingEntry] = []
    average_score: float = 0.0
    rating_count: int = 0

    @classmethod
    def from_submission(cls, sub: Submission) -> "SubmissionResponse":
        file = None
        if sub.has_file:
            file = FileInfo(
                name=sub.file_name,
                media_type=sub.file_type,
                size=sub.file_size,
            )
        return cls(
            id=sub.id,
            title=sub.title,
            creator=sub.creator,
            description=sub.description,
            owner_id=sub.owner_id,
            file=file,
            status=sub.status,
            created_at=sub.created_at,
            approved_at=sub.approved_at,
            rejected_at=sub.rejected_at,
            ratings=[RatingEntry.model_validate(r) for r in sub.ratings],
            average_score=sub.average_score,
            rating_count=sub.rating_count,
        )


class SubmissionListResponse(BaseModel):
    count: int
    data: List[SubmissionResponse]

    @classmethod
    def from_submissions(cls, subs: List[Submission]) -> "SubmissionListResponse":
        return cls(
            count=len(subs),
            data=[SubmissionResponse.from_submission(s) for s in subs],
        )


class SubmissionUpdate(BaseModel):
    title: Optional[str] = None
    author: Optional[str] = None
    description: Optional[str] = None
    status: Optional[str] = None
