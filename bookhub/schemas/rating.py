from pydantic import BaseModel


class RatingCreate(BaseModel):
    rating: int


class RatingResponse(BaseModel):
    submission_id: str
    rater_id: str
    score: int
    average_score: float
    rating_count: int
