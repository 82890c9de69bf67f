from fastapi import APIRouter, Depends

from ..dependencies import get_caller, get_service
from ..schemas.caller import Caller
from ..schemas.rating import RatingCreate, RatingResponse
from ..services.moderation_service import ModerationService

router = APIRouter(tags=["Ratings"])


@router.post("/books/{book_id}/rate", response_model=RatingResponse)
def rate_book(
    book_id: str,
    body: RatingCreate,
    caller: Caller = Depends(get_caller),
    service: ModerationService = Depends(get_service),
):
    """Rate an approved book; rating again replaces the caller's earlier score"""
    aggregate = service.rate(caller, book_id, body.rating)
    return RatingResponse(
        submission_id=book_id,
        rater_id=caller.id,
        score=body.rating,
        average_score=aggregate.average_score,
        rating_count=aggregate.rating_count,
    )
