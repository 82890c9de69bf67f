from fastapi import APIRouter, Depends

from ..dependencies import get_caller, get_service
from ..schemas.caller import Caller
from ..schemas.submission import (
    SubmissionListResponse,
    SubmissionResponse,
    SubmissionUpdate,
)
from ..services.moderation_service import ModerationService

router = APIRouter(prefix="/books", tags=["Moderation"])


@router.get("/pending", response_model=SubmissionListResponse)
def get_pending_books(
    caller: Caller = Depends(get_caller),
    service: ModerationService = Depends(get_service),
):
    """Get all pending books (moderators only)"""
    return SubmissionListResponse.from_submissions(service.list_pending(caller))


@router.get("/admin/all", response_model=SubmissionListResponse)
def get_all_books(
    caller: Caller = Depends(get_caller),
    service: ModerationService = Depends(get_service),
):
    """Get all books in every status (moderators only)"""
    return SubmissionListResponse.from_submissions(service.list_all(caller))


@router.put("/{book_id}/approve", response_model=SubmissionResponse)
def approve_book(
    book_id: str,
    caller: Caller = Depends(get_caller),
    service: ModerationService = Depends(get_service),
):
    return SubmissionResponse.from_submission(service.approve(caller, book_id))


@router.put("/{book_id}/reject", response_model=SubmissionResponse)
def reject_book(
    book_id: str,
    caller: Caller = Depends(get_caller),
    service: ModerationService = Depends(get_service),
):
    return SubmissionResponse.from_submission(service.reject(caller, book_id))


@router.put("/{book_id}", response_model=SubmissionResponse)
def update_book(
    book_id: str,
    changes: SubmissionUpdate,
    caller: Caller = Depends(get_caller),
    service: ModerationService = Depends(get_service),
):
    """Update book details (moderators only)"""
    submission = service.update(
        caller,
        book_id,
        title=changes.title,
        creator=changes.author,
        description=changes.description,
        status=changes.status,
    )
    return SubmissionResponse.from_submission(submission)


@router.delete("/{book_id}")
def delete_book(
    book_id: str,
    caller: Caller = Depends(get_caller),
    service: ModerationService = Depends(get_service),
):
    """Delete a book and its stored file (moderators only)"""
    service.delete(caller, book_id)
    return {"message": "Book deleted successfully"}
