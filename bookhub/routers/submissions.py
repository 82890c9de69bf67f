from fastapi import APIRouter, Depends, File, Form, UploadFile
from fastapi.responses import FileResponse
from typing import Optional

from ..dependencies import get_caller, get_service
from ..schemas.caller import Caller
from ..schemas.submission import SubmissionListResponse, SubmissionResponse
from ..services.moderation_service import ModerationService, Upload

router = APIRouter(prefix="/books", tags=["Books"])


@router.get("", response_model=SubmissionListResponse)
def get_books(service: ModerationService = Depends(get_service)):
    """Get all approved books, newest first"""
    return SubmissionListResponse.from_submissions(service.list_approved())


@router.post("", response_model=SubmissionResponse, status_code=201)
def upload_book(
    title: Optional[str] = Form(None),
    author: Optional[str] = Form(None),
    description: Optional[str] = Form(None),
    book_file: Optional[UploadFile] = File(None),
    caller: Caller = Depends(get_caller),
    service: ModerationService = Depends(get_service),
):
    """Upload a new book (with optional file); it stays pending until moderated"""
    upload = None
    if book_file is not None and book_file.filename:
        upload = Upload(
            filename=book_file.filename,
            content_type=book_file.content_type,
            file=book_file.file,
        )
    submission = service.submit(caller, title, author, description, upload)
    return SubmissionResponse.from_submission(submission)


@router.get("/{book_id}", response_model=SubmissionResponse)
def get_book(
    book_id: str,
    caller: Caller = Depends(get_caller),
    service: ModerationService = Depends(get_service),
):
    """Get a single book; unapproved books only for their owner or moderators"""
    return SubmissionResponse.from_submission(service.get(caller, book_id))


@router.get("/{book_id}/download")
def download_book(
    book_id: str,
    caller: Caller = Depends(get_caller),
    service: ModerationService = Depends(get_service),
):
    """Download the file attached to a book"""
    descriptor = service.download(caller, book_id)
    return FileResponse(
        descriptor.path,
        media_type=descriptor.media_type,
        filename=descriptor.name,
    )
