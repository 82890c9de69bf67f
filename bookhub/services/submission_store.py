"""
Canonical storage for submissions.

The store owns the visibility state machine and the rating set of every
submission. Each mutating operation runs as one critical section keyed by
the submission id: load, mutate, recompute the aggregate, commit. Reads take
no lock and only ever see committed rows.
"""
import logging
from contextlib import contextmanager
from typing import List, Mapping, Optional, Union

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import sessionmaker

from ..aggregator import Aggregate, compute_aggregate
from ..database import SessionLocal, session_scope
from ..exceptions import (
    ConflictError,
    ForbiddenError,
    NotFoundError,
    StorageError,
    ValidationError,
)
from ..locks import SubmissionLocks
from ..models.models import (
    Rating,
    Submission,
    SubmissionStatus,
    new_id,
    utcnow,
)
from ..schemas.caller import Role
from ..utils.file_handler import FileDescriptor, FileStorage

logger = logging.getLogger(__name__)

MIN_SCORE = 1
MAX_SCORE = 5

DECISIONS = {
    "approve": SubmissionStatus.APPROVED,
    "reject": SubmissionStatus.REJECTED,
}


def is_visible_to(
    submission: Submission, caller_role: str, caller_id: Optional[str]
) -> bool:
    """Approved work is public; anything else only to its owner or a moderator."""
    if submission.status == SubmissionStatus.APPROVED:
        return True
    if caller_role == Role.MODERATOR:
        return True
    return caller_id is not None and caller_id == submission.owner_id


def _required_text(value, field: str) -> str:
    if value is None or not str(value).strip():
        raise ValidationError(f"Please provide a {field}")
    return str(value).strip()


def _file_descriptor(
    file: Union[FileDescriptor, Mapping, None]
) -> Optional[FileDescriptor]:
    if file is None:
        return None
    if isinstance(file, Mapping):
        file = FileDescriptor(*(file.get(k) for k in FileDescriptor._fields))
    if any(v is None or v == "" for v in file):
        raise ValidationError(
            "File descriptor must include name, path, media type and size"
        )
    if isinstance(file.size, bool) or not isinstance(file.size, int) or file.size < 0:
        raise ValidationError("File size must be a non-negative integer")
    return file


def _require_moderator(caller_role: str, action: str):
    if caller_role != Role.MODERATOR:
        raise ForbiddenError(f"Only moderators can {action}")


def _apply_status(submission: Submission, status: str):
    """Set status and stamp the matching timestamp, clearing the other."""
    now = utcnow()
    submission.status = status
    if status == SubmissionStatus.APPROVED:
        submission.approved_at = now
        submission.rejected_at = None
    elif status == SubmissionStatus.REJECTED:
        submission.rejected_at = now
        submission.approved_at = None
    else:
        submission.approved_at = None
        submission.rejected_at = None


class SubmissionStore:
    def __init__(
        self,
        session_factory: sessionmaker = None,
        file_storage: FileStorage = None,
        locks: SubmissionLocks = None,
    ):
        self._session_factory = session_factory or SessionLocal
        self._files = file_storage or FileStorage()
        self._locks = locks or SubmissionLocks()

    # Sessions

    @contextmanager
    def _transaction(self):
        with session_scope(self._session_factory) as session:
            try:
                yield session
                session.commit()
            except SQLAlchemyError as e:
                session.rollback()
                logger.error("Storage failure, rolled back: %s", e)
                raise StorageError("Storage operation failed") from e
            except BaseException:
                session.rollback()
                raise

    @contextmanager
    def _reading(self):
        with session_scope(self._session_factory) as session:
            try:
                yield session
            except SQLAlchemyError as e:
                logger.error("Storage failure while reading: %s", e)
                raise StorageError("Storage operation failed") from e

    @staticmethod
    def _load(session, submission_id: str) -> Submission:
        submission = session.get(Submission, str(submission_id))
        if submission is None:
            raise NotFoundError("Book not found")
        return submission

    # Operations

    def create(
        self,
        title: str,
        creator: str,
        description: str,
        owner_id: str,
        file: Union[FileDescriptor, Mapping, None] = None,
    ) -> Submission:
        submission = Submission(
            title=_required_text(title, "book title"),
            creator=_required_text(creator, "author name"),
            description=_required_text(description, "description"),
            owner_id=_required_text(owner_id, "owner"),
            status=SubmissionStatus.PENDING,
            created_at=utcnow(),
            average_score=0.0,
            rating_count=0,
            ratings=[],
        )
        descriptor = _file_descriptor(file)
        if descriptor is not None:
            submission.file_name = descriptor.name
            submission.file_path = descriptor.path
            submission.file_type = descriptor.media_type
            submission.file_size = descriptor.size

        submission.id = new_id()
        with self._locks.hold(submission.id):
            with self._transaction() as session:
                session.add(submission)
        logger.info(
            "Submission %s created by %s", submission.id, submission.owner_id
        )
        return submission

    def get(
        self,
        submission_id: str,
        caller_role: str = Role.ANONYMOUS,
        caller_id: Optional[str] = None,
    ) -> Submission:
        with self._reading() as session:
            submission = session.get(Submission, str(submission_id))
            # Hidden and missing look the same to the caller
            if submission is None or not is_visible_to(
                submission, caller_role, caller_id
            ):
                raise NotFoundError("Book not found")
            return submission

    def _list(self, status: Optional[str] = None) -> List[Submission]:
        with self._reading() as session:
            query = session.query(Submission)
            if status is not None:
                query = query.filter(Submission.status == status)
            return query.order_by(
                Submission.created_at.desc(), Submission.id
            ).all()

    def list_approved(self) -> List[Submission]:
        return self._list(SubmissionStatus.APPROVED)

    def list_pending(self, caller_role: str) -> List[Submission]:
        _require_moderator(caller_role, "view pending books")
        return self._list(SubmissionStatus.PENDING)

    def list_all(self, caller_role: str) -> List[Submission]:
        _require_moderator(caller_role, "view all books")
        return self._list()

    def decide(
        self, submission_id: str, decision: str, caller_role: str
    ) -> Submission:
        _require_moderator(caller_role, "moderate books")
        status = DECISIONS.get(decision)
        if status is None:
            raise ValidationError("Decision must be 'approve' or 'reject'")

        with self._locks.hold(submission_id):
            with self._transaction() as session:
                submission = self._load(session, submission_id)
                previous = submission.status
                _apply_status(submission, status)
        logger.info(
            "Submission %s %s -> %s", submission.id, previous, submission.status
        )
        return submission

    def rate(self, submission_id: str, rater_id: str, score: int) -> Aggregate:
        if (
            isinstance(score, bool)
            or not isinstance(score, int)
            or not MIN_SCORE <= score <= MAX_SCORE
        ):
            raise ValidationError(
                f"Rating must be between {MIN_SCORE} and {MAX_SCORE}"
            )
        rater_id = _required_text(rater_id, "rater")

        with self._locks.hold(submission_id):
            with self._transaction() as session:
                submission = self._load(session, submission_id)
                if submission.status != SubmissionStatus.APPROVED:
                    raise ConflictError("Cannot rate a book that is not approved")

                existing = next(
                    (r for r in submission.ratings if r.rater_id == rater_id),
                    None,
                )
                if existing is not None:
                    existing.score = score
                    existing.updated_at = utcnow()
                else:
                    now = utcnow()
                    submission.ratings.append(
                        Rating(
                            rater_id=rater_id,
                            score=score,
                            rated_at=now,
                            updated_at=now,
                        )
                    )

                aggregate = compute_aggregate(submission.rating_map())
                submission.average_score = aggregate.average_score
                submission.rating_count = aggregate.rating_count
        logger.debug(
            "Submission %s rated %s by %s -> %s",
            submission_id,
            score,
            rater_id,
            aggregate,
        )
        return aggregate

    def update_fields(
        self,
        submission_id: str,
        caller_role: str,
        title: Optional[str] = None,
        creator: Optional[str] = None,
        description: Optional[str] = None,
        status: Optional[str] = None,
    ) -> Submission:
        _require_moderator(caller_role, "edit books")
        changes = {}
        if title is not None:
            changes["title"] = _required_text(title, "book title")
        if creator is not None:
            changes["creator"] = _required_text(creator, "author name")
        if description is not None:
            changes["description"] = _required_text(description, "description")
        if status is not None and status not in SubmissionStatus.ALL:
            raise ValidationError(
                "Status must be one of: " + ", ".join(SubmissionStatus.ALL)
            )

        with self._locks.hold(submission_id):
            with self._transaction() as session:
                submission = self._load(session, submission_id)
                for field, value in changes.items():
                    setattr(submission, field, value)
                if status is not None and status != submission.status:
                    _apply_status(submission, status)
        logger.info("Submission %s updated", submission.id)
        return submission

    def delete(self, submission_id: str, caller_role: str):
        _require_moderator(caller_role, "delete books")

        with self._locks.hold(submission_id):
            with self._transaction() as session:
                submission = self._load(session, submission_id)
                file_path = submission.file_path
                session.delete(submission)

            if file_path:
                try:
                    self._files.dispose(file_path)
                except OSError:
                    # The record is gone either way; leave the orphan for cleanup
                    logger.exception(
                        "Could not dispose file %s of submission %s",
                        file_path,
                        submission_id,
                    )
        logger.info("Submission %s deleted", submission_id)

    def file_for(
        self,
        submission_id: str,
        caller_role: str = Role.ANONYMOUS,
        caller_id: Optional[str] = None,
    ) -> FileDescriptor:
        submission = self.get(submission_id, caller_role, caller_id)
        if not submission.has_file or not self._files.exists(
            submission.file_path
        ):
            raise NotFoundError("No file available for this book")
        return FileDescriptor(
            name=submission.file_name,
            path=submission.file_path,
            media_type=submission.file_type,
            size=submission.file_size,
        )
