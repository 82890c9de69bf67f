import logging
from typing import BinaryIO, Callable, List, NamedTuple, Optional

from ..aggregator import Aggregate
from ..config import settings
from ..exceptions import AuthenticationError, StorageError
from ..models.models import Submission
from ..schemas.caller import Caller
from ..utils.file_handler import FileDescriptor, FileStorage
from .submission_store import SubmissionStore

logger = logging.getLogger(__name__)

GENERIC_FAILURE = "Something went wrong!"


class Upload(NamedTuple):
    filename: str
    content_type: Optional[str]
    file: BinaryIO


class ModerationService:
    """
    Entry point for the transport layer.

    Anonymous callers may only read approved books. Every other operation
    needs an identity; moderator-only rules are enforced by the store. Reads
    are retried on storage failures, writes never are: a retried rating or
    decision must be re-validated by the caller first.
    """

    def __init__(
        self,
        store: SubmissionStore = None,
        file_storage: FileStorage = None,
        read_retries: int = None,
    ):
        self.file_storage = file_storage or FileStorage()
        self.store = store or SubmissionStore(file_storage=self.file_storage)
        self.read_retries = (
            settings.read_retries if read_retries is None else read_retries
        )

    @staticmethod
    def _require_identity(caller: Caller, action: str):
        if caller.is_anonymous:
            raise AuthenticationError(f"Please log in to {action}")

    def _read(self, operation: Callable, *args):
        attempts = 1 + max(0, self.read_retries)
        for attempt in range(1, attempts + 1):
            try:
                return operation(*args)
            except StorageError as e:
                if attempt == attempts:
                    logger.error("Read failed after %d attempts: %s", attempt, e)
                    raise StorageError(GENERIC_FAILURE) from e
                logger.warning(
                    "Read failed (attempt %d/%d), retrying", attempt, attempts
                )

    @staticmethod
    def _write(operation: Callable, *args, **kwargs):
        try:
            return operation(*args, **kwargs)
        except StorageError as e:
            logger.error("Write failed: %s", e)
            raise StorageError(GENERIC_FAILURE) from e

    # Public reads

    def list_approved(self) -> List[Submission]:
        return self._read(self.store.list_approved)

    def get(self, caller: Caller, submission_id: str) -> Submission:
        return self._read(self.store.get, submission_id, caller.role, caller.id)

    def download(self, caller: Caller, submission_id: str) -> FileDescriptor:
        return self._read(
            self.store.file_for, submission_id, caller.role, caller.id
        )

    # Members

    def submit(
        self,
        caller: Caller,
        title: str,
        creator: str,
        description: str,
        upload: Optional[Upload] = None,
    ) -> Submission:
        self._require_identity(caller, "upload books")

        descriptor = None
        if upload is not None:
            descriptor = self._write(
                self.file_storage.store,
                upload.file,
                upload.filename,
                upload.content_type,
            )
        try:
            return self._write(
                self.store.create,
                title,
                creator,
                description,
                caller.id,
                descriptor,
            )
        except Exception:
            if descriptor is not None:
                self.file_storage.dispose(descriptor.path)
            raise

    def rate(self, caller: Caller, submission_id: str, score: int) -> Aggregate:
        self._require_identity(caller, "rate books")
        return self._write(self.store.rate, submission_id, caller.id, score)

    # Moderators

    def list_pending(self, caller: Caller) -> List[Submission]:
        self._require_identity(caller, "view pending books")
        return self._read(self.store.list_pending, caller.role)

    def list_all(self, caller: Caller) -> List[Submission]:
        self._require_identity(caller, "view all books")
        return self._read(self.store.list_all, caller.role)

    def approve(self, caller: Caller, submission_id: str) -> Submission:
        self._require_identity(caller, "moderate books")
        return self._write(
            self.store.decide, submission_id, "approve", caller.role
        )

    def reject(self, caller: Caller, submission_id: str) -> Submission:
        self._require_identity(caller, "moderate books")
        return self._write(
            self.store.decide, submission_id, "reject", caller.role
        )

    def update(
        self,
        caller: Caller,
        submission_id: str,
        title: Optional[str] = None,
        creator: Optional[str] = None,
        description: Optional[str] = None,
        status: Optional[str] = None,
    ) -> Submission:
        self._require_identity(caller, "edit books")
        return self._write(
            self.store.update_fields,
            submission_id,
            caller.role,
            title=title,
            creator=creator,
            description=description,
            status=status,
        )

    def delete(self, caller: Caller, submission_id: str):
        self._require_identity(caller, "delete books")
        self._write(self.store.delete, submission_id, caller.role)
