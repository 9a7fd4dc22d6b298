from typing import List, Sequence

from .encoder import Blob
from .logging_config import logger
from .repository import (
    FIELD_OF_STUDY_KEY,
    GOAL_HOURS_KEY,
    StorageRepository,
    new_subject_id,
)
from .schemas import DashboardStats, StoredSubject, SubjectWithFiles

FIELDS_OF_STUDY = ("BTech", "MTech", "BBA", "MBA")
DEFAULT_FIELD_OF_STUDY = "BTech"
DEFAULT_GOAL_HOURS = 10
MIN_GOAL_HOURS = 1


def file_kind(mime_type: str) -> str:
    """Picks how the dashboard previews a file: 'pdf', 'image' or 'document'."""
    mime_type = (mime_type or "").lower()
    if mime_type == "application/pdf":
        return "pdf"
    if mime_type.startswith("image/"):
        return "image"
    return "document"


class DashboardService:
    """Use cases the study dashboard calls into. All storage goes through the repository."""

    def __init__(self, repository: StorageRepository, subject_id_factory=new_subject_id):
        self.repository = repository
        self.subject_id_factory = subject_id_factory

    async def add_subject(self, name: str, blobs: Sequence[Blob] = ()) -> SubjectWithFiles:
        if not name or not name.strip():
            raise ValueError("Please enter a subject name")
        stored_files = await self.repository.save_files(blobs)
        subject = StoredSubject(
            id=self.subject_id_factory(),
            name=name,
            file_ids=[f.id for f in stored_files],
        )
        self.repository.save_subjects(self.repository.get_subjects() + [subject])
        logger.info(f"Added subject '{name}' with {len(stored_files)} file(s)")
        return SubjectWithFiles(id=subject.id, name=subject.name, files=stored_files)

    def list_subjects(self) -> List[SubjectWithFiles]:
        return self.repository.load_subjects()

    def remove_subject(self, subject_id: int) -> bool:
        return self.repository.delete_subject(subject_id)

    def stats(self) -> DashboardStats:
        files = self.repository.get_all_files()
        return DashboardStats(
            total_files=len(files),
            total_subjects=len(self.repository.get_subjects()),
            total_bytes=sum(f.size for f in files),
        )

    # Preferences are stored as plain strings; the repository never checks them.

    @property
    def field_of_study(self) -> str:
        return self.repository.get_preference(FIELD_OF_STUDY_KEY) or DEFAULT_FIELD_OF_STUDY

    def set_field_of_study(self, value: str) -> None:
        self.repository.set_preference(FIELD_OF_STUDY_KEY, value)

    @property
    def goal_hours(self) -> int:
        raw = self.repository.get_preference(GOAL_HOURS_KEY)
        try:
            return int(raw)
        except (TypeError, ValueError):
            return DEFAULT_GOAL_HOURS

    def set_goal_hours(self, hours: int) -> int:
        hours = max(MIN_GOAL_HOURS, int(hours))
        self.repository.set_preference(GOAL_HOURS_KEY, str(hours))
        return hours

    def increase_goal(self) -> int:
        return self.set_goal_hours(self.goal_hours + 1)

    def decrease_goal(self) -> int:
        return self.set_goal_hours(self.goal_hours - 1)
