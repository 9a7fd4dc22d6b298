import asyncio
import secrets
import uuid
from typing import Callable, Dict, List, Optional, Sequence

from pydantic import TypeAdapter, ValidationError

from .encoder import Blob, encode
from .errors import PersistenceError
from .logging_config import logger
from .schemas import StoredFile, StoredSubject, SubjectWithFiles
from .substrate import KeyValueStore, WriteRejected

FILES_KEY = "aceplan_files"
SUBJECTS_KEY = "aceplan_subjects"
FIELD_OF_STUDY_KEY = "aceplan_fieldOfStudy"
GOAL_HOURS_KEY = "aceplan_goalHours"

_files_adapter = TypeAdapter(List[StoredFile])
_subjects_adapter = TypeAdapter(List[StoredSubject])


def new_file_id() -> str:
    return f"file-{uuid.uuid4().hex}"


def new_subject_id() -> int:
    # 53 bits keeps the id exact for JavaScript readers of the same JSON
    return secrets.randbits(53)


class StorageRepository:
    """
    Files and Subjects tables kept as JSON arrays in a key-value store.

    The repository holds no state of its own: every call reads what it needs
    from the store and writes whole tables back. Table saves assume a single
    writer; a second writer touching the Files table between our read and
    write is detected with compare-and-set and reported as PersistenceError
    instead of being silently overwritten.
    """

    def __init__(self, store: KeyValueStore, file_id_factory: Callable[[], str] = new_file_id):
        self.store = store
        self.file_id_factory = file_id_factory

    # -- Files ------------------------------------------------------------

    async def save_files(self, blobs: Sequence[Blob]) -> List[StoredFile]:
        """Encodes `blobs` and appends them to the Files table, returning the new records in input order."""
        # ReadError from any blob aborts before anything is written
        payloads = await asyncio.gather(*(encode(blob) for blob in blobs))
        new_files = [
            StoredFile(
                id=self.file_id_factory(),
                name=blob.name,
                type=blob.type,
                size=blob.size,
                last_modified=blob.last_modified,
                data_url=payload,
            )
            for blob, payload in zip(blobs, payloads)
        ]

        raw = self.store.get_item(FILES_KEY)
        all_files = self._parse(FILES_KEY, raw, _files_adapter) + new_files
        self._swap(FILES_KEY, raw, self._dump(_files_adapter, all_files))
        logger.info(f"Saved {len(new_files)} file(s), Files table now holds {len(all_files)}")
        return new_files

    def get_all_files(self) -> List[StoredFile]:
        return self._parse(FILES_KEY, self.store.get_item(FILES_KEY), _files_adapter)

    def get_file_by_id(self, file_id: str) -> Optional[StoredFile]:
        for stored in self.get_all_files():
            if stored.id == file_id:
                return stored
        return None

    def purge_orphan_files(self) -> int:
        """Drops file records no subject references. Returns how many were removed."""
        referenced = {file_id for subject in self.get_subjects() for file_id in subject.file_ids}
        raw = self.store.get_item(FILES_KEY)
        files = self._parse(FILES_KEY, raw, _files_adapter)
        kept = [f for f in files if f.id in referenced]
        removed = len(files) - len(kept)
        if removed:
            self._swap(FILES_KEY, raw, self._dump(_files_adapter, kept))
            logger.info(f"Purged {removed} orphaned file(s)")
        return removed

    # -- Subjects ---------------------------------------------------------

    def save_subjects(self, subjects: Sequence[StoredSubject]) -> None:
        """Replaces the whole Subjects table with `subjects`."""
        self._write(SUBJECTS_KEY, self._dump(_subjects_adapter, list(subjects)))

    def get_subjects(self) -> List[StoredSubject]:
        return self._parse(SUBJECTS_KEY, self.store.get_item(SUBJECTS_KEY), _subjects_adapter)

    def resolve_subject_files(self, subject: StoredSubject) -> SubjectWithFiles:
        files = []
        for file_id in subject.file_ids:
            stored = self.get_file_by_id(file_id)
            if stored is None:
                logger.debug(f"Subject {subject.id} references missing file {file_id}")
                continue
            files.append(stored)
        return SubjectWithFiles(id=subject.id, name=subject.name, files=files)

    def load_subjects(self) -> List[SubjectWithFiles]:
        """All subjects with their files resolved, reading the Files table once."""
        by_id: Dict[str, StoredFile] = {f.id: f for f in self.get_all_files()}
        return [
            SubjectWithFiles(
                id=subject.id,
                name=subject.name,
                files=[by_id[file_id] for file_id in subject.file_ids if file_id in by_id],
            )
            for subject in self.get_subjects()
        ]

    def delete_subject(self, subject_id: int) -> bool:
        """Removes a subject. Its files stay in the Files table; see purge_orphan_files."""
        subjects = self.get_subjects()
        remaining = [s for s in subjects if s.id != subject_id]
        if len(remaining) == len(subjects):
            return False
        self.save_subjects(remaining)
        return True

    # -- Preferences --------------------------------------------------------

    def get_preference(self, key: str) -> Optional[str]:
        return self.store.get_item(key)

    def set_preference(self, key: str, value: str) -> None:
        self._write(key, value)

    # -- helpers ------------------------------------------------------------

    @staticmethod
    def _parse(key: str, raw: Optional[str], adapter: TypeAdapter) -> list:
        if not raw:
            return []
        try:
            return adapter.validate_json(raw)
        except ValidationError as e:
            logger.warning(f"Ignoring unreadable data in '{key}': {e.error_count()} error(s), {e.errors()[0]['msg']}")
            return []

    @staticmethod
    def _dump(adapter: TypeAdapter, records: list) -> str:
        return adapter.dump_json(records, by_alias=True).decode("utf-8")

    def _write(self, key: str, value: str) -> None:
        try:
            self.store.set_item(key, value)
        except WriteRejected as e:
            logger.error(f"Write to '{key}' rejected: {e}")
            raise PersistenceError(key, str(e)) from e

    def _swap(self, key: str, expected: Optional[str], value: str) -> None:
        try:
            swapped = self.store.compare_and_set(key, expected, value)
        except WriteRejected as e:
            logger.error(f"Write to '{key}' rejected: {e}")
            raise PersistenceError(key, str(e)) from e
        if not swapped:
            logger.error(f"'{key}' changed while it was being updated")
            raise PersistenceError(key, "concurrent modification")
