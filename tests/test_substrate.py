import pytest
from sqlalchemy.exc import OperationalError
from sqlalchemy.orm import Session, sessionmaker

from aceplan.database import make_engine
from aceplan.encoder import MemoryBlob
from aceplan.errors import PersistenceError
from aceplan.repository import FILES_KEY, SUBJECTS_KEY, StorageRepository
from aceplan.schemas import StoredSubject
from aceplan.substrate import MemoryStore, QuotaExceededError, SqlStore, WriteRejected


def test_memory_store_quota_leaves_value_untouched():
    store = MemoryStore(quota=20)
    store.set_item("k", "v")

    with pytest.raises(QuotaExceededError):
        store.set_item("k", "x" * 50)

    assert store.get_item("k") == "v"


def test_memory_store_quota_counts_replaced_value_once():
    store = MemoryStore(quota=10)
    store.set_item("k", "123456789")
    store.set_item("k", "987654321")

    assert store.get_item("k") == "987654321"


def test_memory_store_compare_and_set():
    store = MemoryStore()

    assert store.compare_and_set("k", None, "1") is True
    assert store.compare_and_set("k", None, "2") is False
    assert store.compare_and_set("k", "1", "2") is True
    assert store.get_item("k") == "2"


def test_sql_store_get_and_set(sql_store):
    assert sql_store.get_item("missing") is None

    sql_store.set_item("aceplan_fieldOfStudy", "MBA")
    sql_store.set_item("aceplan_fieldOfStudy", "BBA")

    assert sql_store.get_item("aceplan_fieldOfStudy") == "BBA"


def test_sql_store_compare_and_set(sql_store):
    assert sql_store.compare_and_set("k", None, "1") is True
    assert sql_store.compare_and_set("k", None, "2") is False
    assert sql_store.compare_and_set("k", "stale", "2") is False
    assert sql_store.compare_and_set("k", "1", "2") is True
    assert sql_store.get_item("k") == "2"


async def test_repository_survives_reopening_the_database(tmp_path):
    url = f"sqlite:///{tmp_path / 'aceplan.db'}"
    repo = StorageRepository(SqlStore.from_url(url))
    saved = await repo.save_files([MemoryBlob("notes.pdf", b"%PDF\x00", type="application/pdf")])
    repo.save_subjects([StoredSubject(id=42, name="Physics", file_ids=[saved[0].id])])

    reopened = StorageRepository(SqlStore.from_url(url))
    loaded = reopened.load_subjects()

    assert len(loaded) == 1
    assert loaded[0].name == "Physics"
    assert loaded[0].files == saved


class LockedSession(Session):
    def commit(self):
        raise OperationalError("COMMIT", {}, Exception("database is locked"))


async def test_sql_write_failure_raises_persistence_error(tmp_path):
    url = f"sqlite:///{tmp_path / 'aceplan.db'}"
    repo = StorageRepository(SqlStore.from_url(url))
    await repo.save_files([MemoryBlob("a.txt", b"a")])
    repo.save_subjects([StoredSubject(id=1, name="Maths")])
    store = SqlStore.from_url(url)
    files_before = store.get_item(FILES_KEY)
    subjects_before = store.get_item(SUBJECTS_KEY)

    locked = StorageRepository(SqlStore(sessionmaker(bind=make_engine(url), class_=LockedSession)))

    with pytest.raises(PersistenceError) as excinfo:
        locked.save_subjects([StoredSubject(id=2, name="Art")])
    assert isinstance(excinfo.value.__cause__, WriteRejected)

    with pytest.raises(PersistenceError):
        await locked.save_files([MemoryBlob("b.txt", b"b")])

    assert store.get_item(FILES_KEY) == files_before
    assert store.get_item(SUBJECTS_KEY) == subjects_before
