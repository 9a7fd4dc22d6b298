import pytest

from aceplan.repository import StorageRepository
from aceplan.substrate import MemoryStore, SqlStore


@pytest.fixture
def store():
    return MemoryStore()


@pytest.fixture
def repo(store):
    return StorageRepository(store)


@pytest.fixture
def sql_store(tmp_path):
    return SqlStore.from_url(f"sqlite:///{tmp_path / 'aceplan.db'}")
