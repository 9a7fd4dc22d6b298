from .dashboard import DashboardService, file_kind
from .encoder import FileBlob, MemoryBlob, decode, encode
from .errors import AcePlanError, PersistenceError, ReadError
from .repository import StorageRepository
from .schemas import DashboardStats, StoredFile, StoredSubject, SubjectWithFiles
from .substrate import MemoryStore, QuotaExceededError, SqlStore

__all__ = [
    "AcePlanError",
    "DashboardService",
    "DashboardStats",
    "FileBlob",
    "MemoryBlob",
    "MemoryStore",
    "PersistenceError",
    "QuotaExceededError",
    "ReadError",
    "SqlStore",
    "StorageRepository",
    "StoredFile",
    "StoredSubject",
    "SubjectWithFiles",
    "decode",
    "encode",
    "file_kind",
]
