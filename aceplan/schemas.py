from typing import List

from pydantic import BaseModel, Field


class StoredFile(BaseModel):
    id: str
    name: str
    type: str  # MIME type, e.g. 'application/pdf'
    size: int
    last_modified: int = Field(alias="lastModified")
    data_url: str = Field(alias="dataUrl")

    class Config:
        populate_by_name = True
        frozen = True


class StoredSubject(BaseModel):
    id: int
    name: str  # Course name
    file_ids: List[str] = Field(default_factory=list, alias="fileIds")

    class Config:
        populate_by_name = True


class SubjectWithFiles(BaseModel):
    id: int
    name: str
    files: List[StoredFile] = Field(default_factory=list)


class DashboardStats(BaseModel):
    total_files: int
    total_subjects: int
    total_bytes: int
