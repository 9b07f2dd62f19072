from typing import List, Optional
from pydantic import BaseModel, Field

class ObjectIdResponse(BaseModel):
    oid: str

class ObjectListResponse(BaseModel):
    oids: List[str]
    count: int

class TreeEntryResponse(BaseModel):
    mode: str
    name: str
    type: str # 'blob' or 'tree'
    oid: str

class BlobResponse(BaseModel):
    oid: str
    content: str
    size: int
    binary: bool = False

class CreateBlobRequest(BaseModel):
    content: str

class CreateCommitRequest(BaseModel):
    tree_oid: str = Field(min_length=40, max_length=40)
    parent_oids: List[str] = Field(default_factory=list)
    message: str
    # Falls back to user.name / user.email from git config
    author_name: Optional[str] = Field(default=None, min_length=1)
    author_email: Optional[str] = Field(default=None, min_length=1)
