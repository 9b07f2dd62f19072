from fastapi import FastAPI, HTTPException, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from typing import List
from pathlib import Path
import os

from looseobj.api.service import ObjectService
from looseobj.api.schemas import (
    BlobResponse,
    CreateBlobRequest,
    CreateCommitRequest,
    ObjectIdResponse,
    ObjectListResponse,
    TreeEntryResponse,
)
from looseobj.objects.errors import (
    CorruptObjectError,
    IdentityNotConfiguredError,
    InvalidObjectFormatError,
    ObjectNotFoundError,
    ObjectStoreError,
)

import logging

# Configure Logging
logging.basicConfig(
    level=os.getenv("LOG_LEVEL", "INFO").upper(),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)

app = FastAPI(title="Loose Object Store API")

# In production, set ALLOWED_ORIGINS to a comma-separated list of domains
allowed_origins_env = os.getenv("ALLOWED_ORIGINS", "*")
allowed_origins = [origin.strip() for origin in allowed_origins_env.split(",")]

app.add_middleware(
    CORSMiddleware,
    allow_origins=allowed_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# GIT_DIR defaults to .git in CWD, WORK_TREE to its parent
git_dir_path = os.getenv("GIT_DIR", ".git")
work_tree_path = os.getenv("WORK_TREE")
service = ObjectService(Path(git_dir_path), Path(work_tree_path) if work_tree_path else None)


def _error(status_code: int, exc: Exception) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"detail": str(exc)})


@app.exception_handler(ObjectNotFoundError)
async def not_found_handler(request: Request, exc: ObjectNotFoundError):
    return _error(404, exc)


@app.exception_handler(InvalidObjectFormatError)
async def invalid_format_handler(request: Request, exc: InvalidObjectFormatError):
    return _error(422, exc)


@app.exception_handler(IdentityNotConfiguredError)
async def identity_handler(request: Request, exc: IdentityNotConfiguredError):
    return _error(400, exc)


@app.exception_handler(CorruptObjectError)
async def corrupt_handler(request: Request, exc: CorruptObjectError):
    logger.error(f"Corrupt object requested at {request.url.path}: {exc}")
    return _error(500, exc)


@app.exception_handler(ObjectStoreError)
async def store_error_handler(request: Request, exc: ObjectStoreError):
    logger.error(f"Object store failure at {request.url.path}: {exc}")
    return _error(500, exc)


@app.on_event("startup")
def startup_event():
    try:
        service.ensure_repo()
        logger.info(f"Serving objects from {service.git_dir}")
    except ObjectStoreError as e:
        logger.error(f"Failed to prepare repo on startup: {e}")


@app.get("/health")
def health_check():
    return {"status": "ok", "repo": str(service.git_dir)}


@app.get("/api/objects", response_model=ObjectListResponse)
def list_objects():
    return service.list_objects()


@app.get("/api/blob/{oid}", response_model=BlobResponse)
def get_blob(oid: str):
    blob = service.get_blob(oid)
    if not blob:
        raise HTTPException(status_code=404, detail="Blob not found")
    return blob


@app.post("/api/blobs", response_model=ObjectIdResponse)
def create_blob(req: CreateBlobRequest):
    """Store content as a blob (hash-object -w)."""
    return ObjectIdResponse(oid=service.create_blob(req.content))


@app.get("/api/tree/{oid}", response_model=List[TreeEntryResponse])
def get_tree(oid: str):
    tree = service.get_tree(oid)
    if tree is None:
        raise HTTPException(status_code=404, detail="Tree not found")
    return tree


@app.post("/api/trees", response_model=ObjectIdResponse)
def write_tree():
    """Store the work tree as a tree object (write-tree)."""
    return ObjectIdResponse(oid=service.write_tree())


@app.post("/api/commits", response_model=ObjectIdResponse)
def create_commit(req: CreateCommitRequest):
    """Store a commit for an existing tree (commit-tree)."""
    return ObjectIdResponse(oid=service.create_commit(req))
