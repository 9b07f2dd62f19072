import logging
from pathlib import Path
from typing import List, Optional

from looseobj.identity import get_user
from looseobj.objects.errors import InvalidObjectFormatError
from looseobj.objects.models import BlobObject, CommitObject, Timestamp, TreeObject, User, is_valid_oid
from looseobj.objects.store import ObjectStore
from looseobj.worktree.builder import write_tree
from looseobj.api.schemas import BlobResponse, CreateCommitRequest, ObjectListResponse, TreeEntryResponse

logger = logging.getLogger(__name__)


class ObjectService:
    def __init__(self, git_dir: Path = Path(".git"), work_tree: Optional[Path] = None):
        self.git_dir = git_dir.resolve()
        self.work_tree = work_tree.resolve() if work_tree else self.git_dir.parent
        self.store = ObjectStore(self.git_dir)

    def ensure_repo(self):
        if not self.store.objects_dir.exists():
            self.store.init_repo()

    def list_objects(self) -> ObjectListResponse:
        oids = list(self.store.iter_oids())
        return ObjectListResponse(oids=oids, count=len(oids))

    def get_blob(self, oid: str) -> Optional[BlobResponse]:
        obj = self.store.read(oid)
        if not isinstance(obj, BlobObject):
            return None

        content_str = "<Binary Data>"
        binary = False
        try:
            content_str = obj.data.decode("utf-8")
        except UnicodeDecodeError:
            binary = True

        return BlobResponse(oid=oid, size=len(obj.data), content=content_str, binary=binary)

    def create_blob(self, content: str) -> str:
        return self.store.write(BlobObject(content.encode("utf-8")))

    def get_tree(self, oid: str) -> Optional[List[TreeEntryResponse]]:
        obj = self.store.read(oid)
        if not isinstance(obj, TreeObject):
            return None

        return [
            TreeEntryResponse(mode=e.mode.value.decode(), name=e.name, type=e.mode.object_type, oid=e.oid)
            for e in obj.entries
        ]

    def write_tree(self) -> str:
        oid = write_tree(self.store, self.work_tree)
        logger.info("Wrote tree %s from %s", oid, self.work_tree)
        return oid

    def create_commit(self, req: CreateCommitRequest) -> str:
        for oid in [req.tree_oid, *req.parent_oids]:
            if not is_valid_oid(oid):
                raise InvalidObjectFormatError(f"Invalid Object ID: {oid}")

        if req.author_name and req.author_email:
            author = User(name=req.author_name, email=req.author_email)
        else:
            author = get_user(git_dir=self.git_dir)

        now = Timestamp.now()
        commit = CommitObject(
            tree_oid=req.tree_oid,
            parent_oids=req.parent_oids,
            author=author,
            author_time=now,
            committer=author,
            committer_time=now,
            message=req.message,
        )
        oid = self.store.write(commit)
        logger.info("Wrote commit %s for tree %s", oid, req.tree_oid)
        return oid
