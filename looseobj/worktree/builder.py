import logging
import os
import stat
from typing import List, Optional

from looseobj.objects.errors import InvalidObjectFormatError, ObjectIOError
from looseobj.objects.models import BlobObject, FileMode, TreeEntry, TreeObject
from looseobj.objects.store import ObjectStore
from looseobj.worktree.ignore import IGNORE_FILE, PathExclusionSet, PathType

logger = logging.getLogger(__name__)


class TreeBuilder:
    def __init__(self, store: ObjectStore, exclusions: Optional[PathExclusionSet] = None):
        self.store = store
        self.exclusions = exclusions if exclusions is not None else PathExclusionSet.load(git_dir=store.git_dir)

    def build(self, path: PathType = ".") -> str:
        """Writes every file and subdirectory under `path` and returns the root tree oid."""
        path = os.fspath(path)
        entries: List[TreeEntry] = []

        try:
            with os.scandir(path) as it:
                children = list(it)
        except OSError as e:
            raise ObjectIOError(f"Cannot list directory {path}: {e}") from e

        for child in children:
            if self.exclusions.contains(child.path):
                logger.debug("Excluded %s", child.path)
                continue

            name = _checked_name(child)
            try:
                if child.is_symlink():
                    logger.debug("Skipping symlink %s", child.path)
                    continue

                if child.is_dir(follow_symlinks=False):
                    entries.append(TreeEntry(mode=FileMode.DIRECTORY, name=name, oid=self.build(child.path)))
                    continue

                if not child.is_file(follow_symlinks=False):
                    logger.debug("Skipping special file %s", child.path)
                    continue

                mode = child.stat(follow_symlinks=False).st_mode
                with open(child.path, "rb") as f:
                    data = f.read()
            except OSError as e:
                raise ObjectIOError(f"Cannot read {child.path}: {e}") from e

            is_executable = bool(mode & (stat.S_IXUSR | stat.S_IXGRP | stat.S_IXOTH))
            entries.append(TreeEntry(
                mode=FileMode.EXECUTABLE if is_executable else FileMode.REGULAR,
                name=name,
                oid=self.store.write(BlobObject(data)),
            ))

        # Enumeration order is arbitrary, sort for a canonical tree
        entries.sort(key=TreeEntry.sort_key)
        return self.store.write(TreeObject(entries=entries))


def _checked_name(entry: os.DirEntry) -> str:
    try:
        entry.name.encode("utf-8")
    except UnicodeEncodeError:
        raise InvalidObjectFormatError(f"Filename is not valid UTF-8: {entry.path!r}") from None
    return entry.name


def write_tree(store: ObjectStore, directory: PathType = ".", ignore_file: str = IGNORE_FILE) -> str:
    """Builds and stores the tree of `directory`, honouring its exclusion list."""
    exclusions = PathExclusionSet.load(work_dir=directory, git_dir=store.git_dir, ignore_file=ignore_file)
    return TreeBuilder(store, exclusions).build(directory)
