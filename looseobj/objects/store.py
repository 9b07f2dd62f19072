import hashlib
import logging
import os
import stat
import tempfile
import zlib
from pathlib import Path
from typing import Iterator, Union

from looseobj.objects.errors import (
    CorruptObjectError,
    InvalidObjectFormatError,
    ObjectIOError,
    ObjectNotFoundError,
)
from looseobj.objects.models import GitObject, is_valid_oid
from looseobj.objects.parser import parse_object

logger = logging.getLogger(__name__)

DEFAULT_GIT_DIR = Path(os.getenv("GIT_DIR", ".git"))
DEFAULT_HEAD = "ref: refs/heads/main\n"


class ObjectStore:
    """Loose objects kept zlib-compressed under `<git_dir>/objects/xx/yyyy...`."""

    def __init__(self, git_dir: Union[str, Path] = DEFAULT_GIT_DIR):
        self.git_dir = Path(git_dir)

    @property
    def objects_dir(self) -> Path:
        return self.git_dir / "objects"

    def init_repo(self) -> None:
        """Creates the metadata directory layout. Fails if it already exists."""
        try:
            self.git_dir.mkdir()
            self.objects_dir.mkdir()
            (self.git_dir / "refs").mkdir()
            (self.git_dir / "HEAD").write_text(DEFAULT_HEAD)
        except OSError as e:
            raise ObjectIOError(f"Cannot initialize repository at {self.git_dir}: {e}") from e
        logger.info("Initialized repository at %s", self.git_dir)

    def object_path(self, oid: str) -> Path:
        if not is_valid_oid(oid):
            raise InvalidObjectFormatError(f"Invalid Object ID: {oid}")
        oid = oid.lower()
        return self.objects_dir / oid[:2] / oid[2:]

    def exists(self, oid: str) -> bool:
        return self.object_path(oid).is_file()

    def write(self, obj: GitObject) -> str:
        """Stores the object and returns its oid. Existing records are never rewritten."""
        store = obj.frame()
        oid = obj.oid = hashlib.sha1(store).hexdigest()
        path = self.object_path(oid)

        if path.exists():
            logger.debug("Object %s already stored, skipping write", oid)
            return oid

        tmp_name = None
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            # Only complete records ever appear at the final address
            fd, tmp_name = tempfile.mkstemp(prefix="tmp_obj_", dir=path.parent)
            with os.fdopen(fd, "wb") as f:
                f.write(zlib.compress(store))
            os.chmod(tmp_name, stat.S_IREAD | stat.S_IRGRP | stat.S_IROTH)
            os.replace(tmp_name, path)
        except OSError as e:
            if tmp_name is not None and os.path.exists(tmp_name):
                os.unlink(tmp_name)
            raise ObjectIOError(f"Cannot write object {oid} to {path}: {e}") from e

        logger.debug("Wrote %s object %s (%d bytes)", obj.type.decode(), oid, len(store))
        return oid

    def read_raw(self, oid: str) -> bytes:
        """Returns the decompressed framed bytes of an object."""
        path = self.object_path(oid)
        try:
            with open(path, "rb") as f:
                compressed_data = f.read()
        except FileNotFoundError:
            raise ObjectNotFoundError(oid, str(path)) from None
        except OSError as e:
            raise ObjectIOError(f"Cannot read object {oid} from {path}: {e}") from e

        try:
            return zlib.decompress(compressed_data)
        except zlib.error as e:
            raise CorruptObjectError(f"Object {oid} failed to decompress: {e}") from e

    def read(self, oid: str) -> GitObject:
        """Read an object from the store by its SHA-1 hash."""
        obj = parse_object(self.read_raw(oid))
        obj.oid = oid.lower()
        return obj

    def iter_oids(self) -> Iterator[str]:
        """Yields all object IDs found in the objects directory, sorted."""
        if not self.objects_dir.exists():
            return

        # objects/XX/YYYY...
        for subdir in sorted(self.objects_dir.iterdir()):
            if not subdir.is_dir() or len(subdir.name) != 2:
                continue
            try:
                int(subdir.name, 16)
            except ValueError:
                continue

            for file in sorted(subdir.iterdir()):
                oid = subdir.name + file.name
                if file.is_file() and is_valid_oid(oid):
                    yield oid
