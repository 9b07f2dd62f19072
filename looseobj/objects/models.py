from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import List, Optional
import binascii
import hashlib

from looseobj.objects.errors import InvalidObjectFormatError

OID_HEX_LENGTH = 40
OID_RAW_LENGTH = 20


def frame(obj_type: bytes, payload: bytes) -> bytes:
    """Prepends the `<type> <length>\\0` header to a payload."""
    return obj_type + b" " + str(len(payload)).encode() + b"\x00" + payload


def hash_object(payload: bytes, obj_type: bytes = b"blob") -> str:
    """Returns the hex SHA-1 of the framed payload, without storing anything."""
    return hashlib.sha1(frame(obj_type, payload)).hexdigest()


def is_valid_oid(oid: str) -> bool:
    if len(oid) != OID_HEX_LENGTH:
        return False
    try:
        bytes.fromhex(oid)
    except ValueError:
        return False
    return True


@dataclass(frozen=True)
class User:
    name: str
    email: str

    def __str__(self) -> str:
        return f"{self.name} <{self.email}>"


@dataclass(frozen=True)
class Timestamp:
    seconds: int
    offset: int = 0  # seconds east of UTC

    @classmethod
    def from_datetime(cls, moment: datetime) -> "Timestamp":
        moment = moment.astimezone() if moment.tzinfo is None else moment
        utc_offset = moment.utcoffset()
        offset = int(utc_offset.total_seconds()) if utc_offset else 0
        return cls(seconds=int(moment.timestamp()), offset=offset)

    @classmethod
    def now(cls) -> "Timestamp":
        return cls.from_datetime(datetime.now().astimezone())

    def __str__(self) -> str:
        sign = "-" if self.offset < 0 else "+"
        offset = abs(self.offset)
        hours = offset // 3600
        minutes = (offset % 3600) // 60
        return f"{self.seconds} {sign}{hours:02}{minutes:02}"


class FileMode(Enum):
    REGULAR = b"100644"
    EXECUTABLE = b"100755"
    DIRECTORY = b"040000"
    # Only met when decoding trees written by git
    SYMLINK = b"120000"
    SUBMODULE = b"160000"

    @classmethod
    def from_bytes(cls, raw: bytes) -> "FileMode":
        # git itself writes directories as "40000"
        if raw == b"40000":
            return cls.DIRECTORY
        try:
            return cls(raw)
        except ValueError:
            raise InvalidObjectFormatError(f"Unknown tree entry mode: {raw!r}") from None

    @property
    def object_type(self) -> str:
        if self is FileMode.DIRECTORY:
            return "tree"
        if self is FileMode.SUBMODULE:
            return "commit"
        return "blob"


@dataclass
class GitObject(ABC):
    oid: Optional[str] = field(default=None, init=False, compare=False)

    @property
    @abstractmethod
    def type(self) -> bytes:
        pass

    @abstractmethod
    def serialize(self) -> bytes:
        pass

    def frame(self) -> bytes:
        return frame(self.type, self.serialize())

    def compute_oid(self) -> str:
        """Computes and sets the SHA-1 hash of the object."""
        self.oid = hashlib.sha1(self.frame()).hexdigest()
        return self.oid


@dataclass
class BlobObject(GitObject):
    data: bytes = b""

    @property
    def type(self) -> bytes:
        return b"blob"

    def serialize(self) -> bytes:
        return self.data

    @classmethod
    def deserialize(cls, data: bytes) -> "BlobObject":
        return cls(data=data)


@dataclass
class TreeEntry:
    mode: FileMode
    name: str
    oid: str

    def sort_key(self) -> bytes:
        return self.name.encode()


@dataclass
class TreeObject(GitObject):
    entries: List[TreeEntry] = field(default_factory=list)

    @property
    def type(self) -> bytes:
        return b"tree"

    def serialize(self) -> bytes:
        output = bytearray()
        # Byte-wise name order is the canonical form
        for entry in sorted(self.entries, key=TreeEntry.sort_key):
            try:
                oid_bytes = binascii.unhexlify(entry.oid)
            except (binascii.Error, ValueError):
                raise InvalidObjectFormatError(f"Invalid object id for {entry.name!r}: {entry.oid!r}") from None
            if len(oid_bytes) != OID_RAW_LENGTH:
                raise InvalidObjectFormatError(f"Invalid object id for {entry.name!r}: {entry.oid!r}")
            output += entry.mode.value + b" " + entry.name.encode() + b"\x00" + oid_bytes
        return bytes(output)

    @classmethod
    def deserialize(cls, data: bytes) -> "TreeObject":
        entries = []
        i = 0
        while i < len(data):
            space_idx = data.find(b" ", i)
            if space_idx == -1:
                raise InvalidObjectFormatError("Tree entry is missing the space after its mode")
            mode = FileMode.from_bytes(data[i:space_idx])

            null_idx = data.find(b"\x00", space_idx + 1)
            if null_idx == -1:
                raise InvalidObjectFormatError("Tree entry is missing the NUL after its name")
            try:
                name = data[space_idx + 1:null_idx].decode()
            except UnicodeDecodeError as e:
                raise InvalidObjectFormatError(f"Tree entry name is not UTF-8: {e}") from e

            oid_bytes = data[null_idx + 1:null_idx + 1 + OID_RAW_LENGTH]
            if len(oid_bytes) != OID_RAW_LENGTH:
                raise InvalidObjectFormatError(f"Truncated object id for tree entry {name!r}")

            entries.append(TreeEntry(mode=mode, name=name, oid=binascii.hexlify(oid_bytes).decode()))
            i = null_idx + 1 + OID_RAW_LENGTH

        return cls(entries=entries)


@dataclass
class CommitObject(GitObject):
    tree_oid: str = ""
    parent_oids: List[str] = field(default_factory=list)
    author: Optional[User] = None
    author_time: Optional[Timestamp] = None
    committer: Optional[User] = None
    committer_time: Optional[Timestamp] = None
    message: str = ""

    def __post_init__(self):
        if self.author_time is None:
            self.author_time = Timestamp.now()
        if self.committer is None:
            self.committer = self.author
        if self.committer_time is None:
            self.committer_time = self.author_time

    @property
    def type(self) -> bytes:
        return b"commit"

    def serialize(self) -> bytes:
        if self.author is None:
            raise InvalidObjectFormatError("Commit requires an author")

        lines = [f"tree {self.tree_oid}"]
        for p in self.parent_oids:
            lines.append(f"parent {p}")
        lines.append(f"author {self.author} {self.author_time}")
        lines.append(f"committer {self.committer} {self.committer_time}")
        lines.append("")
        lines.append(self.message)

        return ("\n".join(lines) + "\n").encode()
