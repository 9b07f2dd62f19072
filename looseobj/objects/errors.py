from typing import Optional


class ObjectStoreError(Exception):
    """Base class for every failure raised by the object store core."""


class ObjectNotFoundError(ObjectStoreError, FileNotFoundError):
    def __init__(self, oid: str, path: Optional[str] = None):
        self.oid = oid
        self.path = path
        message = f"Object {oid} not found"
        if path:
            message += f" at {path}"
        super().__init__(message)

    def __str__(self) -> str:
        return self.args[0]


class InvalidObjectFormatError(ObjectStoreError, ValueError):
    pass


class CorruptObjectError(ObjectStoreError):
    pass


class ObjectIOError(ObjectStoreError):
    pass


class IdentityNotConfiguredError(ObjectStoreError):
    pass
