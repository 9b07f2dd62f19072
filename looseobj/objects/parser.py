import logging
from typing import Callable, Dict

from looseobj.objects.errors import InvalidObjectFormatError
from looseobj.objects.models import GitObject, BlobObject, TreeObject

logger = logging.getLogger(__name__)

# Commits can be written but are never decoded back
_DECODERS: Dict[bytes, Callable[[bytes], GitObject]] = {
    b"blob": BlobObject.deserialize,
    b"tree": TreeObject.deserialize,
}


def split_header(raw_data: bytes):
    """Splits `<type> <size>\\0<payload>` into (type, declared size, payload)."""
    space_idx = raw_data.find(b" ")
    if space_idx == -1:
        raise InvalidObjectFormatError("Invalid object format (no space after type)")
    null_idx = raw_data.find(b"\x00", space_idx)
    if null_idx == -1:
        raise InvalidObjectFormatError("Invalid object format (no null byte)")

    return raw_data[:space_idx], raw_data[space_idx + 1:null_idx], raw_data[null_idx + 1:]


def parse_object(raw_data: bytes) -> GitObject:
    """Decodes a framed object. Only blobs and trees are understood."""
    type_str, size_str, content = split_header(raw_data)

    decode = _DECODERS.get(type_str)
    if decode is None:
        raise InvalidObjectFormatError(f"Unknown object type: {type_str!r}")

    # The declared size is not enforced
    if size_str != str(len(content)).encode():
        logger.debug("Declared size %r does not match payload length %d", size_str, len(content))

    return decode(content)
