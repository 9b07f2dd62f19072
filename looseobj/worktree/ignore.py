import logging
import os
from pathlib import Path
from typing import FrozenSet, Iterable, Optional, Union

from looseobj.objects.errors import ObjectIOError

logger = logging.getLogger(__name__)

IGNORE_FILE = ".gitignore"

PathType = Union[str, "os.PathLike[str]"]


def _absolute(path: PathType, base: Optional[PathType] = None) -> str:
    path = os.fspath(path)
    if base is not None and not os.path.isabs(path):
        path = os.path.join(os.fspath(base), path)
    return os.path.abspath(path).rstrip(os.sep) or os.sep


class PathExclusionSet:
    """
    Exact absolute paths to leave out of tree construction.

    Lines of the ignore file are literal paths, not patterns: `build` excludes
    `<work_dir>/build` and nothing else. The metadata directory is always
    excluded.
    """

    def __init__(self, paths: Iterable[str] = ()):
        self._paths: FrozenSet[str] = frozenset(paths)

    @classmethod
    def load(
        cls,
        work_dir: PathType = ".",
        git_dir: PathType = ".git",
        ignore_file: str = IGNORE_FILE,
    ) -> "PathExclusionSet":
        paths = []
        ignore_path = Path(work_dir) / ignore_file
        if ignore_path.is_file():
            try:
                content = ignore_path.read_text(encoding="utf-8")
            except (OSError, UnicodeDecodeError) as e:
                raise ObjectIOError(f"Cannot read exclusion list {ignore_path}: {e}") from e
            for line in content.splitlines():
                if not line or line.startswith("#"):
                    continue
                paths.append(_absolute(line, base=work_dir))
            logger.debug("Loaded %d exclusions from %s", len(paths), ignore_path)

        paths.append(_absolute(git_dir))
        return cls(paths)

    @property
    def paths(self) -> FrozenSet[str]:
        return self._paths

    def contains(self, path: PathType) -> bool:
        try:
            return _absolute(path) in self._paths
        except (TypeError, ValueError, OSError):
            return False

    def __contains__(self, path: PathType) -> bool:
        return self.contains(path)

    def __len__(self) -> int:
        return len(self._paths)
