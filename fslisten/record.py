# fslisten/record.py

"""
Snapshot of the paths known under the watched directories
"""
import logging
import os
import stat
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Callable, Dict, Optional, Sequence

from .interfaces import DIRECTORY, FILE, IRecord, ISilencer

logger = logging.getLogger(__name__)


@dataclass
class PathInfo:
    """Metadata kept per known path"""
    is_dir: bool
    mtime: float
    size: int

    @classmethod
    def from_stat(cls, st: os.stat_result, is_dir: bool) -> "PathInfo":
        return cls(is_dir=is_dir, mtime=st.st_mtime, size=st.st_size)


class Record(IRecord):
    """
    Path snapshot built by walking the watched directories

    Silenced directories are not descended into. Existence checks always go
    to the file system and refresh the snapshot as a side effect.
    """

    def __init__(self, directories: Sequence[Path],
                 silencer_provider: Optional[Callable[[], ISilencer]] = None):
        """
        Initialize record

        Args:
            directories: Watched directories
            silencer_provider: Returns the currently published silencer
        """
        self.directories = [Path(d) for d in directories]
        self.silencer_provider = silencer_provider
        self.paths: Dict[str, PathInfo] = {}

    def _silenced(self, path: str, kind: str) -> bool:
        if self.silencer_provider is None:
            return False
        return self.silencer_provider().silenced(path, kind)

    def build(self) -> None:
        paths: Dict[str, PathInfo] = {}

        for directory in self.directories:
            for root, dirnames, filenames in os.walk(directory, onerror=self._walk_error):
                # prune in place so os.walk skips them
                dirnames[:] = [
                    name for name in dirnames
                    if not self._silenced(os.path.join(root, name), DIRECTORY)
                ]

                for name in dirnames:
                    self._add(paths, os.path.join(root, name), is_dir=True)
                for name in filenames:
                    full_path = os.path.join(root, name)
                    if not self._silenced(full_path, FILE):
                        self._add(paths, full_path, is_dir=False)

        self.paths = paths
        logger.debug(f"Record built with {len(paths)} paths from {len(self.directories)} directories")

    @staticmethod
    def _add(paths: Dict[str, PathInfo], path: str, is_dir: bool):
        try:
            paths[path] = PathInfo.from_stat(os.stat(path), is_dir)
        except OSError as e:
            # vanished between listing and stat
            logger.debug(f"Skipping {path}: {e}")

    @staticmethod
    def _walk_error(error: OSError):
        logger.warning(f"Cannot scan {error.filename}: {error.strerror}")

    def exists(self, path: str) -> bool:
        try:
            st = os.stat(path)
        except OSError:
            self.paths.pop(path, None)
            return False

        self.paths[path] = PathInfo.from_stat(st, stat.S_ISDIR(st.st_mode))
        return True

    def get(self, path: str) -> Optional[PathInfo]:
        return self.paths.get(path)

    def get_stats(self) -> Dict[str, Any]:
        """Get record statistics"""
        directories = sum(1 for info in self.paths.values() if info.is_dir)
        return {
            'paths': len(self.paths),
            'directories': directories,
            'files': len(self.paths) - directories,
        }
