from __future__ import annotations

import atexit
import logging
import os
import shutil
import tempfile
from pathlib import Path

logger = logging.getLogger(__name__)


class TempRegistry:
    """Tracks temporary paths created during a run and removes them all on cleanup."""

    def __init__(self, prefix: str = "setupforge-"):
        self.prefix = prefix
        self._paths: list[Path] = []

    def __len__(self) -> int:
        return len(self._paths)

    @property
    def paths(self) -> list[Path]:
        return list(self._paths)

    def register(self, path: str | Path) -> Path:
        registered = Path(path)
        self._paths.append(registered)
        return registered

    def mkstemp(self, suffix: str = "") -> Path:
        fd, name = tempfile.mkstemp(prefix=self.prefix, suffix=suffix)
        os.close(fd)
        return self.register(name)

    def mkdtemp(self, suffix: str = "") -> Path:
        return self.register(tempfile.mkdtemp(prefix=self.prefix, suffix=suffix))

    def cleanup(self) -> None:
        while self._paths:
            path = self._paths.pop()
            try:
                if path.is_dir() and not path.is_symlink():
                    shutil.rmtree(path)
                else:
                    path.unlink(missing_ok=True)
            except OSError as exc:
                logger.warning("Could not remove temporary path %s: %s", path, exc)

    def __enter__(self) -> TempRegistry:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.cleanup()


TEMP_FILES = TempRegistry()
atexit.register(TEMP_FILES.cleanup)
