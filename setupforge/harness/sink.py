from __future__ import annotations

import os
import tempfile
from datetime import datetime
from pathlib import Path


class LogSink:
    """Append-only file holding the full output of every action in one run."""

    def __init__(self, path: str | Path):
        self.path = Path(path)
        self._file = open(self.path, "a", encoding="utf-8")

    @classmethod
    def create(cls, directory: str | Path | None = None) -> LogSink:
        base = Path(directory).expanduser() if directory else Path(tempfile.gettempdir())
        base.mkdir(parents=True, exist_ok=True)

        stamp = datetime.now().strftime("%Y%m%d-%H%M%S")
        fd, name = tempfile.mkstemp(prefix=f"setupforge-{stamp}-", suffix=".log", dir=base)
        os.close(fd)
        return cls(name)

    @property
    def closed(self) -> bool:
        return self._file.closed

    def write(self, text: str) -> None:
        self._file.write(text)
        self._file.flush()

    def section(self, title: str) -> None:
        stamp = datetime.now().strftime("%Y-%m-%d %H:%M:%S")
        self.write(f"\n==> [{stamp}] {title}\n")

    def close(self) -> None:
        if not self._file.closed:
            self._file.close()

    def __enter__(self) -> LogSink:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()
