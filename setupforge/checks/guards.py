"""Environment signals that decide whether a task is relevant on this machine."""

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Mapping

from .types import Runner, run_quiet


def _environ() -> Mapping[str, str]:
    return os.environ


@dataclass(frozen=True)
class GuiSessionGuard:
    reason = "no graphical session"

    env: Mapping[str, str] = field(default_factory=_environ, compare=False, repr=False)
    runner: Runner = field(default=run_quiet, compare=False, repr=False)

    def __call__(self) -> bool:
        if self.env.get("DISPLAY") or self.env.get("WAYLAND_DISPLAY"):
            return True

        try:
            result = self.runner(["systemctl", "get-default"])
        except OSError:
            return False

        return result.returncode == 0 and result.stdout.strip() == "graphical.target"


@dataclass(frozen=True)
class NvidiaGpuGuard:
    reason = "no NVIDIA GPU detected"

    root: str = "/"
    runner: Runner = field(default=run_quiet, compare=False, repr=False)

    def __call__(self) -> bool:
        if (Path(self.root) / "proc" / "driver" / "nvidia").exists():
            return True

        try:
            result = self.runner(["lspci"])
        except OSError:
            return False

        return result.returncode == 0 and "nvidia" in result.stdout.lower()


@dataclass(frozen=True)
class NotContainerGuard:
    reason = "running inside a container"

    root: str = "/"
    env: Mapping[str, str] = field(default_factory=_environ, compare=False, repr=False)

    def __call__(self) -> bool:
        root = Path(self.root)
        if (root / ".dockerenv").exists() or (root / "run" / ".containerenv").exists():
            return False
        return not self.env.get("container")


@dataclass(frozen=True)
class GSettingsSchemaGuard:
    schema: str
    runner: Runner = field(default=run_quiet, compare=False, repr=False)

    @property
    def reason(self) -> str:
        return f"gsettings schema {self.schema} not found"

    def __call__(self) -> bool:
        try:
            result = self.runner(["gsettings", "list-schemas"])
        except OSError:
            return False

        if result.returncode != 0:
            return False

        return self.schema in result.stdout.split()
