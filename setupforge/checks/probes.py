import re
import shutil
from dataclasses import dataclass, field
from pathlib import Path

from .types import ProbeError, Runner, run_quiet

# `gsettings get` prefixes some numbers with their GVariant type, e.g. "uint32 1".
_GVARIANT_TYPE_PREFIX = re.compile(r"^(?:byte|u?int16|u?int32|u?int64|double)\s+")


@dataclass(frozen=True)
class CommandProbe:
    binary: str

    def __call__(self) -> bool:
        return shutil.which(self.binary) is not None


@dataclass(frozen=True)
class PathProbe:
    path: str

    def __call__(self) -> bool:
        return Path(self.path).expanduser().exists()


@dataclass(frozen=True)
class ShellProbe:
    """Exit 0 means present, exit 1 means absent, anything else is ambiguous."""

    command: str
    runner: Runner = field(default=run_quiet, compare=False, repr=False)

    def __call__(self) -> bool:
        try:
            result = self.runner(["bash", "-c", self.command])
        except OSError as exc:
            raise ProbeError(f"could not run probe '{self.command}': {exc}") from exc

        if result.returncode == 0:
            return True
        if result.returncode == 1:
            return False
        raise ProbeError(
            f"probe '{self.command}' exited with {result.returncode}: {result.stderr.strip()}"
        )


@dataclass(frozen=True)
class GSettingProbe:
    schema: str
    key: str
    value: str
    runner: Runner = field(default=run_quiet, compare=False, repr=False)

    def __call__(self) -> bool:
        try:
            result = self.runner(["gsettings", "get", self.schema, self.key])
        except OSError as exc:
            raise ProbeError(f"gsettings is not available: {exc}") from exc

        if result.returncode != 0:
            raise ProbeError(
                f"gsettings get {self.schema} {self.key} failed: {result.stderr.strip()}"
            )

        return normalize_gvariant(result.stdout) == normalize_gvariant(self.value)


def normalize_gvariant(text: str) -> str:
    text = _GVARIANT_TYPE_PREFIX.sub("", text.strip())
    return text.strip("'\"")
