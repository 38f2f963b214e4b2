import subprocess
from typing import Callable, Protocol, Sequence

Runner = Callable[[Sequence[str]], "subprocess.CompletedProcess[str]"]


def run_quiet(argv: Sequence[str]) -> "subprocess.CompletedProcess[str]":
    """Run a short-lived query command and capture its output."""
    return subprocess.run(list(argv), capture_output=True, text=True)


class Probe(Protocol):
    def __call__(self) -> bool: ...


class Guard(Protocol):
    reason: str

    def __call__(self) -> bool: ...


class CheckError(Exception):
    def __init__(self, *args: object) -> None:
        super().__init__(*args)


class ProbeError(CheckError):
    """The state of the environment could not be determined."""

    def __init__(self, *args: object) -> None:
        super().__init__(*args)
