from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING, Callable, Protocol

from setupforge.checks import Guard, Probe

if TYPE_CHECKING:
    from .sink import LogSink
    from .tempfiles import TempRegistry


class Bucket(Enum):
    INSTALLED = "Installed"
    PRESENT = "Already present"
    INCOMPATIBLE = "Not applicable"
    FAILED = "Failed"


@dataclass(frozen=True)
class AlreadyPresent:
    pass


@dataclass(frozen=True)
class Applied:
    duration_s: float = 0.0


@dataclass(frozen=True)
class Failed:
    detail: str
    returncode: int | None = None


@dataclass(frozen=True)
class NotApplicable:
    reason: str


Outcome = AlreadyPresent | Applied | Failed | NotApplicable


def bucket_of(outcome: Outcome) -> Bucket:
    match outcome:
        case Applied():
            return Bucket.INSTALLED
        case AlreadyPresent():
            return Bucket.PRESENT
        case NotApplicable():
            return Bucket.INCOMPATIBLE
        case Failed():
            return Bucket.FAILED
        case _:
            raise AssertionError("Unreachable")


@dataclass(frozen=True)
class ReportEntry:
    task_id: str
    name: str
    outcome: Outcome


@dataclass(frozen=True)
class RunReport:
    entries: tuple[ReportEntry, ...] = ()

    def __len__(self) -> int:
        return len(self.entries)

    def with_entry(self, entry: ReportEntry) -> RunReport:
        return RunReport(self.entries + (entry,))

    def outcome_of(self, task_id: str) -> Outcome | None:
        for entry in reversed(self.entries):
            if entry.task_id == task_id:
                return entry.outcome
        return None

    def buckets(self) -> dict[Bucket, list[ReportEntry]]:
        """Partition entries by outcome, keeping insertion order in each bucket."""
        out: dict[Bucket, list[ReportEntry]] = {bucket: [] for bucket in Bucket}
        for entry in self.entries:
            out[bucket_of(entry.outcome)].append(entry)
        return out

    @property
    def failed(self) -> list[ReportEntry]:
        return self.buckets()[Bucket.FAILED]


@dataclass(frozen=True)
class ActionResult:
    returncode: int
    error: str | None = None


@dataclass(frozen=True)
class ActionContext:
    sink: LogSink
    temp: TempRegistry
    # Receives raw output lines when the console is not a terminal.
    echo: Callable[[str], None] | None = None


class Action(Protocol):
    def run(self, ctx: ActionContext) -> ActionResult: ...


@dataclass(frozen=True)
class Task:
    id: str
    name: str
    action: Action
    probe: Probe | None = None
    guards: tuple[Guard, ...] = ()
    deps: tuple[str, ...] = ()
    prerequisite: bool = False
    sudo: bool = False


class HarnessError(Exception):
    def __init__(self, *args: object) -> None:
        super().__init__(*args)


class PrivilegeError(HarnessError):
    def __init__(self, *args: object) -> None:
        super().__init__(*args)


class PrerequisiteFailed(HarnessError):
    def __init__(self, task: Task, outcome: Failed):
        super().__init__(f"Prerequisite '{task.name}' failed: {outcome.detail}")
        self.task = task
        self.outcome = outcome
