from __future__ import annotations

import logging
import time
from typing import TYPE_CHECKING, Iterable

from setupforge.checks import ProbeError

from .privilege import PrivilegeSession
from .sink import LogSink
from .tempfiles import TEMP_FILES, TempRegistry
from .types import (
    ActionContext,
    AlreadyPresent,
    Applied,
    Failed,
    NotApplicable,
    Outcome,
    PrerequisiteFailed,
    PrivilegeError,
    ReportEntry,
    RunReport,
    Task,
)

if TYPE_CHECKING:
    from setupforge.ui import Display

logger = logging.getLogger(__name__)


def precheck(task: Task) -> Outcome | None:
    """Evaluate guards then the presence probe, without side effects.

    Returns the outcome these checks settle on their own, or None when the
    action would have to run.
    """
    for guard in task.guards:
        try:
            applicable = guard()
        except ProbeError as exc:
            return Failed(f"could not check environment: {exc}")
        if not applicable:
            return NotApplicable(guard.reason)

    if task.probe is None:
        return None

    try:
        present = task.probe()
    except ProbeError as exc:
        return Failed(f"could not determine state: {exc}")

    return AlreadyPresent() if present else None


class Harness:
    def __init__(
        self,
        *,
        sink: LogSink,
        display: Display,
        privilege: PrivilegeSession | None = None,
        temp: TempRegistry | None = None,
    ):
        self.sink = sink
        self.display = display
        self.privilege = privilege
        self.temp = temp if temp is not None else TEMP_FILES
        self._report = RunReport()

    @property
    def report(self) -> RunReport:
        return self._report

    def evaluate(self, task: Task) -> Outcome:
        outcome = precheck(task)
        if outcome is None:
            outcome = self._check_deps(task)
        if outcome is None:
            try:
                outcome = self._apply(task)
            except KeyboardInterrupt:
                self._record(task, Failed("interrupted"))
                raise

        self._record(task, outcome)
        return outcome

    def run(self, tasks: Iterable[Task]) -> RunReport:
        for task in tasks:
            outcome = self.evaluate(task)
            if task.prerequisite and isinstance(outcome, Failed):
                raise PrerequisiteFailed(task, outcome)
        return self.finalize()

    def finalize(self) -> RunReport:
        return self._report

    def _record(self, task: Task, outcome: Outcome) -> None:
        self._report = self._report.with_entry(ReportEntry(task.id, task.name, outcome))
        logger.info("%s: %s", task.name, outcome)
        self.display.outcome(task.name, outcome, self.sink.path)

    def _check_deps(self, task: Task) -> Outcome | None:
        for dep in task.deps:
            match self._report.outcome_of(dep):
                case Failed():
                    return Failed(f"dependency '{dep}' failed")
                case NotApplicable():
                    return NotApplicable(f"requires '{dep}'")
        return None

    def _apply(self, task: Task) -> Outcome:
        if task.sudo and self.privilege is not None:
            try:
                self.privilege.ensure()
            except PrivilegeError as exc:
                return Failed(str(exc))

        self.sink.section(task.name)
        echo = None if self.display.interactive else self.display.raw_line
        ctx = ActionContext(sink=self.sink, temp=self.temp, echo=echo)

        start = time.monotonic()
        with self.display.working(task.name):
            try:
                result = task.action.run(ctx)
            except Exception as exc:
                logger.debug("Action for %s raised", task.name, exc_info=True)
                self.sink.write(f"{type(exc).__name__}: {exc}\n")
                return Failed(f"{type(exc).__name__}: {exc}")
        duration = time.monotonic() - start

        if result.returncode == 0:
            return Applied(duration)
        return Failed(result.error or f"exit code {result.returncode}", result.returncode)
