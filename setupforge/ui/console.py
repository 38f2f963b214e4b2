# All terminal output for a provisioning run.
#
# The harness never formats strings itself; it calls the methods here.
#
# Colour language:
#   green   - applied
#   cyan    - already present
#   dim     - not applicable
#   red     - failed, aborted

from contextlib import nullcontext
from pathlib import Path
from typing import ContextManager

from rich import box
from rich.console import Console
from rich.table import Table
from rich.text import Text

from setupforge.harness.types import (
    AlreadyPresent,
    Applied,
    Bucket,
    Failed,
    NotApplicable,
    Outcome,
    RunReport,
)

_BUCKET_STYLE = {
    Bucket.INSTALLED: ("✓", "green"),
    Bucket.PRESENT: ("↷", "cyan"),
    Bucket.INCOMPATIBLE: ("·", "dim"),
    Bucket.FAILED: ("✗", "red"),
}


def _detail(outcome: Outcome) -> str:
    match outcome:
        case Applied(duration_s=duration):
            return f"{duration:.1f}s"
        case AlreadyPresent():
            return "already present"
        case NotApplicable(reason=reason):
            return reason
        case Failed(detail=detail):
            return detail
        case _:
            raise AssertionError("Unreachable")


class Display:
    def __init__(self, console: Console | None = None):
        self.console = console or Console()

    @property
    def interactive(self) -> bool:
        return self.console.is_terminal

    def _line(self, text: Text) -> None:
        # soft_wrap keeps long log paths on one line
        self.console.print(text, soft_wrap=True, highlight=False)

    # ------------------------------------------------------------------
    # Per task
    # ------------------------------------------------------------------

    def working(self, name: str) -> ContextManager[object]:
        if self.interactive:
            return self.console.status(Text(f"{name}…", style="bold blue"), spinner="dots")
        self._line(Text(f"==> {name}", style="bold blue"))
        return nullcontext()

    def raw_line(self, line: str) -> None:
        self._line(Text(line))

    def outcome(self, name: str, outcome: Outcome, log_path: Path) -> None:
        match outcome:
            case Applied(duration_s=duration):
                self._line(Text.assemble(("✓ ", "bold green"), (name, "green"), f" ({duration:.1f}s)"))
            case AlreadyPresent():
                self._line(Text.assemble(("↷ ", "cyan"), f"{name} is already present, skipping"))
            case NotApplicable(reason=reason):
                self._line(Text(f"· {name} not applicable: {reason}", style="dim"))
            case Failed(detail=detail):
                self._line(
                    Text.assemble(
                        ("✗ ", "bold red"),
                        (name, "bold red"),
                        f" failed ({detail}), see {log_path}",
                    )
                )

    def state(self, name: str, outcome: Outcome | None) -> None:
        """One line for `setupforge check`: what a run would do with this task."""
        match outcome:
            case None:
                self._line(Text.assemble(("missing  ", "yellow"), name))
            case AlreadyPresent():
                self._line(Text.assemble(("present  ", "cyan"), name))
            case NotApplicable(reason=reason):
                self._line(Text(f"n/a      {name} ({reason})", style="dim"))
            case Failed(detail=detail):
                self._line(Text.assemble(("unknown  ", "red"), f"{name} ({detail})"))
            case _:
                raise AssertionError("Unreachable")

    # ------------------------------------------------------------------
    # End of run
    # ------------------------------------------------------------------

    def aborted(self, name: str, detail: str, log_path: Path) -> None:
        self.console.print()
        self._line(
            Text.assemble(
                ("ABORTED ", "bold white on red"),
                f" prerequisite '{name}' failed ({detail}); remaining tasks were not run. See {log_path}",
            )
        )

    def summary(self, report: RunReport, log_path: Path) -> None:
        self.console.print()
        for bucket, entries in report.buckets().items():
            if not entries:
                continue

            symbol, style = _BUCKET_STYLE[bucket]
            # Own line: a table title wraps to the table width.
            self._line(Text(f"{bucket.value} ({len(entries)})", style=f"bold {style}"))
            table = Table(
                box=box.SIMPLE,
                show_header=False,
                padding=(0, 1),
            )
            table.add_column("", width=1, style=style)
            table.add_column("Task", style="bold")
            table.add_column("Detail", style="dim", overflow="fold")
            for entry in entries:
                table.add_row(symbol, entry.name, _detail(entry.outcome))
            self.console.print(table)

        # Log path only when something failed.
        if report.failed:
            self._line(Text(f"Full output of every action: {log_path}", style="yellow"))

    def hint(self, message: str) -> None:
        self._line(Text(message, style="italic"))
