from __future__ import annotations

import io
import os
import subprocess
from contextlib import redirect_stderr, redirect_stdout
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, Mapping

from .sink import LogSink
from .types import ActionContext, ActionResult

SCRATCH_ENV = "SETUPFORGE_SCRATCH"


@dataclass(frozen=True)
class ShellAction:
    """Run a bash snippet, appending its combined output to the log sink.

    The snippet runs with `-e -o pipefail` so multi-line installs stop at the
    first failing command, including failures on the left of `curl ... | sh`.
    A fresh scratch directory is exported as $SETUPFORGE_SCRATCH and removed
    with the rest of the run's temporary files.
    """

    command: str
    env: Mapping[str, str] = field(default_factory=dict)
    working_dir: str | None = None

    def run(self, ctx: ActionContext) -> ActionResult:
        scratch = ctx.temp.mkdtemp()
        env = {**os.environ, **self.env, SCRATCH_ENV: str(scratch)}
        cwd = Path(self.working_dir).expanduser() if self.working_dir else None

        try:
            process = subprocess.Popen(
                ["bash", "-e", "-o", "pipefail", "-c", self.command],
                cwd=cwd,
                env=env,
                stdin=subprocess.DEVNULL,
                stdout=subprocess.PIPE,
                stderr=subprocess.STDOUT,
                text=True,
                errors="replace",
            )
        except OSError as exc:
            ctx.sink.write(f"failed to start: {exc}\n")
            return ActionResult(127, error=f"could not start command: {exc}")

        assert process.stdout is not None
        with process:
            for line in process.stdout:
                ctx.sink.write(line)
                if ctx.echo is not None:
                    ctx.echo(line.rstrip("\n"))

        return ActionResult(process.returncode)


@dataclass(frozen=True)
class CallableAction:
    """Wrap a Python callable whose stdout and stderr go to the run log.

    None/True mean success, False means exit 1, ints pass through.
    """

    func: Callable[[], int | bool | None]

    def run(self, ctx: ActionContext) -> ActionResult:
        writer = _SinkWriter(ctx.sink)
        try:
            with redirect_stdout(writer), redirect_stderr(writer):
                result = self.func()
        finally:
            # The display prints through sys.stdout, so echo only once it is restored.
            if ctx.echo is not None:
                for line in writer.getvalue().splitlines():
                    ctx.echo(line)

        if result is None or result is True:
            return ActionResult(0)
        if result is False:
            return ActionResult(1)
        return ActionResult(int(result))


class _SinkWriter(io.TextIOBase):
    """Text stream that appends everything written to the run log."""

    def __init__(self, sink: LogSink):
        self._sink = sink
        self._chunks: list[str] = []

    def writable(self) -> bool:
        return True

    def write(self, text: str) -> int:
        self._sink.write(text)
        self._chunks.append(text)
        return len(text)

    def getvalue(self) -> str:
        return "".join(self._chunks)
