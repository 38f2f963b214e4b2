from __future__ import annotations

import signal
import sys
from contextlib import contextmanager
from pathlib import Path
from typing import TYPE_CHECKING, Iterator

from .harness import Harness
from .logs import setup_logging, teardown_logging
from .privilege import DEFAULT_INTERVAL, PrivilegeSession
from .sink import LogSink
from .tempfiles import TEMP_FILES, TempRegistry

if TYPE_CHECKING:
    from setupforge.ui import Display


def _can_prompt() -> bool:
    # sudo reads the password from the terminal, not from stdout.
    return sys.stdin is not None and sys.stdin.isatty()


def _exit_on_sigterm(signum, frame):
    raise SystemExit(128 + signum)


@contextmanager
def provisioning_session(
    display: Display,
    *,
    log_dir: str | Path | None = None,
    keepalive_interval: float = DEFAULT_INTERVAL,
    verbose: bool = False,
    privilege: PrivilegeSession | None = None,
    temp: TempRegistry | None = None,
) -> Iterator[Harness]:
    """Own the log sink, sudo keep-alive and temp files for one run.

    All three are released on every exit path: normal completion, a fatal
    prerequisite failure, Ctrl-C, or SIGTERM (turned into SystemExit).
    """
    sink = LogSink.create(log_dir)
    handlers = setup_logging(sink.path, verbose=verbose)
    if privilege is None:
        privilege = PrivilegeSession(
            interval=keepalive_interval, interactive=_can_prompt()
        )
    temp = temp if temp is not None else TEMP_FILES

    previous = signal.signal(signal.SIGTERM, _exit_on_sigterm)
    try:
        with sink, privilege, temp:
            yield Harness(sink=sink, display=display, privilege=privilege, temp=temp)
    finally:
        signal.signal(signal.SIGTERM, previous)
        teardown_logging(handlers)
