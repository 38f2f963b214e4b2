from __future__ import annotations

import logging
import os
import subprocess
import threading
from typing import Callable, Sequence

from .types import PrivilegeError

logger = logging.getLogger(__name__)

DEFAULT_INTERVAL = 60.0

SudoRunner = Callable[[Sequence[str]], int]


def _run_sudo(argv: Sequence[str]) -> int:
    # Inherits the terminal so `sudo -v` can prompt for a password.
    return subprocess.run(list(argv)).returncode


class PrivilegeSession:
    """Keeps the sudo timestamp fresh for the lifetime of a run.

    `ensure()` prompts once (interactive) or checks for cached credentials
    (non-interactive), then starts a daemon thread that runs `sudo -n -v`
    every `interval` seconds. `stop()` always ends that thread; use the
    session as a context manager so it runs on every exit path.
    """

    def __init__(
        self,
        *,
        interval: float = DEFAULT_INTERVAL,
        interactive: bool = True,
        runner: SudoRunner | None = None,
        is_root: bool | None = None,
    ):
        self.interval = interval
        self.interactive = interactive
        self._run = runner or _run_sudo
        self._is_root = os.geteuid() == 0 if is_root is None else is_root
        self._stop = threading.Event()
        self._thread: threading.Thread | None = None
        self.active = False

    @property
    def running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def ensure(self) -> None:
        if self._is_root or self.active:
            return

        argv = ["sudo", "-v"] if self.interactive else ["sudo", "-n", "-v"]
        logger.info("Requesting administrator privileges")
        try:
            returncode = self._run(argv)
        except OSError as exc:
            raise PrivilegeError(f"could not run sudo: {exc}") from exc

        if returncode != 0:
            if self.interactive:
                raise PrivilegeError("administrator privileges were not granted")
            raise PrivilegeError(
                "administrator privileges are required but no cached sudo credentials were found"
            )

        self.active = True
        self._stop.clear()
        self._thread = threading.Thread(
            target=self._refresh_loop, name="sudo-keepalive", daemon=True
        )
        self._thread.start()

    def _refresh_loop(self) -> None:
        while not self._stop.wait(self.interval):
            try:
                returncode = self._run(["sudo", "-n", "-v"])
            except OSError as exc:
                logger.warning("Could not refresh sudo timestamp: %s", exc)
                continue
            if returncode != 0:
                logger.warning("Could not refresh sudo timestamp (exit code %s)", returncode)

    def stop(self) -> None:
        self._stop.set()
        if self._thread is not None:
            self._thread.join()
            self._thread = None
        self.active = False

    def __enter__(self) -> PrivilegeSession:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.stop()
