from __future__ import annotations

import argparse
import sys
from importlib import resources
from pathlib import Path

from setupforge.config import ConfigError, ProjectConfig, build_tasks, load_project
from setupforge.harness import PrerequisiteFailed, precheck, provisioning_session
from setupforge.ui import Display

from .args import build_parser

LOCAL_CONFIG = "setupforge.yml"
BUNDLED_PROFILE = "ubuntu-workstation.yml"
RESTART_HINT = "You will probably need to restart your shell or source ~/.bashrc"


def run_cli(argv: list[str] | None = None) -> int:
    parser = build_parser()
    try:
        args = parser.parse_args(argv)

        match args.command:
            case "run":
                return cmd_run(args)
            case "check":
                return cmd_check(args)
            case "list":
                return cmd_list(args)
            case "graph":
                return cmd_graph(args)
            case _:
                return 2

    except (ConfigError, KeyError) as exc:
        print(str(exc), file=sys.stderr)
        return 2

    except KeyboardInterrupt:
        print("Interrupted", file=sys.stderr)
        return 130


def main() -> None:
    sys.exit(run_cli())


def cmd_run(args: argparse.Namespace) -> int:
    project = _load_selected(args)
    tasks = build_tasks(project)
    settings = project.settings

    log_dir = args.log_dir or settings.log_dir
    interval = settings.keepalive_interval
    if args.keepalive_interval is not None:
        interval = args.keepalive_interval
    if interval <= 0:
        raise ConfigError("--keepalive-interval must be positive")

    display = Display()
    with provisioning_session(
        display, log_dir=log_dir, keepalive_interval=interval, verbose=args.verbose
    ) as harness:
        try:
            harness.run(tasks)
        except PrerequisiteFailed as exc:
            display.aborted(exc.task.name, exc.outcome.detail, harness.sink.path)
            return 1
        finally:
            # Printed on every exit path, including an abort or Ctrl-C.
            report = harness.finalize()
            display.summary(report, harness.sink.path)

    display.hint(RESTART_HINT)
    if args.strict and report.failed:
        return 1
    return 0


def cmd_check(args: argparse.Namespace) -> int:
    project = _load_selected(args)
    display = Display()
    for task in build_tasks(project):
        display.state(task.name, precheck(task))
    return 0


def cmd_list(args: argparse.Namespace) -> int:
    project = _load(args)
    for tid in project.tasks_ids():
        print(tid)
    return 0


def cmd_graph(args: argparse.Namespace) -> int:
    project = _load(args)
    for tid in project.tasks_ids():
        task = project.get_task(tid)
        deps = " ".join(task.deps)
        print(f"{tid}: {deps}".rstrip())
    return 0


def _load(args: argparse.Namespace) -> ProjectConfig:
    if args.config is not None:
        return load_project(args.config)

    if Path(LOCAL_CONFIG).is_file():
        return load_project(LOCAL_CONFIG)

    profile = resources.files("setupforge") / "profiles" / BUNDLED_PROFILE
    with resources.as_file(profile) as path:
        return load_project(path)


def _load_selected(args: argparse.Namespace) -> ProjectConfig:
    project = _load(args)
    targets: list[str] = args.targets

    if len(targets) == 0:
        return project
    return project.select(targets)
