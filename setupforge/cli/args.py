from __future__ import annotations

import argparse


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="setupforge",
        description="Provision an Ubuntu development workstation from a task file.",
    )

    parser.add_argument(
        "--config",
        default=None,
        help="Path to task file (default: ./setupforge.yml, else the bundled Ubuntu profile)",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Show debug logs on the console",
    )

    subparsers = parser.add_subparsers(
        dest="command",
        required=True,
    )

    # run
    run = subparsers.add_parser("run", help="Run tasks")
    run.add_argument(
        "targets",
        nargs="*",
        help="Task ids to run (default: all, in declared order)",
    )
    run.add_argument(
        "--strict",
        action="store_true",
        help="Exit with 1 when any task failed, not only prerequisites",
    )
    run.add_argument(
        "--log-dir",
        default=None,
        help="Directory for the run's log file (default: system temp dir)",
    )
    run.add_argument(
        "--keepalive-interval",
        type=float,
        default=None,
        help="Seconds between sudo timestamp refreshes",
    )

    # check
    check = subparsers.add_parser(
        "check", help="Show what a run would do without changing anything"
    )
    check.add_argument(
        "targets",
        nargs="*",
        help="Task ids to check (default: all)",
    )

    # list
    subparsers.add_parser("list", help="List tasks")

    # graph
    subparsers.add_parser("graph", help="Show task dependencies")

    return parser
