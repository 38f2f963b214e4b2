from typing import Callable

from setupforge.checks import (
    CommandProbe,
    GSettingProbe,
    GSettingsSchemaGuard,
    Guard,
    GuiSessionGuard,
    NotContainerGuard,
    NvidiaGpuGuard,
    PathProbe,
    Probe,
    ShellProbe,
)
from setupforge.harness import ShellAction, Task

from .types import CheckConfig, ProjectConfig, TaskConfig

PROBE_BUILDERS: dict[str, Callable[[CheckConfig], Probe]] = {
    "command": lambda check: CommandProbe(str(check.value)),
    "path": lambda check: PathProbe(str(check.value)),
    "shell": lambda check: ShellProbe(str(check.value)),
    "gsetting": lambda check: GSettingProbe(**dict(check.value)),
}

GUARD_BUILDERS: dict[str, Callable[[CheckConfig], Guard]] = {
    "gui": lambda check: GuiSessionGuard(),
    "nvidia-gpu": lambda check: NvidiaGpuGuard(),
    "not-container": lambda check: NotContainerGuard(),
    "gsettings-schema": lambda check: GSettingsSchemaGuard(str(check.value)),
}


def build_task(config: TaskConfig) -> Task:
    probe = PROBE_BUILDERS[config.probe.kind](config.probe) if config.probe else None
    guards = tuple(GUARD_BUILDERS[guard.kind](guard) for guard in config.guards)

    return Task(
        id=config.id,
        name=config.name,
        action=ShellAction(config.command, env=dict(config.env), working_dir=config.working_dir),
        probe=probe,
        guards=guards,
        deps=tuple(config.deps),
        prerequisite=config.prerequisite,
        sudo=config.sudo,
    )


def build_tasks(project: ProjectConfig) -> list[Task]:
    return [build_task(config) for config in project]
