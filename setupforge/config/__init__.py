from .build import build_task, build_tasks
from .loader import load_project
from .types import ConfigError, ProjectConfig, Settings, TaskConfig

__all__ = [
    "load_project",
    "build_task",
    "build_tasks",
    "ProjectConfig",
    "TaskConfig",
    "Settings",
    "ConfigError",
]
