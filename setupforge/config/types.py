from dataclasses import dataclass, field

DEFAULT_KEEPALIVE_INTERVAL = 60.0


@dataclass
class CheckConfig:
    kind: str
    value: str | dict[str, str]


@dataclass
class TaskConfig:
    id: str
    name: str
    command: str
    probe: CheckConfig | None = None
    guards: list[CheckConfig] = field(default_factory=list)
    deps: list[str] = field(default_factory=list)
    env: dict[str, str] = field(default_factory=dict)
    working_dir: str | None = None
    prerequisite: bool = False
    sudo: bool = False


@dataclass
class Settings:
    keepalive_interval: float = DEFAULT_KEEPALIVE_INTERVAL
    log_dir: str | None = None


@dataclass
class ProjectConfig:
    tasks: dict[str, TaskConfig]
    settings: Settings = field(default_factory=Settings)

    def __iter__(self):
        # Declared order is the evaluation order.
        yield from self.tasks.values()

    def __len__(self):
        return len(self.tasks)

    def has_task(self, id: str) -> bool:
        return id in self.tasks

    def get_task(self, id: str) -> TaskConfig:
        if not self.has_task(id):
            raise KeyError(id)

        return self.tasks[id]

    def tasks_ids(self) -> list[str]:
        return list(self.tasks.keys())

    def select(self, ids: list[str]) -> "ProjectConfig":
        """Return a project holding only `ids`, still in declared order."""
        for tid in ids:
            if not self.has_task(tid):
                raise KeyError(tid)

        wanted = set(ids)
        tasks = {tid: t for tid, t in self.tasks.items() if tid in wanted}
        return ProjectConfig(tasks=tasks, settings=self.settings)


class ConfigError(Exception):
    def __init__(self, *args: object) -> None:
        super().__init__(*args)


class UnsupportedConfigFormatError(ConfigError):
    def __init__(self, *args: object) -> None:
        super().__init__(*args)
