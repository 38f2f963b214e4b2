import json
import tomllib
from pathlib import Path
from typing import Any, Mapping

import yaml

from .types import (
    CheckConfig,
    ConfigError,
    ProjectConfig,
    Settings,
    TaskConfig,
    UnsupportedConfigFormatError,
)

PROBE_KINDS = ("command", "path", "shell", "gsetting")
GUARD_KINDS = ("gui", "nvidia-gpu", "not-container", "gsettings-schema")
GSETTING_FIELDS = ("schema", "key", "value")

# Guards that take an argument are written as single-key mappings.
_GUARDS_WITH_ARG = {"gsettings-schema"}


def load_project(path: str | Path) -> ProjectConfig:
    pure_path = Path(path).expanduser().resolve()

    if not pure_path.exists():
        raise ConfigError(f"Config file not found: {pure_path}")

    if not pure_path.is_file():
        raise ConfigError(f"Config path is not a file: {pure_path}")

    fmt = _detect_format(pure_path)
    raw_file = _parse_file(pure_path, fmt)
    project = _build_project_config(raw_file)
    return project


def _detect_format(path: Path) -> str:
    fmt = path.suffix
    match fmt:
        case ".yaml" | ".yml":
            return "yaml"
        case ".toml":
            return "toml"
        case ".json":
            return "json"
        case _:
            raise UnsupportedConfigFormatError(
                f"Non supported file extension: {fmt}\n Expected format: .yml/.yaml, .toml, .json"
            )


def _parse_file(path: Path, fmt: str) -> Mapping[str, Any]:
    match fmt:
        case "yaml":
            return _parse_yaml(path)
        case "toml":
            return _parse_toml(path)
        case "json":
            return _parse_json(path)
        case _:
            raise AssertionError("Unreachable")


def _parse_yaml(path: Path) -> Mapping[str, Any]:
    try:
        raw_file = yaml.safe_load(path.read_text(encoding="utf-8"))
    except yaml.YAMLError as exc:
        raise ConfigError(f"{path}: invalid YAML") from exc

    if not isinstance(raw_file, Mapping):
        raise ConfigError(
            f"{path}: YAML parsed successfully but top-level value is not an object: {type(raw_file)}"
        )

    return raw_file


def _parse_toml(path: Path) -> Mapping[str, Any]:
    try:
        raw_file = tomllib.loads(path.read_text(encoding="utf-8"))
    except tomllib.TOMLDecodeError as exc:
        raise ConfigError(f"{path}: invalid TOML") from exc

    if not isinstance(raw_file, Mapping):
        raise ConfigError(
            f"{path}: TOML parsed successfully but top-level value is not an object: {type(raw_file)}"
        )

    return raw_file


def _parse_json(path: Path) -> Mapping[str, Any]:
    try:
        raw_file = json.loads(path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as exc:
        raise ConfigError(f"{path}: invalid JSON") from exc

    if not isinstance(raw_file, Mapping):
        raise ConfigError(
            f"{path}: JSON parsed successfully but top-level value is not an object: {type(raw_file)}"
        )

    return raw_file


def _build_project_config(raw: Mapping[str, Any]) -> ProjectConfig:
    tasks: dict[str, TaskConfig] = {}

    for key in raw.keys():
        if key not in ("tasks", "settings"):
            raise ConfigError(f"Unknown top-level field: {key}")

    if "tasks" not in raw:
        raise ConfigError("Missing 'tasks' field")

    if not isinstance(raw["tasks"], Mapping):
        raise ConfigError(f"'tasks' must be a mapping, got {type(raw['tasks'])}")

    if len(raw["tasks"]) < 1:
        raise ConfigError("There must be at least one task in the config file")

    declared = {tid.strip() for tid in raw["tasks"].keys() if isinstance(tid, str)}

    for task_id, fields in raw["tasks"].items():
        if not isinstance(fields, Mapping):
            raise ConfigError(f"{task_id} must be a mapping")

        if not isinstance(task_id, str):
            raise ConfigError(f"Task id must be a string, got {type(task_id)}")

        task_id_norm = task_id.strip()

        if len(task_id_norm) < 1:
            raise ConfigError("A task id can't be empty")

        if task_id_norm in tasks:
            raise ConfigError(f"Duplicate task id after normalization: {task_id_norm}")

        task_config = _build_task_config(task_id_norm, fields)

        # Tasks run in declared order, so a dependency must already be known.
        for dep in task_config.deps:
            if dep not in tasks:
                if dep in declared:
                    raise ConfigError(
                        f"Task '{task_id_norm}' depends on '{dep}' which is declared after it"
                    )
                raise ConfigError(f"Task '{task_id_norm}' has unknown dependency '{dep}'")

        tasks[task_id_norm] = task_config

    settings = _build_settings(raw.get("settings"))
    return ProjectConfig(tasks=tasks, settings=settings)


def _build_settings(raw: Any) -> Settings:
    settings = Settings()

    if raw is None:
        return settings

    if not isinstance(raw, Mapping):
        raise ConfigError(f"'settings' must be a mapping, got {type(raw)}")

    for field in raw.keys():
        if field not in ("keepalive_interval", "log_dir"):
            raise ConfigError(f"settings: Can't process: {field}")

    if "keepalive_interval" in raw:
        interval = raw["keepalive_interval"]
        # bool is an int subclass
        if isinstance(interval, bool) or not isinstance(interval, (int, float)):
            raise ConfigError("settings: keepalive_interval should be a number")
        if interval <= 0:
            raise ConfigError("settings: keepalive_interval must be positive")
        settings.keepalive_interval = float(interval)

    if "log_dir" in raw:
        if not isinstance(raw["log_dir"], str) or len(raw["log_dir"].strip()) < 1:
            raise ConfigError("settings: log_dir should be a non-empty string")
        settings.log_dir = raw["log_dir"].strip()

    return settings


def _build_task_config(task_id: str, fields: Mapping[str, Any]) -> TaskConfig:
    keys = {
        "name",
        "command",
        "probe",
        "guard",
        "deps",
        "env",
        "working_dir",
        "prerequisite",
        "sudo",
    }
    deps = []
    seen = set()
    env = {}
    working_dir = None
    name = task_id

    for field in fields.keys():
        if field not in keys:
            raise ConfigError(f"{task_id}: Can't process: {field}")

    if "command" not in fields:
        raise ConfigError(f"{task_id}: missing 'command'")

    if not isinstance(fields["command"], str):
        raise ConfigError(f"{task_id}: The command should be a string")

    if len(fields["command"].strip()) < 1:
        raise ConfigError(f"{task_id}: Command missing")

    command = fields["command"].strip()

    if "name" in fields:
        if not isinstance(fields["name"], str) or len(fields["name"].strip()) < 1:
            raise ConfigError(f"{task_id}: The name should be a non-empty string")
        name = fields["name"].strip()

    probe = None
    if "probe" in fields:
        probe = _build_probe(task_id, fields["probe"])

    guards = []
    if "guard" in fields:
        guards = _build_guards(task_id, fields["guard"])

    if "deps" in fields:
        if not isinstance(fields["deps"], list):
            raise ConfigError(f"{task_id}: Dependencies should be in a list.")

        for item in fields["deps"]:
            if not isinstance(item, str):
                raise ConfigError(
                    f"{task_id}: {item} should be a string in the dependency list"
                )

            dep = item.strip()

            if len(dep) < 1:
                raise ConfigError(f"{task_id}: A dependency is empty")

            if dep == task_id:
                raise ConfigError(f"{task_id}: A task cannot be self dependent")

            # Allows to ignore duplicates dependency
            if dep in seen:
                continue

            deps.append(dep)
            seen.add(dep)

    if "env" in fields:
        if not isinstance(fields["env"], Mapping):
            raise ConfigError(f"{task_id}: Env should be a mapping")

        for key, item in fields["env"].items():
            if not isinstance(key, str):
                raise ConfigError(f"{task_id}: {key} should be a string")

            if len(key.strip()) < 1:
                raise ConfigError(f"{task_id}: A key can't be empty")

            if not isinstance(item, str):
                raise ConfigError(f"{task_id}: {item} should be a string")

            env[key.strip()] = item

    if "working_dir" in fields:
        if not isinstance(fields["working_dir"], str):
            raise ConfigError(f"{task_id}: The working_dir should be a string")

        if len(fields["working_dir"].strip()) < 1:
            raise ConfigError(
                f"{task_id}: Please provide a string or remove this field"
            )

        working_dir = fields["working_dir"].strip()

    prerequisite = _build_flag(task_id, fields, "prerequisite")
    sudo = _build_flag(task_id, fields, "sudo")

    return TaskConfig(
        id=task_id,
        name=name,
        command=command,
        probe=probe,
        guards=guards,
        deps=deps,
        env=env,
        working_dir=working_dir,
        prerequisite=prerequisite,
        sudo=sudo,
    )


def _build_flag(task_id: str, fields: Mapping[str, Any], key: str) -> bool:
    if key not in fields:
        return False

    if not isinstance(fields[key], bool):
        raise ConfigError(f"{task_id}: '{key}' should be true or false")

    return fields[key]


def _build_probe(task_id: str, raw: Any) -> CheckConfig:
    if not isinstance(raw, Mapping) or len(raw) != 1:
        raise ConfigError(
            f"{task_id}: probe should be a mapping with exactly one of: {', '.join(PROBE_KINDS)}"
        )

    kind, value = next(iter(raw.items()))

    if kind not in PROBE_KINDS:
        raise ConfigError(f"{task_id}: Unknown probe kind: {kind}")

    if kind == "gsetting":
        return CheckConfig(kind, _build_gsetting(task_id, value))

    if not isinstance(value, str) or len(value.strip()) < 1:
        raise ConfigError(f"{task_id}: probe '{kind}' needs a non-empty string")

    return CheckConfig(kind, value.strip())


def _build_gsetting(task_id: str, raw: Any) -> dict[str, str]:
    if not isinstance(raw, Mapping):
        raise ConfigError(f"{task_id}: probe 'gsetting' should be a mapping")

    for field in raw.keys():
        if field not in GSETTING_FIELDS:
            raise ConfigError(f"{task_id}: gsetting: Can't process: {field}")

    out = {}
    for field in GSETTING_FIELDS:
        if field not in raw:
            raise ConfigError(f"{task_id}: gsetting: missing '{field}'")
        value = raw[field]
        # YAML turns `true` and `1` into native types; gsettings wants text
        if isinstance(value, bool):
            value = "true" if value else "false"
        elif isinstance(value, (int, float)):
            value = str(value)
        if not isinstance(value, str) or len(value.strip()) < 1:
            raise ConfigError(f"{task_id}: gsetting: '{field}' should be a non-empty string")
        out[field] = value.strip()

    return out


def _build_guards(task_id: str, raw: Any) -> list[CheckConfig]:
    items = raw if isinstance(raw, list) else [raw]

    if len(items) < 1:
        raise ConfigError(f"{task_id}: guard list is empty")

    guards = []
    for item in items:
        if isinstance(item, str):
            kind = item.strip()
            if kind not in GUARD_KINDS:
                raise ConfigError(f"{task_id}: Unknown guard: {kind}")
            if kind in _GUARDS_WITH_ARG:
                raise ConfigError(f"{task_id}: guard '{kind}' needs an argument")
            guards.append(CheckConfig(kind, ""))
            continue

        if isinstance(item, Mapping) and len(item) == 1:
            kind, value = next(iter(item.items()))
            if kind not in _GUARDS_WITH_ARG:
                raise ConfigError(f"{task_id}: Unknown guard: {kind}")
            if not isinstance(value, str) or len(value.strip()) < 1:
                raise ConfigError(f"{task_id}: guard '{kind}' needs a non-empty string")
            guards.append(CheckConfig(kind, value.strip()))
            continue

        raise ConfigError(f"{task_id}: guard entries should be names or single-key mappings")

    return guards
