# tests/test_config_loader.py
from __future__ import annotations

import json
from pathlib import Path

import pytest

from setupforge.config.loader import load_project
from setupforge.config.types import (
    CheckConfig,
    ConfigError,
    UnsupportedConfigFormatError,
)


# -------------------------
# Helpers
# -------------------------


def write_text(path: Path, text: str) -> Path:
    path.write_text(text, encoding="utf-8")
    return path


def write_json(path: Path, obj: object) -> Path:
    path.write_text(json.dumps(obj), encoding="utf-8")
    return path


def load_yaml(tmp_path: Path, text: str):
    return load_project(write_text(tmp_path / "setupforge.yml", text))


# -------------------------
# Files and formats
# -------------------------


def test_missing_file_raises_config_error(tmp_path: Path) -> None:
    with pytest.raises(ConfigError):
        load_project(tmp_path / "missing.yml")


def test_unsupported_extension_raises_unsupported_format(tmp_path: Path) -> None:
    p = write_text(tmp_path / "profile.ini", "[tasks]\n")
    with pytest.raises(UnsupportedConfigFormatError):
        load_project(p)


@pytest.mark.parametrize(
    "name, content",
    [
        ("profile.yml", "tasks: [\n"),
        ("profile.toml", "tasks = {"),
        ("profile.json", '{"tasks": '),
        ("profile.yml", "- git\n"),
        ("profile.json", "null"),
        ("profile.yml", "settings: {}\n"),
        ("profile.yml", "tasks: {}\n"),
        ("profile.toml", "tasks = 123\n"),
        ("profile.yml", "tasks:\n  git:\n    command: apt-get install -y git\nhosts: [one]\n"),
    ],
)
def test_malformed_profile_raises(tmp_path: Path, name: str, content: str) -> None:
    with pytest.raises(ConfigError):
        load_project(write_text(tmp_path / name, content))


# -------------------------
# Tasks
# -------------------------


@pytest.mark.parametrize(
    "task",
    [
        "  1:\n    command: echo hi\n",
        '  "   ":\n    command: echo hi\n',
        "  git: []\n",
        "  git:\n    command: apt-get install -y git\n    packages: [git]\n",
        '  gh:\n    name: "  "\n    command: echo hi\n',
        "  git:\n    sudo: true\n",
        '  git:\n    command: "   "\n',
        "  git:\n    command: apt-get install -y git\n    deps: wget\n",
        '  git:\n    command: apt-get install -y git\n    deps: ["  "]\n',
        "  git:\n    command: apt-get install -y git\n    deps: [git]\n",
        "  git:\n    command: apt-get install -y git\n    env: [DEBIAN_FRONTEND]\n",
        "  git:\n    command: apt-get install -y git\n    env:\n      RETRIES: 3\n",
        '  git:\n    command: apt-get install -y git\n    working_dir: "  "\n',
    ],
)
def test_invalid_task_raises(tmp_path: Path, task: str) -> None:
    with pytest.raises(ConfigError):
        load_yaml(tmp_path, "tasks:\n" + task)


def test_duplicate_task_id_after_normalization_raises(tmp_path: Path) -> None:
    with pytest.raises(ConfigError):
        load_yaml(
            tmp_path,
            "tasks:\n"
            "  git:\n    command: apt-get install -y git\n"
            '  " git ":\n    command: apt-get install -y git\n',
        )


def test_declared_order_is_preserved(tmp_path: Path) -> None:
    proj = load_yaml(
        tmp_path,
        "tasks:\n"
        "  patch:\n    command: apt-get upgrade -y\n"
        "  wget:\n    command: apt-get install -y wget\n"
        "  curl:\n    command: apt-get install -y curl\n",
    )
    assert proj.tasks_ids() == ["patch", "wget", "curl"]
    assert [t.id for t in proj] == ["patch", "wget", "curl"]


def test_name_defaults_to_id_and_is_stripped(tmp_path: Path) -> None:
    proj = load_yaml(
        tmp_path,
        "tasks:\n"
        "  git:\n    command: echo hi\n"
        '  gh:\n    name: "  GitHub CLI "\n    command: echo hi\n',
    )
    assert proj.tasks["git"].name == "git"
    assert proj.tasks["gh"].name == "GitHub CLI"


def test_env_key_is_stripped_value_preserved(tmp_path: Path) -> None:
    proj = load_yaml(
        tmp_path,
        'tasks:\n  patch:\n    command: apt-get upgrade -y\n    env:\n      " DEBIAN_FRONTEND ": " noninteractive "\n',
    )
    assert proj.tasks["patch"].env == {"DEBIAN_FRONTEND": " noninteractive "}


# -------------------------
# Dependencies
# -------------------------


def test_unknown_dependency_raises(tmp_path: Path) -> None:
    with pytest.raises(ConfigError, match="unknown dependency"):
        load_yaml(tmp_path, "tasks:\n  gh:\n    command: echo gh\n    deps: [wget]\n")


def test_dependency_declared_later_raises(tmp_path: Path) -> None:
    with pytest.raises(ConfigError, match="declared after"):
        load_yaml(
            tmp_path,
            "tasks:\n"
            "  gemini:\n    command: echo g\n    deps: [nvm]\n"
            "  nvm:\n    command: echo n\n",
        )


def test_duplicate_deps_are_ignored_and_preserve_order(tmp_path: Path) -> None:
    proj = load_yaml(
        tmp_path,
        "tasks:\n"
        "  wget:\n    command: echo w\n"
        "  curl:\n    command: echo c\n"
        "  vscode:\n    command: echo v\n"
        '    deps: [wget, " wget ", curl, wget]\n',
    )
    assert proj.tasks["vscode"].deps == ["wget", "curl"]


# -------------------------
# Flags
# -------------------------


def test_flags_default_to_false(tmp_path: Path) -> None:
    task = load_yaml(tmp_path, "tasks:\n  git:\n    command: echo a\n").tasks["git"]
    assert task.prerequisite is False
    assert task.sudo is False


def test_flags_are_read(tmp_path: Path) -> None:
    proj = load_yaml(
        tmp_path,
        "tasks:\n  patch:\n    command: echo a\n    prerequisite: true\n    sudo: true\n",
    )
    task = proj.tasks["patch"]
    assert task.prerequisite is True
    assert task.sudo is True


@pytest.mark.parametrize("value", ['"yes"', "1", "[]"])
def test_flag_not_bool_raises(tmp_path: Path, value: str) -> None:
    with pytest.raises(ConfigError):
        load_yaml(tmp_path, f"tasks:\n  git:\n    command: echo a\n    sudo: {value}\n")


# -------------------------
# probe validation
# -------------------------


def test_command_probe_is_read(tmp_path: Path) -> None:
    p = write_text(
        tmp_path / "config.yaml",
        "tasks:\n  git:\n    command: echo a\n    probe: {command: ' git '}\n",
    )
    assert load_project(p).tasks["git"].probe == CheckConfig("command", "git")


def test_gsetting_probe_coerces_scalars_to_text(tmp_path: Path) -> None:
    p = write_text(
        tmp_path / "config.yaml",
        "tasks:\n"
        "  hide:\n"
        "    command: echo a\n"
        "    probe:\n"
        "      gsetting: {schema: org.example, key: intellihide, value: true}\n"
        "  scale:\n"
        "    command: echo a\n"
        "    probe:\n"
        "      gsetting: {schema: org.example, key: scaling-factor, value: 1}\n",
    )
    proj = load_project(p)
    assert proj.tasks["hide"].probe == CheckConfig(
        "gsetting", {"schema": "org.example", "key": "intellihide", "value": "true"}
    )
    assert proj.tasks["scale"].probe.value["value"] == "1"


@pytest.mark.parametrize(
    "probe",
    [
        "git",
        "{}",
        "{command: git, path: /usr/bin/git}",
        "{binary: git}",
        "{command: ''}",
        "{gsetting: {schema: a, key: b}}",
        "{gsetting: {schema: a, key: b, value: c, extra: d}}",
        "{gsetting: nope}",
    ],
)
def test_invalid_probe_raises(tmp_path: Path, probe: str) -> None:
    p = write_text(
        tmp_path / "config.yaml",
        f"tasks:\n  a:\n    command: echo a\n    probe: {probe}\n",
    )
    with pytest.raises(ConfigError):
        load_project(p)


# -------------------------
# guard validation
# -------------------------


def test_single_guard_string_is_accepted(tmp_path: Path) -> None:
    p = write_text(
        tmp_path / "config.yaml",
        "tasks:\n  code:\n    command: echo a\n    guard: gui\n",
    )
    assert load_project(p).tasks["code"].guards == [CheckConfig("gui", "")]


def test_guard_list_with_argument(tmp_path: Path) -> None:
    p = write_text(
        tmp_path / "config.yaml",
        "tasks:\n"
        "  dock:\n"
        "    command: echo a\n"
        "    guard: [gui, {gsettings-schema: org.gnome.shell.extensions.ubuntu-dock}]\n",
    )
    assert load_project(p).tasks["dock"].guards == [
        CheckConfig("gui", ""),
        CheckConfig("gsettings-schema", "org.gnome.shell.extensions.ubuntu-dock"),
    ]


@pytest.mark.parametrize(
    "guard",
    [
        "tpu",
        "[]",
        "gsettings-schema",
        "{gui: yes}",
        "{gsettings-schema: ''}",
        "[1]",
    ],
)
def test_invalid_guard_raises(tmp_path: Path, guard: str) -> None:
    p = write_text(
        tmp_path / "config.yaml",
        f"tasks:\n  a:\n    command: echo a\n    guard: {guard}\n",
    )
    with pytest.raises(ConfigError):
        load_project(p)


# -------------------------
# settings
# -------------------------


def test_settings_default(tmp_path: Path) -> None:
    p = write_text(tmp_path / "config.yaml", "tasks:\n  a:\n    command: echo a\n")
    settings = load_project(p).settings
    assert settings.keepalive_interval == 60.0
    assert settings.log_dir is None


def test_settings_are_read(tmp_path: Path) -> None:
    p = write_text(
        tmp_path / "config.yaml",
        "settings:\n  keepalive_interval: 30\n  log_dir: ' ~/logs '\n"
        "tasks:\n  a:\n    command: echo a\n",
    )
    settings = load_project(p).settings
    assert settings.keepalive_interval == 30.0
    assert settings.log_dir == "~/logs"


@pytest.mark.parametrize(
    "settings",
    [
        "[]",
        "{keepalive_interval: 0}",
        "{keepalive_interval: -5}",
        "{keepalive_interval: true}",
        "{keepalive_interval: soon}",
        "{log_dir: ''}",
        "{retries: 3}",
    ],
)
def test_invalid_settings_raise(tmp_path: Path, settings: str) -> None:
    p = write_text(
        tmp_path / "config.yaml",
        f"settings: {settings}\ntasks:\n  a:\n    command: echo a\n",
    )
    with pytest.raises(ConfigError):
        load_project(p)


# -------------------------
# Happy paths (all formats)
# -------------------------


def test_valid_yaml_loads(tmp_path: Path) -> None:
    p = write_text(
        tmp_path / "config.yaml",
        "tasks:\n"
        "  curl:\n"
        "    command: echo curl\n"
        "  uv:\n"
        "    name: uv\n"
        "    command: echo uv\n"
        "    probe: {command: uv}\n"
        "    deps: [curl]\n"
        "    env:\n"
        "      KEY: value\n",
    )
    proj = load_project(p)
    assert set(proj.tasks.keys()) == {"curl", "uv"}
    assert proj.tasks["uv"].deps == ["curl"]
    assert proj.tasks["uv"].env == {"KEY": "value"}


def test_valid_json_loads(tmp_path: Path) -> None:
    obj = {
        "tasks": {
            "a": {"command": "echo a"},
            "b": {"command": "echo b", "deps": ["a"], "guard": ["gui"]},
        }
    }
    p = write_json(tmp_path / "config.json", obj)
    proj = load_project(p)
    assert set(proj.tasks.keys()) == {"a", "b"}
    assert proj.tasks["b"].deps == ["a"]
    assert proj.tasks["b"].guards == [CheckConfig("gui", "")]


def test_valid_toml_loads(tmp_path: Path) -> None:
    # TOML tables: [tasks.<id>]
    p = write_text(
        tmp_path / "config.toml",
        "[settings]\n"
        "keepalive_interval = 15\n"
        "\n"
        "[tasks.a]\n"
        'command = "echo a"\n'
        "\n"
        "[tasks.b]\n"
        'command = "echo b"\n'
        'deps = ["a"]\n'
        'probe = { path = "~/.nvm/nvm.sh" }\n',
    )
    proj = load_project(p)
    assert proj.tasks_ids() == ["a", "b"]
    assert proj.tasks["b"].deps == ["a"]
    assert proj.tasks["b"].probe == CheckConfig("path", "~/.nvm/nvm.sh")
    assert proj.settings.keepalive_interval == 15.0


def test_bundled_profile_loads() -> None:
    profile = Path(__file__).parent.parent / "setupforge" / "profiles" / "ubuntu-workstation.yml"
    proj = load_project(profile)
    ids = proj.tasks_ids()
    assert ids[0] == "patch"
    assert proj.tasks["patch"].prerequisite is True
    assert proj.tasks["gemini_cli"].deps == ["nvm"]
    assert {"git", "gh", "uv", "podman", "vscode", "chrome", "dark_mode"} <= set(ids)
