"""Locating and reading resolver YAML configuration.

Lookup order: an explicit path, then the file named by `RESOLVERKIT_CONFIG`,
then `<project root>/config/config.yaml` with `config.local.yaml` from the same
directory merged over it.
"""

from __future__ import annotations

import os
from collections.abc import Mapping
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Literal

import yaml

DEFAULT_ENV_VAR = "RESOLVERKIT_CONFIG"
DEFAULT_CONFIG_DIR = "config"
BASE_CONFIG_NAME = "config.yaml"
LOCAL_CONFIG_NAME = "config.local.yaml"
ROOT_MARKERS: tuple[str, ...] = ("pyproject.toml", ".git")

ConfigMode = Literal["explicit", "env", "base", "base+local"]


@dataclass(frozen=True)
class ConfigSource:
    """Where a loaded configuration came from."""

    mode: ConfigMode
    paths: tuple[str, ...]
    env_var: str | None = None
    project_root: str | None = None


def find_project_root(start: str | os.PathLike[str] | None = None) -> Path:
    here = Path(start or os.getcwd()).resolve()
    if here.is_file():
        here = here.parent

    for candidate in (here, *here.parents):
        if any((candidate / marker).exists() for marker in ROOT_MARKERS):
            return candidate
    raise FileNotFoundError(f"No project root above {here} (looked for {', '.join(ROOT_MARKERS)})")


def read_yaml_mapping(path: str | os.PathLike[str]) -> dict[str, Any]:
    text = Path(path).read_text(encoding="utf-8")
    try:
        payload = yaml.safe_load(text)
    except yaml.YAMLError as exc:
        raise ValueError(f"Invalid YAML in {path}: {exc}") from exc

    if payload is None:
        return {}
    if not isinstance(payload, Mapping):
        raise ValueError(f"{path} must contain a YAML mapping (got {type(payload).__name__})")
    return dict(payload)


def merge_overlay(base: Mapping[str, Any], overlay: Mapping[str, Any], *, path: str = "") -> dict[str, Any]:
    """Merge `overlay` onto `base` key by key.

    Nested mappings merge recursively; any other overlay value replaces the base
    value. Swapping a mapping for a non-mapping (or back) is rejected, except
    that `null` on either side always replaces.
    """

    merged = dict(base)
    for key, value in overlay.items():
        key_path = f"{path}.{key}" if path else str(key)
        current = merged.get(key)
        if isinstance(current, Mapping) and isinstance(value, Mapping):
            merged[key] = merge_overlay(current, value, path=key_path)
            continue
        if current is not None and value is not None and isinstance(current, Mapping) != isinstance(value, Mapping):
            raise ValueError(
                f"Cannot overlay {type(value).__name__} onto {type(current).__name__} at {key_path}"
            )
        merged[key] = value
    return merged


def load_config(
    path: str | os.PathLike[str] | None = None,
    *,
    env_var: str | None = DEFAULT_ENV_VAR,
    config_dir: str | os.PathLike[str] = DEFAULT_CONFIG_DIR,
    start_dir: str | os.PathLike[str] | None = None,
) -> tuple[dict[str, Any], ConfigSource]:
    """Read the raw configuration mapping and report where it came from.

    A relative `config_dir` is resolved against the project root found from
    `start_dir` (or the working directory).
    """

    if path is not None:
        chosen, mode = str(path).strip(), "explicit"
    else:
        chosen, mode = (os.environ.get(env_var, "").strip() if env_var else ""), "env"

    if chosen:
        resolved = Path(os.path.expandvars(chosen)).expanduser().resolve()
        return read_yaml_mapping(resolved), ConfigSource(mode=mode, paths=(str(resolved),), env_var=env_var)

    directory = Path(config_dir)
    project_root: Path | None = None
    if not directory.is_absolute():
        project_root = find_project_root(start_dir)
        directory = project_root / directory

    base_path = directory / BASE_CONFIG_NAME
    if not base_path.is_file():
        raise FileNotFoundError(f"Missing base config file: {base_path}")

    cfg = read_yaml_mapping(base_path)
    paths = [str(base_path.resolve())]
    local_path = directory / LOCAL_CONFIG_NAME
    if local_path.is_file():
        cfg = merge_overlay(cfg, read_yaml_mapping(local_path))
        paths.append(str(local_path.resolve()))

    source = ConfigSource(
        mode="base+local" if len(paths) > 1 else "base",
        paths=tuple(paths),
        env_var=env_var,
        project_root=str(project_root) if project_root is not None else None,
    )
    return cfg, source
