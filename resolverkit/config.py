from __future__ import annotations

import logging
import os
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

from resolverkit.config_io import DEFAULT_ENV_VAR, load_config
from resolverkit.config_namespace import ConfigNamespace
from resolverkit.registry import SLOTS, SlotMarkers

LOG_LEVELS: tuple[str, ...] = ("DEBUG", "INFO", "WARNING", "ERROR")

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ResolverConfig:
    name: str | None = None
    strict: bool = True
    plugin_packages: tuple[str, ...] = ()
    markers: SlotMarkers = SlotMarkers()
    log_level: str = "INFO"
    log_dir: str | None = None

    @staticmethod
    def from_dict(cfg: Mapping[str, Any]) -> tuple["ResolverConfig", list[str]]:
        """
        Parse and validate the `resolver` section, returning (ResolverConfig, warnings).

        Other top-level sections are left to the application. Unknown keys under
        `resolver` raise unless `resolver.strict` is false, in which case they are
        reported as warnings.

        Raises:
            TypeError/ValueError: if keys are missing, mistyped or invalid.
        """

        if not isinstance(cfg, Mapping):
            raise ValueError("Config must be a mapping")

        root = ConfigNamespace(cfg, path="")
        section = root.namespace("resolver", default=None)

        name = section.get_str("name", default=None)
        strict = section.get_bool("strict", default=True)

        discovery = section.namespace("discovery", default=None)
        packages = discovery.get_list_str("packages", default=[], allow_empty=True)

        markers_ns = discovery.namespace("markers", default=None)
        marker_values = {slot: markers_ns.get_str(slot, default=None) for slot in SLOTS}
        markers = SlotMarkers(**marker_values)

        logging_ns = section.namespace("logging", default=None)
        raw_level = logging_ns.get_str("level", default="INFO")
        log_level = (raw_level or "INFO").upper()
        if log_level not in LOG_LEVELS:
            raise ValueError(
                f"resolver.logging.level must be one of: {', '.join(LOG_LEVELS)} (got {raw_level!r})"
            )
        log_dir = logging_ns.get_str("log_dir", default=None)

        warnings: list[str] = []
        if strict:
            section.assert_consumed()
        else:
            for path in section.unknown_key_paths():
                warnings.append(f"Unknown config key ignored: {path}")

        return (
            ResolverConfig(
                name=name,
                strict=strict,
                plugin_packages=tuple(packages),
                markers=markers,
                log_level=log_level,
                log_dir=log_dir,
            ),
            warnings,
        )

    @classmethod
    def load(
        cls,
        path: str | os.PathLike[str] | None = None,
        *,
        env_var: str | None = DEFAULT_ENV_VAR,
        start_dir: str | os.PathLike[str] | None = None,
    ) -> tuple["ResolverConfig", list[str]]:
        """Load the YAML configuration and parse its `resolver` section.

        Warnings from lenient parsing are logged as well as returned.
        """

        raw, source = load_config(path, env_var=env_var, start_dir=start_dir)
        logger.info("Loaded resolver config (%s): %s", source.mode, ", ".join(source.paths))
        config, warnings = cls.from_dict(raw)
        for warning in warnings:
            logger.warning("%s", warning)
        return config, warnings
