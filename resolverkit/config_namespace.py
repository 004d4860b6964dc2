"""Strict configuration reader with consumed-keys enforcement."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any

_MISSING = object()


def _join_path(parent: str, key: str) -> str:
    if not parent:
        return key
    return f"{parent}.{key}"


@dataclass
class ConfigNamespace:
    data: Mapping[str, Any]
    path: str
    _consumed: set[str] = field(default_factory=set, init=False, repr=False)
    _children: dict[str, "ConfigNamespace"] = field(default_factory=dict, init=False, repr=False)

    def consumed_keys(self) -> tuple[str, ...]:
        return tuple(sorted(self._consumed))

    def unconsumed_keys(self) -> tuple[str, ...]:
        return tuple(sorted(str(k) for k in self.data.keys() if k not in self._consumed))

    def unknown_key_paths(self) -> tuple[str, ...]:
        paths = [_join_path(self.path, key) for key in self.unconsumed_keys()]
        for child in self._children.values():
            paths.extend(child.unknown_key_paths())
        return tuple(paths)

    def assert_consumed(self) -> None:
        unknown = list(self.unconsumed_keys())
        if unknown:
            path = self.path or "<root>"
            consumed = ", ".join(self.consumed_keys()) or "<none>"
            raise ValueError(
                f"Unknown config keys under {path}: {', '.join(unknown)} (consumed: {consumed})"
            )
        for child in self._children.values():
            child.assert_consumed()

    def _get_raw(self, key: str, *, default: Any) -> Any:
        if not isinstance(key, str) or not key.strip():
            raise TypeError("ConfigNamespace key must be a non-empty string")
        normalized = key.strip()
        if normalized in self._children:
            raise ValueError(
                f"{_join_path(self.path, normalized)} already accessed as a nested namespace"
            )

        self._consumed.add(normalized)
        if normalized not in self.data:
            if default is _MISSING:
                raise ValueError(f"Missing required config key: {_join_path(self.path, normalized)}")
            return default
        return self.data.get(normalized)

    def namespace(self, key: str, *, default: Mapping[str, Any] | None | object = _MISSING) -> "ConfigNamespace":
        normalized = (key or "").strip()
        if not normalized:
            raise TypeError("ConfigNamespace key must be a non-empty string")
        if normalized in self._children:
            return self._children[normalized]

        child_path = _join_path(self.path, normalized)
        raw = self.data.get(normalized)
        self._consumed.add(normalized)

        if raw is None:
            if default is _MISSING:
                raise ValueError(f"Missing required config namespace: {child_path}")
            if default is not None and not isinstance(default, Mapping):
                raise TypeError(f"default for {child_path} must be a mapping or None")
            raw = dict(default) if default is not None else {}

        if not isinstance(raw, Mapping):
            raise TypeError(f"{child_path} must be a mapping (type={type(raw).__name__})")

        child = ConfigNamespace(dict(raw), path=child_path)
        self._children[normalized] = child
        return child

    def get_bool(self, key: str, *, default: bool | object = _MISSING) -> bool:
        if default is not _MISSING and not isinstance(default, bool):
            raise TypeError(f"{_join_path(self.path, key.strip())} default must be a boolean")

        value = self._get_raw(key, default=default)
        if not isinstance(value, bool):
            raise TypeError(
                f"{_join_path(self.path, key.strip())} must be a boolean (type={type(value).__name__})"
            )
        return value

    def get_str(
        self,
        key: str,
        *,
        default: str | None | object = _MISSING,
        allow_empty: bool = False,
    ) -> str | None:
        if default is not _MISSING and default is not None and not isinstance(default, str):
            raise TypeError(f"{_join_path(self.path, key.strip())} default must be a string or None")

        raw = self._get_raw(key, default=default)
        if raw is None:
            return None
        if not isinstance(raw, str):
            raise TypeError(
                f"{_join_path(self.path, key.strip())} must be a string (type={type(raw).__name__})"
            )
        value = raw.strip()
        if not value and not allow_empty:
            raise ValueError(f"{_join_path(self.path, key.strip())} cannot be empty")
        return value

    def get_list_str(
        self,
        key: str,
        *,
        default: list[str] | tuple[str, ...] | object = _MISSING,
        allow_empty: bool = False,
    ) -> list[str]:
        if default is not _MISSING and not isinstance(default, (list, tuple)):
            raise TypeError(f"{_join_path(self.path, key.strip())} default must be a list[str]")

        raw = self._get_raw(key, default=default)
        if raw is None:
            raw = []
        if not isinstance(raw, (list, tuple)):
            raise TypeError(
                f"{_join_path(self.path, key.strip())} must be a list[str] (type={type(raw).__name__})"
            )

        items: list[str] = []
        for idx, item in enumerate(raw):
            if not isinstance(item, str):
                raise TypeError(
                    f"{_join_path(self.path, key.strip())}[{idx}] must be a string (type={type(item).__name__})"
                )
            trimmed = item.strip()
            if not trimmed:
                raise ValueError(f"{_join_path(self.path, key.strip())}[{idx}] cannot be empty")
            items.append(trimmed)

        if not items and not allow_empty:
            raise ValueError(f"{_join_path(self.path, key.strip())} cannot be empty")
        return items
