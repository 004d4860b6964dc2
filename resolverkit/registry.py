"""Plugin registry (four slots) and marker-based discovery.

Plugins self-register against a marker with `register_plugin("<marker>")`. A
resolver configured with a marker for a slot asks the catalog for every type
registered under that marker, builds each with its no-argument constructor and
adds the instance to the slot. Catalog modules are loaded with
`PluginCatalog.import_plugins(package)`, mirroring the `discover()` helpers used
for other plugin namespaces. The decorator also tags the class with its markers,
so any catalog that imports the module adopts it, not only the one the decorator
wrote to.
"""

from __future__ import annotations

import importlib
import logging
import pkgutil
from collections.abc import Mapping
from dataclasses import dataclass
from types import ModuleType
from typing import Any, Callable, Literal, Protocol, TypeAlias, TypeVar

from resolverkit.capabilities import contributor_name, contributor_source
from resolverkit.errors import DiscoveryFault
from resolverkit.ordering import priority_of

Slot: TypeAlias = Literal["pre_check", "pre_activity", "post_check", "post_activity"]
SLOTS: tuple[str, ...] = ("pre_check", "pre_activity", "post_check", "post_activity")

C = TypeVar("C", bound=type)

_MARKERS_ATTR = "_resolverkit_plugin_markers"

logger = logging.getLogger(__name__)


def _normalize_slot(slot: str) -> str:
    key = (slot or "").strip() if isinstance(slot, str) else ""
    if key not in SLOTS:
        raise ValueError(f"Unknown registry slot: {slot!r} (available: {', '.join(SLOTS)})")
    return key


class PluginRegistry:
    """Checks and activities for each slot, deduplicated by identity."""

    def __init__(self) -> None:
        # Keyed by id(); the stored instance keeps the id valid.
        self._slots: dict[str, dict[int, Any]] = {slot: {} for slot in SLOTS}
        self._frozen = False

    @property
    def frozen(self) -> bool:
        return self._frozen

    def freeze(self) -> "PluginRegistry":
        self._frozen = True
        return self

    def copy(self) -> "PluginRegistry":
        clone = PluginRegistry()
        for slot, entries in self._slots.items():
            clone._slots[slot] = dict(entries)
        return clone

    def register(self, slot: str, item: Any) -> bool:
        key = _normalize_slot(slot)
        if self._frozen:
            raise RuntimeError(f"Cannot register {contributor_name(item)} in {key}: registry is frozen")
        if item is None:
            raise TypeError(f"Cannot register None in {key}")

        method = "execute" if key.endswith("_check") else "perform"
        if not callable(getattr(item, method, None)):
            raise TypeError(
                f"{contributor_name(item)} cannot be registered in {key}: missing callable {method}()"
            )
        priority_of(item)

        entries = self._slots[key]
        if id(item) in entries:
            return False
        entries[id(item)] = item
        return True

    def add_pre_check(self, check: Any) -> "PluginRegistry":
        self.register("pre_check", check)
        return self

    def add_post_check(self, check: Any) -> "PluginRegistry":
        self.register("post_check", check)
        return self

    def add_pre_activity(self, activity: Any) -> "PluginRegistry":
        self.register("pre_activity", activity)
        return self

    def add_post_activity(self, activity: Any) -> "PluginRegistry":
        self.register("post_activity", activity)
        return self

    def items(self, slot: str) -> tuple[Any, ...]:
        return tuple(self._slots[_normalize_slot(slot)].values())

    def __len__(self) -> int:
        return sum(len(entries) for entries in self._slots.values())

    def describe(self) -> tuple[dict[str, Any], ...]:
        rows: list[dict[str, Any]] = []
        for slot in SLOTS:
            for item in self._slots[slot].values():
                rows.append(
                    {
                        "slot": slot,
                        "name": contributor_name(item),
                        "order": priority_of(item),
                        "source": contributor_source(item),
                    }
                )
        return tuple(rows)


@dataclass(frozen=True)
class SlotMarkers:
    pre_check: str | None = None
    pre_activity: str | None = None
    post_check: str | None = None
    post_activity: str | None = None

    def __post_init__(self) -> None:
        for slot in SLOTS:
            value = getattr(self, slot)
            if value is None:
                continue
            if not isinstance(value, str) or not value.strip():
                raise TypeError(f"SlotMarkers.{slot} must be a non-empty string or None")
            object.__setattr__(self, slot, value.strip())

    @classmethod
    def from_mapping(cls, raw: Mapping[str, Any] | None) -> "SlotMarkers":
        if raw is None:
            return cls()
        if not isinstance(raw, Mapping):
            raise TypeError(f"Slot markers must be a mapping (type={type(raw).__name__})")
        unknown = sorted(str(key) for key in raw.keys() if key not in SLOTS)
        if unknown:
            raise ValueError(
                f"Unknown slot marker key(s): {', '.join(unknown)} (available: {', '.join(SLOTS)})"
            )
        return cls(**{str(key): value for key, value in raw.items()})

    def for_slot(self, slot: str) -> str | None:
        return getattr(self, _normalize_slot(slot))

    def is_empty(self) -> bool:
        return all(getattr(self, slot) is None for slot in SLOTS)


class ComponentCatalog(Protocol):
    def types_for(self, marker: str) -> tuple[type, ...]:
        """Return the concrete types registered under `marker`."""


class PluginCatalog:
    """Marker -> plugin types, in registration order."""

    def __init__(self) -> None:
        self._by_marker: dict[str, list[type]] = {}

    def register(self, marker: str) -> Callable[[C], C]:
        if not isinstance(marker, str) or not marker.strip():
            raise TypeError("Plugin marker must be a non-empty string")
        key = marker.strip()

        def decorator(cls: C) -> C:
            if not isinstance(cls, type):
                raise TypeError(f"Only classes can be registered as plugins (got {cls!r})")
            registered = self._by_marker.setdefault(key, [])
            if cls not in registered:
                registered.append(cls)
            tagged = cls.__dict__.get(_MARKERS_ATTR, ())
            if key not in tagged:
                setattr(cls, _MARKERS_ATTR, (*tagged, key))
            return cls

        return decorator

    def types_for(self, marker: str) -> tuple[type, ...]:
        return tuple(self._by_marker.get((marker or "").strip(), ()))

    def markers(self) -> tuple[str, ...]:
        return tuple(sorted(self._by_marker.keys()))

    def import_plugins(self, package: str | ModuleType) -> tuple[str, ...]:
        """Import every module under `package` and adopt its decorated plugins.

        Plugin classes defined in those modules are registered in this catalog
        under the markers they were decorated with, even when the modules were
        already imported (and registered elsewhere) earlier in the process.
        """

        module = importlib.import_module(package) if isinstance(package, str) else package
        modules = [module]
        path = getattr(module, "__path__", None)
        if path is not None:
            for info in pkgutil.iter_modules(path, prefix=module.__name__ + "."):
                modules.append(importlib.import_module(info.name))

        for loaded in modules:
            self._adopt(loaded)
        imported = tuple(loaded.__name__ for loaded in modules)
        logger.debug("Imported plugin modules: %s", ", ".join(imported))
        return imported

    def _adopt(self, module: ModuleType) -> None:
        for value in list(vars(module).values()):
            if not isinstance(value, type) or value.__module__ != module.__name__:
                continue
            for marker in value.__dict__.get(_MARKERS_ATTR, ()):
                self.register(marker)(value)


DEFAULT_CATALOG = PluginCatalog()


def register_plugin(marker: str) -> Callable[[C], C]:
    """Class decorator registering a plugin type in the default catalog."""

    return DEFAULT_CATALOG.register(marker)


def populate_from_catalog(
    registry: PluginRegistry,
    markers: SlotMarkers,
    catalog: ComponentCatalog,
) -> int:
    """Instantiate and register every catalog type for each marked slot.

    Returns the number of newly registered items. Construction failures raise
    `DiscoveryFault`. A marker with no registered types is logged as a warning.
    """

    added = 0
    for slot in SLOTS:
        marker = markers.for_slot(slot)
        if marker is None:
            continue
        types = catalog.types_for(marker)
        if not types:
            logger.warning("No plugins registered for %s marker %r", slot, marker)
            continue
        logger.debug("Discovered %d plugin type(s) for %s (marker=%s)", len(types), slot, marker)
        for plugin_type in types:
            component = f"{plugin_type.__module__}.{plugin_type.__qualname__}"
            try:
                instance = plugin_type()
            except Exception as exc:
                raise DiscoveryFault(
                    f"Failed to instantiate discovered plugin {component} for {slot} "
                    f"(marker={marker}): {exc.__class__.__name__}: {exc}",
                    slot=slot,
                    marker=marker,
                    component=component,
                ) from exc
            try:
                if registry.register(slot, instance):
                    added += 1
            except TypeError as exc:
                raise DiscoveryFault(
                    f"Discovered plugin {component} is not valid for {slot} (marker={marker}): {exc}",
                    slot=slot,
                    marker=marker,
                    component=component,
                ) from exc
    return added
