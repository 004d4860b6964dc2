"""Resolver engine: checks and activities around a user transformation.

Flow for `resolve(value)`:

1. run pre-checks on the input (all of them), abort on any failure
2. perform pre-activities on the input
3. transform the input into the output (`do_resolution`)
4. run post-checks on the output (all of them), abort on any failure
5. perform post-activities on the output

This module must not import configuration or YAML helpers.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any, Callable, Generic, Iterable, Literal, TypeAlias, TypeVar

from resolverkit.capabilities import contributor_name
from resolverkit.errors import CheckFailure, ResolutionFailure
from resolverkit.ordering import sort_by_priority
from resolverkit.registry import (
    DEFAULT_CATALOG,
    SLOTS,
    ComponentCatalog,
    PluginRegistry,
    SlotMarkers,
    populate_from_catalog,
)
from resolverkit.results import CheckResult, CombinedResult

from .recorder import DefaultPhaseRecorder, PhaseRecorder, validate_recorder

if TYPE_CHECKING:
    from resolverkit.config import ResolverConfig

InputT = TypeVar("InputT")
OutputT = TypeVar("OutputT")

ResolutionState: TypeAlias = Literal[
    "start",
    "pre_check",
    "pre_activity",
    "transform",
    "post_check",
    "post_activity",
    "done",
    "aborted",
]
STATE_SEQUENCE: tuple[str, ...] = (
    "start",
    "pre_check",
    "pre_activity",
    "transform",
    "post_check",
    "post_activity",
    "done",
)


class Resolver(Generic[InputT, OutputT]):
    """Runs checks and activities around a transformation from `InputT` to `OutputT`.

    Plugins are fixed at construction: explicit registrations (a registry, the
    per-slot sequences and the `configure` hook) come first, then plugins
    discovered through the catalog for every slot that has a marker. The
    registry is frozen afterwards, so `resolve` only reads shared state.

    Items in a phase run by descending `order`; equal orders run in
    registration order.
    """

    pre_check_marker: str | None = None
    pre_activity_marker: str | None = None
    post_check_marker: str | None = None
    post_activity_marker: str | None = None

    def __init__(
        self,
        transform: Callable[[InputT], OutputT] | None = None,
        *,
        registry: PluginRegistry | None = None,
        pre_checks: Iterable[Any] = (),
        post_checks: Iterable[Any] = (),
        pre_activities: Iterable[Any] = (),
        post_activities: Iterable[Any] = (),
        markers: SlotMarkers | None = None,
        catalog: ComponentCatalog | None = None,
        recorder: PhaseRecorder | None = None,
        logger: logging.Logger | None = None,
        name: str | None = None,
    ):
        if transform is not None and not callable(transform):
            raise TypeError(f"transform must be callable (type={type(transform).__name__})")
        if name is not None and (not isinstance(name, str) or not name.strip()):
            raise TypeError("Resolver name must be a non-empty string or None")

        self._transform = transform
        self.name = name.strip() if name else type(self).__name__
        self.logger = logger or logging.getLogger(f"resolverkit.{self.name}")
        self._recorder = recorder or DefaultPhaseRecorder(self.logger)
        validate_recorder(self._recorder)

        self.logger.debug("initializing %s started", self.name)
        working = registry.copy() if registry is not None else PluginRegistry()
        for slot, items in (
            ("pre_check", pre_checks),
            ("post_check", post_checks),
            ("pre_activity", pre_activities),
            ("post_activity", post_activities),
        ):
            for item in items:
                working.register(slot, item)

        self.configure(working)

        self.markers = markers if markers is not None else self._class_markers()
        if not self.markers.is_empty():
            discovered = populate_from_catalog(
                working, self.markers, catalog if catalog is not None else DEFAULT_CATALOG
            )
            self.logger.debug("Registered %d discovered plugin(s) in %s", discovered, self.name)

        self._registry = working.freeze()
        self.logger.debug("initializing %s complete", self.name)

    @classmethod
    def from_config(
        cls,
        config: "ResolverConfig",
        transform: Callable[[InputT], OutputT] | None = None,
        *,
        catalog: Any | None = None,
        **kwargs: Any,
    ) -> "Resolver[InputT, OutputT]":
        """Build a resolver from a parsed `ResolverConfig`.

        Configured plugin packages are imported into the catalog first so their
        decorated plugins are visible to marker discovery.
        """

        effective_catalog = catalog if catalog is not None else DEFAULT_CATALOG
        for package in config.plugin_packages:
            effective_catalog.import_plugins(package)

        name = kwargs.get("name") or config.name
        if name:
            kwargs["name"] = name
        if "logger" not in kwargs:
            from resolverkit.logging_utils import setup_resolver_logger

            kwargs["logger"], _log_file = setup_resolver_logger(
                f"resolverkit.{(name or cls.__name__).strip()}",
                level=config.log_level,
                log_dir=config.log_dir,
            )

        return cls(transform, markers=config.markers, catalog=effective_catalog, **kwargs)

    def configure(self, registry: PluginRegistry) -> None:
        """Hook for subclasses to register plugins during construction."""

    def do_resolution(self, value: InputT) -> OutputT:
        if self._transform is None:
            raise NotImplementedError(
                f"{self.name} has no transform; pass one or override do_resolution()"
            )
        return self._transform(value)

    @property
    def registry(self) -> PluginRegistry:
        return self._registry

    @property
    def pre_checks(self) -> tuple[Any, ...]:
        return self._registry.items("pre_check")

    @property
    def post_checks(self) -> tuple[Any, ...]:
        return self._registry.items("post_check")

    @property
    def pre_activities(self) -> tuple[Any, ...]:
        return self._registry.items("pre_activity")

    @property
    def post_activities(self) -> tuple[Any, ...]:
        return self._registry.items("post_activity")

    def resolve(self, value: InputT) -> OutputT:
        recorder = self._recorder
        recorder.on_transition(self.name, "start")

        self._run_checks("pre_check", value, self.handle_pre_check_results)
        self._run_activities("pre_activity", value)

        recorder.on_transition(self.name, "transform")
        try:
            output = self.do_resolution(value)
        except Exception as exc:
            recorder.on_fault(self.name, "transform", self.name, exc)
            _attach_fault(exc, phase="transform", contributor=self.name)
            raise

        self._run_checks("post_check", output, self.handle_post_check_results)
        self._run_activities("post_activity", output)

        recorder.on_transition(self.name, "done")
        return output

    def handle_pre_check_results(self, combined: CombinedResult) -> None:
        self._evaluate_check_results("pre_check", combined)

    def handle_post_check_results(self, combined: CombinedResult) -> None:
        self._evaluate_check_results("post_check", combined)

    def _class_markers(self) -> SlotMarkers:
        return SlotMarkers(**{slot: getattr(self, f"{slot}_marker", None) for slot in SLOTS})

    def _run_checks(
        self,
        phase: str,
        value: Any,
        handler: Callable[[CombinedResult], None],
    ) -> None:
        recorder = self._recorder
        recorder.on_transition(self.name, phase)
        checks = sort_by_priority(self._registry.items(phase))
        if not checks:
            return

        recorder.on_phase_start(self.name, phase, len(checks))
        combined = CombinedResult()
        for check in checks:
            check_name = contributor_name(check)
            recorder.on_item(self.name, phase, check_name)
            combined.add_result(self._execute_check(check, value, check_name), check_name)

        try:
            handler(combined)
        except Exception:
            recorder.on_transition(self.name, "aborted")
            raise
        recorder.on_phase_end(self.name, phase)

    def _execute_check(self, check: Any, value: Any, check_name: str) -> CheckResult:
        try:
            result = check.execute(value)
        except Exception as exc:
            return CheckResult.failure(cause=exc)
        if not isinstance(result, CheckResult):
            return CheckResult.failure(
                cause=TypeError(
                    f"{check_name} returned {type(result).__name__} instead of CheckResult"
                )
            )
        return result

    def _evaluate_check_results(self, phase: str, combined: CombinedResult) -> None:
        recorder = self._recorder
        if not combined.is_successful():
            failed = combined.failed_results()
            for entry in failed:
                recorder.on_check_result(self.name, phase, entry)
            raise ResolutionFailure(
                resolver=self.name,
                phase=phase,
                failures=[CheckFailure.from_contributor(entry) for entry in failed],
            )

        for entry in combined.all_results():
            recorder.on_check_result(self.name, phase, entry)

    def _run_activities(self, phase: str, value: Any) -> None:
        recorder = self._recorder
        recorder.on_transition(self.name, phase)
        activities = sort_by_priority(self._registry.items(phase))
        if not activities:
            return

        recorder.on_phase_start(self.name, phase, len(activities))
        for activity in activities:
            activity_name = contributor_name(activity)
            recorder.on_item(self.name, phase, activity_name)
            try:
                activity.perform(value)
            except Exception as exc:
                recorder.on_fault(self.name, phase, activity_name, exc)
                _attach_fault(exc, phase=phase, contributor=activity_name)
                raise
        recorder.on_phase_end(self.name, phase)

    def __repr__(self) -> str:
        counts = ", ".join(f"{slot}={len(self._registry.items(slot))}" for slot in SLOTS)
        return f"{type(self).__name__}(name={self.name!r}, {counts})"


def _attach_fault(exc: Exception, *, phase: str, contributor: str) -> None:
    # Annotate in place; the caller re-raises the same exception object.
    if not hasattr(exc, "resolver_phase"):
        try:
            setattr(exc, "resolver_phase", phase)
        except AttributeError:
            pass
    if not hasattr(exc, "resolver_contributor"):
        try:
            setattr(exc, "resolver_contributor", contributor)
        except AttributeError:
            pass
