from __future__ import annotations

import logging
from typing import Any, Protocol

from resolverkit.results import ContributorResult


class PhaseRecorder(Protocol):
    def on_transition(self, resolver: str, state: str) -> None:
        ...

    def on_phase_start(self, resolver: str, phase: str, count: int) -> None:
        ...

    def on_item(self, resolver: str, phase: str, name: str) -> None:
        ...

    def on_check_result(self, resolver: str, phase: str, entry: ContributorResult) -> None:
        ...

    def on_phase_end(self, resolver: str, phase: str) -> None:
        ...

    def on_fault(self, resolver: str, phase: str, name: str, exc: Exception) -> None:
        ...


class DefaultPhaseRecorder:
    def __init__(self, logger: logging.Logger | None = None):
        self.logger = logger or logging.getLogger("resolverkit")

    def on_transition(self, resolver: str, state: str) -> None:
        self.logger.debug("%s -> %s", resolver, state)

    def on_phase_start(self, resolver: str, phase: str, count: int) -> None:
        self.logger.debug("Executing %d %s item(s) in %s", count, phase, resolver)

    def on_item(self, resolver: str, phase: str, name: str) -> None:
        self.logger.debug("Executing %s: %s", phase, name)

    def on_check_result(self, resolver: str, phase: str, entry: ContributorResult) -> None:
        result = entry.result
        if getattr(result, "successful", False):
            info = getattr(result, "info_message", None)
            warning = getattr(result, "warning_message", None)
            if info:
                self.logger.info("%s: %s", entry.name, info)
            if warning:
                self.logger.warning("%s: %s", entry.name, warning)
            return

        message = getattr(result, "error_message", None)
        cause = getattr(result, "cause", None)
        if message:
            self.logger.error("Error in %s (%s): %s", entry.name, phase, message)
        if cause is not None:
            self.logger.error(
                "Exception thrown in %s (%s): %s: %s",
                entry.name,
                phase,
                type(cause).__name__,
                cause,
            )
        if not message and cause is None:
            self.logger.error("Check failed in %s (%s)", entry.name, phase)

    def on_phase_end(self, resolver: str, phase: str) -> None:
        self.logger.debug("Completed %s in %s", phase, resolver)

    def on_fault(self, resolver: str, phase: str, name: str, exc: Exception) -> None:
        self.logger.error("%s failed in %s (%s): %s", name, resolver, phase, exc)


class NullPhaseRecorder:
    def on_transition(self, resolver: str, state: str) -> None:
        return

    def on_phase_start(self, resolver: str, phase: str, count: int) -> None:
        return

    def on_item(self, resolver: str, phase: str, name: str) -> None:
        return

    def on_check_result(self, resolver: str, phase: str, entry: ContributorResult) -> None:
        return

    def on_phase_end(self, resolver: str, phase: str) -> None:
        return

    def on_fault(self, resolver: str, phase: str, name: str, exc: Exception) -> None:
        return


class RecordingPhaseRecorder:
    """Keeps every event as a tuple; handy for asserting execution order."""

    def __init__(self) -> None:
        self.events: list[tuple[Any, ...]] = []

    def on_transition(self, resolver: str, state: str) -> None:
        self.events.append(("transition", state))

    def on_phase_start(self, resolver: str, phase: str, count: int) -> None:
        self.events.append(("phase_start", phase, count))

    def on_item(self, resolver: str, phase: str, name: str) -> None:
        self.events.append(("item", phase, name))

    def on_check_result(self, resolver: str, phase: str, entry: ContributorResult) -> None:
        self.events.append(("check_result", phase, entry.name, entry.result))

    def on_phase_end(self, resolver: str, phase: str) -> None:
        self.events.append(("phase_end", phase))

    def on_fault(self, resolver: str, phase: str, name: str, exc: Exception) -> None:
        self.events.append(("fault", phase, name, exc))

    def states(self) -> list[str]:
        return [event[1] for event in self.events if event[0] == "transition"]

    def items(self, phase: str | None = None) -> list[str]:
        return [
            event[2]
            for event in self.events
            if event[0] == "item" and (phase is None or event[1] == phase)
        ]


def validate_recorder(recorder: Any) -> None:
    required = (
        "on_transition",
        "on_phase_start",
        "on_item",
        "on_check_result",
        "on_phase_end",
        "on_fault",
    )
    for name in required:
        method = getattr(recorder, name, None)
        if method is None or not callable(method):
            raise TypeError(f"Phase recorder missing required method: {name}")
