from __future__ import annotations

import logging
from typing import Any

from resolverkit.capabilities import ActivityBase, CheckBase
from resolverkit.ordering import HIGHEST_PRECEDENCE, LOWEST_PRECEDENCE
from resolverkit.registry import register_plugin
from resolverkit.results import CheckResult

NOT_NONE_MARKER = "resolverkit.builtin.not_none"
LOG_VALUE_MARKER = "resolverkit.builtin.log_value"


@register_plugin(NOT_NONE_MARKER)
class NotNoneCheck(CheckBase[Any]):
    name = "not_none"
    # Runs ahead of everything else: later checks can assume a value.
    order = HIGHEST_PRECEDENCE

    def execute(self, value: Any) -> CheckResult:
        if value is None:
            return CheckResult.failure("value is None")
        return CheckResult.success()


class TypeCheck(CheckBase[Any]):
    name = "type"

    def __init__(self, *expected_types: type, order: int = 0):
        if not expected_types:
            raise ValueError("TypeCheck requires at least one expected type")
        for expected in expected_types:
            if not isinstance(expected, type):
                raise TypeError(f"TypeCheck expected types must be classes (got {expected!r})")
        self.expected_types = tuple(expected_types)
        self.order = order

    def execute(self, value: Any) -> CheckResult:
        if isinstance(value, self.expected_types):
            return CheckResult.success()
        expected = " | ".join(t.__name__ for t in self.expected_types)
        return CheckResult.failure(f"expected {expected}, got {type(value).__name__}")


@register_plugin(LOG_VALUE_MARKER)
class LogValueActivity(ActivityBase[Any]):
    name = "log_value"
    order = LOWEST_PRECEDENCE

    def __init__(self, logger: logging.Logger | None = None, *, max_chars: int = 200):
        if max_chars < 1:
            raise ValueError("max_chars must be >= 1")
        self.logger = logger or logging.getLogger(__name__)
        self.max_chars = max_chars

    def perform(self, value: Any) -> None:
        text = repr(value)
        if len(text) > self.max_chars:
            text = text[: self.max_chars] + f"... <{len(text) - self.max_chars} more chars>"
        self.logger.debug("Value: %s", text)
