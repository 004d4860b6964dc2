from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any


@dataclass(frozen=True)
class CheckResult:
    """Outcome of one check.

    Successes may carry informational and warning messages; failures may carry an
    error message and/or the exception that caused them. Use `success()` and
    `failure()` rather than the constructor.
    """

    successful: bool
    info_message: str | None = None
    warning_message: str | None = None
    error_message: str | None = None
    cause: BaseException | None = None

    def __post_init__(self) -> None:
        if not isinstance(self.successful, bool):
            raise TypeError(
                f"CheckResult.successful must be a boolean (type={type(self.successful).__name__})"
            )
        for field_name in ("info_message", "warning_message", "error_message"):
            value = getattr(self, field_name)
            if value is not None and not isinstance(value, str):
                raise TypeError(
                    f"CheckResult.{field_name} must be a string or None (type={type(value).__name__})"
                )
        if self.cause is not None and not isinstance(self.cause, BaseException):
            raise TypeError(
                f"CheckResult.cause must be an exception or None (type={type(self.cause).__name__})"
            )

        if self.successful:
            if self.error_message is not None or self.cause is not None:
                raise ValueError("Successful CheckResult cannot carry an error message or cause")
        elif self.info_message is not None or self.warning_message is not None:
            raise ValueError("Failed CheckResult cannot carry info or warning messages")

    @classmethod
    def success(cls, info: str | None = None, warning: str | None = None) -> "CheckResult":
        return cls(successful=True, info_message=info, warning_message=warning)

    @classmethod
    def failure(
        cls, message: str | None = None, cause: BaseException | None = None
    ) -> "CheckResult":
        return cls(successful=False, error_message=message, cause=cause)


@dataclass(frozen=True)
class ContributorResult:
    result: Any
    name: str


@dataclass
class CombinedResult:
    """Per-phase aggregation of check outcomes, kept in execution order."""

    _entries: list[ContributorResult] = field(default_factory=list, init=False, repr=False)

    def add_result(self, result: Any, name: str) -> None:
        self._entries.append(ContributorResult(result=result, name=name))

    def is_successful(self) -> bool:
        return all(_is_success(entry.result) for entry in self._entries)

    @property
    def successful(self) -> bool:
        return self.is_successful()

    def failed_results(self) -> tuple[ContributorResult, ...]:
        return tuple(entry for entry in self._entries if not _is_success(entry.result))

    def all_results(self) -> tuple[ContributorResult, ...]:
        return tuple(self._entries)

    def __len__(self) -> int:
        return len(self._entries)


def _is_success(result: Any) -> bool:
    return bool(getattr(result, "successful", False))
