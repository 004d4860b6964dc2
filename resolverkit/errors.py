from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable

from resolverkit.results import ContributorResult


@dataclass(frozen=True)
class CheckFailure:
    name: str
    message: str | None = None
    cause: BaseException | None = None

    @classmethod
    def from_contributor(cls, entry: ContributorResult) -> "CheckFailure":
        result = entry.result
        return cls(
            name=entry.name,
            message=getattr(result, "error_message", None),
            cause=getattr(result, "cause", None),
        )

    def describe(self) -> str:
        parts: list[str] = []
        if self.message:
            parts.append(self.message)
        if self.cause is not None:
            parts.append(f"{type(self.cause).__name__}: {self.cause}")
        return f"{self.name}: {'; '.join(parts) if parts else '<no details>'}"


class ResolutionFailure(RuntimeError):
    """Raised when a check phase fails. No output is produced."""

    def __init__(self, *, resolver: str, phase: str, failures: Iterable[CheckFailure]):
        self.resolver = resolver
        self.phase = phase
        self.failures: tuple[CheckFailure, ...] = tuple(failures)
        lines = "\n".join(f"  - {failure.describe()}" for failure in self.failures)
        super().__init__(
            f"Resolution failed in {resolver} ({phase}, {len(self.failures)} failed):\n{lines}"
        )
        causes = self.causes
        if causes:
            self.__cause__ = causes[0]

    def __reduce__(self):
        return (
            _rebuild,
            (type(self), (), {"resolver": self.resolver, "phase": self.phase, "failures": self.failures}),
        )

    @property
    def causes(self) -> tuple[BaseException, ...]:
        return tuple(failure.cause for failure in self.failures if failure.cause is not None)

    @property
    def failed_names(self) -> tuple[str, ...]:
        return tuple(failure.name for failure in self.failures)


class DiscoveryFault(RuntimeError):
    """Raised while building a resolver when a discovered plugin cannot be created."""

    def __init__(self, message: str, *, slot: str, marker: str, component: str | None = None):
        self.slot = slot
        self.marker = marker
        self.component = component
        super().__init__(message)

    def __reduce__(self):
        return (
            _rebuild,
            (
                type(self),
                (str(self),),
                {"slot": self.slot, "marker": self.marker, "component": self.component},
            ),
        )


def _rebuild(cls, args, kwargs):
    # Keyword-only constructors defeat the default exception pickling.
    return cls(*args, **kwargs)
