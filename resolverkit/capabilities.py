"""Extension points for resolvers.

A `Check` inspects a value and returns a `CheckResult`. Checks should report
problems as failures rather than raising; the engine still catches anything a
check raises and records it as a failure carrying the exception as `cause`.

An `Activity` performs a side effect against a value and returns nothing.
Activities report problems by raising, which aborts the resolve call.

Both may declare `order` (larger runs first) and `name` (used in diagnostics;
defaults to the class name).
"""

from __future__ import annotations

from typing import Any, Callable, Generic, Protocol, TypeVar, runtime_checkable

from resolverkit.ordering import DEFAULT_ORDER
from resolverkit.results import CheckResult

T = TypeVar("T")
T_contra = TypeVar("T_contra", contravariant=True)


@runtime_checkable
class Check(Protocol[T_contra]):
    def execute(self, value: T_contra) -> CheckResult: ...


@runtime_checkable
class Activity(Protocol[T_contra]):
    def perform(self, value: T_contra) -> None: ...


class CheckBase(Generic[T]):
    """Convenience base class for checks."""

    order: int = DEFAULT_ORDER

    def execute(self, value: T) -> CheckResult:
        raise NotImplementedError


class ActivityBase(Generic[T]):
    """Convenience base class for activities."""

    order: int = DEFAULT_ORDER

    def perform(self, value: T) -> None:
        raise NotImplementedError


class FunctionCheck(CheckBase[T]):
    """Wrap a callable returning a `CheckResult` as a named, ordered check."""

    def __init__(self, name: str, fn: Callable[[T], CheckResult], *, order: int = DEFAULT_ORDER):
        if not isinstance(name, str) or not name.strip():
            raise TypeError("FunctionCheck name must be a non-empty string")
        if not callable(fn):
            raise TypeError(f"FunctionCheck fn must be callable (type={type(fn).__name__})")
        self.name = name.strip()
        self.order = order
        self._fn = fn

    def execute(self, value: T) -> CheckResult:
        return self._fn(value)

    def __repr__(self) -> str:
        return f"FunctionCheck(name={self.name!r}, order={self.order})"


class FunctionActivity(ActivityBase[T]):
    """Wrap a callable as a named, ordered activity."""

    def __init__(self, name: str, fn: Callable[[T], Any], *, order: int = DEFAULT_ORDER):
        if not isinstance(name, str) or not name.strip():
            raise TypeError("FunctionActivity name must be a non-empty string")
        if not callable(fn):
            raise TypeError(f"FunctionActivity fn must be callable (type={type(fn).__name__})")
        self.name = name.strip()
        self.order = order
        self._fn = fn

    def perform(self, value: T) -> None:
        self._fn(value)

    def __repr__(self) -> str:
        return f"FunctionActivity(name={self.name!r}, order={self.order})"


def contributor_name(item: Any) -> str:
    name = getattr(item, "name", None)
    if isinstance(name, str) and name.strip():
        return name.strip()
    return type(item).__name__


def contributor_source(item: Any) -> str:
    cls = type(item)
    module = getattr(cls, "__module__", None) or "<unknown_module>"
    return f"{module}.{cls.__qualname__}"
