import copy
import logging
import pickle

import pytest

from resolverkit import (
    STATE_SEQUENCE,
    CheckFailure,
    CheckResult,
    DiscoveryFault,
    FunctionActivity,
    FunctionCheck,
    NullPhaseRecorder,
    PluginCatalog,
    PluginRegistry,
    RecordingPhaseRecorder,
    ResolutionFailure,
    Resolver,
    SlotMarkers,
)
from resolverkit.capabilities import ActivityBase, CheckBase


def _quiet_logger(name: str) -> logging.Logger:
    logger = logging.getLogger(name)
    logger.handlers.clear()
    logger.addHandler(logging.NullHandler())
    logger.setLevel(logging.DEBUG)
    logger.propagate = False
    return logger


class CountingTransform:
    def __init__(self, fn=str.upper):
        self.calls = 0
        self._fn = fn

    def __call__(self, value):
        self.calls += 1
        return self._fn(value)


class CountingCheck(CheckBase):
    def __init__(self, name: str, *, order: int = 0, result: CheckResult | None = None, log=None):
        self.name = name
        self.order = order
        self.result = result or CheckResult.success()
        self.calls = 0
        self.log = log

    def execute(self, value):
        self.calls += 1
        if self.log is not None:
            self.log.append(self.name)
        return self.result


class CountingActivity(ActivityBase):
    def __init__(self, name: str, *, order: int = 0, log=None, error: Exception | None = None):
        self.name = name
        self.order = order
        self.calls = 0
        self.log = log
        self.error = error

    def perform(self, value):
        self.calls += 1
        if self.log is not None:
            self.log.append(self.name)
        if self.error is not None:
            raise self.error


def _resolver(transform, **kwargs) -> Resolver:
    kwargs.setdefault("logger", _quiet_logger("test.resolver"))
    return Resolver(transform, **kwargs)


def test_empty_pipeline_is_the_transformation():
    transform = CountingTransform()
    resolver = _resolver(transform)

    assert resolver.resolve("abc") == "ABC"
    assert transform.calls == 1


def test_checks_and_activities_run_by_descending_priority():
    log: list[str] = []
    checks = [CountingCheck(f"check_{order}", order=order, log=log) for order in (5, 1, 3)]
    activities = [CountingActivity(f"act_{order}", order=order, log=log) for order in (5, 1, 3)]

    resolver = _resolver(str.upper, pre_checks=checks, pre_activities=activities)
    resolver.resolve("x")

    assert log == ["check_5", "check_3", "check_1", "act_5", "act_3", "act_1"]


def test_equal_priorities_run_in_registration_order_every_time():
    log: list[str] = []
    checks = [CountingCheck(name, order=2, log=log) for name in ("b", "a", "c")]
    resolver = _resolver(str.upper, post_checks=checks)

    resolver.resolve("x")
    resolver.resolve("y")

    assert log == ["b", "a", "c", "b", "a", "c"]


def test_failed_pre_check_never_invokes_transformation():
    transform = CountingTransform()
    failing = CountingCheck("gate", result=CheckResult.failure("nope"))
    activity = CountingActivity("pre_act")

    resolver = _resolver(transform, pre_checks=[failing], pre_activities=[activity])

    with pytest.raises(ResolutionFailure, match=r"gate: nope"):
        resolver.resolve("abc")

    assert transform.calls == 0
    assert activity.calls == 0


def test_failed_post_check_runs_transformation_once_and_returns_nothing():
    transform = CountingTransform()
    post_activity = CountingActivity("notify")
    resolver = _resolver(
        transform,
        pre_checks=[CountingCheck("ok")],
        post_checks=[CountingCheck("verify", result=CheckResult.failure("bad output"))],
        post_activities=[post_activity],
    )

    with pytest.raises(ResolutionFailure) as excinfo:
        resolver.resolve("abc")

    assert transform.calls == 1
    assert post_activity.calls == 0
    assert excinfo.value.phase == "post_check"


def test_resolution_failure_lists_every_failing_check():
    checks = [
        CountingCheck("first", order=3, result=CheckResult.failure("first broke")),
        CountingCheck("second", order=2),
        CountingCheck("third", order=1, result=CheckResult.failure("third broke")),
    ]
    resolver = _resolver(str.upper, pre_checks=checks)

    with pytest.raises(ResolutionFailure) as excinfo:
        resolver.resolve("abc")

    failure = excinfo.value
    assert failure.failed_names == ("first", "third")
    assert "first broke" in str(failure)
    assert "third broke" in str(failure)
    assert all(check.calls == 1 for check in checks)


def test_check_exception_becomes_failure_with_cause():
    boom = KeyError("missing")

    def raising(value):
        raise boom

    later = CountingCheck("later", order=-1)
    resolver = _resolver(
        str.upper,
        pre_checks=[FunctionCheck("raiser", raising), later],
    )

    with pytest.raises(ResolutionFailure) as excinfo:
        resolver.resolve("abc")

    assert excinfo.value.causes == (boom,)
    assert excinfo.value.__cause__ is boom
    assert "KeyError" in str(excinfo.value)
    assert later.calls == 1


def test_check_returning_wrong_type_is_a_failure():
    resolver = _resolver(str.upper, post_checks=[FunctionCheck("sloppy", lambda value: True)])

    with pytest.raises(ResolutionFailure) as excinfo:
        resolver.resolve("abc")

    (cause,) = excinfo.value.causes
    assert isinstance(cause, TypeError)
    assert "sloppy returned bool instead of CheckResult" in str(cause)


def test_activity_fault_aborts_immediately_and_propagates_unchanged():
    error = RuntimeError("disk full")
    first = CountingActivity("first", order=10, error=error)
    second = CountingActivity("second", order=1)
    transform = CountingTransform()
    resolver = _resolver(transform, pre_activities=[second, first])

    with pytest.raises(RuntimeError) as excinfo:
        resolver.resolve("abc")

    assert excinfo.value is error
    assert str(excinfo.value) == "disk full"
    assert excinfo.value.resolver_phase == "pre_activity"
    assert excinfo.value.resolver_contributor == "first"
    assert second.calls == 0
    assert transform.calls == 0


def test_transformation_fault_propagates_without_post_phases():
    def broken(value):
        raise ValueError("cannot transform")

    post_check = CountingCheck("post")
    resolver = _resolver(broken, post_checks=[post_check])

    with pytest.raises(ValueError, match="cannot transform") as excinfo:
        resolver.resolve("abc")

    assert excinfo.value.resolver_phase == "transform"
    assert post_check.calls == 0


def test_same_instance_registered_twice_runs_once():
    check = CountingCheck("dup")
    activity = CountingActivity("dup_act")
    registry = PluginRegistry().add_pre_check(check).add_pre_check(check)
    resolver = _resolver(
        str.upper,
        registry=registry,
        pre_checks=[check],
        post_activities=[activity, activity],
    )

    resolver.resolve("abc")

    assert check.calls == 1
    assert activity.calls == 1


def test_successful_check_messages_are_reported():
    recorder = RecordingPhaseRecorder()
    check = FunctionCheck("chatty", lambda value: CheckResult.success(info="fine", warning="careful"))
    resolver = _resolver(str.upper, pre_checks=[check], recorder=recorder)

    resolver.resolve("abc")

    results = [event for event in recorder.events if event[0] == "check_result"]
    assert len(results) == 1
    assert results[0][2] == "chatty"
    assert results[0][3].warning_message == "careful"


def test_state_sequence_for_successful_resolve():
    recorder = RecordingPhaseRecorder()
    resolver = _resolver(
        str.upper,
        pre_checks=[CountingCheck("c")],
        post_activities=[CountingActivity("a")],
        recorder=recorder,
    )

    resolver.resolve("abc")

    assert recorder.states() == list(STATE_SEQUENCE)
    phase_starts = [event for event in recorder.events if event[0] == "phase_start"]
    assert phase_starts == [("phase_start", "pre_check", 1), ("phase_start", "post_activity", 1)]


def test_state_sequence_for_aborted_resolve():
    recorder = RecordingPhaseRecorder()
    resolver = _resolver(
        str.upper,
        pre_checks=[CountingCheck("c", result=CheckResult.failure())],
        recorder=recorder,
    )

    with pytest.raises(ResolutionFailure, match=r"c: <no details>"):
        resolver.resolve("abc")

    assert recorder.states() == ["start", "pre_check", "aborted"]


def test_registry_is_frozen_after_construction():
    resolver = _resolver(str.upper)

    assert resolver.registry.frozen
    with pytest.raises(RuntimeError, match=r"registry is frozen"):
        resolver.registry.add_pre_check(CountingCheck("late"))


def test_passed_registry_is_copied_not_frozen():
    registry = PluginRegistry().add_post_check(CountingCheck("c"))
    resolver = _resolver(str.upper, registry=registry)

    registry.add_post_check(CountingCheck("after"))

    assert not registry.frozen
    assert [check.name for check in resolver.post_checks] == ["c"]


def test_subclass_configure_and_do_resolution():
    calls: list[str] = []

    class Doubler(Resolver[int, int]):
        def configure(self, registry):
            registry.add_post_activity(FunctionActivity("record", lambda value: calls.append(value)))

        def do_resolution(self, value):
            return value * 2

    resolver = Doubler(logger=_quiet_logger("test.resolver.doubler"))

    assert resolver.name == "Doubler"
    assert resolver.resolve(21) == 42
    assert calls == [42]


def test_missing_transformation_raises_not_implemented():
    resolver = _resolver(None, name="empty")

    with pytest.raises(NotImplementedError, match=r"empty has no transform"):
        resolver.resolve("abc")


def test_handler_hook_can_relax_post_checks():
    class Lenient(Resolver[str, str]):
        def handle_post_check_results(self, combined):
            self.seen = [entry.name for entry in combined.failed_results()]

    resolver = Lenient(
        str.upper,
        post_checks=[CountingCheck("strict", result=CheckResult.failure("meh"))],
        recorder=NullPhaseRecorder(),
    )

    assert resolver.resolve("abc") == "ABC"
    assert resolver.seen == ["strict"]


def test_discovery_registers_marked_plugins_after_explicit_ones():
    catalog = PluginCatalog()
    log: list[str] = []

    @catalog.register("marker.pre")
    class Discovered(CheckBase):
        def execute(self, value):
            log.append("discovered")
            return CheckResult.success()

    explicit = CountingCheck("explicit", log=log)
    resolver = _resolver(
        str.upper,
        pre_checks=[explicit],
        markers=SlotMarkers(pre_check="marker.pre", post_check="marker.unused"),
        catalog=catalog,
    )

    resolver.resolve("abc")

    assert log == ["explicit", "discovered"]
    assert [type(item).__name__ for item in resolver.pre_checks] == ["CountingCheck", "Discovered"]
    assert resolver.post_checks == ()


def test_class_level_markers_enable_discovery():
    catalog = PluginCatalog()

    @catalog.register("marker.post_activity")
    class Audit(ActivityBase):
        seen: list = []

        def perform(self, value):
            Audit.seen.append(value)

    class Marked(Resolver[str, str]):
        post_activity_marker = "marker.post_activity"

    resolver = Marked(str.upper, catalog=catalog, logger=_quiet_logger("test.resolver.marked"))
    resolver.resolve("abc")

    assert Audit.seen == ["ABC"]


def test_discovery_construction_failure_fails_resolver_construction():
    catalog = PluginCatalog()

    @catalog.register("marker.broken")
    class Broken(CheckBase):
        def __init__(self):
            raise OSError("no config file")

    with pytest.raises(DiscoveryFault) as excinfo:
        _resolver(str.upper, markers=SlotMarkers(pre_check="marker.broken"), catalog=catalog)

    fault = excinfo.value
    assert fault.slot == "pre_check"
    assert fault.marker == "marker.broken"
    assert fault.component.endswith("Broken")
    assert isinstance(fault.__cause__, OSError)


def test_invalid_recorder_is_rejected():
    with pytest.raises(TypeError, match=r"missing required method: on_transition"):
        _resolver(str.upper, recorder=object())


def test_resolution_failure_survives_pickle_and_copy():
    failure = ResolutionFailure(
        resolver="orders",
        phase="pre_check",
        failures=[CheckFailure("gate", "closed", ValueError("bad")), CheckFailure("other", "nope")],
    )

    for clone in (pickle.loads(pickle.dumps(failure)), copy.copy(failure)):
        assert isinstance(clone, ResolutionFailure)
        assert str(clone) == str(failure)
        assert clone.failed_names == ("gate", "other")
        assert clone.phase == "pre_check"
        assert isinstance(clone.__cause__, ValueError)
