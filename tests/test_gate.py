import time
from unittest.mock import Mock

import pytest

from domainanalyzer.exceptions import GateStateError
from domainanalyzer.progress.core.stage import StageList, StageStatus
from domainanalyzer.progress.drivers import (
    CancellationToken,
    DriverOutcome,
    EventDrivenDriver,
    GateResult,
    SimulatedDriver,
)
from domainanalyzer.progress.gate import CompletionGate, GateState


def test_error_before_complete_never_fetches(make_event):
    fetch = Mock(return_value=["should not be used"])
    gate = CompletionGate(fetch_results=fetch)
    stages = StageList.initialize(["A", "B"])
    driver = EventDrivenDriver([
        make_event("progress", phase="A", progress=20),
        make_event("error", error="Crawler blocked"),
        make_event("complete"),
    ])

    state = gate.observe(driver, stages)

    assert state == GateState.ERROR_STATE
    assert not gate.is_loading
    assert gate.results == []
    assert gate.error == "Crawler blocked"
    fetch.assert_not_called()


def test_complete_fetches_results_once(make_event):
    fetch = Mock(return_value=[{"id": 1}, {"id": 2}])
    gate = CompletionGate(fetch_results=fetch)
    stages = StageList.initialize(["A"])
    driver = EventDrivenDriver([make_event("complete", domainId=5)])

    assert gate.observe(driver, stages) == GateState.RESULTS
    assert gate.has_results
    assert gate.results == [{"id": 1}, {"id": 2}]
    fetch.assert_called_once_with({"domainId": 5})

    assert not gate.signal_complete({"domainId": 5})
    assert fetch.call_count == 1
    assert gate.fetch_count == 1


def test_complete_after_error_is_ignored():
    fetch = Mock(return_value=[1])
    gate = CompletionGate(fetch_results=fetch)
    gate.begin()

    assert gate.signal_error({"error": "boom"})
    assert not gate.signal_complete({})
    assert gate.state == GateState.ERROR_STATE
    fetch.assert_not_called()


def test_complete_before_begin_is_ignored():
    fetch = Mock(return_value=[1])
    gate = CompletionGate(fetch_results=fetch)

    assert not gate.signal_complete({})
    assert gate.state == GateState.IDLE
    fetch.assert_not_called()


def test_fetch_failure_still_leaves_loading():
    gate = CompletionGate(fetch_results=Mock(side_effect=RuntimeError("500 from backend")))
    gate.begin()

    assert gate.signal_complete({})
    assert gate.state == GateState.RESULTS
    assert gate.results == []
    assert gate.fetch_error == "500 from backend"


def test_without_fetcher_goes_straight_to_results():
    gate = CompletionGate()
    stages = StageList.initialize(["A", "B"])

    assert gate.observe(SimulatedDriver(), stages) == GateState.RESULTS
    assert gate.results == []
    assert stages.all_completed()


def test_failed_gate_check_ends_in_error_state():
    gate = CompletionGate(fetch_results=Mock())
    stages = StageList.initialize(["A", "B"])
    driver = SimulatedDriver(gates={0: lambda stage: GateResult(False, "Domain does not resolve")})

    assert gate.observe(driver, stages) == GateState.ERROR_STATE
    assert gate.error == "Domain does not resolve"


def test_cancelled_driver_ends_in_error_state():
    token = CancellationToken()
    token.cancel()
    gate = CompletionGate(fetch_results=Mock())

    state = gate.observe(SimulatedDriver(token=token), StageList.initialize(["A"]))

    assert state == GateState.ERROR_STATE
    assert gate.error == "Cancelled"


def test_timed_out_driver_ends_in_error_state(make_event):
    from domainanalyzer.exceptions import StreamTimeoutError

    def events():
        yield make_event("progress", phase="A", progress=10)
        raise StreamTimeoutError("No data within timeout")

    gate = CompletionGate(fetch_results=Mock())
    driver = EventDrivenDriver(events())

    assert gate.observe(driver, StageList.initialize(["A"])) == GateState.ERROR_STATE
    assert driver.outcome == DriverOutcome.TIMED_OUT


def test_unexpected_driver_exception_is_routed_and_raised():
    def gate_check(stage):
        raise RuntimeError("bug")

    gate = CompletionGate()
    with pytest.raises(RuntimeError):
        gate.observe(SimulatedDriver(gates={0: gate_check}), StageList.initialize(["A"]))
    assert gate.state == GateState.ERROR_STATE


def test_begin_twice_is_illegal():
    gate = CompletionGate()
    gate.begin()
    with pytest.raises(GateStateError):
        gate.begin()


def test_reset_returns_to_idle_and_clears_stages():
    gate = CompletionGate(fetch_results=Mock(return_value=[1]))
    stages = StageList.initialize(["A"])
    gate.observe(SimulatedDriver(), stages)

    gate.reset(stages)

    assert gate.state == GateState.IDLE
    assert gate.results == []
    assert stages[0].status == StageStatus.PENDING
    gate.begin()
    assert gate.is_loading


def test_reset_delay_can_be_cancelled():
    gate = CompletionGate(back_delay=5)
    token = CancellationToken()
    token.cancel()

    started = time.monotonic()
    gate.reset(token=token)

    assert time.monotonic() - started < 1
    assert gate.state == GateState.IDLE
