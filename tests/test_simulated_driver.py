import threading
import time

import pytest

from domainanalyzer.exceptions import AnalyzerAPIError
from domainanalyzer.progress.core.stage import StageList, StageStatus
from domainanalyzer.progress.drivers import (
    CancellationToken,
    DriverOutcome,
    GateResult,
    SimulatedDriver,
)


def make_stages():
    return StageList.initialize(["Domain Validation", "SSL Certificate Check", "Server Response Analysis"])


def test_run_completes_every_stage():
    stages = make_stages()
    driver = SimulatedDriver()

    assert driver.run(stages) == DriverOutcome.COMPLETED
    assert driver.outcome == DriverOutcome.COMPLETED
    assert stages.all_completed()
    assert all(stage.progress == 100 for stage in stages)


def test_at_most_one_stage_running():
    stages = make_stages()
    running_counts = []
    stages.add_callback(lambda index, stage: running_counts.append(len(stages.active_indices())))

    SimulatedDriver(step=25).run(stages)

    assert running_counts
    assert max(running_counts) == 1


def test_progress_ticks_are_monotonic():
    stages = make_stages()
    progress = []
    stages.add_callback(lambda index, stage: progress.append(stage.progress) if index == 0 else None)

    SimulatedDriver(step=30).run(stages)

    assert progress == sorted(progress)
    assert progress[-1] == 100
    assert 30 in progress and 60 in progress and 90 in progress


def test_failed_gate_halts_sequence():
    stages = make_stages()
    driver = SimulatedDriver(gates={1: lambda stage: GateResult(False, "No valid SSL certificate")})

    assert driver.run(stages) == DriverOutcome.FAILED

    assert stages[0].status == StageStatus.COMPLETED
    assert stages[1].status == StageStatus.FAILED
    assert stages[1].error == "No valid SSL certificate"
    assert stages[2].status == StageStatus.PENDING
    assert driver.failed_index == 1
    assert driver.error == "No valid SSL certificate"


def test_gate_results_are_kept():
    stages = make_stages()
    gates = [
        lambda stage: GateResult.from_payload({"success": True}),
        None,
        lambda stage: GateResult.from_payload({"success": True, "domainId": 9}),
    ]
    driver = SimulatedDriver(gates=gates)

    assert driver.run(stages) == DriverOutcome.COMPLETED
    assert sorted(driver.gate_results) == [0, 2]
    assert driver.gate_results[2].data["domainId"] == 9


def test_gate_from_payload_failure_message():
    result = GateResult.from_payload({"success": False})
    assert not result.success
    assert result.error == "Check failed"


def test_analyzer_error_in_gate_fails_stage():
    stages = make_stages()

    def gate(stage):
        raise AnalyzerAPIError("Server unreachable", status_code=502)

    driver = SimulatedDriver(gates={0: gate})

    assert driver.run(stages) == DriverOutcome.FAILED
    assert stages[0].status == StageStatus.FAILED
    assert stages[0].error == "Server unreachable"


def test_unexpected_gate_exception_propagates():
    stages = make_stages()

    def gate(stage):
        raise RuntimeError("bug")

    driver = SimulatedDriver(gates={0: gate})

    with pytest.raises(RuntimeError):
        driver.run(stages)
    assert stages[0].status == StageStatus.FAILED
    assert driver.outcome == DriverOutcome.FAILED


def test_invalid_step_rejected():
    with pytest.raises(ValueError):
        SimulatedDriver(step=0)


def test_cancelled_token_prevents_any_mutation():
    stages = make_stages()
    token = CancellationToken()
    token.cancel()

    assert SimulatedDriver(token=token).run(stages) == DriverOutcome.CANCELLED
    assert all(stage.status == StageStatus.PENDING for stage in stages)


def test_no_updates_after_cancel_returns():
    stages = make_stages()
    started = threading.Event()
    updates = []

    def record(index, stage):
        updates.append((index, stage))
        started.set()

    stages.add_callback(record)
    driver = SimulatedDriver(step=5, step_delay=0.02)
    driver.start(stages)

    assert started.wait(2)
    driver.cancel()
    count_after_cancel = len(updates)
    snapshot = stages.snapshot()

    assert driver.join(2) == DriverOutcome.CANCELLED
    time.sleep(0.1)
    assert len(updates) == count_after_cancel
    assert stages.snapshot() == snapshot
    assert not stages.all_completed()


def test_context_manager_cancels_running_driver():
    stages = make_stages()
    with SimulatedDriver(step=1, step_delay=0.05) as driver:
        driver.start(stages)
        time.sleep(0.05)

    assert driver.outcome == DriverOutcome.CANCELLED
    assert not stages.all_completed()


def test_join_reraises_worker_exception():
    stages = make_stages()

    def gate(stage):
        raise RuntimeError("bug")

    driver = SimulatedDriver(gates={0: gate})
    driver.start(stages)

    with pytest.raises(RuntimeError):
        driver.join(2)


def test_start_twice_is_rejected():
    stages = make_stages()
    driver = SimulatedDriver()
    driver.start(stages)
    with pytest.raises(RuntimeError):
        driver.start(stages)
    driver.join(2)
