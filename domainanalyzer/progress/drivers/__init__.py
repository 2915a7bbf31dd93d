"""
Progress Drivers

One ProgressDriver interface with a simulated (timer) and an event-driven
(server stream) implementation.
"""

from domainanalyzer.progress.drivers.base import CancellationToken, DriverOutcome, ProgressDriver
from domainanalyzer.progress.drivers.simulated import GateResult, SimulatedDriver
from domainanalyzer.progress.drivers.events import (
    EventDrivenDriver,
    PhasePolicy,
    ProgressEvent,
)

__all__ = [
    'CancellationToken',
    'DriverOutcome',
    'ProgressDriver',
    'GateResult',
    'SimulatedDriver',
    'EventDrivenDriver',
    'PhasePolicy',
    'ProgressEvent',
]
