"""Domain Analyzer Staged Progress Package"""

# Expose key components at package level for convenience

# Exceptions (centralized)
from domainanalyzer.exceptions import (
    AnalyzerError,
    AnalyzerAuthError,
    AnalyzerAPIError,
    AnalyzerNetworkError,
    StreamError,
    StreamTimeoutError,
    DomainValidationError,
    GateStateError,
)

# API
from domainanalyzer.api.sse import ServerSentEvent, parse_sse_lines
from domainanalyzer.api.client import AnalyzerClient, EventStream
from domainanalyzer.api.auth import resolve_auth_token

# Domain
from domainanalyzer.domain.validator import validate_domain, require_valid_domain
from domainanalyzer.domain.masking import DomainIdMasker

# Progress
from domainanalyzer.progress.core import ProgressTracker, ProgressMode, Stage, StageList, StageStatus
from domainanalyzer.progress.drivers import (
    CancellationToken,
    DriverOutcome,
    EventDrivenDriver,
    GateResult,
    PhasePolicy,
    SimulatedDriver,
)
from domainanalyzer.progress.gate import CompletionGate, GateState

# Scoring
from domainanalyzer.scoring import RelevanceScorer, BackendScorer, KeywordOverlapScorer, apply_scores

# Workflows
from domainanalyzer.workflows import (
    StepResult,
    run_onboarding_workflow,
    run_keywords_workflow,
    run_intent_phrases_workflow,
    run_demo_workflow,
)

# Utils
from domainanalyzer.utils import log_section_header

__version__ = "0.1.0"
__all__ = [
    # Exceptions
    "AnalyzerError",
    "AnalyzerAuthError",
    "AnalyzerAPIError",
    "AnalyzerNetworkError",
    "StreamError",
    "StreamTimeoutError",
    "DomainValidationError",
    "GateStateError",
    # API
    "ServerSentEvent",
    "parse_sse_lines",
    "AnalyzerClient",
    "EventStream",
    "resolve_auth_token",
    # Domain
    "validate_domain",
    "require_valid_domain",
    "DomainIdMasker",
    # Progress
    "ProgressTracker",
    "ProgressMode",
    "Stage",
    "StageList",
    "StageStatus",
    "CancellationToken",
    "DriverOutcome",
    "EventDrivenDriver",
    "GateResult",
    "PhasePolicy",
    "SimulatedDriver",
    "CompletionGate",
    "GateState",
    # Scoring
    "RelevanceScorer",
    "BackendScorer",
    "KeywordOverlapScorer",
    "apply_scores",
    # Workflows
    "StepResult",
    "run_onboarding_workflow",
    "run_keywords_workflow",
    "run_intent_phrases_workflow",
    "run_demo_workflow",
    # Utils
    "log_section_header",
]
