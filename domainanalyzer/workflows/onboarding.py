"""
Domain Onboarding Workflow Module

Step 1 of the wizard: validate the domain and run the four backend checks,
shown as a simulated progress sequence whose stages only complete when
their check succeeds.
"""

import logging
from typing import Any, Dict, List, Optional

from domainanalyzer.api.client import AnalyzerClient
from domainanalyzer.domain.validator import validate_domain
from domainanalyzer.exceptions import AnalyzerAPIError
from domainanalyzer.progress.core import Stage
from domainanalyzer.progress.drivers.simulated import GateResult, SimulatedDriver
from domainanalyzer.progress.gate import CompletionGate, GateState
from domainanalyzer.progress.utils import setup_progress_tracker
from domainanalyzer.workflows.common import StepResult, log_step_summary, run_step

logger = logging.getLogger(__name__)

ONBOARDING_STAGES = [
    'Domain Validation',
    'SSL Certificate Check',
    'Server Response Analysis',
    'Geo-location Configuration',
]


def build_onboarding_gates(
    client: AnalyzerClient,
    domain: str,
    location: str,
    custom_keywords: str = "",
    intent_phrases: str = "",
    chat_model: Optional[str] = None,
    run_all_models: bool = False,
) -> List:
    """One backend check per onboarding stage, in stage order."""

    def validate(stage: Stage) -> GateResult:
        return GateResult.from_payload(client.validate_domain(domain))

    def ssl(stage: Stage) -> GateResult:
        return GateResult.from_payload(client.check_ssl(domain))

    def server(stage: Stage) -> GateResult:
        return GateResult.from_payload(client.analyze_server(domain))

    def geo(stage: Stage) -> GateResult:
        return GateResult.from_payload(client.configure_geo(
            domain,
            location,
            custom_keywords=custom_keywords,
            intent_phrases=intent_phrases,
            chat_model=chat_model,
            run_all_models=run_all_models,
        ))

    return [validate, ssl, server, geo]


def run_onboarding_workflow(
    client: AnalyzerClient,
    domain: str,
    location: str = "Global",
    custom_keywords: str = "",
    intent_phrases: str = "",
    chat_model: Optional[str] = None,
    run_all_models: bool = False,
    reuse_existing: bool = True,
    progress_mode: str = "auto",
    logging_manager=None,
) -> StepResult:
    """
    Onboard a domain.

    Args:
        client: Authenticated analyzer client
        domain: Domain entered by the user
        location: Target location for geo configuration
        custom_keywords: Optional user-supplied keywords
        intent_phrases: Optional user-supplied intent phrases
        chat_model: Optional preferred chat model
        run_all_models: Query every model instead of one
        reuse_existing: Skip onboarding when the domain already has an analysis
        progress_mode: Progress display mode ("auto", "on", "off")
        logging_manager: LoggingManager toggled while the display is live

    Returns:
        StepResult; ``data['domain_id']`` holds the created domain id
    """
    is_valid, error = validate_domain(domain)
    if not is_valid:
        logger.error(f"Invalid domain: {error}")
        result = StepResult(
            name='Domain Onboarding',
            state=GateState.ERROR_STATE,
            error=error,
            stages=[{'name': name, 'status': 'pending', 'progress': 0, 'error': None}
                    for name in ONBOARDING_STAGES],
        )
        log_step_summary(result)
        return result

    domain = domain.strip()

    if reuse_existing:
        try:
            existing = client.check_domain(domain)
        except AnalyzerAPIError as e:
            logger.warning(f"Could not check for an existing analysis of {domain}: {e}")
            existing = {}
        if not isinstance(existing, dict):
            logger.warning(f"Unexpected domain check response for {domain}: {existing!r}")
            existing = {}
        if existing.get('exists') and existing.get('hasCurrentAnalysis'):
            logger.info(
                f"Domain {domain} already analyzed (id {existing.get('domainId')}, "
                f"last analyzed {existing.get('lastAnalyzed')})"
            )
            return StepResult(
                name='Domain Onboarding',
                state=GateState.RESULTS,
                results=[existing],
                payload=existing,
                data={'domain_id': existing.get('domainId'), 'existing': True},
            )

    tracker = setup_progress_tracker(ONBOARDING_STAGES, progress_mode, title=f"Onboarding {domain}")
    tracker.set_logging_manager(logging_manager)

    driver = SimulatedDriver(gates=build_onboarding_gates(
        client, domain, location,
        custom_keywords=custom_keywords,
        intent_phrases=intent_phrases,
        chat_model=chat_model,
        run_all_models=run_all_models,
    ))

    def collect_gate_data(payload: Any) -> List[Dict[str, Any]]:
        return [driver.gate_results[i].data for i in sorted(driver.gate_results)]

    gate = CompletionGate(fetch_results=collect_gate_data)
    result = run_step('Domain Onboarding', tracker, driver, gate)

    geo_result = driver.gate_results.get(len(ONBOARDING_STAGES) - 1)
    if result.success and geo_result and geo_result.data:
        result.data['domain_id'] = geo_result.data.get('domainId')
        result.data['existing'] = False
        logger.info(f"Domain onboarded with id: {result.data['domain_id']}")

    return result
