"""
Domain Analysis / Keywords Workflow Module

Step 2 of the wizard: the backend crawls the domain and generates keywords
while streaming progress; afterwards the generated keywords are fetched.
"""

import logging
from typing import Any, Dict, List, Optional, Sequence

from domainanalyzer.api.client import AnalyzerClient
from domainanalyzer.progress.drivers.events import EventDrivenDriver, PhasePolicy
from domainanalyzer.progress.gate import CompletionGate
from domainanalyzer.progress.utils import setup_progress_tracker
from domainanalyzer.workflows.common import StepResult, run_step

logger = logging.getLogger(__name__)

KEYWORD_STAGES = [
    'Domain Discovery & Crawling',
    'Enhanced AI Keyword Generation',
]

KEYWORD_STAGE_DESCRIPTIONS = [
    'Scanning website structure and extracting content',
    'Generating keywords using advanced AI with location context',
]

KEYWORD_PHASES = {
    'domain_extraction': 0,
    'keyword_generation': 1,
}

TRANSACTIONAL_TERMS = ('buy', 'purchase', 'order', 'shop', 'price', 'cost', 'deal', 'discount', 'sale', 'offer')
INFORMATIONAL_TERMS = ('what', 'how', 'why', 'when', 'where', 'guide', 'tutorial', 'tips', 'learn',
                       'information', 'explain', 'definition')


def determine_intent(term: str) -> str:
    """
    Classify a keyword's search intent by substring heuristics.

    Example:
        >>> determine_intent("buy running shoes")
        'Transactional'
        >>> determine_intent("how to lace shoes")
        'Informational'
        >>> determine_intent("running shoes")
        'Commercial'
    """
    lowered = term.lower()
    if any(word in lowered for word in TRANSACTIONAL_TERMS):
        return 'Transactional'
    if any(word in lowered for word in INFORMATIONAL_TERMS):
        return 'Informational'
    return 'Commercial'


def normalize_keyword(raw: Dict[str, Any]) -> Dict[str, Any]:
    """Flatten a backend keyword record into the display shape."""
    term = str(raw.get('term') or '')
    return {
        'id': raw.get('id'),
        'keyword': term,
        'intent': determine_intent(term),
        'volume': raw.get('volume') or 0,
        'kd': raw.get('difficulty') or 0,
        'cpc': raw.get('cpc') or 0,
        'selected': bool(raw.get('isSelected')),
        'is_custom': bool(raw.get('isCustom')),
    }


def _mapping(value: Any) -> Dict[str, Any]:
    return value if isinstance(value, dict) else {}


def extract_domain_id(payload: Any) -> Optional[int]:
    """Domain id from a ``complete`` payload (``result.domain.id``)."""
    if not isinstance(payload, dict):
        return None
    domain = _mapping(_mapping(payload.get('result')).get('domain'))
    return domain.get('id') or payload.get('domainId')


def run_keywords_workflow(
    client: AnalyzerClient,
    domain: str,
    location: str = "Global",
    custom_paths: Sequence[str] = (),
    priority_urls: Sequence[str] = (),
    priority_paths: Sequence[str] = (),
    progress_mode: str = "auto",
    logging_manager=None,
) -> StepResult:
    """
    Run domain extraction and keyword generation with streamed progress.

    Phases are sequential on the backend, so the driver uses the SEQUENTIAL
    policy: a keyword_generation event closes the crawling stage.

    Args:
        client: Authenticated analyzer client
        domain: Domain to analyze
        location: Target location
        custom_paths: Extra paths to crawl
        priority_urls: URLs to crawl first
        priority_paths: Paths to crawl first
        progress_mode: Progress display mode ("auto", "on", "off")
        logging_manager: LoggingManager toggled while the display is live

    Returns:
        StepResult with normalized keywords as results;
        ``data['domain_id']`` and ``data['extracted_context']`` when available
    """
    tracker = setup_progress_tracker(
        KEYWORD_STAGES, progress_mode,
        title=f"Analyzing {domain}",
        descriptions=KEYWORD_STAGE_DESCRIPTIONS,
    )
    tracker.set_logging_manager(logging_manager)

    def fetch_keywords(payload: Any) -> List[Dict[str, Any]]:
        domain_id = extract_domain_id(payload)
        if domain_id is None:
            raise ValueError("Completion payload did not include a domain id")
        return [normalize_keyword(k) for k in client.get_keywords(domain_id)]

    stream = client.stream_domain_analysis(
        domain,
        location=location,
        custom_paths=custom_paths,
        priority_urls=priority_urls,
        priority_paths=priority_paths,
    )
    driver = EventDrivenDriver(stream, phase_map=KEYWORD_PHASES, policy=PhasePolicy.SEQUENTIAL)
    gate = CompletionGate(fetch_results=fetch_keywords)

    result = run_step('Domain Analysis', tracker, driver, gate)

    domain_id = extract_domain_id(result.payload)
    if domain_id is not None:
        result.data['domain_id'] = domain_id
        extraction = _mapping(_mapping(result.payload.get('result')).get('extraction'))
        if extraction.get('extractedContext'):
            result.data['extracted_context'] = extraction['extractedContext']
    return result
