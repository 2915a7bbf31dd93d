"""
Intent Phrases Workflow Module

Step 3 of the wizard: the backend mines community data and search patterns,
classifies intent and generates scored phrases while streaming progress and
the phrases themselves.
"""

import logging
from threading import RLock
from typing import Any, Dict, List, Optional

from domainanalyzer.api.client import AnalyzerClient
from domainanalyzer.progress.drivers.events import EventDrivenDriver, PhasePolicy
from domainanalyzer.progress.gate import CompletionGate
from domainanalyzer.progress.utils import setup_progress_tracker
from domainanalyzer.scoring import RelevanceScorer, apply_scores
from domainanalyzer.workflows.common import StepResult, run_step

logger = logging.getLogger(__name__)

INTENT_STAGES = [
    'Community Data Mining',
    'Search Pattern Analysis',
    'Intent Classification',
    'Creating optimized intent phrases',
    'Relevance Score',
]

INTENT_STAGE_DESCRIPTIONS = [
    'Extracting insights from community discussions',
    'Analyzing user search behaviors',
    'Classifying generated phrases by intent',
    'Generating optimized search phrases',
    'Scoring phrase relevance for the domain',
]

INTENT_PHASES = {
    'community_mining': 0,
    'search_patterns': 1,
    'intent_classification': 2,
    'phrase_generation': 3,
    'relevance_scoring': 4,
}

PHRASE_GENERATED_EVENT = 'phrase-generated'
PHRASE_UPDATED_EVENT = 'phrase-updated'

PHRASE_FIELDS = (
    'id', 'phrase', 'intent', 'intentConfidence', 'relevanceScore', 'sources',
    'trend', 'editable', 'selected', 'parentKeyword', 'keywordId', 'wordCount',
)


class PhraseCollector:
    """
    Accumulates phrases streamed during generation.

    Phrases are deduplicated by text; ``phrase-updated`` events swap the
    temporary id of a collected phrase for its stored id.
    """

    def __init__(self) -> None:
        self._lock = RLock()
        self._phrases: List[Dict[str, Any]] = []
        self._seen = set()
        self.duplicates = 0

    def on_generated(self, payload: Any) -> None:
        if not isinstance(payload, dict) or not payload.get('phrase'):
            logger.debug(f"Ignoring malformed phrase event: {payload!r}")
            return
        with self._lock:
            text = payload['phrase']
            if text in self._seen:
                self.duplicates += 1
                logger.debug(f"Phrase already collected, skipping: {text}")
                return
            self._seen.add(text)
            self._phrases.append({key: payload.get(key) for key in PHRASE_FIELDS})
        logger.debug(f"Collected phrase for keyword '{payload.get('parentKeyword')}': {text}")

    def on_updated(self, payload: Any) -> None:
        if not isinstance(payload, dict) or 'oldId' not in payload:
            return
        with self._lock:
            for phrase in self._phrases:
                if phrase['id'] == payload['oldId']:
                    phrase['id'] = payload.get('newId')
                    logger.debug(f"Phrase id {payload['oldId']} -> {payload.get('newId')}")

    @property
    def phrases(self) -> List[Dict[str, Any]]:
        with self._lock:
            return [dict(p) for p in self._phrases]

    def __len__(self) -> int:
        return len(self._phrases)

    def handlers(self) -> Dict[str, Any]:
        """Event handlers for EventDrivenDriver."""
        return {
            PHRASE_GENERATED_EVENT: self.on_generated,
            PHRASE_UPDATED_EVENT: self.on_updated,
        }


def run_intent_phrases_workflow(
    client: AnalyzerClient,
    domain_id: int,
    scorer: Optional[RelevanceScorer] = None,
    progress_mode: str = "auto",
    logging_manager=None,
) -> StepResult:
    """
    Generate intent phrases for an onboarded domain.

    On completion the stored phrases are fetched; when that fetch fails or
    returns nothing, the phrases collected from the stream are used instead.
    Phrases without a backend relevance score are scored by ``scorer``.

    Args:
        client: Authenticated analyzer client
        domain_id: Backend domain id
        scorer: Relevance scorer for unscored phrases
        progress_mode: Progress display mode ("auto", "on", "off")
        logging_manager: LoggingManager toggled while the display is live

    Returns:
        StepResult with scored phrases as results
    """
    tracker = setup_progress_tracker(
        INTENT_STAGES, progress_mode,
        title="Generating Intent Phrases",
        descriptions=INTENT_STAGE_DESCRIPTIONS,
    )
    tracker.set_logging_manager(logging_manager)
    collector = PhraseCollector()

    def fetch_phrases(payload: Any) -> List[Dict[str, Any]]:
        if isinstance(payload, dict):
            logger.info(
                f"Backend reported {payload.get('totalPhrases', 0)} phrase(s) "
                f"for {payload.get('totalKeywords', 0)} keyword(s)"
            )
        try:
            phrases = client.get_intent_phrases(domain_id)
        except Exception:
            if len(collector):
                logger.warning(f"Using {len(collector)} streamed phrase(s) after fetch failure")
                return apply_scores(collector.phrases, scorer)
            raise
        return apply_scores(phrases or collector.phrases, scorer)

    stream = client.stream_intent_phrases(domain_id)
    driver = EventDrivenDriver(
        stream,
        phase_map=INTENT_PHASES,
        policy=PhasePolicy.CONCURRENT,
        handlers=collector.handlers(),
    )
    gate = CompletionGate(fetch_results=fetch_phrases)

    result = run_step('Intent Phrases', tracker, driver, gate)
    result.data['streamed_phrases'] = len(collector)
    return result
