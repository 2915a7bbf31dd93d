"""High-level workflows"""
from domainanalyzer.workflows.common import StepResult, run_step
from domainanalyzer.workflows.onboarding import run_onboarding_workflow
from domainanalyzer.workflows.keywords import run_keywords_workflow, determine_intent
from domainanalyzer.workflows.intent_phrases import PhraseCollector, run_intent_phrases_workflow
from domainanalyzer.workflows.demo import run_demo_workflow

__all__ = [
    "StepResult",
    "run_step",
    "run_onboarding_workflow",
    "run_keywords_workflow",
    "determine_intent",
    "PhraseCollector",
    "run_intent_phrases_workflow",
    "run_demo_workflow",
]
