"""Analyzer backend API interactions"""
from domainanalyzer.api.sse import ServerSentEvent, parse_sse_lines
from domainanalyzer.api.client import AnalyzerClient, EventStream
from domainanalyzer.api.auth import resolve_auth_token

__all__ = [
    'ServerSentEvent',
    'parse_sse_lines',
    'AnalyzerClient',
    'EventStream',
    'resolve_auth_token',
]
