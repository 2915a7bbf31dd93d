"""
Progress Display Components

Contains renderers for different output formats and environments.
"""

from domainanalyzer.progress.display.rich_renderer import RichProgressRenderer, is_rich_available
from domainanalyzer.progress.display.tqdm_renderer import TqdmProgressRenderer, is_tqdm_available

__all__ = [
    'RichProgressRenderer',
    'TqdmProgressRenderer',
    'is_rich_available',
    'is_tqdm_available',
]
