"""
CLI Configuration Module

Handles command-line argument parsing and environment configuration.
"""

import os
import argparse
import logging
from pathlib import Path
from typing import List, Optional
from dotenv import load_dotenv

logger = logging.getLogger(__name__)

DEFAULT_API_URL = 'http://localhost:5000'
DEFAULT_LOG_FILE = './logs/analyzer.log'
DEFAULT_STREAM_TIMEOUT = 45.0
DEFAULT_ID_MAP_FILE = './logs/domain_ids.json'


def _split_csv(value: Optional[str]) -> List[str]:
    if not value:
        return []
    return [item.strip() for item in value.split(',') if item.strip()]


def parse_arguments(argv: Optional[List[str]] = None):
    """
    Parse command-line arguments and load environment configuration.

    Args:
        argv: Argument list (default: sys.argv[1:])

    Returns:
        argparse.Namespace: Parsed arguments with additional attributes:
            - log_file: Path
            - id_map_file: Path
            - console_log_level: int
            - auth_token / email / password: Optional[str]
            - custom_paths / priority_urls / priority_paths: List[str]
    """
    # Load environment variables from .env file (if present)
    load_dotenv()

    env_api_url = os.getenv('ANALYZER_API_URL', DEFAULT_API_URL)
    env_log_file = os.getenv('LOG_FILE', DEFAULT_LOG_FILE)
    env_progress_mode = os.getenv('PROGRESS_MODE', 'auto')
    env_stream_timeout = os.getenv('STREAM_TIMEOUT', str(DEFAULT_STREAM_TIMEOUT))
    env_id_map_file = os.getenv('DOMAIN_ID_MAP_FILE', DEFAULT_ID_MAP_FILE)

    # Validate and convert STREAM_TIMEOUT to float
    try:
        default_stream_timeout = float(env_stream_timeout)
        if default_stream_timeout <= 0:
            logger.warning(f"STREAM_TIMEOUT must be positive, got {default_stream_timeout}. Using default.")
            default_stream_timeout = DEFAULT_STREAM_TIMEOUT
    except ValueError:
        logger.warning(f"Invalid STREAM_TIMEOUT value '{env_stream_timeout}', using default {DEFAULT_STREAM_TIMEOUT}")
        default_stream_timeout = DEFAULT_STREAM_TIMEOUT

    # Validate PROGRESS_MODE
    if env_progress_mode not in ['auto', 'on', 'off']:
        logger.warning(f"Invalid PROGRESS_MODE value '{env_progress_mode}', using default 'auto'")
        env_progress_mode = 'auto'

    parser = argparse.ArgumentParser(
        description='Run domain analyzer wizard steps with staged progress tracking'
    )
    parser.add_argument(
        '--api-url',
        type=str,
        default=env_api_url,
        help=f'Analyzer backend URL (default: {env_api_url})'
    )
    parser.add_argument(
        '--progress',
        type=str,
        choices=['auto', 'on', 'off'],
        default=env_progress_mode,
        help=f'Progress display mode (default: {env_progress_mode})'
    )
    parser.add_argument(
        '--stream-timeout',
        type=float,
        default=default_stream_timeout,
        help=f'Seconds of stream silence before a step times out (default: {default_stream_timeout})'
    )
    parser.add_argument(
        '--log-file',
        type=Path,
        default=Path(env_log_file),
        help=f'Log file path (default: {env_log_file})'
    )
    verbosity = parser.add_mutually_exclusive_group()
    verbosity.add_argument(
        '--verbose',
        action='store_true',
        help='Show step headers and summaries on the console'
    )
    verbosity.add_argument(
        '--debug',
        action='store_true',
        help='Show every stage transition and stream event on the console'
    )

    subparsers = parser.add_subparsers(dest='workflow', required=True)

    onboard = subparsers.add_parser('onboard', help='Validate and onboard a domain')
    onboard.add_argument('domain', help='Domain to onboard (e.g., example.com)')
    onboard.add_argument('--location', default='Global', help='Target location (default: Global)')
    onboard.add_argument('--keywords', default='', help='Comma-separated custom keywords')
    onboard.add_argument('--intent-phrases', default='', help='Comma-separated custom intent phrases')
    onboard.add_argument('--chat-model', default=None, help='Preferred chat model')
    onboard.add_argument('--run-all-models', action='store_true', help='Query every available model')
    onboard.add_argument('--force', action='store_true', help='Onboard even if the domain was analyzed before')

    keywords = subparsers.add_parser('keywords', help='Crawl a domain and generate keywords')
    keywords.add_argument('domain', help='Domain to analyze')
    keywords.add_argument('--location', default='Global', help='Target location (default: Global)')
    keywords.add_argument('--custom-paths', default='', help='Comma-separated extra paths to crawl')
    keywords.add_argument('--priority-urls', default='', help='Comma-separated URLs to crawl first')
    keywords.add_argument('--priority-paths', default='', help='Comma-separated paths to crawl first')

    phrases = subparsers.add_parser('intent-phrases', help='Generate intent phrases for a domain')
    phrases.add_argument('domain_id', help='Domain id, or a masked id produced earlier')

    demo = subparsers.add_parser('demo', help='Simulate a step without a backend')
    demo.add_argument(
        '--stages',
        choices=['onboard', 'keywords', 'intent-phrases'],
        default='intent-phrases',
        help='Stage list to simulate (default: intent-phrases)'
    )
    demo.add_argument('--names', default='', help='Comma-separated custom stage names')
    demo.add_argument('--step', type=int, default=None, help='Progress increment per tick')
    demo.add_argument('--step-delay', type=float, default=None, help='Seconds between ticks')

    args = parser.parse_args(argv)

    # Add additional configuration to args
    args.log_file = Path(args.log_file)
    args.id_map_file = Path(env_id_map_file)
    if args.debug:
        args.console_log_level = logging.DEBUG
    elif args.verbose:
        args.console_log_level = logging.INFO
    else:
        args.console_log_level = logging.WARNING

    # Credentials only come from the environment
    args.auth_token = os.getenv('ANALYZER_AUTH_TOKEN') or None
    args.email = os.getenv('ANALYZER_EMAIL') or None
    args.password = os.getenv('ANALYZER_PASSWORD') or None

    if args.workflow == 'keywords':
        args.custom_paths = _split_csv(args.custom_paths)
        args.priority_urls = _split_csv(args.priority_urls)
        args.priority_paths = _split_csv(args.priority_paths)
    elif args.workflow == 'demo':
        args.names = _split_csv(args.names)

    return args
