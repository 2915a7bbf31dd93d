#!/usr/bin/env python3
"""
Domain Analyzer - Main Entry Point

Runs one wizard step with staged progress tracking:
- onboard: validate a domain and run the onboarding checks
- keywords: crawl the domain and generate keywords (streamed progress)
- intent-phrases: generate intent phrases (streamed progress)
- demo: simulated progress without a backend
"""

import sys
import logging

from domainanalyzer.api import AnalyzerClient, resolve_auth_token
from domainanalyzer.cli.config import parse_arguments
from domainanalyzer.domain import DomainIdMasker
from domainanalyzer.exceptions import AnalyzerAuthError, AnalyzerError, DomainValidationError
from domainanalyzer.logging import LoggingManager
from domainanalyzer.progress.config import update_config
from domainanalyzer.workflows import (
    run_demo_workflow,
    run_intent_phrases_workflow,
    run_keywords_workflow,
    run_onboarding_workflow,
)

logger = logging.getLogger(__name__)


def run_workflow(args, logging_manager: LoggingManager):
    """Dispatch the selected workflow; returns its StepResult."""
    if args.workflow == 'demo':
        return run_demo_workflow(
            stage_set=args.stages,
            stage_names=args.names or None,
            step=args.step,
            step_delay=args.step_delay,
            progress_mode=args.progress,
            logging_manager=logging_manager,
        )

    masker = DomainIdMasker(args.id_map_file)

    with AnalyzerClient(args.api_url, stream_timeout=args.stream_timeout) as client:
        resolve_auth_token(client, args.auth_token, args.email, args.password)

        if args.workflow == 'onboard':
            result = run_onboarding_workflow(
                client,
                args.domain,
                location=args.location,
                custom_keywords=args.keywords,
                intent_phrases=args.intent_phrases,
                chat_model=args.chat_model,
                run_all_models=args.run_all_models,
                reuse_existing=not args.force,
                progress_mode=args.progress,
                logging_manager=logging_manager,
            )
        elif args.workflow == 'keywords':
            result = run_keywords_workflow(
                client,
                args.domain,
                location=args.location,
                custom_paths=args.custom_paths,
                priority_urls=args.priority_urls,
                priority_paths=args.priority_paths,
                progress_mode=args.progress,
                logging_manager=logging_manager,
            )
        else:
            domain_id = masker.resolve(args.domain_id)
            if domain_id is None:
                raise ValueError(f"Unknown domain id: {args.domain_id}")
            result = run_intent_phrases_workflow(
                client,
                domain_id,
                progress_mode=args.progress,
                logging_manager=logging_manager,
            )

    domain_id = result.data.get('domain_id')
    if domain_id is not None:
        result.data['masked_domain_id'] = masker.mask(int(domain_id))
    return result


def main():
    """
    Main entry point - parse config and execute the selected workflow.

    Returns:
        Exit code: 0 for success, 1 when the step failed, 2 for fatal errors,
        130 when interrupted
    """
    # Parse arguments and load configuration
    args = parse_arguments()

    # Setup logging with progress-aware management
    logging_manager = LoggingManager.get_instance()
    logging_manager.setup(args.log_file, console_level=args.console_log_level)
    update_config(stream_timeout=args.stream_timeout)

    try:
        result = run_workflow(args, logging_manager)

        if result.success:
            print(f"✓ {result.name} complete: {len(result.results)} result(s) in {result.response_time:.1f}s")
            if 'masked_domain_id' in result.data:
                print(f"  Domain id: {result.data['domain_id']} (masked: {result.data['masked_domain_id']})")
            return 0

        print(f"✗ {result.name} failed: {result.error}", file=sys.stderr)
        return 1

    except DomainValidationError as e:
        logger.error(f"Invalid domain: {e}")
        return 2

    except AnalyzerAuthError as e:
        logger.error(f"Authentication failed: {e}")
        logger.error("Set ANALYZER_AUTH_TOKEN, or ANALYZER_EMAIL and ANALYZER_PASSWORD")
        logger.debug("Full error details:", exc_info=True)
        return 2

    except AnalyzerError as e:
        logger.error(f"Backend error: {e}")
        logger.error("Please check that the analyzer backend is reachable")
        logger.debug("Full error details:", exc_info=True)
        return 2

    except ValueError as e:
        logger.error(f"Invalid configuration or input: {e}")
        logger.debug("Full error details:", exc_info=True)
        return 2

    except KeyboardInterrupt:
        logger.warning("\nWorkflow interrupted by user (Ctrl+C)")
        logger.info("Exiting gracefully...")
        return 130  # Standard exit code for SIGINT

    except Exception as e:
        logger.error(f"Unexpected error occurred: {e}")
        logger.error("Please check the log file for detailed error information")
        logger.debug("Full error details:", exc_info=True)
        return 2

    finally:
        logging_manager.cleanup()


if __name__ == '__main__':
    sys.exit(main())
