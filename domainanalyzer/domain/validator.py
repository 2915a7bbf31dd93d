"""
Domain Validator Module

Client-side checks run before a domain is submitted for onboarding.
"""

import logging
import re
from typing import Optional

from domainanalyzer.exceptions import DomainValidationError

logger = logging.getLogger(__name__)

DOMAIN_PATTERN = re.compile(r'^(?:https?://)?(?:www\.)?([a-zA-Z0-9-]+\.)+[a-zA-Z]{2,}$')

DOMAIN_REQUIRED_MESSAGE = "Domain is required"
DOMAIN_INVALID_MESSAGE = "Please enter a valid domain (e.g., example.com)"


def validate_domain(domain: Optional[str]) -> tuple[bool, Optional[str]]:
    """
    Validate a domain entered by the user.

    Accepts bare domains as well as ones prefixed with a scheme and/or
    ``www.`` (e.g. ``https://www.example.com``). Paths are not accepted.

    Args:
        domain: Raw user input

    Returns:
        Tuple of (is_valid, error_message)
        - is_valid: True if the domain can be submitted
        - error_message: None if valid, user-facing message if invalid

    Example:
        >>> validate_domain("example.com")
        (True, None)
        >>> validate_domain("not a domain")
        (False, 'Please enter a valid domain (e.g., example.com)')
    """
    if domain is None or not domain.strip():
        return False, DOMAIN_REQUIRED_MESSAGE

    if not DOMAIN_PATTERN.match(domain.strip()):
        logger.debug(f"Rejected domain input: {domain!r}")
        return False, DOMAIN_INVALID_MESSAGE

    return True, None


def require_valid_domain(domain: Optional[str]) -> str:
    """
    Return the stripped domain or raise DomainValidationError.
    """
    is_valid, error = validate_domain(domain)
    if not is_valid:
        raise DomainValidationError(error)
    return domain.strip()
