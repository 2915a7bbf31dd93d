"""
Analyzer Authentication Utilities

Resolves the bearer token used for analyzer API calls, either from an
existing token or by logging in with account credentials.
"""

import logging
from typing import Optional

from domainanalyzer.api.client import AnalyzerClient
from domainanalyzer.exceptions import AnalyzerAuthError

logger = logging.getLogger(__name__)


def resolve_auth_token(
    client: AnalyzerClient,
    token: Optional[str] = None,
    email: Optional[str] = None,
    password: Optional[str] = None,
) -> str:
    """
    Make sure ``client`` carries a bearer token.

    An explicit token wins; otherwise email and password are used to log in.

    Args:
        client: Client to authenticate
        token: Existing bearer token (e.g., from ANALYZER_AUTH_TOKEN)
        email: Account email for login
        password: Account password for login

    Returns:
        The token now set on the client

    Raises:
        AnalyzerAuthError: If no credentials are available or login fails
    """
    if token:
        logger.info("Using provided auth token")
        client.set_token(token)
        return token

    if email and password:
        logger.info(f"Logging in as: {email}")
        return client.login(email, password)

    logger.error("No auth token or login credentials configured")
    raise AnalyzerAuthError(
        "Authentication required: set ANALYZER_AUTH_TOKEN or ANALYZER_EMAIL and ANALYZER_PASSWORD"
    )
