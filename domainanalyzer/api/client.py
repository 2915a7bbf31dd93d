"""
Domain Analyzer REST API Client

Bearer-token JSON client for the analyzer backend, including the streaming
(server-sent event) endpoints that drive progress.
"""

import logging
from typing import Any, Dict, Iterator, List, Optional, Sequence
from urllib.parse import quote

import requests
from urllib3.exceptions import ProtocolError, ReadTimeoutError

from domainanalyzer.api.sse import ServerSentEvent, parse_sse_lines
from domainanalyzer.exceptions import (
    AnalyzerAPIError,
    AnalyzerAuthError,
    AnalyzerNetworkError,
    StreamError,
    StreamTimeoutError,
)

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 30.0
CONNECT_TIMEOUT = 10.0


class EventStream:
    """
    Iterable over the events of one open streaming response.

    Read timeouts surface as StreamTimeoutError and dropped connections as
    StreamError. ``close()`` releases the connection and may be called from
    another thread to unblock a pending read.
    """

    def __init__(self, response: requests.Response, url: str) -> None:
        self._response = response
        self.url = url
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    def __iter__(self) -> Iterator[ServerSentEvent]:
        lines = self._response.iter_lines(decode_unicode=True)
        try:
            for event in parse_sse_lines(lines):
                yield event
        except requests.exceptions.Timeout as e:
            raise StreamTimeoutError(f"No data from {self.url} within timeout") from e
        except requests.exceptions.ConnectionError as e:
            if _is_read_timeout(e):
                raise StreamTimeoutError(f"No data from {self.url} within timeout") from e
            if self._closed:
                return
            raise StreamError(f"Stream connection lost: {e}") from e
        except (requests.exceptions.RequestException, ProtocolError, AttributeError) as e:
            # A response closed from another thread surfaces as one of these
            if self._closed:
                return
            raise StreamError(f"Stream read failed: {e}") from e
        finally:
            self.close()

    def close(self) -> None:
        if not self._closed:
            self._closed = True
            self._response.close()
            logger.debug(f"Closed stream: {self.url}")

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
        return False


def _is_read_timeout(error: Exception) -> bool:
    return any(isinstance(arg, ReadTimeoutError) for arg in error.args)


class AnalyzerClient:
    """
    Client for the domain analyzer backend.

    Wraps a requests Session carrying the bearer token, maps HTTP failures
    onto the analyzer exception hierarchy and exposes the wizard endpoints.
    """

    def __init__(
        self,
        base_url: str,
        token: Optional[str] = None,
        timeout: float = DEFAULT_TIMEOUT,
        stream_timeout: Optional[float] = None,
        session: Optional[requests.Session] = None,
    ) -> None:
        """
        Initialize analyzer client.

        Args:
            base_url: Backend root URL (e.g., https://api.example.com)
            token: Bearer token; can be set later via login()
            timeout: Timeout in seconds for plain REST requests
            stream_timeout: Maximum silence on a stream (defaults to the progress config)
            session: Optional preconfigured requests Session
        """
        if not base_url:
            raise ValueError("base_url is required")

        from domainanalyzer.progress.config import get_config

        self.base_url = base_url.rstrip('/')
        self.timeout = timeout
        self.stream_timeout = stream_timeout or get_config().stream_timeout
        self.session = session or requests.Session()
        self.session.headers.update({'Content-Type': 'application/json'})
        self.token: Optional[str] = None
        if token:
            self.set_token(token)

        logger.info(f"Initialized analyzer client for: {self.base_url}")

    def set_token(self, token: str) -> None:
        self.token = token
        self.session.headers['Authorization'] = f'Bearer {token}'

    def _url(self, path: str) -> str:
        return f"{self.base_url}/{path.lstrip('/')}"

    def _raise_for_status(self, response: requests.Response, url: str) -> None:
        if response.status_code < 400:
            return

        message = f"HTTP {response.status_code} from {url}"
        try:
            body = response.json()
            if isinstance(body, dict) and (body.get('error') or body.get('message')):
                message = str(body.get('error') or body.get('message'))
        except ValueError:
            pass

        if response.status_code in (401, 403):
            logger.error(f"Authentication rejected for {url}: {message}")
            raise AnalyzerAuthError(message)

        logger.error(f"Request to {url} failed: {message}")
        raise AnalyzerAPIError(message, status_code=response.status_code)

    def request_json(
        self,
        method: str,
        path: str,
        payload: Optional[Dict[str, Any]] = None,
        params: Optional[Dict[str, Any]] = None,
    ) -> Any:
        """
        Perform a JSON request and return the decoded body.

        Raises:
            AnalyzerAuthError: On 401/403
            AnalyzerAPIError: On other HTTP errors or a non-JSON body
            AnalyzerNetworkError: On connection failures and timeouts
        """
        url = self._url(path)
        logger.debug(f"{method} {url}")

        try:
            response = self.session.request(
                method, url, json=payload, params=params, timeout=self.timeout
            )
        except requests.exceptions.Timeout as e:
            logger.error(f"Request timed out: {url}")
            raise AnalyzerNetworkError(f"Request timed out: {e}") from e
        except requests.exceptions.RequestException as e:
            logger.error(f"Request failed for {url}: {e}")
            raise AnalyzerNetworkError(f"Request failed: {e}") from e

        self._raise_for_status(response, url)

        try:
            return response.json()
        except ValueError as e:
            raise AnalyzerAPIError(f"Invalid JSON from {url}: {e}", status_code=response.status_code) from e

    def get_json(self, path: str, params: Optional[Dict[str, Any]] = None) -> Any:
        return self.request_json('GET', path, params=params)

    def post_json(self, path: str, payload: Optional[Dict[str, Any]] = None) -> Any:
        return self.request_json('POST', path, payload=payload)

    def open_stream(
        self,
        method: str,
        path: str,
        payload: Optional[Dict[str, Any]] = None,
    ) -> EventStream:
        """
        Open a server-sent event stream.

        The read timeout is the stream timeout: a backend that stays silent
        longer than that ends the stream with StreamTimeoutError.
        """
        url = self._url(path)
        logger.info(f"Opening event stream: {method} {url}")

        try:
            response = self.session.request(
                method,
                url,
                json=payload,
                headers={'Accept': 'text/event-stream'},
                stream=True,
                timeout=(CONNECT_TIMEOUT, self.stream_timeout),
            )
        except requests.exceptions.Timeout as e:
            raise StreamTimeoutError(f"Timed out opening stream {url}: {e}") from e
        except requests.exceptions.RequestException as e:
            raise StreamError(f"Failed to open stream {url}: {e}") from e

        try:
            self._raise_for_status(response, url)
        except Exception:
            response.close()
            raise

        return EventStream(response, url)

    # Authentication

    def login(self, email: str, password: str) -> str:
        """Log in with credentials and keep the returned bearer token."""
        try:
            body = self.post_json('/api/auth/login', {'email': email, 'password': password})
        except AnalyzerAPIError as e:
            raise AnalyzerAuthError(f"Login failed: {e}") from e

        token = body.get('token') if isinstance(body, dict) else None
        if not token:
            raise AnalyzerAuthError("Login response did not include a token")

        self.set_token(token)
        logger.info(f"Logged in as: {email}")
        return token

    # Domain onboarding

    def check_domain(self, domain: str) -> Dict[str, Any]:
        """Look up whether the domain was analyzed before."""
        return self.get_json(f"/api/domain/check/{quote(domain, safe='')}")

    def validate_domain(self, domain: str) -> Dict[str, Any]:
        return self.post_json('/api/domain-validation/validate-domain', {'domain': domain})

    def check_ssl(self, domain: str) -> Dict[str, Any]:
        return self.post_json('/api/domain-validation/check-ssl', {'domain': domain})

    def analyze_server(self, domain: str) -> Dict[str, Any]:
        return self.post_json('/api/domain-validation/analyze-server', {'domain': domain})

    def configure_geo(
        self,
        domain: str,
        location: str,
        custom_keywords: str = "",
        intent_phrases: str = "",
        chat_model: Optional[str] = None,
        run_all_models: bool = False,
    ) -> Dict[str, Any]:
        """Final onboarding check; creates the domain and returns its id."""
        return self.post_json('/api/domain-validation/configure-geo', {
            'domain': domain,
            'location': location,
            'customKeywords': custom_keywords,
            'intentPhrases': intent_phrases,
            'chatModel': chat_model,
            'runAllModels': run_all_models,
        })

    # Keywords and intent phrases

    def stream_domain_analysis(
        self,
        domain: str,
        location: str = "Global",
        custom_paths: Sequence[str] = (),
        priority_urls: Sequence[str] = (),
        priority_paths: Sequence[str] = (),
    ) -> EventStream:
        """Start domain extraction + keyword generation; progress is streamed."""
        return self.open_stream('POST', '/api/domain', {
            'url': domain,
            'location': location or 'Global',
            'customPaths': list(custom_paths),
            'priorityUrls': list(priority_urls),
            'priorityPaths': list(priority_paths),
        })

    def get_keywords(self, domain_id: int, selected: Optional[bool] = None) -> List[Dict[str, Any]]:
        params = {'selected': 'true'} if selected else None
        body = self.get_json(f"/api/keywords/{domain_id}", params=params)
        return list(body.get('keywords') or []) if isinstance(body, dict) else []

    def stream_intent_phrases(self, domain_id: int) -> EventStream:
        """Start intent phrase generation; progress is streamed."""
        return self.open_stream('GET', f"/api/intent-phrases/{domain_id}/stream")

    def get_intent_phrases(self, domain_id: int) -> List[Dict[str, Any]]:
        body = self.get_json(f"/api/enhanced-phrases/{domain_id}/step3")
        return list(body.get('existingPhrases') or []) if isinstance(body, dict) else []

    def close(self):
        """Close the session"""
        self.session.close()
        logger.debug("Closed analyzer client session")

    def __enter__(self):
        """Context manager entry"""
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        """Context manager exit - ensure session is closed"""
        self.close()
        return False
