from unittest.mock import Mock

import pytest
import requests
from urllib3.exceptions import ReadTimeoutError

from domainanalyzer.api import AnalyzerClient, resolve_auth_token
from domainanalyzer.exceptions import (
    AnalyzerAPIError,
    AnalyzerAuthError,
    AnalyzerNetworkError,
    StreamError,
    StreamTimeoutError,
)
from domainanalyzer.progress.core.stage import StageList, StageStatus
from domainanalyzer.progress.drivers import DriverOutcome, EventDrivenDriver


def make_response(status_code=200, body=None, lines=None):
    response = Mock()
    response.status_code = status_code
    if body is None:
        response.json.side_effect = ValueError("No JSON")
    else:
        response.json.return_value = body
    if lines is not None:
        response.iter_lines.return_value = lines
    return response


@pytest.fixture
def session():
    session = Mock()
    session.headers = {}
    return session


@pytest.fixture
def client(session):
    return AnalyzerClient("https://api.example.com/", token="secret", session=session)


def test_bearer_token_is_set(client, session):
    assert session.headers["Authorization"] == "Bearer secret"
    assert client.base_url == "https://api.example.com"


def test_missing_base_url_rejected(session):
    with pytest.raises(ValueError):
        AnalyzerClient("", session=session)


def test_login_stores_token(session):
    session.request.return_value = make_response(body={"user": {"id": 1}, "token": "jwt-token"})
    client = AnalyzerClient("https://api.example.com", session=session)

    assert client.login("user@example.com", "pw") == "jwt-token"
    assert session.headers["Authorization"] == "Bearer jwt-token"
    method, url = session.request.call_args.args
    assert (method, url) == ("POST", "https://api.example.com/api/auth/login")
    assert session.request.call_args.kwargs["json"] == {"email": "user@example.com", "password": "pw"}


def test_login_rejected(session):
    session.request.return_value = make_response(401, {"error": "Invalid credentials"})
    client = AnalyzerClient("https://api.example.com", session=session)

    with pytest.raises(AnalyzerAuthError, match="Invalid credentials"):
        client.login("user@example.com", "wrong")


def test_login_without_token_in_response(session):
    session.request.return_value = make_response(body={"user": {}})
    client = AnalyzerClient("https://api.example.com", session=session)

    with pytest.raises(AnalyzerAuthError):
        client.login("user@example.com", "pw")


def test_http_error_uses_backend_message(client, session):
    session.request.return_value = make_response(500, {"error": "Database unavailable"})

    with pytest.raises(AnalyzerAPIError) as exc_info:
        client.validate_domain("example.com")
    assert str(exc_info.value) == "Database unavailable"
    assert exc_info.value.status_code == 500


def test_http_error_without_json_body(client, session):
    session.request.return_value = make_response(404)

    with pytest.raises(AnalyzerAPIError, match="HTTP 404"):
        client.get_keywords(3)


def test_connection_error_maps_to_network_error(client, session):
    session.request.side_effect = requests.exceptions.ConnectionError("refused")

    with pytest.raises(AnalyzerNetworkError):
        client.check_ssl("example.com")


def test_check_domain_quotes_domain(client, session):
    session.request.return_value = make_response(body={"exists": False})

    assert client.check_domain("example.com") == {"exists": False}
    assert session.request.call_args.args == ("GET", "https://api.example.com/api/domain/check/example.com")


def test_configure_geo_payload(client, session):
    session.request.return_value = make_response(body={"success": True, "domainId": 12})

    client.configure_geo("example.com", "United States", custom_keywords="crm", run_all_models=True)

    assert session.request.call_args.args[1].endswith("/api/domain-validation/configure-geo")
    assert session.request.call_args.kwargs["json"] == {
        "domain": "example.com",
        "location": "United States",
        "customKeywords": "crm",
        "intentPhrases": "",
        "chatModel": None,
        "runAllModels": True,
    }


def test_get_keywords_and_phrases_unwrap_lists(client, session):
    session.request.return_value = make_response(body={"keywords": [{"id": 1, "term": "crm"}]})
    assert client.get_keywords(4) == [{"id": 1, "term": "crm"}]

    session.request.return_value = make_response(body={"existingPhrases": [{"phrase": "best crm"}]})
    assert client.get_intent_phrases(4) == [{"phrase": "best crm"}]
    assert session.request.call_args.args[1].endswith("/api/enhanced-phrases/4/step3")


def test_stream_request_uses_stream_timeout(session):
    session.request.return_value = make_response(lines=[])
    client = AnalyzerClient("https://api.example.com", token="t", stream_timeout=12, session=session)

    client.stream_intent_phrases(8)

    kwargs = session.request.call_args.kwargs
    assert session.request.call_args.args == ("GET", "https://api.example.com/api/intent-phrases/8/stream")
    assert kwargs["stream"] is True
    assert kwargs["timeout"][1] == 12
    assert kwargs["headers"]["Accept"] == "text/event-stream"


def test_stream_yields_events_and_closes(client, session):
    response = make_response(lines=[
        'data: {"type": "progress", "phase": "domain_extraction", "progress": 30}',
        "",
        'data: {"type": "complete", "result": {"domain": {"id": 3}}}',
        "",
    ])
    session.request.return_value = response

    stream = client.stream_domain_analysis("example.com", location="Germany")
    events = list(stream)

    assert [e.json()["type"] for e in events] == ["progress", "complete"]
    assert stream.closed
    response.close.assert_called_once()
    assert session.request.call_args.kwargs["json"]["location"] == "Germany"


def test_stream_open_failure_status(client, session):
    response = make_response(403, {"error": "Forbidden"})
    session.request.return_value = response

    with pytest.raises(AnalyzerAuthError):
        client.stream_intent_phrases(1)
    response.close.assert_called_once()


def test_stream_open_connection_failure(client, session):
    session.request.side_effect = requests.exceptions.ConnectionError("refused")

    with pytest.raises(StreamError):
        client.stream_intent_phrases(1)


def test_stream_read_timeout_times_out_driver(client, session):
    def lines():
        yield 'event: progress'
        yield 'data: {"phase": "search_patterns", "progress": 40}'
        yield ''
        raise requests.exceptions.ConnectionError(ReadTimeoutError(None, None, "Read timed out."))

    session.request.return_value = make_response(lines=lines())
    stages = StageList.initialize(["Community Data Mining", "Search Pattern Analysis"])
    driver = EventDrivenDriver(
        client.stream_intent_phrases(1),
        phase_map={"community_mining": 0, "search_patterns": 1},
    )

    assert driver.run(stages) == DriverOutcome.TIMED_OUT
    assert stages[1].status == StageStatus.FAILED


def test_stream_read_timeout_raises(client, session):
    def lines():
        raise requests.exceptions.ReadTimeout("Read timed out.")
        yield

    session.request.return_value = make_response(lines=lines())

    with pytest.raises(StreamTimeoutError):
        list(client.stream_intent_phrases(1))


def test_stream_connection_drop_raises_stream_error(client, session):
    def lines():
        raise requests.exceptions.ChunkedEncodingError("Connection broken")
        yield

    session.request.return_value = make_response(lines=lines())

    with pytest.raises(StreamError):
        list(client.stream_intent_phrases(1))


def test_client_context_manager_closes_session(session):
    with AnalyzerClient("https://api.example.com", session=session):
        pass
    session.close.assert_called_once()


def test_resolve_auth_token_prefers_token(client):
    client.login = Mock()
    assert resolve_auth_token(client, token="abc", email="a@b.c", password="pw") == "abc"
    client.login.assert_not_called()


def test_resolve_auth_token_logs_in(client):
    client.login = Mock(return_value="fresh")
    assert resolve_auth_token(client, email="a@b.c", password="pw") == "fresh"
    client.login.assert_called_once_with("a@b.c", "pw")


def test_resolve_auth_token_without_credentials(client):
    with pytest.raises(AnalyzerAuthError):
        resolve_auth_token(client)
