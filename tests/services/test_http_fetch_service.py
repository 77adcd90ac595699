# tests/services/test_http_fetch_service.py
from unittest.mock import MagicMock

import pytest
import requests

from i18n_checker.model import CheckerSettings
from i18n_checker.services.http_fetch_service import HttpFetchService


def make_response(body=b"<html></html>", headers=None, status=200, url="https://example.org/"):
    """A fake requests.Response whose raw headers support getlist(), like urllib3's."""
    headers = headers or {"Content-Type": ["text/html; charset=utf-8"]}
    raw_headers = MagicMock()
    raw_headers.keys.return_value = list(headers)
    raw_headers.getlist.side_effect = lambda name: headers[name]

    response = MagicMock()
    response.raw.headers = raw_headers
    response.content = body
    response.status_code = status
    response.url = url
    if status >= 400:
        response.raise_for_status.side_effect = requests.exceptions.HTTPError(f"{status} Error")
    return response


@pytest.fixture
def session():
    return MagicMock(spec=requests.Session)


def test_fetch_builds_a_document_resource(session):
    session.get.return_value = make_response(headers={
        "Content-Type": ["text/html; charset=utf-8"],
        "Vary": ["Accept", "Accept-Language"],
    })
    service = HttpFetchService(CheckerSettings(request_timeout=5), session=session)

    resource = service.fetch("https://example.org/")

    assert resource.url == "https://example.org/"
    assert resource.body == b"<html></html>"
    assert resource.get_header("content-type") == "text/html; charset=utf-8"
    assert resource.headers["vary"] == ["Accept", "Accept-Language"]
    session.get.assert_called_once_with("https://example.org/", headers={}, timeout=5)


def test_request_headers_are_sent_and_recorded(session):
    session.get.return_value = make_response()
    service = HttpFetchService(session=session)

    resource = service.fetch("https://example.org/", {"Accept-Language": "fr"})

    assert session.get.call_args.kwargs["headers"] == {"Accept-Language": "fr"}
    assert session.get.call_args.kwargs["timeout"] == 60.0
    assert resource.get_header("Accept-Language") == "fr"


def test_http_errors_propagate(session):
    session.get.return_value = make_response(status=404)
    with pytest.raises(requests.exceptions.HTTPError):
        HttpFetchService(session=session).fetch("https://example.org/missing")


def test_connection_errors_propagate(session):
    session.get.side_effect = requests.exceptions.ConnectionError("refused")
    with pytest.raises(requests.exceptions.ConnectionError):
        HttpFetchService(session=session).fetch("https://example.org/")


def test_default_session_sends_the_user_agent():
    service = HttpFetchService(CheckerSettings(user_agent="test-agent/1.0"))
    assert service._get_session().headers["User-Agent"] == "test-agent/1.0"
