import pytest
import requests

from site_scraper.errors import TransportError
from site_scraper.http_client import FetchResult, HttpClient, load_json


class FakeResponse:
    def __init__(self, status_code, body=b"", headers=None, url="http://x.com/"):
        self.status_code = status_code
        self.content = body
        self.headers = headers or {}
        self.url = url


class FakeSession:
    def __init__(self, outcomes):
        self.outcomes = list(outcomes)
        self.calls = []
        self.closed = False

    def get(self, url, **kwargs):
        self.calls.append((url, kwargs))
        outcome = self.outcomes.pop(0)
        if isinstance(outcome, Exception):
            raise outcome
        return outcome

    def close(self):
        self.closed = True


def test_get_returns_error_statuses_as_results():
    session = FakeSession([FakeResponse(500, b"")])
    client = HttpClient(session, max_retries=0)

    res = client.get("http://x.com/")

    assert isinstance(res, FetchResult)
    assert res.status_code == 500
    assert res.body == b""


def test_get_passes_headers_and_default_timeout():
    session = FakeSession([FakeResponse(200, b"OK", {"Content-Type": "text/html"})])
    client = HttpClient(session, timeout_s=7, max_retries=0)

    res = client.get("http://x.com/", headers={"User-Agent": "t"})

    assert session.calls == [
        ("http://x.com/", {"headers": {"User-Agent": "t"}, "timeout": 7})
    ]
    assert res.content_type == "text/html"


def test_request_options_override_timeout():
    session = FakeSession([FakeResponse(200)])
    client = HttpClient(session, max_retries=0)

    client.get("http://x.com/", timeout=3, allow_redirects=False)

    _, kwargs = session.calls[0]
    assert kwargs["timeout"] == 3
    assert kwargs["allow_redirects"] is False


def test_transient_status_is_retried(monkeypatch):
    monkeypatch.setattr("site_scraper.http_client.time.sleep", lambda s: None)
    session = FakeSession(
        [FakeResponse(503, headers={"Retry-After": "0"}), FakeResponse(200, b"OK")]
    )
    client = HttpClient(session, max_retries=2)

    res = client.get("http://x.com/")

    assert res.status_code == 200
    assert len(session.calls) == 2
    assert res.attempts == 2


def test_transport_failure_raises_transport_error(monkeypatch):
    monkeypatch.setattr("site_scraper.http_client.time.sleep", lambda s: None)
    session = FakeSession(
        [requests.ConnectionError("refused"), requests.Timeout("slow")]
    )
    client = HttpClient(session, max_retries=1)

    with pytest.raises(TransportError) as exc_info:
        client.get("http://x.com/")

    assert exc_info.value.url == "http://x.com/"
    assert isinstance(exc_info.value.cause, requests.Timeout)


def test_close_closes_session():
    session = FakeSession([])
    HttpClient(session).close()
    assert session.closed


def test_load_json(tmp_path):
    good = tmp_path / "good.json"
    good.write_text('{"urls": ["http://x.com"]}', encoding="utf-8")
    bad = tmp_path / "bad.json"
    bad.write_text("{", encoding="utf-8")

    assert load_json(good) == {"urls": ["http://x.com"]}
    assert load_json(bad) is None
    assert load_json(tmp_path / "missing.json") is None


def test_default_user_agent_is_sent():
    session = FakeSession([FakeResponse(200)])
    client = HttpClient(session, max_retries=0)

    client.get("http://x.com/")

    _, kwargs = session.calls[0]
    assert kwargs["headers"]["User-Agent"] == "site-scraper"


def test_exhausted_retries_return_last_status(monkeypatch):
    monkeypatch.setattr("site_scraper.http_client.time.sleep", lambda s: None)
    session = FakeSession([FakeResponse(502), FakeResponse(502, b"bad gateway")])
    client = HttpClient(session, max_retries=1)

    res = client.get("http://x.com/")

    assert res.status_code == 502
    assert res.body == b"bad gateway"
    assert res.attempts == 2
    assert not res.ok


def test_context_manager_closes_session():
    session = FakeSession([])
    with HttpClient(session) as client:
        assert isinstance(client, HttpClient)
    assert session.closed
