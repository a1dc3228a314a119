import threading
import time

import pytest

from site_scraper.http_client import FetchResult


class FakeHttp:
    """Stands in for HttpClient: serves canned pages keyed by exact URL.

    A page is ``(status, content_type, body)`` or an exception to raise.
    Unknown URLs get a 404.
    """

    def __init__(self, pages=None, delays=None):
        self.pages = dict(pages or {})
        self.delays = dict(delays or {})
        self.calls = []
        self.results = []
        self._lock = threading.Lock()

    def get(self, url, **options):
        with self._lock:
            self.calls.append((url, options))
        if url in self.delays:
            time.sleep(self.delays[url])
        page = self.pages.get(url)
        if isinstance(page, Exception):
            raise page
        if page is None:
            page = (404, "text/plain", b"not found")
        status, content_type, body = page
        headers = {"Content-Type": content_type} if content_type else {}
        result = FetchResult(
            url=url,
            final_url=url,
            status_code=status,
            headers=headers,
            body=body,
        )
        with self._lock:
            self.results.append(result)
        return result

    def close(self):
        pass

    def urls(self):
        return [url for url, _ in self.calls]


@pytest.fixture
def http():
    return FakeHttp()


@pytest.fixture
def out_dir(tmp_path):
    return tmp_path / "site"
