"""Shared fixtures: pages built from inline HTML and a fake requests session."""

import pytest
import requests
from requests.structures import CaseInsensitiveDict

import site_scanner
from site_config import AnalyzerConfig
from site_scanner import parse_page

SITE_URL = "https://example.com/"


class FakeResponse:
    def __init__(self, url: str, status_code: int = 200, text: str = "", headers=None,
                 content: bytes = None, encoding: str = "ISO-8859-1"):
        self.url = url
        self.status_code = status_code
        self.headers = CaseInsensitiveDict(headers or {})
        self.content = content if content is not None else text.encode("utf-8")
        self.encoding = encoding if content is not None else "utf-8"
        self.apparent_encoding = "utf-8"

    @property
    def text(self) -> str:
        return self.content.decode(self.encoding)

    def raise_for_status(self):
        if self.status_code >= 400:
            raise requests.HTTPError(f"{self.status_code} Error for url: {self.url}")


class FakeSession:
    """Stands in for requests.Session. Values may be a FakeResponse or an exception to raise."""

    def __init__(self, pages=None, heads=None):
        self.headers = {}
        self.pages = pages or {}
        self.heads = heads or {}
        self.get_calls = []
        self.head_calls = []

    def _answer(self, table, url):
        value = table.get(url)
        if value is None:
            return FakeResponse(url)
        if isinstance(value, Exception):
            raise value
        return value

    def get(self, url, **kwargs):
        self.get_calls.append((url, kwargs))
        return self._answer(self.pages, url)

    def head(self, url, **kwargs):
        self.head_calls.append((url, kwargs))
        return self._answer(self.heads, url)


@pytest.fixture
def config(tmp_path) -> AnalyzerConfig:
    return AnalyzerConfig(site_url=SITE_URL, report_file=str(tmp_path / "report.txt"))


@pytest.fixture
def make_page():
    def _make(html: str, url: str = SITE_URL):
        return parse_page(url, html)
    return _make


@pytest.fixture
def fake_session(monkeypatch) -> FakeSession:
    session = FakeSession()
    monkeypatch.setattr(site_scanner, "new_session", lambda config: session)
    return session


def image_head(url: str, size: int) -> FakeResponse:
    return FakeResponse(url, headers={"Content-Length": str(size)})
