"""
conftest.py

Test configuration for spotlightdl tests.

Defines Pytest fixtures for supplying test data to tests across the entire
test suite: fake selection API payloads, fake requests Responses and an isolated
environment so the user's own config file or locale never leak into a test run.
Fixtures used within only a single module are defined directly in that module.
"""

import json
import unittest.mock

import pytest
from requests.structures import CaseInsensitiveDict


@pytest.fixture(autouse=True)
def isolated_env(tmp_path, monkeypatch):
    """
    Point config lookup at an empty directory and pin LANG for every test.
    """

    monkeypatch.setenv("SPOTLIGHTDL_CONFIG_DIR", str(tmp_path / "config"))
    monkeypatch.setenv("LANG", "en_US.UTF-8")


@pytest.fixture
def make_item():
    """
    Return a function building one inner item string as the selection API encodes it.
    Pass landscape=False to build a portrait-only item.
    """

    def inner(
        asset="https://example.com/img123.jpg",
        hover_text="",
        title="",
        copyright="",
        landscape=True,
    ) -> str:
        ad = {
            "iconHoverText": hover_text,
            "title": title,
            "copyright": copyright,
            "portraitImage": {"asset": asset},
        }
        if landscape:
            ad["landscapeImage"] = {"asset": asset}

        return json.dumps({"ad": ad})

    return inner


@pytest.fixture
def make_batch():
    """
    Return a function wrapping item strings into a raw selection API response body.
    """

    def inner(*items) -> bytes:
        return json.dumps(
            {"batchrsp": {"ver": "1.0", "items": [{"item": item} for item in items]}}
        ).encode()

    return inner


@pytest.fixture
def make_response():
    """
    Return a function building a MagicMock standing in for a requests Response. The body is
    served from 'content' and, chunk by chunk, from iter_content().
    """

    def inner(status_code=200, body=b"", headers=None, chunks=None):
        response = unittest.mock.MagicMock()
        response.status_code = status_code
        response.content = body
        response.headers = CaseInsensitiveDict(headers or {})
        response.iter_content.side_effect = lambda *args, **kwargs: iter(
            chunks if chunks is not None else [body]
        )
        return response

    return inner
