import pytest
import requests

import blog
from blog import STATIC_POSTS, fetch_blog_posts, split_paragraphs
from settings import Settings


class FakeResponse:
    def __init__(self, payload, status_code=200):
        self.payload = payload
        self.status_code = status_code

    @property
    def ok(self):
        return self.status_code < 400

    def json(self):
        return self.payload


@pytest.fixture
def sanity():
    return Settings(_env_file=None, SANITY_PROJECT_ID="abc123")


def fake_get(response=None, error=None, calls=None):
    def get(url, params=None, timeout=None):
        if calls is not None:
            calls.append((url, params, timeout))
        if error is not None:
            raise error
        return response
    return get


def test_static_posts_without_project():
    assert fetch_blog_posts(Settings(_env_file=None)) is STATIC_POSTS


def test_posts_from_content_api(sanity, monkeypatch):
    calls = []
    payload = {"result": [
        {"postId": 7, "title": "Talha wine", "excerpt": "Clay pots", "body": "One.\n\nTwo.\n\n",
         "author": "Maria Costa", "date": "2026-02-01", "category": "Wine", "image": "https://img/x.jpg"},
        {"postId": 8, "title": "Sparse", "excerpt": "Defaults"},
        {"title": "No id", "excerpt": "dropped"},
    ]}
    monkeypatch.setattr(blog.requests, "get", fake_get(FakeResponse(payload), calls=calls))

    posts = fetch_blog_posts(sanity)

    assert calls[0][0] == "https://abc123.api.sanity.io/v2024-01-01/data/query/production"
    assert calls[0][2] == sanity.CONTENT_API_TIMEOUT
    assert [p.id for p in posts] == [7, 8]
    assert posts[0].paragraphs == ["One.", "Two."]
    assert posts[1].author == "Alentejo Bites Team"
    assert posts[1].category == "Journal"
    assert posts[1].date == "Jan 01, 2026"
    assert posts[1].paragraphs == ["Content coming soon."]


@pytest.mark.parametrize("response, error", [
    (FakeResponse({}, status_code=500), None),
    (FakeResponse({"result": []}), None),
    (None, requests.ConnectionError("down")),
    (FakeResponse([1, 2]), None),
    (FakeResponse({"result": "nope"}), None),
    (FakeResponse({"result": [{"postId": "abc", "title": "Bad id", "excerpt": "x"}]}), None),
    (FakeResponse({"result": [None, "text"]}), None),
])
def test_falls_back_to_static_posts(sanity, monkeypatch, response, error):
    monkeypatch.setattr(blog.requests, "get", fake_get(response, error))
    assert fetch_blog_posts(sanity) is STATIC_POSTS


def test_split_paragraphs():
    assert split_paragraphs("  a \n\n\n\n b ") == ["a", "b"]
    assert split_paragraphs(None) == ["Content coming soon."]


def test_unparseable_post_ids_are_dropped(sanity, monkeypatch):
    payload = {"result": [
        {"postId": "abc", "title": "Bad id", "excerpt": "x"},
        {"postId": "12", "title": "Good id", "excerpt": "y"},
    ]}
    monkeypatch.setattr(blog.requests, "get", fake_get(FakeResponse(payload)))

    assert [p.id for p in fetch_blog_posts(sanity)] == [12]
