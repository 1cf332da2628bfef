import pytest
from fastapi.testclient import TestClient

from cms.config import Settings
from cms.main import create_app
from cms.models.og import OgData
from cms.services.og_cache import OgCache


SITE_CONFIG = "title: Blog\ncategoryMap:\n  笔记: note\n"

FIRST_POST = (
    "---\n"
    "title: First\n"
    "date: 2026-01-01 00:00:00\n"
    "draft: true\n"
    "categories:\n"
    "  - [笔记]\n"
    "---\n"
    "\n"
    "https://x.com/someone/status/7\n"
)

SECOND_POST = "---\ntitle: Second\ndate: 2026-02-01 00:00:00\ndraft: false\n---\n\nHello\n"


@pytest.fixture
def settings(tmp_path):
    settings = Settings(project_root=tmp_path)
    settings.config_path.parent.mkdir(parents=True)
    settings.config_path.write_text(SITE_CONFIG, encoding="utf-8")
    settings.content_dir.mkdir(parents=True)
    (settings.content_dir / "first.md").write_text(FIRST_POST, encoding="utf-8")
    (settings.content_dir / "second.md").write_text(SECOND_POST, encoding="utf-8")
    return settings


@pytest.fixture
def client(settings):
    return TestClient(create_app(settings))


def test_health(client):
    assert client.get("/health").json() == {"status": "ok"}


def test_list_with_status_filter(client):
    response = client.get("/api/cms/list", params={"status": "published"})
    assert response.status_code == 200
    payload = response.json()
    assert [post["id"] for post in payload["posts"]] == ["second.md"]
    assert payload["total"] == 1
    assert payload["stats"]["total"] == 2
    assert payload["stats"]["published"] == 1
    assert payload["stats"]["draft"] == 1
    assert payload["stats"]["categoryStats"] == [{"name": "笔记", "count": 1}]
    assert payload["categories"] == ["笔记"]
    assert payload["posts"][0]["date"].startswith("2026-02-01T00:00:00")


def test_read_post(client):
    response = client.get("/api/cms/read", params={"postId": "first.md"})
    assert response.status_code == 200
    payload = response.json()
    assert payload["frontmatter"]["date"] == "2026-01-01 00:00:00"
    assert payload["frontmatter"]["categories"] == [["笔记"]]
    assert payload["content"] == "https://x.com/someone/status/7"


@pytest.mark.parametrize(
    "params, status, error",
    [
        ({}, 400, "Missing postId parameter"),
        ({"postId": "../secret.md"}, 400, "Invalid postId"),
        ({"postId": "notes.txt"}, 400, "Invalid file extension"),
        ({"postId": "missing.md"}, 404, "File not found: missing.md"),
    ],
)
def test_read_errors(client, params, status, error):
    response = client.get("/api/cms/read", params=params)
    assert response.status_code == status
    assert response.json() == {"error": error}


def test_write_post_and_mappings(client, settings):
    response = client.post(
        "/api/cms/write",
        json={
            "postId": "second.md",
            "frontmatter": {"title": "Second", "date": "2026-02-01T00:00:00", "categories": [["算法"]]},
            "content": "Updated",
            "categoryMappings": {"算法": "algorithm"},
        },
    )
    assert response.status_code == 200
    assert response.json() == {"success": True}

    text = (settings.content_dir / "second.md").read_text(encoding="utf-8")
    assert "date: 2026-02-01 00:00:00\n" in text
    assert text.endswith("\nUpdated\n")
    assert client.get("/api/cms/config").json()["categoryMap"] == {"笔记": "note", "算法": "algorithm"}


def test_write_rejects_invalid_date(client, settings):
    response = client.post(
        "/api/cms/write",
        json={"postId": "second.md", "frontmatter": {"date": "someday"}, "content": ""},
    )
    assert response.status_code == 400
    assert "someday" in response.json()["error"]
    assert (settings.content_dir / "second.md").read_text(encoding="utf-8") == SECOND_POST


def test_write_rejects_invalid_slug(client):
    response = client.post(
        "/api/cms/write",
        json={
            "postId": "second.md",
            "frontmatter": {"title": "Second"},
            "content": "",
            "categoryMappings": {"算法": "Not Valid"},
        },
    )
    assert response.status_code == 400
    assert "Invalid slug" in response.json()["error"]


def test_create_post(client, settings):
    response = client.post(
        "/api/cms/create",
        json={"title": "Hello World", "categories": ["笔记"], "tags": ["intro"]},
    )
    assert response.status_code == 201
    assert response.json() == {"success": True, "postId": "note/hello-world.md"}
    assert (settings.content_dir / "note" / "hello-world.md").exists()

    again = client.post("/api/cms/create", json={"title": "Hello World", "categories": ["笔记"]})
    assert again.status_code == 409
    assert again.json() == {"error": "File already exists: note/hello-world.md"}


def test_create_requires_title(client):
    response = client.post("/api/cms/create", json={"title": "   "})
    assert response.status_code == 400
    assert "Title is required" in response.json()["error"]


def test_toggles(client):
    response = client.post("/api/cms/toggle-draft", json={"postId": "first.md"})
    assert response.json() == {"success": True, "draft": False}

    response = client.post("/api/cms/toggle-sticky", json={"postId": "first.md"})
    assert response.json() == {"success": True, "sticky": True}

    listing = client.get("/api/cms/list").json()
    first = next(post for post in listing["posts"] if post["id"] == "first.md")
    assert first["draft"] is False
    assert first["sticky"] is True


def test_toggle_missing_post(client):
    response = client.post("/api/cms/toggle-draft", json={"postId": "ghost.md"})
    assert response.status_code == 404


def test_embeds(client):
    response = client.get("/api/cms/embeds", params={"postId": "first.md"})
    assert response.json() == {
        "embeds": [{"url": "https://x.com/someone/status/7", "type": "tweet", "tweetId": "7"}]
    }


def test_config(client, settings):
    payload = client.get("/api/cms/config").json()
    assert payload == {
        "projectRoot": str(settings.project_root),
        "contentDir": "src/content/blog",
        "categoryMap": {"笔记": "note"},
    }


def test_og_data_uses_cache(client, settings):
    calls = []

    def fetcher(url):
        calls.append(url)
        return OgData(origin_url=url, url=url, title="Example")

    client.app.state.og_cache = OgCache(settings.cache_path, fetcher=fetcher)

    first = client.get("/api/cms/og-data", params={"url": "https://example.com"})
    second = client.get("/api/cms/og-data", params={"url": "https://example.com"})
    assert first.status_code == 200
    assert first.json()["title"] == "Example"
    assert second.json() == first.json()
    assert calls == ["https://example.com"]
    assert "https://example.com" in client.get("/api/cms/og-cache").json()


@pytest.mark.parametrize(
    "params, error",
    [({}, "Missing url parameter"), ({"url": "javascript:alert(1)"}, "Invalid URL protocol")],
)
def test_og_data_validation(client, params, error):
    response = client.get("/api/cms/og-data", params=params)
    assert response.status_code == 400
    assert response.json() == {"error": error}


def test_unexpected_errors_become_500(settings, monkeypatch):
    from cms.services import post_service

    def explode(*args, **kwargs):
        raise RuntimeError("boom")

    monkeypatch.setattr(post_service, "list_posts", explode)
    client = TestClient(create_app(settings), raise_server_exceptions=False)

    response = client.get("/api/cms/list")
    assert response.status_code == 500
    assert response.json() == {"error": "Internal server error"}


def test_create_with_unmapped_category_is_rejected(client, settings):
    response = client.post("/api/cms/create", json={"title": "Sorting", "categories": ["笔记", "算法"]})
    assert response.status_code == 400
    error = response.json()["error"]
    assert '"算法" (suggested: category)' in error
    assert not (settings.content_dir / "note" / "category").exists()

    response = client.post(
        "/api/cms/create",
        json={"title": "Sorting", "categories": ["笔记", "算法"], "categoryMappings": {"算法": "algorithm"}},
    )
    assert response.status_code == 201
    assert response.json()["postId"] == "note/algorithm/sorting.md"


def test_read_rejects_nul_in_post_id(client):
    response = client.get("/api/cms/read", params={"postId": "first\x00.md"})
    assert response.status_code == 400
    assert response.json() == {"error": "Invalid postId"}
