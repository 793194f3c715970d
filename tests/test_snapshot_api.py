"""Tests for the /snapshot endpoints.

These tests exercise the full router:
- page snapshot assembly (title, language, sections, side collections)
- grouping of caller-supplied blocks
- request validation and error handling
"""

import logging
from unittest.mock import patch

import pytest
from fastapi.testclient import TestClient

from clearpage.main import LOG_LEVEL, app

client = TestClient(app)


@pytest.fixture(autouse=True)
def reset_rate_limits():
    """Clear the slowapi in-memory counter before every test."""
    app.state.limiter._storage.reset()
    yield

# ---------------------------------------------------------------------------
# Shared HTML fixtures
# ---------------------------------------------------------------------------

_ARTICLE_HTML = """
<!DOCTYPE html>
<html lang="fr">
<head>
  <title>  Field Notes   from the Coast </title>
</head>
<body>
  <header>
    <nav aria-label="Main">
      <a href="/" aria-current="page">Home</a>
      <a href="/journal">Journal</a>
    </nav>
    <form action="/search" role="search">
      <input type="search" name="q" aria-label="Search the journal">
    </form>
  </header>
  <main>
    <h1>Tide pools after the winter storms</h1>
    <p>The storms rearranged the rocks along the northern beach, exposing new pools
    that filled with anemones within a couple of weeks.</p>
    <div class="promo-strip"><p>Free delivery on field guides this week only</p></div>
    <h2>Species we counted</h2>
    <ul><li>Beadlet anemone</li><li>Common starfish</li><li>Shore crab</li></ul>
    <figure>
      <img src="/img/pool.jpg" alt="Rock pool">
      <figcaption>A rock pool at low tide near the lighthouse</figcaption>
    </figure>
  </main>
  <footer><a href="/imprint">Imprint and contacts</a></footer>
</body>
</html>
"""


def _post(html: str = _ARTICLE_HTML, url: str = "https://example.com/notes", **kwargs):
    """POST to /snapshot with sensible defaults."""
    payload = {"html": html, "url": url, **kwargs}
    return client.post("/snapshot", json=payload)


# ---------------------------------------------------------------------------
# Health check
# ---------------------------------------------------------------------------

class TestHealth:
    def test_root(self):
        resp = client.get("/")
        assert resp.status_code == 200
        assert resp.json() == {"message": "Hello from Clearpage"}


# ---------------------------------------------------------------------------
# POST /snapshot
# ---------------------------------------------------------------------------

class TestSnapshot:
    def test_document_metadata(self):
        resp = _post()
        assert resp.status_code == 200
        data = resp.json()
        assert data["url"] == "https://example.com/notes"
        assert data["title"] == "Field Notes from the Coast"
        assert data["lang"] == "fr"

    def test_content_groups(self):
        data = _post().json()
        headings = [group["heading"]["text"] for group in data["content_groups"]]
        assert headings == ["Tide pools after the winter storms", "Species we counted"]

        first, second = data["content_groups"]
        assert [block["type"] for block in first["blocks"]] == ["paragraph"]
        assert first["blocks"][0]["source_context"] == "main"
        assert [block["type"] for block in second["blocks"]] == ["list", "image"]
        assert second["blocks"][1]["alt"] == "A rock pool at low tide near the lighthouse"
        assert second["blocks"][1]["src"] == "https://example.com/img/pool.jpg"

    def test_collapse_flags_follow_threshold(self):
        groups = _post().json()["content_groups"]
        # paragraph 2.1 + main 2 + heading 2 = 6.1; list 1.5 + image 3 + main 2 + heading 2 = 8.5
        assert [group["score"] for group in groups] == pytest.approx([6.1, 8.5])
        assert [group["collapsed"] for group in groups] == [True, False]

    def test_side_collections(self):
        data = _post().json()
        assert [link["text"] for link in data["nav_links"]] == ["Home", "Journal"]
        assert data["nav_links"][0]["is_current"] is True
        assert data["search"] == {"action": "https://example.com/search", "param_name": "q"}
        assert data["forms"][0]["action"] == "https://example.com/search"
        assert data["links"] == [
            {"text": "Imprint and contacts", "href": "https://example.com/imprint", "is_footer": True}
        ]
        roles = [landmark["role"] for landmark in data["landmarks"]]
        assert roles[:2] == ["banner", "navigation"]
        assert "main" in roles and "contentinfo" in roles
        assert [h["text"] for h in data["headings"]] == [
            "Tide pools after the winter storms",
            "Species we counted",
        ]

    def test_defaults_for_bare_document(self):
        data = _post(html="<p>Just a fragment of text without any wrapper.</p>").json()
        assert data["title"] == "Untitled"
        assert data["lang"] == "en"
        assert data["search"] is None
        assert data["forms"] == []

    def test_same_origin_frames(self):
        html = '<main><iframe src="/embed"></iframe></main>'
        frames = {"https://example.com/embed": "<p>Embedded paragraph supplied by the caller.</p>"}
        data = _post(html=html, frames=frames).json()
        blocks = data["content_groups"][0]["blocks"]
        assert blocks[0]["text"] == "Embedded paragraph supplied by the caller."


# ---------------------------------------------------------------------------
# POST /snapshot/groups
# ---------------------------------------------------------------------------

class TestGroups:
    def test_groups_supplied_blocks(self):
        blocks = [
            {"type": "heading", "text": "Release notes for version two", "level": 2},
            {"type": "paragraph", "text": "one two three four five six seven eight nine ten", "source_context": "main"},
            {"type": "table", "text": "Table: Name, Age", "headers": ["Name", "Age"], "rows": [["Alice", "30"], ["Bob", "25"]]},
        ]
        resp = client.post("/snapshot/groups", json={"blocks": blocks})
        assert resp.status_code == 200
        data = resp.json()
        # a single section is its own median
        assert data["threshold"] == pytest.approx(8.6)
        group = data["groups"][0]
        assert group["heading"] == {"text": "Release notes for version two", "level": 2}
        # 1.0 + 3.6, main/body tie resolves to main (+2), heading bonus (+2)
        assert group["score"] == pytest.approx(8.6)
        assert group["collapsed"] is False

    def test_empty_blocks(self):
        data = client.post("/snapshot/groups", json={"blocks": []}).json()
        assert data == {"groups": [], "threshold": 5.0}

    def test_unknown_block_type_returns_422(self):
        resp = client.post("/snapshot/groups", json={"blocks": [{"type": "video", "text": "x"}]})
        assert resp.status_code == 422


# ---------------------------------------------------------------------------
# Error handling
# ---------------------------------------------------------------------------

class TestSnapshotErrorHandling:
    def test_invalid_url_returns_422(self):
        """Pydantic validates HttpUrl so a bad URL is rejected before the handler."""
        resp = _post(url="not-a-url")
        assert resp.status_code == 422

    def test_empty_html_returns_422(self):
        resp = _post(html="")
        assert resp.status_code == 422

    def test_unexpected_error_returns_500(self):
        failing_client = TestClient(app, raise_server_exceptions=False)
        with patch("clearpage.routers.snapshot.build_snapshot", side_effect=RuntimeError("boom")):
            resp = failing_client.post(
                "/snapshot", json={"html": "<p>x</p>", "url": "https://example.com/"}
            )
        assert resp.status_code == 500
        assert resp.json() == {"detail": "An unexpected error occurred."}

    def test_rate_limit(self):
        for _ in range(30):
            assert _post(html="<p>Tiny page body text.</p>").status_code == 200
        assert _post(html="<p>Tiny page body text.</p>").status_code == 429


# ---------------------------------------------------------------------------
# Logging
# ---------------------------------------------------------------------------

class TestLogging:
    def test_package_level_configured(self):
        assert logging.getLogger("clearpage").level == logging.getLevelName(LOG_LEVEL)

    def test_debug_records_reach_root_handlers(self, caplog):
        caplog.set_level(logging.DEBUG, logger="clearpage")
        html = '<main><iframe src="https://ads.example.net/slot"></iframe><p>Host paragraph stays here.</p></main>'
        assert _post(html=html).status_code == 200
        assert "Skipping frame" in caplog.text
