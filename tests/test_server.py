"""
Tests for tabserver/server.py - the Flask app and JSON API.
"""

import json

import pytest
import sys
from pathlib import Path

# Add parent directory to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

import config
import tabs
from tabserver.server import create_app
from tabserver.settings import Settings, load_settings, save_settings, set_password

PASSWORD = "hunter2"


@pytest.fixture
def app(fake_redis, tab_dir):
    settings = Settings(
        tab_directory=str(tab_dir),
        filename_pattern="[artist]-[title]",
        non_capital_words=["it"],
        characters_to_remove="_",
    )
    save_settings(fake_redis, settings)
    set_password(fake_redis, settings, PASSWORD)

    app = create_app(fake_redis)
    app.config["TESTING"] = True
    return app


@pytest.fixture
def http(app):
    return app.test_client()


def get_tabs(http, query=""):
    response = http.get("/api/tabs" + query)
    assert response.status_code == 200
    return response.get_json()


class TestPages:

    def test_index(self, http):
        response = http.get("/")
        assert response.status_code == 200
        assert b"tab-list" in response.data
        assert response.headers["Cache-Control"] == "max-age=0"

    def test_settings_page(self, http):
        response = http.get("/settings")
        assert response.status_code == 200
        assert b"filename-pattern" in response.data

    def test_static_files(self, http):
        response = http.get("/static/js/index.js")
        assert response.status_code == 200
        assert b"highlightChords" in response.data


class TestTabsAPI:

    def test_lists_tabs(self, http):
        tabs = get_tabs(http)
        assert len(tabs) == 3
        assert set(tabs[0]) == {"title", "artist", "content", "ID", "filename", "tags"}

        titles = {tab["title"] for tab in tabs}
        assert titles == {"Wonderwall", "Wish You Were Here", "Let it Be"}

    def test_no_cache_header(self, http):
        response = http.get("/api/tabs")
        assert response.headers["Cache-Control"] == "max-age=0"
        assert response.is_json

    def test_search_and_sort(self, http):
        tabs = get_tabs(http, "?sort=artist-desc")
        assert [tab["artist"] for tab in tabs] == ["The Beatles", "Pink Floyd", "Oasis"]

        tabs = get_tabs(http, "?q=floyd")
        assert [tab["artist"] for tab in tabs] == ["Pink Floyd"]

    def test_chords(self, http):
        tabs = get_tabs(http, "?chords=1&q=oasis")
        assert tabs[0]["chords"] == ["Em7", "G", "Dsus4", "A7sus4"]
        assert tabs[0]["key"] == "Em"

    def test_missing_directory(self, http, fake_redis, tmp_path):
        settings = load_settings(fake_redis)
        settings.tab_directory = str(tmp_path / "missing")
        save_settings(fake_redis, settings)

        response = http.get("/api/tabs")
        assert response.status_code == 500
        assert b"not found" in response.data


class TestSettingsAPI:

    def test_no_password_hash(self, http):
        data = http.get("/api/settings").get_json()
        assert data == {
            "tab-directory": data["tab-directory"],
            "filename-pattern": "[artist]-[title]",
            "non-capital-words": ["it"],
            "characters-to-remove": "_",
        }

    def test_change_settings(self, http, fake_redis, tmp_path):
        response = http.post("/api/change-settings", data={
            "password": PASSWORD,
            "tab-directory": str(tmp_path),
            "filename-pattern": "[title] by [artist]",
            "non-capital-words": json.dumps(["of", "the"]),
            "characters-to-remove": "_.",
        })
        assert response.status_code == 200

        data = http.get("/api/settings").get_json()
        assert data["filename-pattern"] == "[title] by [artist]"
        assert data["non-capital-words"] == ["of", "the"]

        stored = load_settings(fake_redis)
        assert stored.tab_directory == str(tmp_path)
        assert stored.characters_to_remove == "_."
        assert stored.password_hash

    def test_wrong_password(self, http):
        response = http.post("/api/change-settings", data={
            "password": "nope",
            "filename-pattern": "[title]",
        })
        assert response.status_code == 400
        assert response.data == b"wrong password"
        assert http.get("/api/settings").get_json()["filename-pattern"] == "[artist]-[title]"

    def test_bad_word_list(self, http):
        response = http.post("/api/change-settings", data={
            "password": PASSWORD,
            "non-capital-words": "of, the",
        })
        assert response.status_code == 400
        assert b"non-capital-words" in response.data

    def test_get_not_allowed(self, http):
        assert http.get("/api/change-settings").status_code == 405


class TestAdminAPI:

    def test_change_password(self, http):
        response = http.post("/api/change-password", data={"old": PASSWORD, "new": "s3cret"})
        assert response.status_code == 200

        # old password no longer works
        response = http.post("/api/reset-cache", data={"password": PASSWORD})
        assert response.status_code == 400
        response = http.post("/api/reset-cache", data={"password": "s3cret"})
        assert response.status_code == 200

    def test_change_password_wrong_old(self, http):
        response = http.post("/api/change-password", data={"old": "x", "new": "y"})
        assert response.status_code == 400

    def test_delete_tab(self, http, tab_dir):
        tabs = {tab["filename"]: tab for tab in get_tabs(http)}
        tab_id = tabs["oasis-wonderwall.txt"]["ID"]

        response = http.post("/api/delete-tab", data={"password": PASSWORD, "id": tab_id})
        assert response.status_code == 200
        assert not (tab_dir / "oasis-wonderwall.txt").exists()
        assert len(get_tabs(http)) == 2

    def test_delete_unknown_tab(self, http):
        response = http.post("/api/delete-tab", data={"password": PASSWORD, "id": "404"})
        assert response.status_code == 404

    def test_delete_needs_password(self, http, tab_dir):
        tabs = {tab["filename"]: tab for tab in get_tabs(http)}
        tab_id = tabs["oasis-wonderwall.txt"]["ID"]

        response = http.post("/api/delete-tab", data={"password": "", "id": tab_id})
        assert response.status_code == 400
        assert (tab_dir / "oasis-wonderwall.txt").exists()

    def test_reset_cache(self, http, fake_redis):
        get_tabs(http)
        assert fake_redis.get("tab-counter") == "3"

        response = http.post("/api/reset-cache", data={"password": PASSWORD})
        assert response.status_code == 200
        assert fake_redis.get("tab-counter") == "0"

        # tabs are parsed again with fresh IDs
        assert sorted(tab["ID"] for tab in get_tabs(http)) == ["1", "2", "3"]

    def test_password_not_set(self, fake_redis, tab_dir):
        save_settings(fake_redis, Settings(tab_directory=str(tab_dir)))
        http = create_app(fake_redis).test_client()

        response = http.post("/api/reset-cache", data={"password": "anything"})
        assert response.status_code == 403

    def test_password_set_from_cli_while_running(self, fake_redis, tab_dir, tmp_path, monkeypatch):
        """A password set with tabs.py works without restarting the app"""
        save_settings(fake_redis, Settings(tab_directory=str(tab_dir)))
        http = create_app(fake_redis).test_client()
        assert http.post("/api/reset-cache", data={"password": "pw"}).status_code == 403

        monkeypatch.setattr(config, "LOG_DIR", str(tmp_path / "logs"))
        monkeypatch.setattr(tabs, "connect", lambda args: fake_redis)
        tabs.main(["set-password", "--password", "pw"])

        assert http.post("/api/reset-cache", data={"password": "pw"}).status_code == 200

    def test_settings_changed_from_cli_while_running(self, http, fake_redis, tab_dir, tmp_path, monkeypatch):
        """Settings saved outside the app are used on the next request"""
        assert len(get_tabs(http)) == 3

        monkeypatch.setattr(config, "LOG_DIR", str(tmp_path / "logs"))
        monkeypatch.setattr(tabs, "connect", lambda args: fake_redis)
        tabs.main(["settings", "--pattern", "[title]"])

        assert http.get("/api/settings").get_json()["filename-pattern"] == "[title]"


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
