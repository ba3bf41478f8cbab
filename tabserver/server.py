"""
Flask web app: the browser UI pages and the JSON API.
"""

import json
import logging
from pathlib import Path

import redis
from flask import Flask, current_app, jsonify, request, send_from_directory

import config
from . import catalog
from . import search
from .cache import TabCache
from .errors import InvalidSettingsError, TabServerError
from .pattern import validate_pattern
from .settings import (
    Settings,
    change_password,
    check_password,
    load_settings,
    save_settings,
)

logger = logging.getLogger(__name__)

NO_CACHE = {"Cache-Control": "max-age=0"}


def create_app(client: redis.Redis, www_dir=None) -> Flask:
    """
    Build the app around a Redis client.

    Settings are read from Redis on every request, so changes made with
    `tabs.py settings` or `tabs.py set-password` apply without a restart.
    """
    www_dir = Path(www_dir or config.WWW_DIR)

    app = Flask(__name__, static_folder=str(www_dir), static_url_path="/static")
    app.config["TAB_REDIS"] = client
    app.config["TAB_CACHE"] = TabCache(client)
    app.config["TAB_WWW_DIR"] = www_dir

    register_routes(app)
    register_error_handlers(app)

    return app


def _settings() -> Settings:
    return load_settings(current_app.config["TAB_REDIS"])


def _cache() -> TabCache:
    return current_app.config["TAB_CACHE"]


def _page(name: str):
    response = send_from_directory(current_app.config["TAB_WWW_DIR"], name)
    response.headers.update(NO_CACHE)
    return response


def register_routes(app: Flask):

    @app.get("/")
    def index():
        return _page("index.html")

    @app.get("/settings")
    def settings_page():
        return _page("settings.html")

    @app.get("/api/tabs")
    def tabs_api():
        tabs = catalog.get_tabs(_cache(), _settings())
        tabs = search.filter_tabs(tabs, request.args.get("q"))
        tabs = search.sort_tabs(tabs, request.args.get("sort"))

        include_chords = request.args.get("chords", "") not in ("", "0", "false")
        return jsonify([tab.to_dict(include_chords=include_chords) for tab in tabs]), 200, NO_CACHE

    @app.get("/api/settings")
    def settings_api():
        return jsonify(_settings().to_public_dict()), 200, NO_CACHE

    @app.post("/api/change-settings")
    def change_settings_api():
        settings = _settings()
        check_password(settings, request.form.get("password"))

        new_settings = settings_from_form(request.form, settings)
        save_settings(current_app.config["TAB_REDIS"], new_settings)

        for problem in validate_pattern(new_settings.filename_pattern):
            logger.warning(f"Filename pattern: {problem}")

        return "", 200

    @app.post("/api/change-password")
    def change_password_api():
        change_password(
            current_app.config["TAB_REDIS"],
            _settings(),
            request.form.get("old"),
            request.form.get("new", ""),
        )
        return "", 200

    @app.post("/api/delete-tab")
    def delete_tab_api():
        settings = _settings()
        check_password(settings, request.form.get("password"))

        catalog.delete_tab(_cache(), settings, request.form.get("id", ""))
        return "", 200

    @app.post("/api/reset-cache")
    def reset_cache_api():
        check_password(_settings(), request.form.get("password"))

        _cache().reset()
        return "", 200


def settings_from_form(form, current: Settings) -> Settings:
    """Build new settings from a change-settings form; missing fields keep their value."""
    raw_words = form.get("non-capital-words")
    if raw_words is None:
        words = list(current.non_capital_words)
    else:
        try:
            words = json.loads(raw_words)
        except json.JSONDecodeError as e:
            raise InvalidSettingsError(f"non-capital-words is not valid JSON: {e}")
        if not isinstance(words, list) or not all(isinstance(w, str) for w in words):
            raise InvalidSettingsError("non-capital-words must be a JSON array of strings")

    return Settings(
        tab_directory=form.get("tab-directory", current.tab_directory),
        filename_pattern=form.get("filename-pattern", current.filename_pattern),
        non_capital_words=words,
        characters_to_remove=form.get("characters-to-remove", current.characters_to_remove),
        password_hash=current.password_hash,
    )


def register_error_handlers(app: Flask):

    @app.errorhandler(TabServerError)
    def tab_server_error(e):
        if e.status >= 500:
            logger.error(f"{request.path}: {e}")
        return str(e), e.status

    @app.errorhandler(FileNotFoundError)
    def missing_directory(e):
        logger.error(f"{request.path}: {e}")
        return str(e), 500

    @app.errorhandler(redis.RedisError)
    def redis_error(e):
        logger.error(f"{request.path}: Redis error: {e}")
        return f"database error: {e}", 500
