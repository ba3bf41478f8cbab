"""
Scanning the tab directory and keeping the cache in step with it.
"""

import logging
import os
from pathlib import Path

import redis

from .cache import Tab, TabCache
from .transform import apply_transformations

logger = logging.getLogger(__name__)


def tab_filenames(directory) -> list[str]:
    """
    List the tab files in a directory.

    Hidden files (leading ".") and subdirectories are skipped. Raises
    FileNotFoundError if the directory does not exist.
    """
    directory = Path(directory)
    if not directory.is_dir():
        raise FileNotFoundError(f"Tab directory not found: {directory}")

    return sorted(
        path.name for path in directory.iterdir()
        if not path.name.startswith(".") and path.is_file()
    )


def strip_extension(filename: str) -> str:
    return os.path.splitext(filename)[0]


def split_filenames(filenames: list[str], cached: dict[str, str]) -> tuple[list[str], list[str]]:
    """
    Split directory filenames into (to_process, already_cached).

    `cached` maps filename -> tab ID, as returned by TabCache.cached_filenames().
    """
    to_process = []
    already_cached = []

    for filename in filenames:
        if filename in cached:
            already_cached.append(filename)
        else:
            to_process.append(filename)

    return to_process, already_cached


def parse_new_tab(directory: Path, filename: str, pattern) -> Tab | None:
    """Match a filename against the pattern and read its content. None if it doesn't match."""
    result = pattern.match(strip_extension(filename))
    if not result.matched:
        logger.warning(f"The filename {filename} could not be parsed with {pattern.source!r}")
        return None

    content = (directory / filename).read_text(encoding="utf-8", errors="replace")

    return Tab(
        title=result.title,
        artist=result.artist,
        filename=filename,
        content=content,
        tags=result.tags,
    )


def get_tabs(cache: TabCache, settings, transform: bool = True) -> list[Tab]:
    """
    Return every tab in the tab directory, parsing and caching new files.

    Cached tabs are served from Redis; files that are not cached yet are
    parsed with the current filename pattern and added. Files that don't
    match the pattern are skipped with a warning.
    """
    directory = Path(settings.tab_directory)
    filenames = tab_filenames(directory)
    cached = cache.cached_filenames()
    to_process, already_cached = split_filenames(filenames, cached)

    tabs = []

    for filename in already_cached:
        tab = cache.fetch_tab(cached[filename])
        if tab is None:
            # filenames hash and tabs set out of step; parse it again
            logger.warning(f"Cache entry for {filename} is incomplete, re-parsing")
            to_process.append(filename)
            continue
        tabs.append(tab)

    if to_process:
        logger.info(f"Parsing {len(to_process)} new tab files in {directory}")

    pattern = settings.pattern
    for filename in to_process:
        tab = parse_new_tab(directory, filename, pattern)
        if tab is None:
            continue

        try:
            tab = cache.cache_new_tab(tab)
        except redis.RedisError as e:
            logger.error(f"The tab with filename {filename} could not be added to the database: {e}")
            continue

        if tab is not None:
            tabs.append(tab)

    stale = len(cached) - len(already_cached)
    if stale > 0:
        logger.debug(f"{stale} cached tabs no longer have a file and were not listed")

    if transform:
        tabs = [
            apply_transformations(tab, settings.characters_to_remove, settings.non_capital_words)
            for tab in tabs
        ]

    return tabs


def delete_tab(cache: TabCache, settings, tab_id: str) -> Tab:
    """Remove a tab from the cache and delete its file from the tab directory."""
    tab = cache.remove_tab(tab_id)

    path = Path(settings.tab_directory) / tab.filename
    try:
        path.unlink()
    except FileNotFoundError:
        logger.warning(f"Tab {tab.id} was cached but {path} no longer exists")

    logger.info(f"Deleted tab {tab.id} ({tab.filename})")
    return tab
