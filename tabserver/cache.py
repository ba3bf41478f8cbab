"""
Redis cache of parsed tabs.

Key layout:
    tab-counter       integer, source of sequential tab IDs
    tabs              set of tab IDs
    filenames         hash of filename -> tab ID
    tab:<id>          hash with title, artist, content, id, filename
    tab:<id>:tags     set of tags
"""

import logging
from dataclasses import dataclass, field

import redis

from . import chords as chord_lib
from .errors import TabNotFoundError

logger = logging.getLogger(__name__)

COUNTER_KEY = "tab-counter"
TABS_KEY = "tabs"
FILENAMES_KEY = "filenames"


def tab_key(tab_id) -> str:
    return f"tab:{tab_id}"


def tags_key(tab_id) -> str:
    return f"tab:{tab_id}:tags"


@dataclass
class Tab:
    title: str
    artist: str
    filename: str
    content: str = ""
    tags: list[str] = field(default_factory=list)
    id: str = ""

    def to_dict(self, include_chords: bool = False) -> dict:
        """JSON shape served by /api/tabs."""
        data = {
            "title": self.title,
            "artist": self.artist,
            "content": self.content,
            "ID": self.id,
            "filename": self.filename,
            "tags": list(self.tags),
        }

        if include_chords:
            chords = chord_lib.extract_chords(self.content)
            data["chords"] = chords
            data["key"] = chord_lib.detect_key(self.content, chords)

        return data


class TabCache:
    """Stores and fetches Tab records in Redis."""

    def __init__(self, client: redis.Redis):
        self.client = client

    def cached_filenames(self) -> dict[str, str]:
        """Map of cached filename -> tab ID."""
        return self.client.hgetall(FILENAMES_KEY)

    def id_for_filename(self, filename: str) -> str | None:
        return self.client.hget(FILENAMES_KEY, filename)

    def fetch_tab(self, tab_id: str) -> Tab | None:
        """Load a cached tab, or None if the ID is not cached."""
        tab_id = str(tab_id)
        if not self.client.sismember(TABS_KEY, tab_id):
            return None

        data = self.client.hgetall(tab_key(tab_id))
        tags = sorted(self.client.smembers(tags_key(tab_id)))

        return Tab(
            title=data.get("title", ""),
            artist=data.get("artist", ""),
            filename=data.get("filename", ""),
            content=data.get("content", ""),
            tags=tags,
            id=data.get("id", tab_id),
        )

    def cache_new_tab(self, tab: Tab) -> Tab | None:
        """
        Store a freshly parsed tab under a new ID and return it with the ID set.

        The ID and the filename are claimed in one WATCH/MULTI transaction,
        so two scans running at once can't cache the same file twice. If the
        file was cached by someone else in the meantime, their tab is
        returned instead (None if it has since been removed).
        """
        def claim(pipe):
            existing = pipe.hget(FILENAMES_KEY, tab.filename)
            if existing is not None and pipe.sismember(TABS_KEY, existing):
                return existing, None

            new_id = str(int(pipe.get(COUNTER_KEY) or 0) + 1)

            pipe.multi()
            pipe.incr(COUNTER_KEY)
            pipe.sadd(TABS_KEY, new_id)
            pipe.hset(FILENAMES_KEY, tab.filename, new_id)
            pipe.hset(tab_key(new_id), mapping={
                "title": tab.title,
                "artist": tab.artist,
                "content": tab.content,
                "id": new_id,
                "filename": tab.filename,
            })
            if tab.tags:
                pipe.sadd(tags_key(new_id), *tab.tags)
            return None, new_id

        existing, new_id = self.client.transaction(
            claim, COUNTER_KEY, FILENAMES_KEY, value_from_callable=True,
        )

        if existing is not None:
            logger.debug(f"{tab.filename} is already cached as tab {existing}")
            return self.fetch_tab(existing)

        tab.id = new_id
        logger.debug(f"Cached {tab.filename} as tab {new_id}")
        return tab

    def remove_tab(self, tab_id: str) -> Tab:
        """Drop a tab from the cache and return what was stored."""
        tab = self.fetch_tab(tab_id)
        if tab is None:
            raise TabNotFoundError(str(tab_id))

        pipe = self.client.pipeline()
        pipe.delete(tab_key(tab.id), tags_key(tab.id))
        pipe.srem(TABS_KEY, tab.id)
        pipe.hdel(FILENAMES_KEY, tab.filename)
        pipe.execute()

        return tab

    def reset(self) -> int:
        """Forget every cached tab and restart IDs from 1. Returns tabs dropped."""
        dropped = self.client.scard(TABS_KEY)

        keys = list(self.client.scan_iter(match="tab:*"))
        if keys:
            self.client.delete(*keys)
        self.client.delete(TABS_KEY, FILENAMES_KEY)
        self.client.set(COUNTER_KEY, 0)

        logger.info(f"Cache reset, {dropped} tabs dropped")
        return dropped