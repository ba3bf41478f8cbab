"""
Shared fixtures: an in-memory Redis and a small tab directory.
"""

import sys
from pathlib import Path

import fakeredis
import pytest

# Add parent directory to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))


@pytest.fixture
def fake_redis():
    """Provide a fakeredis client with its own empty server."""
    return fakeredis.FakeRedis(server=fakeredis.FakeServer(), decode_responses=True)


@pytest.fixture
def tab_dir(tmp_path):
    """A tab directory with a few files named "<artist>-<title>.txt"."""
    directory = tmp_path / "tabs"
    directory.mkdir()

    (directory / "pink_floyd-wish_you_were_here.txt").write_text(
        "[Intro]\nEm  G  C  D\n\nSo, so you think you can tell\n", encoding="utf-8"
    )
    (directory / "oasis-wonderwall.txt").write_text(
        "Em7  G  Dsus4  A7sus4\nToday is gonna be the day\n", encoding="utf-8"
    )
    (directory / "the_beatles-let_it_be.txt").write_text(
        "C  G  Am  F\nWhen I find myself in times of trouble\n", encoding="utf-8"
    )
    (directory / ".hidden.txt").write_text("ignored", encoding="utf-8")

    return directory
