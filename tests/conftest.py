"""Shared pytest fixtures for note backup tests."""

import json
import pytest
from pathlib import Path
from notebackup.config import Configuration
from notebackup.sql_store import SqlStore

MEMORY_URL = "sqlite+pysqlite:///:memory:"


@pytest.fixture
def sample_backup_path():
    """Path to a version 1.0 backup with ARGB colors, unknown keys and Chinese names."""
    return Path(__file__).parent / "data" / "backup_v1.json"


@pytest.fixture
def config():
    """Configuration using an in-memory database."""
    return Configuration(database_url=MEMORY_URL)


@pytest.fixture
def store(config):
    """Empty store, every test gets its own in-memory database."""
    return SqlStore.from_config(config)


@pytest.fixture
def theme():
    """Factory for wire format category records.

    Usage:
        theme("Work", color="#FF2196F3")
    """

    def _create(name="Work", **kwargs):
        defaults = {"name": name, "icon": "💼", "color": "2196F3", "inspirationCount": 0}
        return {**defaults, **kwargs}

    return _create


@pytest.fixture
def inspiration():
    """Factory for wire format note records.

    Usage:
        inspiration("Buy milk", "Life", id=3)
    """

    def _create(content="Some idea", theme_name="Work", **kwargs):
        defaults = {
            "id": 1,
            "content": content,
            "themeName": theme_name,
            "createdAt": "2024-01-01T00:00:00Z",
            "wordCount": len(content),
        }
        return {**defaults, **kwargs}

    return _create


@pytest.fixture
def backup():
    """Factory for backup file content (bytes).

    Usage:
        backup(themes=[theme("Work")], inspirations=[inspiration("x", "Work")])
    """

    def _create(themes=None, inspirations=None, version="1.0", **kwargs):
        themes = themes if themes is not None else []
        inspirations = inspirations if inspirations is not None else []
        data = {
            "version": version,
            "exportTime": "2024-01-01T00:00:00Z",
            "appVersion": "1.0.0",
            "totalInspirations": len(inspirations),
            "totalThemes": len(themes),
            "themes": themes,
            "inspirations": inspirations,
        }
        data.update(kwargs)
        return json.dumps(data, ensure_ascii=False).encode("utf-8")

    return _create


@pytest.fixture
def large_backup(backup, theme, inspiration):
    """Backup with 5 categories and 50 notes, 10 per category."""
    names = ["Work", "Study", "Life", "旅行", "Ideas"]
    return backup(
        themes=[theme(name) for name in names],
        inspirations=[inspiration(f"Note {i}", names[i % len(names)], id=i) for i in range(50)],
    )
