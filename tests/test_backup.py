"""End to end tests of export, import, restore and preview."""

import json
import pytest
from notebackup.backup import (
    export_backup,
    export_document,
    import_backup,
    plan_import,
    preview_backup,
    restore_from_backup,
    verify_integrity,
)
from notebackup.config import Configuration
from notebackup.model import CategoryRecord, ErrorKind, MatchStrategy, NoteRecord
from notebackup.sql_store import SqlStore
from notebackup.validation import BackupValidationError


def snapshot(store):
    categories = sorted((c.name, c.icon, c.color) for c in store.list_categories())
    notes = sorted((n.content, n.category_name) for n in store.list_notes())
    return categories, notes


def test_import_reports_blank_note(store, config, backup, theme, inspiration) -> None:
    raw = backup(themes=[theme("Work")], inspirations=[inspiration("Plan", "Work"), inspiration(" ", "Work")])
    report = import_backup(raw, store, config)
    assert (report.total_notes, report.imported_notes, report.created_categories) == (2, 1, 1)
    assert report.failed_notes[0].kind == ErrorKind.SEMANTIC_INVALID
    assert verify_integrity(store).is_valid


def test_import_sample(store, config, sample_backup_path) -> None:
    report = import_backup(sample_backup_path.read_bytes(), store, config)
    assert report.imported_notes == 5
    assert report.created_categories == 4
    categories = {c.name: c for c in store.list_categories()}
    assert set(categories) == {"Work", "旅行", "Reading List", "Food"}
    assert categories["Work"].color == "2196F3"
    assert categories["Food"].icon == "🍳"
    assert categories["Work"].note_count == 2


def test_import_matches_existing_categories(store, config, backup, theme, inspiration) -> None:
    store.create_category(CategoryRecord(name="工作"))
    raw = backup(themes=[theme("work")], inspirations=[inspiration("Idea", "work")])
    report = import_backup(raw, store, config)
    assert report.created_categories == 0
    assert report.mappings_applied == {"work": "工作"}
    assert snapshot(store)[1] == [("Idea", "工作")]


def test_repeated_import_creates_no_categories(store, config, sample_backup_path) -> None:
    raw = sample_backup_path.read_bytes()
    import_backup(raw, store, config)
    report = import_backup(raw, store, config)
    assert report.created_categories == 0
    assert report.reused_categories == 4
    assert len(store.list_categories()) == 4
    assert len(store.list_notes()) == 10


@pytest.mark.parametrize(
    "raw,kind",
    [
        (b"{broken", ErrorKind.MALFORMED),
        (b'{"version": "9.9", "themes": []}', ErrorKind.UNSUPPORTED_VERSION),
        (b'{"version": "1.0", "inspirations": [{"content": "x"}]}', ErrorKind.STRUCTURAL_INVALID),
    ],
)
def test_rejected_file_changes_nothing(store, config, raw, kind) -> None:
    store.create_category(CategoryRecord(name="Life"))
    store.insert_note(NoteRecord(content="keep me", category_name="Life"))
    before = snapshot(store)
    with pytest.raises(BackupValidationError) as info:
        import_backup(raw, store, config)
    assert info.value.kind == kind
    with pytest.raises(BackupValidationError):
        restore_from_backup(raw, store, config)
    assert snapshot(store) == before


def test_export_format(store, config, sample_backup_path) -> None:
    import_backup(sample_backup_path.read_bytes(), store, config)
    data = json.loads(export_backup(store, config).decode("utf-8"))
    assert data["version"] == "1.0"
    assert data["appVersion"] == config.app_version
    assert data["totalInspirations"] == 5
    assert data["totalThemes"] == 4
    assert set(data["themes"][0]) == {"name", "icon", "color", "inspirationCount"}
    assert set(data["inspirations"][0]) == {"id", "content", "themeName", "createdAt", "wordCount"}
    counts = {t["name"]: t["inspirationCount"] for t in data["themes"]}
    assert counts["Work"] == 2
    # Non ASCII is written as is
    assert "旅行" in export_backup(store, config).decode("utf-8")


def test_export_recomputes_counts(store, config) -> None:
    store.create_category(CategoryRecord(name="Work"))
    store.insert_note(NoteRecord(content="a", category_name="Work"))
    store.insert_note(NoteRecord(content="b", category_name="Ghost"))
    document = export_document(store, config)
    assert [c.note_count for c in document.categories] == [1]
    assert len(document.entries) == 2


def test_round_trip(store, config, sample_backup_path) -> None:
    import_backup(sample_backup_path.read_bytes(), store, config)
    exported = export_backup(store, config)

    other = SqlStore.from_config(config)
    report = import_backup(exported, other, config)
    assert report.imported_notes == 5
    assert report.created_categories == 4
    assert report.mappings_applied == {}
    assert snapshot(other) == snapshot(store)


def test_restore_replaces_everything(store, config, large_backup) -> None:
    store.create_category(CategoryRecord(name="Old"))
    for i in range(3):
        store.insert_note(NoteRecord(content=f"old {i}", category_name="Old"))

    report = restore_from_backup(large_backup, store, config)
    assert report.imported_notes == 50
    assert report.created_categories == 5
    assert report.mappings_applied == {}
    assert len(store.list_notes()) == 50
    assert sorted(c.name for c in store.list_categories()) == sorted(["Work", "Study", "Life", "旅行", "Ideas"])
    assert all(c.note_count == 10 for c in store.list_categories())


def test_restore_does_not_match_names(store, config, backup, theme, inspiration) -> None:
    store.create_category(CategoryRecord(name="工作"))
    restore_from_backup(backup(themes=[theme("work")], inspirations=[inspiration("x", "work")]), store, config)
    assert snapshot(store)[1] == [("x", "work")]
    assert [c.name for c in store.list_categories()] == ["work"]


def test_restore_is_strict(store, config, backup, inspiration) -> None:
    store.create_category(CategoryRecord(name="Life"))
    raw = backup(inspirations=[inspiration("ok", "Work"), inspiration("", "Work")])
    with pytest.raises(BackupValidationError) as info:
        restore_from_backup(raw, store, config)
    assert info.value.kind == ErrorKind.SEMANTIC_INVALID
    assert [c.name for c in store.list_categories()] == ["Life"]

    report = restore_from_backup(raw, store, Configuration(database_url=config.database_url, strict_restore=False))
    assert report.imported_notes == 1
    assert len(report.failed_notes) == 1
    assert [c.name for c in store.list_categories()] == ["Work"]


def test_plan_import_writes_nothing(store, config, sample_backup_path) -> None:
    store.create_category(CategoryRecord(name="Travel"))
    plan = plan_import(sample_backup_path.read_bytes(), store, config)
    strategies = {d.source: d.strategy for d in plan.decisions}
    assert strategies["旅行"] == MatchStrategy.TRANSLATION
    assert strategies["Work"] == MatchStrategy.CREATE
    assert [c.name for c in store.list_categories()] == ["Travel"]
    assert store.list_notes() == []


def test_preview(config, sample_backup_path, backup, inspiration) -> None:
    info = preview_backup(sample_backup_path.read_bytes(), config)
    assert info.total_notes == 5
    assert info.total_categories == 3
    assert info.export_time == "2024-03-01T09:30:00Z"
    assert info.app_version == "1.2.0"
    assert info.category_distribution == {"Work": 2, "旅行": 1, "Reading List": 1, "Food": 1}

    info = preview_backup(b'{"version": "1.0", "inspirations": [{"content": "", "themeName": "Work"}]}')
    assert info.total_notes == 1
    assert info.export_time == "unknown"
    assert info.app_version == "unknown"


def test_import_never_creates_rejected_category(store, config, backup, theme, inspiration) -> None:
    long_name = "A very long category name here"
    raw = backup(themes=[theme(long_name)], inspirations=[inspiration("Idea", long_name)])
    report = import_backup(raw, store, config)
    assert report.created_categories == 0
    assert report.imported_notes == 0
    assert [(n.index, n.kind) for n in report.failed_notes] == [(0, ErrorKind.CATEGORY_UNAVAILABLE)]
    assert [c.name for c in report.failed_categories] == [long_name]
    assert report.has_failures
    assert store.list_categories() == []
    assert store.list_notes() == []


def test_long_reference_can_match_existing_category(store, config, backup, inspiration) -> None:
    store.create_category(CategoryRecord(name="Work"))
    report = import_backup(backup(inspirations=[inspiration("Idea", "Work notes from the office")]), store, config)
    assert report.imported_notes == 1
    assert report.mappings_applied == {"Work notes from the office": "Work"}
    assert [c.name for c in store.list_categories()] == ["Work"]


def test_relaxed_restore_skips_long_reference(store, config, backup, inspiration) -> None:
    relaxed = Configuration(database_url=config.database_url, strict_restore=False)
    long_name = "A very long category name here"
    raw = backup(inspirations=[inspiration("a", long_name), inspiration("b", "Work")])
    report = restore_from_backup(raw, store, relaxed)
    assert report.imported_notes == 1
    assert [c.name for c in report.failed_categories] == [long_name]
    assert [c.name for c in store.list_categories()] == ["Work"]
