"""Tests for applying merge plans to a store."""

import pytest
from notebackup.executor import ImportExecutor, ImportReportBuilder
from notebackup.model import ErrorKind, ImportReport, MergePlan
from notebackup.reconcile import build_plan
from notebackup.sql_store import SqlStore
from notebackup.store import StoreError
from notebackup.validation import BackupValidationError, parse_backup


class FailingStore(SqlStore):
    """Store that rejects some categories and notes."""

    def __init__(self, bad_categories=(), bad_content=()):
        super().__init__("sqlite+pysqlite:///:memory:")
        self.bad_categories = set(bad_categories)
        self.bad_content = set(bad_content)

    def create_category(self, record):
        if record.name in self.bad_categories:
            raise StoreError(f"Disk full while creating '{record.name}'")
        super().create_category(record)

    def insert_note(self, record):
        if record.content in self.bad_content:
            raise StoreError("Constraint violated")
        return super().insert_note(record)


def run_import(raw, store, config):
    validated = parse_backup(raw, config, strict=False)
    existing = {c.name for c in store.list_categories()}
    plan = build_plan(validated.document, existing, config)
    return ImportExecutor(store, store, config).execute(plan, validated)


def test_import_into_empty_store(store, config, backup, theme, inspiration) -> None:
    raw = backup(
        themes=[theme("Work")],
        inspirations=[inspiration("Plan Q3", "Work", id=1), inspiration("", "Work", id=2)],
    )
    report = run_import(raw, store, config)
    assert report.total_notes == 2
    assert report.imported_notes == 1
    assert report.created_categories == 1
    assert report.reused_categories == 0
    assert [(n.index, n.kind) for n in report.failed_notes] == [(1, ErrorKind.SEMANTIC_INVALID)]

    notes = store.list_notes()
    assert [(n.content, n.category_name) for n in notes] == [("Plan Q3", "Work")]
    assert [c.name for c in store.list_categories()] == ["Work"]


def test_notes_get_fresh_identity(store, config, backup, inspiration) -> None:
    raw = backup(inspirations=[inspiration("  hello  ", "Life", id=99, wordCount=42, createdAt="2001-01-01T00:00:00Z")])
    run_import(raw, store, config)
    note = store.list_notes()[0]
    assert note.id != 99
    assert note.word_count == 5
    assert note.created_at != "2001-01-01T00:00:00Z"


def test_mapping_is_applied(store, config, backup, theme, inspiration) -> None:
    run_import(backup(themes=[theme("工作")]), store, config)

    report = run_import(backup(themes=[theme("work")], inspirations=[inspiration("Idea", "work")]), store, config)
    assert report.created_categories == 0
    assert report.reused_categories == 1
    assert report.mappings_applied == {"work": "工作"}
    assert [n.category_name for n in store.list_notes()] == ["工作"]
    assert [c.name for c in store.list_categories()] == ["工作"]


def test_category_failure_skips_its_notes(config, backup, inspiration) -> None:
    store = FailingStore(bad_categories=["Broken"])
    raw = backup(inspirations=[inspiration("a", "Broken"), inspiration("b", "Fine"), inspiration("c", "Broken")])
    report = run_import(raw, store, config)
    assert report.imported_notes == 1
    assert report.created_categories == 1
    assert [c.name for c in report.failed_categories] == ["Broken"]
    assert [(n.index, n.kind) for n in report.failed_notes] == [
        (0, ErrorKind.CATEGORY_UNAVAILABLE),
        (2, ErrorKind.CATEGORY_UNAVAILABLE),
    ]
    assert "Broken" in report.failed_notes[0].reason
    assert report.has_failures


def test_note_failure_does_not_stop_batch(config, backup, inspiration) -> None:
    store = FailingStore(bad_content=["boom"])
    raw = backup(inspirations=[inspiration("one", "Work"), inspiration("boom", "Work"), inspiration("three", "Work")])
    report = run_import(raw, store, config)
    assert report.imported_notes == 2
    assert [(n.index, n.kind) for n in report.failed_notes] == [(1, ErrorKind.STORE_FAILURE)]
    assert [n.content for n in store.list_notes()] == ["one", "three"]


def test_category_created_after_planning_is_reused(store, config, backup, theme, inspiration) -> None:
    validated = parse_backup(backup(themes=[theme("Work")], inspirations=[inspiration("x", "Work")]), config)
    plan = build_plan(validated.document, set(), config)
    assert [c.name for c in plan.categories_to_create] == ["Work"]

    run_import(backup(themes=[theme("Work")]), store, config)
    report = ImportExecutor(store, store, config).execute(plan, validated)
    assert report.created_categories == 0
    assert report.reused_categories == 1
    assert report.imported_notes == 1


def test_unresolvable_plan_is_rejected(store, config, backup, inspiration) -> None:
    validated = parse_backup(backup(inspirations=[inspiration("x", "Work")]), config)
    plan = MergePlan(unresolvable=["Work"])
    with pytest.raises(BackupValidationError) as info:
        ImportExecutor(store, store, config).execute(plan, validated)
    assert info.value.kind == ErrorKind.CATEGORY_UNAVAILABLE
    assert store.list_categories() == []
    assert store.list_notes() == []


def test_report_builder() -> None:
    builder = ImportReportBuilder(3)
    builder.note_failed(4, ErrorKind.STORE_FAILURE, "late")
    builder.note_failed(1, ErrorKind.SEMANTIC_INVALID, "early")
    builder.note_imported()
    builder.category_reused("Work")
    builder.category_reused("Work")
    builder.category_created("Life")
    report = builder.build()
    assert report.total_notes == 3
    assert report.reused_categories == 1
    assert [n.index for n in report.failed_notes] == [1, 4]


def test_report_totals_must_add_up() -> None:
    with pytest.raises(ValueError):
        ImportReport(total_notes=2, created_categories=0, reused_categories=0, imported_notes=1)


def test_builder_detects_unreported_notes() -> None:
    builder = ImportReportBuilder(4)
    builder.note_imported()
    builder.note_failed(1, ErrorKind.SEMANTIC_INVALID, "Content is blank")
    with pytest.raises(ValueError):
        builder.build()


def test_rejected_categories_are_reported(store, config, backup, theme, inspiration) -> None:
    long_name = "A very long category name here"
    raw = backup(
        themes=[theme(long_name), theme("  "), theme("Work")],
        inspirations=[inspiration("a", long_name), inspiration("b", "Work")],
    )
    report = run_import(raw, store, config)
    assert report.imported_notes == 1
    assert report.created_categories == 1
    assert [c.name for c in report.failed_categories] == [long_name, "theme #2"]
    assert "too long" in report.failed_categories[0].reason
    assert [(n.index, n.kind) for n in report.failed_notes] == [(0, ErrorKind.CATEGORY_UNAVAILABLE)]
    assert "too long" in report.failed_notes[0].reason
    assert [c.name for c in store.list_categories()] == ["Work"]


def test_format_report() -> None:
    builder = ImportReportBuilder(5)
    for i in range(5):
        builder.note_failed(i, ErrorKind.SEMANTIC_INVALID, "Content is blank")
    builder.mappings_applied({"work": "工作"})
    text = builder.build().format_report()
    assert "Failed notes:          5" in text
    assert "work -> 工作" in text
    assert "... and 2 more" in text
