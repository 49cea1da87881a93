"""Read-only consistency check of the store, run after every import."""

import logging
from collections import Counter

from notebackup.model import IntegrityReport
from notebackup.store import CategoryStore, NoteStore
from notebackup.utils import excerpt

log = logging.getLogger(__name__)


def verify(categories: CategoryStore, notes: NoteStore) -> IntegrityReport:
    """Check that every note has a category and that cached counters agree.

    Orphaned notes, duplicate category names and blank notes are issues and make
    the report invalid. Counter mismatches and unused categories are only
    warnings, the cached counters are advisory.
    """
    category_list = categories.list_categories()
    note_list = notes.list_notes()

    issues = []
    warnings = []

    names = Counter(category.name for category in category_list)
    duplicates = sorted(name for name, count in names.items() if count > 1)
    if duplicates:
        issues.append(f"Duplicate categories: {', '.join(duplicates)}")

    orphans = [note for note in note_list if note.category_name not in names]
    if orphans:
        issues.append(f"{len(orphans)} notes reference a category that does not exist")
        for note in orphans:
            warnings.append(f"Orphaned note '{excerpt(note.content)}' (category '{note.category_name}')")

    blank = [note for note in note_list if not note.content.strip()]
    if blank:
        issues.append(f"{len(blank)} notes have blank content")

    actual = Counter(note.category_name for note in note_list)
    for category in category_list:
        count = actual.get(category.name, 0)
        if count != category.note_count:
            warnings.append(f"Category '{category.name}' count is {category.note_count}, actual {count}")
        if count == 0:
            warnings.append(f"Category '{category.name}' has no notes")

    report = IntegrityReport(
        is_valid=not issues,
        total_categories=len(category_list),
        total_notes=len(note_list),
        orphaned_notes=len(orphans),
        issues=issues,
        warnings=warnings,
    )
    for issue in issues:
        log.warning(issue)
    log.info(
        f"Integrity check: {report.total_categories} categories, {report.total_notes} notes, {len(warnings)} warnings"
    )
    return report
