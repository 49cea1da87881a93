"""Entry points used by the application: export, import, restore and integrity check.

All functions are stateless, they take the store and the configuration they
work with. Fatal problems with a file raise
:class:`~notebackup.validation.BackupValidationError` before the store is
touched, problems with single records end up in the returned
:class:`~notebackup.model.ImportReport`.
"""

import json
import logging
from collections import Counter
from typing import Optional, Union

from notebackup.config import Configuration
from notebackup.executor import ImportExecutor
from notebackup.integrity import verify
from notebackup.model import BackupDocument, BackupPreview, ImportReport, IntegrityReport, MergePlan
from notebackup.reconcile import build_identity_plan, build_plan
from notebackup.store import Store
from notebackup.utils import now_iso
from notebackup.validation import parse_backup

log = logging.getLogger(__name__)

Raw = Union[bytes, bytearray, str]


def plan_import(raw: Raw, store: Store, config: Optional[Configuration] = None) -> MergePlan:
    """Dry run of :func:`import_backup`: validate and reconcile, write nothing."""
    config = config or Configuration()
    validated = parse_backup(raw, config, strict=False)
    existing = {category.name for category in store.list_categories()}
    return build_plan(validated.document, existing, config)


def import_backup(raw: Raw, store: Store, config: Optional[Configuration] = None) -> ImportReport:
    """Merge a backup into the store.

    Backup categories are matched against local ones, missing ones are created.
    Notes with invalid content are skipped and reported, the rest is imported
    with a fresh identity and creation time.
    """
    config = config or Configuration()
    validated = parse_backup(raw, config, strict=False)
    existing = {category.name for category in store.list_categories()}
    plan = build_plan(validated.document, existing, config)
    report = ImportExecutor(store, store, config).execute(plan, validated)
    integrity = verify(store, store)
    if not integrity.is_valid:
        log.warning(f"Store has integrity issues after import: {'; '.join(integrity.issues)}")
    return report


def restore_from_backup(raw: Raw, store: Store, config: Optional[Configuration] = None) -> ImportReport:
    """Replace the content of the store with the backup.

    The file is validated first, only then are all notes and categories deleted
    and the backup replayed without any name matching.
    """
    config = config or Configuration()
    validated = parse_backup(raw, config, strict=config.strict_restore)
    log.info("Clearing store before restore")
    store.delete_all_notes()
    store.delete_all_categories()
    plan = build_identity_plan(validated.document, config)
    return ImportExecutor(store, store, config).execute(plan, validated)


def verify_integrity(store: Store) -> IntegrityReport:
    return verify(store, store)


def export_document(store: Store, config: Optional[Configuration] = None) -> BackupDocument:
    """Snapshot of the store, category counters are recomputed from the notes."""
    config = config or Configuration()
    notes = store.list_notes()
    counts = Counter(note.category_name for note in notes)
    categories = [
        category.model_copy(update={"note_count": counts.get(category.name, 0)})
        for category in store.list_categories()
    ]
    return BackupDocument(
        schema_version=config.supported_version,
        exported_at=now_iso(),
        producer_version=config.app_version,
        categories=categories,
        entries=notes,
    )


def export_backup(store: Store, config: Optional[Configuration] = None) -> bytes:
    """Backup file content for the whole store."""
    document = export_document(store, config)
    return json.dumps(document.to_wire(), indent=2, ensure_ascii=False).encode("utf-8")


def preview_backup(raw: Raw, config: Optional[Configuration] = None) -> BackupPreview:
    """Summary of a backup file, without looking at any store."""
    config = config or Configuration()
    validated = parse_backup(raw, config, strict=False)
    document = validated.document
    distribution = Counter(note.category_name for note in document.entries)
    return BackupPreview(
        total_notes=len(document.entries) + len(validated.note_issues()),
        total_categories=len(document.categories),
        export_time=document.exported_at or "unknown",
        app_version=document.producer_version or "unknown",
        category_distribution=dict(distribution),
    )
