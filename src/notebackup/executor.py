"""Apply a merge plan to the store."""

import logging
from typing import Dict, List, Optional, Set

from notebackup.config import Configuration
from notebackup.model import (
    ErrorKind,
    FailedCategory,
    FailedNote,
    ImportReport,
    MergePlan,
    ValidatedBackup,
    ValidationIssue,
)
from notebackup.store import CategoryStore, NoteStore, StoreError
from notebackup.utils import excerpt, now_iso
from notebackup.validation.base import BackupValidationError

log = logging.getLogger(__name__)


class ImportReportBuilder:
    """Collects what happened during an import, :meth:`build` returns the immutable report.

    ``total_notes`` is the number of note records in the source document, every
    one of them has to be reported as imported or failed.
    """

    def __init__(self, total_notes: int) -> None:
        self._total = total_notes
        self._created: List[str] = []
        self._reused: List[str] = []
        self._imported = 0
        self._failed_notes: List[FailedNote] = []
        self._failed_categories: List[FailedCategory] = []
        self._mappings: Dict[str, str] = {}

    def category_created(self, name: str) -> None:
        self._created.append(name)

    def category_reused(self, name: str) -> None:
        if name not in self._reused:
            self._reused.append(name)

    def category_failed(self, name: str, reason: str) -> None:
        if any(failed.name == name for failed in self._failed_categories):
            return
        self._failed_categories.append(FailedCategory(name=name, reason=reason))

    def note_imported(self) -> None:
        self._imported += 1

    def note_failed(self, index: int, kind: ErrorKind, reason: str) -> None:
        self._failed_notes.append(FailedNote(index=index, kind=kind, reason=reason))

    def mappings_applied(self, mappings: Dict[str, str]) -> None:
        self._mappings.update(mappings)

    def build(self) -> ImportReport:
        return ImportReport(
            total_notes=self._total,
            created_categories=len(self._created),
            reused_categories=len(self._reused),
            imported_notes=self._imported,
            failed_notes=sorted(self._failed_notes, key=lambda n: n.index),
            failed_categories=list(self._failed_categories),
            mappings_applied=dict(self._mappings),
        )


class ImportExecutor:
    """Creates the missing categories, then inserts the notes, one at a time in document order.

    A failure on one record never stops the batch. Nothing is rolled back: if
    the process is interrupted, whatever was committed so far stays.
    """

    def __init__(self, categories: CategoryStore, notes: NoteStore, config: Optional[Configuration] = None) -> None:
        self.categories = categories
        self.notes = notes
        self.config = config or Configuration()

    def execute(self, plan: MergePlan, validated: ValidatedBackup) -> ImportReport:
        """Apply ``plan`` to the notes of ``validated``.

        Raises:
            BackupValidationError: If the plan has unresolvable categories, before
                anything is written.
        """
        if not plan.can_proceed:
            raise BackupValidationError(
                ErrorKind.CATEGORY_UNAVAILABLE,
                [
                    ValidationIssue(
                        kind=ErrorKind.CATEGORY_UNAVAILABLE,
                        scope="document",
                        message=f"Category {name!r} can neither be matched nor created",
                    )
                    for name in plan.unresolvable
                ],
            )

        note_issues = validated.note_issues()
        builder = ImportReportBuilder(len(validated.document.entries) + len(note_issues))
        builder.mappings_applied(plan.remapped())
        for issue in note_issues:
            builder.note_failed(issue.index, issue.kind, issue.message)
        for issue in validated.category_issues():
            builder.category_failed(issue.value or f"theme #{issue.index + 1}", issue.message)
        for name, reason in plan.rejected.items():
            builder.category_failed(name, reason)

        available = self._create_categories(plan, builder)

        imported_at = now_iso()
        for position, note in enumerate(validated.document.entries):
            index = note.index if note.index is not None else position
            target = plan.name_mapping.get(note.category_name, note.category_name)
            if target not in available:
                reason = f"Category unavailable: '{note.category_name}'"
                if note.category_name in plan.rejected:
                    reason += f" ({plan.rejected[note.category_name]})"
                if target != note.category_name:
                    reason += f" -> '{target}'"
                log.warning(f"Note #{index + 1} skipped. {reason}")
                builder.note_failed(index, ErrorKind.CATEGORY_UNAVAILABLE, reason)
                continue
            record = note.model_copy(
                update={
                    "id": None,
                    "category_name": target,
                    "word_count": len(note.content.strip()),
                    "created_at": imported_at,
                }
            )
            try:
                self.notes.insert_note(record)
            except StoreError as err:
                log.warning(f"Note #{index + 1} '{excerpt(note.content)}' not imported: {err}")
                builder.note_failed(index, ErrorKind.STORE_FAILURE, str(err))
                continue
            builder.note_imported()

        report = builder.build()
        log.info(
            f"Imported {report.imported_notes}/{report.total_notes} notes, "
            f"{report.created_categories} categories created, {report.reused_categories} reused"
        )
        return report

    def _create_categories(self, plan: MergePlan, builder: ImportReportBuilder) -> Set[str]:
        """Create scheduled categories, return the names notes may use."""
        scheduled = {record.name for record in plan.categories_to_create}
        available: Set[str] = set()
        for target in plan.name_mapping.values():
            if target not in scheduled and target not in available:
                available.add(target)
                builder.category_reused(target)

        for record in plan.categories_to_create:
            if record.name in available:
                continue
            try:
                if self.categories.category_exists(record.name):
                    log.info(f"Category '{record.name}' appeared since planning, reusing it")
                    available.add(record.name)
                    builder.category_reused(record.name)
                    continue
                self.categories.create_category(record)
            except StoreError as err:
                log.warning(f"Category '{record.name}' not created, its notes will be skipped: {err}")
                builder.category_failed(record.name, str(err))
                continue
            available.add(record.name)
            builder.category_created(record.name)
        return available
