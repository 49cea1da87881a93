"""

Validation happens in two layers:

* field rules (:mod:`notebackup.validation.rules`) look at a single value and
  return a tagged :class:`~notebackup.validation.rules.RuleResult`, they never raise,
* the document validator (:mod:`notebackup.validation.backup`) turns rule results
  into :class:`~notebackup.model.ValidationIssue` objects and decides, depending on
  the mode, which of them are fatal.

Fatal problems are raised as :class:`BackupValidationError` before anything
touches the store.
"""

import logging
from typing import Iterable, List, Optional

from notebackup.model import ErrorKind, ValidationIssue

log = logging.getLogger(__name__)


class BackupValidationError(ValueError):
    """The backup cannot be imported at all.

    ``kind`` is the kind of the first problem found, ``issues`` holds all of them.
    """

    def __init__(self, kind: ErrorKind, issues: Iterable[ValidationIssue], message: Optional[str] = None) -> None:
        self.kind = kind
        self.issues: List[ValidationIssue] = list(issues)
        super().__init__(message or self._summary())

    def _summary(self) -> str:
        if not self.issues:
            return f"Backup rejected ({self.kind.value})"
        first = str(self.issues[0])
        if len(self.issues) == 1:
            return f"Backup rejected: {first}"
        return f"Backup rejected: {first} (and {len(self.issues) - 1} more issues)"


def document_issue(kind: ErrorKind, message: str, field: Optional[str] = None) -> ValidationIssue:
    return ValidationIssue(kind=kind, scope="document", field=field, message=message)


def category_issue(
    kind: ErrorKind, index: int, message: str, field: str = "name", value: Optional[str] = None
) -> ValidationIssue:
    return ValidationIssue(kind=kind, scope="category", index=index, field=field, value=value, message=message)


def note_issue(kind: ErrorKind, index: int, message: str, field: str) -> ValidationIssue:
    return ValidationIssue(kind=kind, scope="note", index=index, field=field, message=message)


def fail(kind: ErrorKind, message: str, field: Optional[str] = None) -> BackupValidationError:
    """Build an error for a single document level problem."""
    issue = document_issue(kind, message, field)
    log.debug(issue)
    return BackupValidationError(kind, [issue])
