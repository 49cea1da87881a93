"""Parse and validate backup files."""

import json
import logging
from typing import Any, List, Union

from notebackup.config import Configuration
from notebackup.model import (
    BackupDocument,
    CategoryRecord,
    ErrorKind,
    NoteRecord,
    ValidatedBackup,
    ValidationIssue,
)
from notebackup.validation.base import BackupValidationError, category_issue, document_issue, fail, note_issue
from notebackup.validation.rules import (
    RuleOutcome,
    check_category_name,
    check_content,
    check_reference,
    normalize_color,
    normalize_count,
    normalize_icon,
)

log = logging.getLogger(__name__)


def decode(raw: Union[bytes, bytearray, str]) -> dict:
    """Turn raw file content into the top level JSON object."""
    if isinstance(raw, (bytes, bytearray)):
        try:
            text = bytes(raw).decode("utf-8-sig")
        except UnicodeDecodeError as err:
            raise fail(ErrorKind.MALFORMED, f"File is not valid UTF-8: {err}") from err
    else:
        text = raw
    if not text.strip():
        raise fail(ErrorKind.MALFORMED, "File is empty")
    try:
        data = json.loads(text)
    except json.JSONDecodeError as err:
        raise fail(ErrorKind.MALFORMED, f"File is not valid JSON: {err}") from err
    if not isinstance(data, dict):
        raise fail(ErrorKind.MALFORMED, f"Top level must be an object, got {type(data).__name__}")
    return data


def _records(data: dict, key: str, issues: List[ValidationIssue]) -> List[dict]:
    value = data.get(key)
    if value is None:
        return []
    if not isinstance(value, list):
        issues.append(document_issue(ErrorKind.STRUCTURAL_INVALID, f"'{key}' must be an array", field=key))
        return []
    for idx, item in enumerate(value):
        if not isinstance(item, dict):
            issues.append(
                document_issue(ErrorKind.STRUCTURAL_INVALID, f"'{key}' item #{idx + 1} must be an object", field=key)
            )
    return value


def _parse_categories(config: Configuration, items: List[dict], issues: List[ValidationIssue]) -> List[CategoryRecord]:
    categories: List[CategoryRecord] = []
    seen = set()
    for idx, item in enumerate(items):
        raw = item.get("name")
        value = raw.strip() if isinstance(raw, str) else None
        result = check_category_name(raw, config.max_category_name_length)
        if result.outcome == RuleOutcome.TOO_LONG:
            issues.append(category_issue(ErrorKind.SEMANTIC_INVALID, idx, result.reason, value=value))
            continue
        if not result.ok:
            issues.append(category_issue(ErrorKind.STRUCTURAL_INVALID, idx, result.reason, value=value))
            continue
        name = value
        if name in seen:
            log.debug(f"Category '{name}' declared more than once, keeping the first one")
            continue
        seen.add(name)
        categories.append(
            CategoryRecord(
                name=name,
                icon=normalize_icon(item.get("icon"), config.default_icon),
                color=normalize_color(item.get("color"), config.default_color),
                note_count=normalize_count(item.get("inspirationCount")),
            )
        )
    return categories


def _note_id(value: Any):
    if isinstance(value, bool) or not isinstance(value, (int, str)):
        return None
    return value


def _parse_notes(config: Configuration, items: List[dict], issues: List[ValidationIssue]) -> List[NoteRecord]:
    notes: List[NoteRecord] = []
    for idx, item in enumerate(items):
        reference = check_reference(item.get("themeName"))
        if not reference.ok:
            issues.append(note_issue(ErrorKind.STRUCTURAL_INVALID, idx, reference.reason, "themeName"))
            continue
        content = check_content(item.get("content"), config.max_content_length)
        if not content.ok:
            issues.append(note_issue(ErrorKind.SEMANTIC_INVALID, idx, content.reason, "content"))
            continue
        created_at = item.get("createdAt")
        notes.append(
            NoteRecord(
                id=_note_id(item.get("id")),
                content=item["content"],
                category_name=item["themeName"].strip(),
                created_at=created_at if isinstance(created_at, str) else "",
                word_count=normalize_count(item.get("wordCount")),
                index=idx,
            )
        )
    return notes


def parse_backup(raw: Union[bytes, bytearray, str], config: Configuration, strict: bool = True) -> ValidatedBackup:
    """Parse a backup file and validate every record.

    Args:
        raw: File content
        config: Limits and defaults
        strict: If True, any problem rejects the whole file. If False, only
            document level problems and notes without a category reference are
            fatal, other invalid records are dropped and reported in ``issues``.

    Raises:
        BackupValidationError: If the file cannot be imported.
    """
    data = decode(raw)

    version = data.get("version")
    if version != config.supported_version:
        raise fail(
            ErrorKind.UNSUPPORTED_VERSION,
            f"Unsupported backup version {version!r}, expected {config.supported_version!r}",
            field="version",
        )

    structure: List[ValidationIssue] = []
    theme_items = _records(data, "themes", structure)
    note_items = _records(data, "inspirations", structure)
    if structure:
        for issue in structure:
            log.debug(issue)
        raise BackupValidationError(ErrorKind.STRUCTURAL_INVALID, structure)

    issues: List[ValidationIssue] = []
    categories = _parse_categories(config, theme_items, issues)
    notes = _parse_notes(config, note_items, issues)
    for issue in issues:
        log.debug(issue)

    if strict and issues:
        raise BackupValidationError(issues[0].kind, issues)
    fatal = [i for i in issues if i.scope == "note" and i.kind == ErrorKind.STRUCTURAL_INVALID]
    if fatal:
        raise BackupValidationError(ErrorKind.STRUCTURAL_INVALID, fatal)

    exported_at = data.get("exportTime")
    producer_version = data.get("appVersion")
    document = BackupDocument(
        schema_version=version,
        exported_at=exported_at if isinstance(exported_at, str) else "",
        producer_version=producer_version if isinstance(producer_version, str) else "",
        categories=categories,
        entries=notes,
    )
    log.debug(
        f"Parsed backup {version}: {len(categories)} categories, {len(notes)} notes, {len(issues)} rejected records"
    )
    return ValidatedBackup(document=document, issues=issues)
