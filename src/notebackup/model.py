"""Pydantic models for backup documents, merge plans and reports.

Field names are pythonic; the aliases are the keys used in backup files, so
``model_validate`` accepts wire data and ``model_dump(by_alias=True)`` produces it.
"""

from enum import Enum
from typing import Dict, List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field


class ErrorKind(str, Enum):
    """Why something in a backup could not be imported."""

    MALFORMED = "malformed"
    UNSUPPORTED_VERSION = "unsupported_version"
    STRUCTURAL_INVALID = "structural_invalid"
    SEMANTIC_INVALID = "semantic_invalid"
    CATEGORY_UNAVAILABLE = "category_unavailable"
    STORE_FAILURE = "store_failure"


class CategoryRecord(BaseModel):
    """Category (theme) as stored in a backup or in the store."""

    name: str = Field(..., min_length=1, description="Unique category name")
    icon: str = Field("💭", min_length=1, description="Short glyph")
    color: str = Field("9E9E9E", pattern=r"^[0-9A-F]{6}$", description="RRGGBB, upper case, no '#'")
    note_count: int = Field(0, ge=0, alias="inspirationCount", description="Informational, never trusted")

    model_config = ConfigDict(populate_by_name=True, frozen=True)


class NoteRecord(BaseModel):
    """Note (inspiration) as stored in a backup or in the store."""

    id: Optional[Union[int, str]] = Field(None, description="Opaque, a new one is assigned on import")
    content: str = Field(..., description="Note text")
    category_name: str = Field(..., alias="themeName")
    created_at: str = Field("", alias="createdAt")
    word_count: int = Field(0, ge=0, alias="wordCount")
    #: Position of the record in the source document, not serialized.
    index: Optional[int] = Field(None, exclude=True)

    model_config = ConfigDict(populate_by_name=True, frozen=True)


class BackupDocument(BaseModel):
    """Parsed backup file, only valid records are kept."""

    schema_version: str = Field(..., alias="version")
    exported_at: str = Field("", alias="exportTime")
    producer_version: str = Field("", alias="appVersion")
    categories: List[CategoryRecord] = Field(default_factory=list, alias="themes")
    entries: List[NoteRecord] = Field(default_factory=list, alias="inspirations")

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    def to_wire(self) -> dict:
        """Backup file representation, including the informational totals."""
        data = self.model_dump(by_alias=True)
        return {
            "version": data["version"],
            "exportTime": data["exportTime"],
            "appVersion": data["appVersion"],
            "totalInspirations": len(self.entries),
            "totalThemes": len(self.categories),
            "themes": data["themes"],
            "inspirations": data["inspirations"],
        }


class ValidationIssue(BaseModel):
    """Single problem found while validating a backup."""

    kind: ErrorKind
    scope: Literal["document", "category", "note"]
    index: Optional[int] = Field(None, ge=0, description="Record position in its array")
    field: Optional[str] = None
    #: Offending text, e.g. the trimmed category name.
    value: Optional[str] = None
    message: str = Field(..., min_length=1)

    model_config = ConfigDict(frozen=True)

    def __str__(self) -> str:
        where = self.scope if self.index is None else f"{self.scope} #{self.index + 1}"
        return f"[{self.kind.value}] {where}: {self.message}"


class ValidatedBackup(BaseModel):
    """Validator output: the usable document plus everything that was rejected."""

    document: BackupDocument
    issues: List[ValidationIssue] = Field(default_factory=list)

    model_config = ConfigDict(frozen=True)

    def note_issues(self) -> List[ValidationIssue]:
        return [issue for issue in self.issues if issue.scope == "note"]

    def category_issues(self) -> List[ValidationIssue]:
        return [issue for issue in self.issues if issue.scope == "category"]


class MatchStrategy(str, Enum):
    """How a backup category name was resolved to a local one."""

    IDENTITY = "identity"
    EXACT = "exact"
    CONTAINMENT = "containment"
    SEMANTIC = "semantic"
    TRANSLATION = "translation"
    CREATE = "create"
    REJECTED = "rejected"


class MatchDecision(BaseModel):
    source: str
    target: str
    strategy: MatchStrategy

    model_config = ConfigDict(frozen=True)


class MergePlan(BaseModel):
    """Mapping from backup category names to local ones, computed before any store change."""

    name_mapping: Dict[str, str] = Field(default_factory=dict)
    categories_to_create: List[CategoryRecord] = Field(default_factory=list)
    unresolvable: List[str] = Field(default_factory=list)
    #: Names with no local match that are not valid category names, with the reason.
    #: Their notes fail, the import goes on.
    rejected: Dict[str, str] = Field(default_factory=dict)
    decisions: List[MatchDecision] = Field(default_factory=list)
    suggestions: Dict[str, List[str]] = Field(default_factory=dict)

    model_config = ConfigDict(frozen=True)

    @property
    def can_proceed(self) -> bool:
        return not self.unresolvable

    def remapped(self) -> Dict[str, str]:
        """Only the entries where the local name differs from the backup name."""
        return {source: target for source, target in self.name_mapping.items() if source != target}


class FailedNote(BaseModel):
    index: int = Field(..., ge=0)
    kind: ErrorKind
    reason: str = Field(..., min_length=1)

    model_config = ConfigDict(frozen=True)


class FailedCategory(BaseModel):
    name: str
    reason: str = Field(..., min_length=1)

    model_config = ConfigDict(frozen=True)


class ImportReport(BaseModel):
    """Outcome of an import whose file was valid."""

    total_notes: int = Field(..., ge=0, description="Note records in the source document")
    created_categories: int = Field(..., ge=0)
    reused_categories: int = Field(..., ge=0)
    imported_notes: int = Field(..., ge=0)
    failed_notes: List[FailedNote] = Field(default_factory=list)
    failed_categories: List[FailedCategory] = Field(default_factory=list)
    mappings_applied: Dict[str, str] = Field(default_factory=dict)

    model_config = ConfigDict(frozen=True)

    def model_post_init(self, __context) -> None:
        """Every note is either imported or reported as failed."""
        if self.imported_notes + len(self.failed_notes) != self.total_notes:
            raise ValueError(
                f"imported ({self.imported_notes}) + failed ({len(self.failed_notes)}) "
                f"does not match total_notes ({self.total_notes})"
            )

    @property
    def has_failures(self) -> bool:
        return bool(self.failed_notes or self.failed_categories)

    def format_report(self, limit: int = 3) -> str:
        """Human-readable summary, details are cut after ``limit`` lines per section."""
        lines = [
            "Import summary",
            "=" * 40,
            f"Notes in backup:       {self.total_notes}",
            f"Imported notes:        {self.imported_notes}",
            f"Failed notes:          {len(self.failed_notes)}",
            f"Created categories:    {self.created_categories}",
            f"Reused categories:     {self.reused_categories}",
        ]
        if self.mappings_applied:
            lines.append("")
            lines.append("Matched categories:")
            for source, target in self.mappings_applied.items():
                lines.append(f"  {source} -> {target}")
        sections = [
            ("Failed categories:", [f"  {c.name}: {c.reason}" for c in self.failed_categories]),
            ("Failed notes:", [f"  #{n.index + 1} [{n.kind.value}] {n.reason}" for n in self.failed_notes]),
        ]
        for title, details in sections:
            if not details:
                continue
            lines.append("")
            lines.append(title)
            lines.extend(details[:limit])
            if len(details) > limit:
                lines.append(f"  ... and {len(details) - limit} more")
        return "\n".join(lines)


class IntegrityReport(BaseModel):
    """Result of a read-only consistency check of the store."""

    is_valid: bool
    total_categories: int = Field(..., ge=0)
    total_notes: int = Field(..., ge=0)
    orphaned_notes: int = Field(0, ge=0)
    issues: List[str] = Field(default_factory=list)
    warnings: List[str] = Field(default_factory=list)

    model_config = ConfigDict(frozen=True)

    def format_report(self, limit: int = 5) -> str:
        lines = [
            "Integrity report",
            "=" * 40,
            f"Categories:     {self.total_categories}",
            f"Notes:          {self.total_notes}",
            f"Orphaned notes: {self.orphaned_notes}",
            f"Status:         {'valid' if self.is_valid else 'problems found'}",
        ]
        if self.issues:
            lines.append("")
            lines.append("Issues:")
            lines.extend(f"  - {issue}" for issue in self.issues)
        if self.warnings:
            lines.append("")
            lines.append("Warnings:")
            lines.extend(f"  - {warning}" for warning in self.warnings[:limit])
            if len(self.warnings) > limit:
                lines.append(f"  ... and {len(self.warnings) - limit} more")
        return "\n".join(lines)


class BackupPreview(BaseModel):
    """What a backup file contains, shown before importing it."""

    total_notes: int = Field(..., ge=0)
    total_categories: int = Field(..., ge=0)
    export_time: str
    app_version: str
    category_distribution: Dict[str, int] = Field(default_factory=dict, description="Notes per category name")
