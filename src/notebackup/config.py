"""Stuff related to application configuration."""

from pydantic import BaseModel, ConfigDict, Field
from typing import TypeAlias

#: General JSON type
JSON: TypeAlias = dict[str, "JSON"] | list["JSON"] | str | int | float | bool | None


class Configuration(BaseModel):
    model_config = ConfigDict(extra="forbid", validate_assignment=True)
    #: Database connection string, see https://docs.sqlalchemy.org/en/20/core/connections.html
    database_url: str = "sqlite+pysqlite:///notes.db"
    #: Echo SQL statements (debugging only).
    echo_sql: bool = False
    #: The only backup schema version we accept on import, and the one we write on export.
    supported_version: str = "1.0"
    #: Written to ``appVersion`` on export.
    app_version: str = "1.0.0"
    #: Maximum length of note content, counted after trimming.
    max_content_length: int = Field(1000, gt=0)
    #: Maximum length of a category name, counted after trimming.
    max_category_name_length: int = Field(20, gt=0)
    #: Glyph used for categories without a known concept.
    default_icon: str = "💭"
    #: Color (RRGGBB) used for categories without a known concept.
    default_color: str = Field("9E9E9E", pattern=r"^[0-9A-Fa-f]{6}$")
    #: How many alternatives to suggest for a category that has to be created.
    max_suggestions: int = Field(3, ge=0)
    #: Restore refuses documents with any invalid record. If False, invalid
    #: notes are skipped and reported like on import.
    strict_restore: bool = True
