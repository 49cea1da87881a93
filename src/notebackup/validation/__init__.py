"""Validation of untrusted backup documents."""

from notebackup.validation.base import BackupValidationError
from notebackup.validation.backup import parse_backup

__all__ = ["BackupValidationError", "parse_backup"]
