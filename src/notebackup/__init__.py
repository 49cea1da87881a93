"""Backup, reconciliation and import of personal note collections."""

__version__ = "1.0.0"
