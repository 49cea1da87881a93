"""Interfaces of the persistent store the import pipeline works against.

The pipeline only creates categories and inserts notes. Nothing here updates
or deletes existing data, except the ``delete_all_*`` calls used by restore.
"""

from typing import List, Protocol, runtime_checkable

from notebackup.model import CategoryRecord, NoteRecord


class StoreError(RuntimeError):
    """The store rejected an operation."""


@runtime_checkable
class CategoryStore(Protocol):
    def category_exists(self, name: str) -> bool: ...

    def create_category(self, record: CategoryRecord) -> None:
        """Create a category. Raises :class:`StoreError`, also when the name is taken."""
        ...

    def list_categories(self) -> List[CategoryRecord]: ...

    def delete_all_categories(self) -> None: ...


@runtime_checkable
class NoteStore(Protocol):
    def insert_note(self, record: NoteRecord) -> NoteRecord:
        """Insert a note, returns it with the identifier assigned by the store."""
        ...

    def list_notes(self) -> List[NoteRecord]: ...

    def delete_all_notes(self) -> None: ...


@runtime_checkable
class Store(CategoryStore, NoteStore, Protocol):
    """A single backend holding both categories and notes."""
