"""SQLAlchemy implementation of the category and note stores."""

import logging
from typing import List, Optional

import sqlalchemy
from sqlalchemy import ForeignKey, Integer, String, Text, func, select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import DeclarativeBase, Mapped, Session, mapped_column
from sqlalchemy.pool import StaticPool

from notebackup.config import Configuration
from notebackup.model import CategoryRecord, NoteRecord
from notebackup.store import StoreError
from notebackup.utils import now_iso

log = logging.getLogger(__name__)


class Base(DeclarativeBase):
    pass


class CategoryRow(Base):
    __tablename__ = "categories"

    name: Mapped[str] = mapped_column(String(255), primary_key=True)
    icon: Mapped[str] = mapped_column(String(16), default="💭")
    color: Mapped[str] = mapped_column(String(6), default="9E9E9E")
    created_at: Mapped[str] = mapped_column(String(40), default="")
    #: Cached count, kept up to date on insert, recomputed by refresh_counts.
    note_count: Mapped[int] = mapped_column(Integer, default=0)


class NoteRow(Base):
    __tablename__ = "notes"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    content: Mapped[str] = mapped_column(Text)
    # No foreign key constraint is enforced by sqlite unless enabled, the
    # integrity check reports orphans instead.
    category_name: Mapped[str] = mapped_column(String(255), ForeignKey("categories.name"), index=True)
    created_at: Mapped[str] = mapped_column(String(40), default="")
    word_count: Mapped[int] = mapped_column(Integer, default=0)


def create_engine(database_url: str, echo: bool = False) -> sqlalchemy.Engine:
    """Engine for ``database_url``, in-memory sqlite shares one connection so the data survives."""
    if database_url.startswith("sqlite") and ":memory:" in database_url:
        return sqlalchemy.create_engine(
            database_url,
            echo=echo,
            connect_args={"check_same_thread": False},
            poolclass=StaticPool,
        )
    return sqlalchemy.create_engine(database_url, echo=echo)


class SqlStore:
    """Category and note store on top of a relational database.

    Every mutating call runs in its own transaction, there is no way to roll
    back a sequence of calls.
    """

    def __init__(self, database_url: str, echo: bool = False, engine: Optional[sqlalchemy.Engine] = None) -> None:
        self.engine = engine or create_engine(database_url, echo=echo)
        Base.metadata.create_all(self.engine)

    @classmethod
    def from_config(cls, config: Configuration) -> "SqlStore":
        return cls(config.database_url, echo=config.echo_sql)

    def _session(self) -> Session:
        return Session(self.engine, expire_on_commit=False)

    def category_exists(self, name: str) -> bool:
        with self._session() as session:
            return session.get(CategoryRow, name) is not None

    def create_category(self, record: CategoryRecord) -> None:
        row = CategoryRow(name=record.name, icon=record.icon, color=record.color, created_at=now_iso(), note_count=0)
        try:
            with self._session() as session, session.begin():
                if session.get(CategoryRow, record.name) is not None:
                    raise StoreError(f"Category '{record.name}' already exists")
                session.add(row)
        except IntegrityError as err:
            raise StoreError(f"Category '{record.name}' already exists") from err
        except SQLAlchemyError as err:
            raise StoreError(f"Cannot create category '{record.name}': {err}") from err
        log.debug(f"Created category '{record.name}'")

    def list_categories(self) -> List[CategoryRecord]:
        with self._session() as session:
            rows = session.scalars(select(CategoryRow).order_by(CategoryRow.created_at, CategoryRow.name)).all()
            return [
                CategoryRecord(name=row.name, icon=row.icon, color=row.color, note_count=row.note_count)
                for row in rows
            ]

    def delete_all_categories(self) -> None:
        try:
            with self._session() as session, session.begin():
                session.execute(sqlalchemy.delete(CategoryRow))
        except SQLAlchemyError as err:
            raise StoreError(f"Cannot delete categories: {err}") from err

    def insert_note(self, record: NoteRecord) -> NoteRecord:
        row = NoteRow(
            content=record.content,
            category_name=record.category_name,
            created_at=record.created_at or now_iso(),
            word_count=record.word_count,
        )
        try:
            with self._session() as session, session.begin():
                session.add(row)
                category = session.get(CategoryRow, record.category_name)
                if category is not None:
                    category.note_count += 1
                session.flush()
                new_id = row.id
        except SQLAlchemyError as err:
            raise StoreError(f"Cannot insert note: {err}") from err
        return record.model_copy(update={"id": new_id, "created_at": row.created_at})

    def list_notes(self) -> List[NoteRecord]:
        with self._session() as session:
            rows = session.scalars(select(NoteRow).order_by(NoteRow.id)).all()
            return [
                NoteRecord(
                    id=row.id,
                    content=row.content,
                    category_name=row.category_name,
                    created_at=row.created_at,
                    word_count=row.word_count,
                )
                for row in rows
            ]

    def delete_all_notes(self) -> None:
        try:
            with self._session() as session, session.begin():
                session.execute(sqlalchemy.delete(NoteRow))
                session.execute(sqlalchemy.update(CategoryRow).values(note_count=0))
        except SQLAlchemyError as err:
            raise StoreError(f"Cannot delete notes: {err}") from err

    def refresh_counts(self) -> None:
        """Recompute the cached note count of every category."""
        with self._session() as session, session.begin():
            counts = dict(
                session.execute(select(NoteRow.category_name, func.count(NoteRow.id)).group_by(NoteRow.category_name))
                .tuples()
                .all()
            )
            for row in session.scalars(select(CategoryRow)):
                row.note_count = counts.get(row.name, 0)
