from collections.abc import Iterator, Mapping
from contextlib import contextmanager
from threading import Lock
from typing import Any

from sqlalchemy import and_, create_engine, inspect, text
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, declarative_base, sessionmaker
from sqlalchemy.sql import Executable

from backend.core import config


def _build_engine(url: str) -> Engine:
    connect_args = {"check_same_thread": False} if url.startswith("sqlite") else {}
    return create_engine(url, echo=config.DATABASE_ECHO, connect_args=connect_args)


engine = _build_engine(config.DATABASE_URL)

SessionLocal = sessionmaker(
    autocommit=False,
    autoflush=False,
    bind=engine,
)

Base = declarative_base()

ROLE_IDS = {
    'admin': 1,
    'teacher': 2,
    'student': 3,
}

_schema_lock = Lock()
_roles_checked = False


class Database:
    """Thin accessor over a SQLAlchemy session.

    Queries are either SQL strings with bound parameters or SQLAlchemy
    ``Select`` constructs. Table and column names passed to the write helpers
    are resolved against ``Base.metadata`` and must come from code, never
    from request input.

    Outside of ``begin_transaction()`` every write is committed immediately.
    """

    def __init__(self, session: Session):
        self.session = session
        self._in_transaction = False

    def close(self) -> None:
        self.session.close()

    def execute(self, query: str | Executable, params: Mapping[str, Any] | None = None):
        statement = text(query) if isinstance(query, str) else query
        return self.session.execute(statement, dict(params or {}))

    def fetch_one(self, query: str | Executable, params: Mapping[str, Any] | None = None) -> dict | None:
        row = self.execute(query, params).mappings().first()
        return dict(row) if row is not None else None

    def fetch_all(self, query: str | Executable, params: Mapping[str, Any] | None = None) -> list[dict]:
        return [dict(row) for row in self.execute(query, params).mappings().all()]

    def insert(self, table: str, data: Mapping[str, Any]) -> int:
        result = self.session.execute(_table(table).insert().values(**data))
        self._commit_unless_in_transaction()
        return int(result.inserted_primary_key[0])

    def update(self, table: str, data: Mapping[str, Any], where: Mapping[str, Any]) -> int:
        target = _table(table)
        statement = target.update().where(_predicate(target, where)).values(**data)
        result = self.session.execute(statement)
        self._commit_unless_in_transaction()
        return result.rowcount

    def delete(self, table: str, where: Mapping[str, Any]) -> int:
        target = _table(table)
        result = self.session.execute(target.delete().where(_predicate(target, where)))
        self._commit_unless_in_transaction()
        return result.rowcount

    def begin_transaction(self) -> None:
        if self.session.in_transaction():
            # Close the implicit transaction opened by earlier reads.
            self.session.commit()
        self.session.begin()
        self._in_transaction = True

    def commit(self) -> None:
        self.session.commit()
        self._in_transaction = False

    def rollback(self) -> None:
        self.session.rollback()
        self._in_transaction = False

    @contextmanager
    def transaction(self) -> Iterator['Database']:
        self.begin_transaction()
        try:
            yield self
        except Exception:
            self.rollback()
            raise
        self.commit()

    def _commit_unless_in_transaction(self) -> None:
        if not self._in_transaction:
            self.session.commit()


def _table(name: str):
    return Base.metadata.tables[name]


def _predicate(table, where: Mapping[str, Any]):
    if not where:
        raise ValueError('A WHERE condition is required.')
    return and_(*(table.c[column] == value for column, value in where.items()))


def get_db() -> Iterator[Database]:
    db = Database(SessionLocal())
    try:
        yield db
    finally:
        db.close()


def ensure_roles(bind: Engine | None = None) -> None:
    global _roles_checked

    if _roles_checked and bind is None:
        return

    target = bind or engine

    with _schema_lock:
        inspector = inspect(target)

        if 'roles' not in inspector.get_table_names():
            return

        with target.begin() as connection:
            existing = {
                row.name for row in connection.execute(text('SELECT name FROM roles'))
            }
            for name, role_id in ROLE_IDS.items():
                if name not in existing:
                    connection.execute(
                        text('INSERT INTO roles (id, name) VALUES (:id, :name)'),
                        {'id': role_id, 'name': name},
                    )

        if bind is None:
            _roles_checked = True
