# streamint/store/sql.py
"""
Relational subject/stream stores backed by SQLModel.

Tables:
- subjects: the A/L and O/L catalogue
- streams: one row per stream, rule payload stored as JSON

Any SQLAlchemy failure while reading is reported as
ReferenceDataUnavailable so callers fail closed.
"""

import logging
import time
from typing import Any, Dict, List, Optional, Sequence

from sqlalchemy import JSON, Column
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.pool import StaticPool
from sqlmodel import Field, Session, SQLModel, col, create_engine, func, select

from streamint.errors import ReferenceDataUnavailable
from streamint.reference.registry import StreamDefinition, StreamRegistry
from streamint.reference.subjects import Subject, SubjectLevel
from streamint.rules.definitions import rule_from_dict

logger = logging.getLogger(__name__)


class SubjectRow(SQLModel, table=True):
    __tablename__ = "subjects"

    id: Optional[int] = Field(default=None, primary_key=True)
    code: str = Field(index=True)
    name: str
    level: str = Field(default=SubjectLevel.AL.value, index=True)
    is_active: bool = Field(default=True)

    def to_subject(self) -> Subject:
        return Subject(
            id=self.id,
            code=self.code,
            name=self.name,
            level=SubjectLevel(self.level),
            active=self.is_active,
        )


class StreamRow(SQLModel, table=True):
    __tablename__ = "streams"

    id: Optional[int] = Field(default=None, primary_key=True)
    name: str = Field(index=True, unique=True)
    priority: int
    is_active: bool = Field(default=True)
    description: Optional[str] = None
    stream_rule: Dict[str, Any] = Field(default_factory=dict, sa_column=Column(JSON))

    def to_definition(self) -> StreamDefinition:
        return StreamDefinition(
            id=self.id,
            name=self.name,
            priority=self.priority,
            rule=rule_from_dict(self.stream_rule),
            active=self.is_active,
            description=self.description,
        )


def make_engine(database_url: str) -> Engine:
    """Engine for the given URL; in-memory SQLite shares one connection."""
    if database_url.startswith("sqlite"):
        kwargs: Dict[str, Any] = {"connect_args": {"check_same_thread": False}}
        if database_url in ("sqlite://", "sqlite:///:memory:"):
            kwargs["poolclass"] = StaticPool
        return create_engine(database_url, **kwargs)
    return create_engine(database_url, pool_pre_ping=True)


def create_db_and_tables(engine: Engine) -> None:
    try:
        SQLModel.metadata.create_all(engine)
    except SQLAlchemyError as e:
        logger.error("Schema setup failed: %s", e)
        raise ReferenceDataUnavailable("Stream store unavailable") from e


class SqlSubjectStore:
    def __init__(self, engine: Engine):
        self.engine = engine

    def get_active_subjects(self, subject_ids: Sequence[int]) -> Dict[int, Subject]:
        if not subject_ids:
            return {}
        try:
            with Session(self.engine) as session:
                rows = session.exec(
                    select(SubjectRow)
                    .where(col(SubjectRow.id).in_(list(subject_ids)))
                    .where(SubjectRow.is_active == True)  # noqa: E712
                ).all()
        except SQLAlchemyError as e:
            logger.error("Subject lookup failed: %s", e)
            raise ReferenceDataUnavailable("Subject store unavailable") from e
        return {row.id: row.to_subject() for row in rows}

    def list_classifiable_subjects(self) -> List[Subject]:
        try:
            with Session(self.engine) as session:
                rows = session.exec(
                    select(SubjectRow)
                    .where(SubjectRow.level == SubjectLevel.AL.value)
                    .where(SubjectRow.is_active == True)  # noqa: E712
                    .order_by(SubjectRow.name)
                ).all()
        except SQLAlchemyError as e:
            logger.error("Subject listing failed: %s", e)
            raise ReferenceDataUnavailable("Subject store unavailable") from e
        return [row.to_subject() for row in rows]


class SqlStreamStore:
    """
    Stream definitions from the streams table.

    cache_seconds > 0 keeps the last registry for that long; 0 reloads on
    every call.
    """

    def __init__(self, engine: Engine, cache_seconds: float = 0.0):
        self.engine = engine
        self.cache_seconds = cache_seconds
        self._cached: Optional[StreamRegistry] = None
        self._loaded_at = 0.0

    def load_registry(self) -> StreamRegistry:
        now = time.monotonic()
        if self._cached is not None and now - self._loaded_at < self.cache_seconds:
            return self._cached

        try:
            with Session(self.engine) as session:
                rows = session.exec(select(StreamRow).order_by(StreamRow.priority)).all()
                definitions = [row.to_definition() for row in rows]
        except SQLAlchemyError as e:
            logger.error("Stream lookup failed: %s", e)
            raise ReferenceDataUnavailable("Stream store unavailable") from e

        registry = StreamRegistry(definitions)
        self._cached, self._loaded_at = registry, now
        return registry


def seed_reference_data(
    engine: Engine,
    subjects: Sequence[Subject],
    streams: Sequence[StreamDefinition],
) -> Dict[str, int]:
    """
    Install a subject catalogue and stream set into empty tables.

    Tables that already hold rows are left untouched, so running it twice
    is harmless. Returns how many rows were inserted per table.
    """
    create_db_and_tables(engine)
    inserted = {"subjects": 0, "streams": 0}

    with Session(engine) as session:
        if session.exec(select(func.count(SubjectRow.id))).one() == 0:
            for s in subjects:
                session.add(SubjectRow(id=s.id, code=s.code, name=s.name, level=s.level.value, is_active=s.active))
            inserted["subjects"] = len(subjects)
        else:
            logger.info("Subjects table not empty, skipping subject seed")

        if session.exec(select(func.count(StreamRow.id))).one() == 0:
            for d in streams:
                session.add(StreamRow(
                    id=d.id,
                    name=d.name,
                    priority=d.priority,
                    is_active=d.active,
                    description=d.description,
                    stream_rule=d.rule.to_dict(),
                ))
            inserted["streams"] = len(streams)
        else:
            logger.info("Streams table not empty, skipping stream seed")

        session.commit()

    problems = StreamRegistry(streams).check_subjects(SqlSubjectStore(engine))
    for problem in problems:
        logger.warning("Stream references a non-classifiable subject: %s", problem)

    return inserted
