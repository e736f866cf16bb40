"""SQLAlchemy engine, session factory and the `transactions` table."""

from __future__ import annotations

from sqlalchemy import Column, DateTime, Integer, Numeric, String, Text, create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import declarative_base, sessionmaker
from sqlalchemy.pool import StaticPool

Base = declarative_base()


class TransactionRecord(Base):
    __tablename__ = "transactions"
    # Without AUTOINCREMENT SQLite may hand out a deleted max id again.
    __table_args__ = {"sqlite_autoincrement": True}

    id = Column(Integer, primary_key=True, autoincrement=True)
    amount = Column(Numeric(14, 2), nullable=False)
    kind = Column(String(10), nullable=False)  # income | expense
    category = Column(String(100), nullable=False)
    date = Column(DateTime(timezone=True), nullable=False)
    note = Column(Text, nullable=True)


def build_engine(database_url: str, *, echo: bool = False) -> Engine:
    """Create an engine; in-memory SQLite shares one connection across threads."""

    if database_url.startswith("sqlite"):
        kwargs: dict[str, object] = {"connect_args": {"check_same_thread": False}}
        if ":memory:" in database_url or database_url in {"sqlite://", "sqlite+pysqlite://"}:
            kwargs["poolclass"] = StaticPool
        return create_engine(database_url, echo=echo, future=True, **kwargs)
    return create_engine(database_url, echo=echo, future=True, pool_pre_ping=True)


def build_session_factory(engine: Engine) -> sessionmaker:
    return sessionmaker(bind=engine, autoflush=False, expire_on_commit=False)


def init_db(engine: Engine) -> None:
    """Create tables if they do not exist."""
    Base.metadata.create_all(bind=engine)
