# landplots/db.py
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from landplots.config import settings
from landplots.db_base import Base


def build_engine(database_url: str, echo: bool = False, timeout: float = 30.0):
    connect_args = {}
    if database_url.startswith("sqlite"):
        # SQLite busy timeout bounds lock waits; PostgreSQL uses statement_timeout per transaction
        connect_args = {"check_same_thread": False, "timeout": timeout}

    return create_engine(
        database_url,
        echo=echo,
        pool_pre_ping=True,
        connect_args=connect_args,
    )


engine = build_engine(
    settings.database_url,
    echo=settings.sql_echo,
    timeout=settings.db_timeout_seconds,
)

SessionLocal = sessionmaker(
    autocommit=False,
    autoflush=False,
    bind=engine
)
