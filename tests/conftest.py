"""
Shared pytest fixtures.

Every test gets its own in-memory SQLite database. StaticPool keeps a single
connection alive so the schema survives across sessions and threads
(TestClient runs sync endpoints in a worker thread).
"""

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from landplots.db_init import init_db
from landplots.services.plot_repository import PlotRepository
from landplots.utils.geometry_validator import GeometryValidator
from landplots.utils.measurement import MeasurementEngine


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    init_db(bind=engine)
    yield engine
    engine.dispose()


@pytest.fixture
def db(engine):
    session = sessionmaker(bind=engine, autocommit=False, autoflush=False)()
    yield session
    session.close()


@pytest.fixture
def repo(db):
    """Repository in planar mode so expected values are easy to state."""
    return PlotRepository(
        db,
        validator=GeometryValidator(check_self_intersection=True),
        engine=MeasurementEngine("planar"),
    )
