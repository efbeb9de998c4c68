# landplots/db_init.py

from landplots.db import engine
from landplots.db_base import Base

# Import ALL models so SQLAlchemy registers them
from landplots.models.plot import Plot  # noqa: F401


def init_db(bind=None):
    Base.metadata.create_all(bind=bind or engine)
