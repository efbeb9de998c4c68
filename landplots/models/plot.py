# landplots/models/plot.py
from sqlalchemy import Column, DateTime, Float, Integer, JSON, LargeBinary, String
from sqlalchemy.dialects import postgresql

from landplots.db_base import Base

# Ordered per-edge lengths: a native float[] on PostgreSQL, JSON array elsewhere
SideLengthsType = JSON().with_variant(postgresql.ARRAY(Float), "postgresql")
PropertiesType = JSON().with_variant(postgresql.JSONB(), "postgresql")


class Plot(Base):
    __tablename__ = "land_plots"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String, nullable=False)
    owner = Column(String, nullable=False)
    properties = Column(PropertiesType, nullable=True)

    geom = Column(LargeBinary, nullable=False)   # canonical ring as WKB, SRID 4326
    area = Column(Float, nullable=False)
    perimeter = Column(Float, nullable=False)
    side_lengths = Column(SideLengthsType, nullable=False)

    created_at = Column(DateTime(timezone=True), nullable=False)
    updated_at = Column(DateTime(timezone=True), nullable=False)

    def __repr__(self):
        return f"<Plot {self.id} {self.name!r} owner={self.owner!r}>"
