# landplots/services/plot_repository.py
"""
Persistence of land plots.

Every write validates and measures the geometry first, then stores the
canonical ring together with all derived measurements in one transaction.
A failed write is rolled back and surfaced as StorageError, leaving the row
exactly as it was before the call.
"""

import logging
from contextlib import contextmanager
from datetime import datetime, timezone
from typing import Any, Dict, List, Mapping, Optional

from sqlalchemy import inspect, select, text
from sqlalchemy.exc import IntegrityError, OperationalError, SQLAlchemyError
from sqlalchemy.orm import Session

from landplots.errors import (
    DecodeError,
    DuplicateKeyError,
    LandPlotError,
    MissingFieldError,
    NotFoundError,
    StorageError,
)
from landplots.models.plot import Plot
from landplots.utils.geometry_codec import Ring, to_storage_bytes
from landplots.utils.geometry_validator import GeometryValidator
from landplots.utils.measurement import MeasurementEngine, Measurements

logger = logging.getLogger(__name__)

UPDATABLE_FIELDS = ("name", "owner", "properties", "geometry")

ORDERABLE_COLUMNS = {
    "id": Plot.id,
    "name": Plot.name,
    "owner": Plot.owner,
    "area": Plot.area,
    "perimeter": Plot.perimeter,
    "created_at": Plot.created_at,
    "updated_at": Plot.updated_at,
}


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _required_text(field: str, value: Any) -> str:
    if value is None or not str(value).strip():
        raise MissingFieldError(field)
    return str(value).strip()


def _properties(value: Any) -> Optional[Dict[str, Any]]:
    if value is None:
        return None
    if not isinstance(value, Mapping):
        raise DecodeError("properties must be a key-value mapping")
    return dict(value)


def geometry_columns(ring: Ring, measurements: Measurements) -> Dict[str, Any]:
    """The four columns that always change together."""
    return {
        "geom": to_storage_bytes(ring),
        "area": measurements.area,
        "perimeter": measurements.perimeter,
        "side_lengths": list(measurements.side_lengths),
    }


class PlotRepository:

    def __init__(
        self,
        db: Session,
        validator: Optional[GeometryValidator] = None,
        engine: Optional[MeasurementEngine] = None,
        timeout: Optional[float] = None,
    ):
        self.db = db
        self.validator = validator or GeometryValidator()
        self.engine = engine or MeasurementEngine()
        self.timeout = timeout

    # ---------------- helpers ----------------

    def _apply_timeout(self, timeout: Optional[float]) -> None:
        seconds = timeout if timeout is not None else self.timeout
        if seconds is None:
            return
        if self.db.get_bind().dialect.name == "postgresql":
            # transaction-local, released on commit/rollback
            self.db.execute(
                text("SELECT set_config('statement_timeout', :ms, true)"),
                {"ms": str(int(seconds * 1000))},
            )

    @contextmanager
    def _transaction(self, action: str, duplicate_is_conflict: bool = False, commit: bool = True):
        try:
            yield
            if commit:
                self.db.commit()
        except LandPlotError:
            self.db.rollback()
            raise
        except IntegrityError as exc:
            self.db.rollback()
            if duplicate_is_conflict:
                logger.warning("Land plot %s rejected: %s", action, exc.orig)
                raise DuplicateKeyError(f"land plot already exists: {exc.orig}") from exc
            logger.exception("Land plot %s failed", action)
            raise StorageError(f"could not {action} land plot: {exc.orig}") from exc
        except OperationalError as exc:
            self.db.rollback()
            logger.exception("Land plot %s failed (connection/timeout)", action)
            raise StorageError(f"could not {action} land plot, storage unavailable or timed out") from exc
        except SQLAlchemyError as exc:
            self.db.rollback()
            logger.exception("Land plot %s failed", action)
            raise StorageError(f"could not {action} land plot: {exc}") from exc

    def _prepare_geometry(self, ring: Ring) -> Dict[str, Any]:
        canonical = self.validator.validate(ring)
        return geometry_columns(canonical, self.engine.measure(canonical))

    def _locked(self, plot_id: int) -> Plot:
        stmt = (
            select(Plot)
            .where(Plot.id == plot_id)
            .with_for_update()
            .execution_options(populate_existing=True)
        )
        plot = self.db.execute(stmt).scalar_one_or_none()
        if plot is None:
            raise NotFoundError(plot_id)
        return plot

    def _reload(self, plot: Plot, timeout: Optional[float]) -> None:
        # sessions that expire on commit would otherwise lazy-load outside any transaction
        if not inspect(plot).expired_attributes:
            return
        with self._transaction("reload", commit=False):
            self._apply_timeout(timeout)
            self.db.refresh(plot)

    # ---------------- operations ----------------

    def create(
        self,
        name: str,
        owner: str,
        ring: Ring,
        properties: Optional[Mapping[str, Any]] = None,
        timeout: Optional[float] = None,
    ) -> Plot:
        name = _required_text("name", name)
        owner = _required_text("owner", owner)
        if ring is None:
            raise MissingFieldError("geometry")
        columns = self._prepare_geometry(ring)

        now = utcnow()
        plot = Plot(
            name=name,
            owner=owner,
            properties=_properties(properties),
            created_at=now,
            updated_at=now,
            **columns,
        )

        with self._transaction("create", duplicate_is_conflict=True):
            self._apply_timeout(timeout)
            self.db.add(plot)
            self.db.flush()
        self._reload(plot, timeout)

        logger.info("Created land plot %s (area=%.3f, perimeter=%.3f)", plot.id, plot.area, plot.perimeter)
        return plot

    def get(self, plot_id: int, timeout: Optional[float] = None) -> Plot:
        plot = None
        with self._transaction("read", commit=False):
            self._apply_timeout(timeout)
            plot = self.db.get(Plot, plot_id)
        if plot is None:
            raise NotFoundError(plot_id)
        return plot

    def list_all(self, order_by: Optional[str] = None, timeout: Optional[float] = None) -> List[Plot]:
        stmt = select(Plot)
        if order_by is not None:
            if order_by not in ORDERABLE_COLUMNS:
                raise DecodeError(f"cannot order land plots by {order_by!r}")
            stmt = stmt.order_by(ORDERABLE_COLUMNS[order_by], Plot.id)

        plots: List[Plot] = []
        with self._transaction("list", commit=False):
            self._apply_timeout(timeout)
            plots = list(self.db.execute(stmt).scalars().all())
        return plots

    def update(self, plot_id: int, fields: Mapping[str, Any], timeout: Optional[float] = None) -> Plot:
        unknown = set(fields) - set(UPDATABLE_FIELDS)
        if unknown:
            raise DecodeError(f"unknown land plot fields: {sorted(unknown)}")

        # everything is computed before the row is touched
        changes: Dict[str, Any] = {}
        if "name" in fields:
            changes["name"] = _required_text("name", fields["name"])
        if "owner" in fields:
            changes["owner"] = _required_text("owner", fields["owner"])
        if "properties" in fields:
            changes["properties"] = _properties(fields["properties"])
        if "geometry" in fields:
            if fields["geometry"] is None:
                raise MissingFieldError("geometry", "geometry cannot be removed from a land plot")
            changes.update(self._prepare_geometry(fields["geometry"]))

        with self._transaction("update"):
            self._apply_timeout(timeout)
            plot = self._locked(plot_id)
            for column, value in changes.items():
                setattr(plot, column, value)
            plot.updated_at = utcnow()
            self.db.flush()
        self._reload(plot, timeout)

        logger.info(
            "Updated land plot %s (fields=%s)",
            plot_id, ",".join(sorted(fields)) or "-",
        )
        return plot

    def delete(self, plot_id: int, timeout: Optional[float] = None) -> None:
        with self._transaction("delete"):
            self._apply_timeout(timeout)
            plot = self._locked(plot_id)
            self.db.delete(plot)
            self.db.flush()
        logger.info("Deleted land plot %s", plot_id)
