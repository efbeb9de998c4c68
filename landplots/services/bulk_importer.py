# landplots/services/bulk_importer.py
"""
Bulk import of land plots from a GeoJSON FeatureCollection.

Features are imported one at a time, in input order. Each one goes through
decode -> validate -> measure -> create on its own, so a bad feature is
reported against its index without touching the others. With the "abort"
policy the run stops at the first failure and the remaining features are
reported as skipped; plots created before the failure stay committed.
"""

import json
import logging
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, Sequence, Tuple

from landplots.errors import DecodeError, LandPlotError, MissingFieldError, error_kind
from landplots.services.plot_repository import PlotRepository
from landplots.utils import geometry_codec

logger = logging.getLogger(__name__)


class ImportPolicy(str, Enum):
    CONTINUE = "continue"
    ABORT = "abort"


class ImportStatus(str, Enum):
    CREATED = "created"
    FAILED = "failed"
    SKIPPED = "skipped"


@dataclass
class ImportResult:
    index: int
    status: ImportStatus
    plot_id: Optional[int] = None
    name: Optional[str] = None
    error_kind: Optional[str] = None
    message: Optional[str] = None


@dataclass
class ImportReport:
    policy: ImportPolicy
    results: List[ImportResult] = field(default_factory=list)

    def _count(self, status: ImportStatus) -> int:
        return sum(1 for r in self.results if r.status == status)

    @property
    def created(self) -> int:
        return self._count(ImportStatus.CREATED)

    @property
    def failed(self) -> int:
        return self._count(ImportStatus.FAILED)

    @property
    def skipped(self) -> int:
        return self._count(ImportStatus.SKIPPED)

    @property
    def total(self) -> int:
        return len(self.results)


def iter_features(collection: Any) -> Sequence[Any]:
    """Feature list of a FeatureCollection mapping or a plain sequence."""
    if isinstance(collection, Mapping):
        if collection.get("type") not in (None, "FeatureCollection"):
            raise DecodeError(f"expected a FeatureCollection, got {collection.get('type')!r}")
        features = collection.get("features")
    else:
        features = collection

    if isinstance(features, (str, bytes)) or not isinstance(features, (list, tuple)):
        raise DecodeError("feature collection must contain a list of features")
    return features


def split_feature(feature: Any) -> Tuple[Any, Any, Any, Optional[Dict[str, Any]]]:
    """
    Pull (geometry, name, owner, properties) out of one feature.

    GeoJSON Features carry name/owner inside "properties"; plot metadata is
    either a nested "properties" object or, when absent, the remaining keys.
    Flat {geometry, name, owner, properties} mappings are accepted as well.
    """
    if not isinstance(feature, Mapping):
        raise DecodeError("feature must be an object")

    if feature.get("type") == "Feature":
        props = feature.get("properties") or {}
        if not isinstance(props, Mapping):
            raise DecodeError("feature properties must be an object")
        if "properties" in props:
            metadata = props.get("properties")
        else:
            metadata = {k: v for k, v in props.items() if k not in ("name", "owner")} or None
        return feature.get("geometry"), props.get("name"), props.get("owner"), metadata

    return feature.get("geometry"), feature.get("name"), feature.get("owner"), feature.get("properties")


class BulkImporter:

    def __init__(self, repository: PlotRepository, policy: ImportPolicy = ImportPolicy.CONTINUE):
        self.repository = repository
        self.policy = ImportPolicy(policy)

    def _import_one(self, feature: Any) -> Tuple[int, str]:
        geometry, name, owner, properties = split_feature(feature)
        if geometry is None:
            raise MissingFieldError("geometry")
        ring = geometry_codec.decode(geometry)
        plot = self.repository.create(name, owner, ring, properties)
        return plot.id, plot.name

    def import_collection(self, collection: Any) -> ImportReport:
        features = iter_features(collection)
        report = ImportReport(policy=self.policy)

        for index, feature in enumerate(features):
            if report.failed and self.policy is ImportPolicy.ABORT:
                report.results.append(ImportResult(index=index, status=ImportStatus.SKIPPED))
                continue
            try:
                plot_id, name = self._import_one(feature)
            except LandPlotError as exc:
                logger.warning("Feature %d not imported: %s (%s)", index, exc.message, error_kind(exc))
                report.results.append(ImportResult(
                    index=index,
                    status=ImportStatus.FAILED,
                    error_kind=error_kind(exc),
                    message=exc.message,
                ))
                continue
            report.results.append(ImportResult(
                index=index, status=ImportStatus.CREATED, plot_id=plot_id, name=name,
            ))

        logger.info(
            "Imported %d/%d land plots (failed=%d, skipped=%d, policy=%s)",
            report.created, report.total, report.failed, report.skipped, self.policy.value,
        )
        return report

    def import_geojson_file(self, path) -> ImportReport:
        try:
            with Path(path).open(encoding="utf-8") as f:
                collection = json.load(f)
        except (OSError, ValueError) as exc:
            raise DecodeError(f"could not read GeoJSON file {path}: {exc}") from exc
        return self.import_collection(collection)
