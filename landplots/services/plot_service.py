# landplots/services/plot_service.py
# Operations the request layer calls. Plots go out in exchange form.

from typing import Any, Dict, List, Mapping, Optional

from landplots.config import settings
from landplots.errors import MissingFieldError
from landplots.models.plot import Plot
from landplots.services.bulk_importer import BulkImporter, ImportPolicy, ImportReport
from landplots.services.plot_repository import PlotRepository
from landplots.utils import geometry_codec


def plot_to_exchange(plot: Plot) -> Dict[str, Any]:
    return {
        "id": plot.id,
        "name": plot.name,
        "owner": plot.owner,
        "properties": plot.properties,
        "geometry": geometry_codec.encode(geometry_codec.from_storage_bytes(plot.geom)),
        "area": plot.area,
        "perimeter": plot.perimeter,
        "side_lengths": list(plot.side_lengths),
        "created_at": plot.created_at,
        "updated_at": plot.updated_at,
    }


def create_plot(
    repo: PlotRepository,
    name: Optional[str],
    owner: Optional[str],
    geometry: Any,
    properties: Optional[Mapping[str, Any]] = None,
) -> Dict[str, Any]:
    for field, value in (("name", name), ("owner", owner)):
        if value is None or not str(value).strip():
            raise MissingFieldError(field)
    if geometry is None:
        raise MissingFieldError("geometry")

    ring = geometry_codec.decode(geometry)
    return plot_to_exchange(repo.create(name, owner, ring, properties))


def get_all_plots(repo: PlotRepository, order_by: Optional[str] = None) -> List[Dict[str, Any]]:
    return [plot_to_exchange(p) for p in repo.list_all(order_by=order_by)]


def get_plot(repo: PlotRepository, plot_id: int) -> Dict[str, Any]:
    return plot_to_exchange(repo.get(plot_id))


def update_plot(repo: PlotRepository, plot_id: int, fields: Mapping[str, Any]) -> Dict[str, Any]:
    fields = dict(fields)
    if fields.get("geometry") is not None:
        fields["geometry"] = geometry_codec.decode(fields["geometry"])
    return plot_to_exchange(repo.update(plot_id, fields))


def delete_plot(repo: PlotRepository, plot_id: int) -> Dict[str, Any]:
    repo.delete(plot_id)
    return {"id": plot_id, "deleted": True}


def import_plots(repo: PlotRepository, collection: Any, policy: Optional[str] = None) -> ImportReport:
    importer = BulkImporter(repo, ImportPolicy(policy or settings.import_policy))
    return importer.import_collection(collection)


def import_plots_file(repo: PlotRepository, file_path: str, policy: Optional[str] = None) -> ImportReport:
    """Import a GeoJSON FeatureCollection file readable by the server process."""
    importer = BulkImporter(repo, ImportPolicy(policy or settings.import_policy))
    return importer.import_geojson_file(file_path)
