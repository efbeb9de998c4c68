# landplots/routers/plots.py

from typing import List, Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from landplots.config import settings
from landplots.db import SessionLocal
from landplots.schemas.import_report import (
    FeatureCollectionRequest,
    ImportFileRequest,
    ImportReportResponse,
)
from landplots.schemas.plot_create import PlotCreateRequest, PlotUpdateRequest
from landplots.schemas.plot_response import PlotDeleted, PlotResponse
from landplots.services import plot_service
from landplots.services.plot_repository import PlotRepository
from landplots.utils.geometry_validator import GeometryValidator
from landplots.utils.measurement import MeasurementEngine

router = APIRouter(prefix="/land-plots", tags=["land-plots"])


def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def get_repository(db: Session = Depends(get_db)) -> PlotRepository:
    return PlotRepository(
        db,
        validator=GeometryValidator(check_self_intersection=settings.check_self_intersection),
        engine=MeasurementEngine(settings.measurement_model),
        timeout=settings.db_timeout_seconds,
    )


# ---------------- CREATE PLOT ----------------

@router.post("", response_model=PlotResponse, status_code=201)
def create_plot(payload: PlotCreateRequest, repo: PlotRepository = Depends(get_repository)):
    return plot_service.create_plot(
        repo, payload.name, payload.owner, payload.geometry, payload.properties
    )


# ---------------- LIST / GET ----------------

@router.get("", response_model=List[PlotResponse])
def get_all_plots(
    order_by: Optional[str] = Query(None, pattern="^(id|name|owner|area|perimeter|created_at|updated_at)$"),
    repo: PlotRepository = Depends(get_repository),
):
    return plot_service.get_all_plots(repo, order_by=order_by)


@router.get("/{plot_id}", response_model=PlotResponse)
def get_plot(plot_id: int, repo: PlotRepository = Depends(get_repository)):
    return plot_service.get_plot(repo, plot_id)


# ---------------- UPDATE ----------------

@router.patch("/{plot_id}", response_model=PlotResponse)
def update_plot(plot_id: int, payload: PlotUpdateRequest, repo: PlotRepository = Depends(get_repository)):
    # only the fields the client actually sent
    return plot_service.update_plot(repo, plot_id, payload.model_dump(exclude_unset=True))


# ---------------- DELETE ----------------

@router.delete("/{plot_id}", response_model=PlotDeleted)
def delete_plot(plot_id: int, repo: PlotRepository = Depends(get_repository)):
    return plot_service.delete_plot(repo, plot_id)


# ---------------- BULK IMPORT ----------------

@router.post("/import", response_model=ImportReportResponse, status_code=201)
def import_plots(
    payload: FeatureCollectionRequest,
    policy: Optional[str] = Query(None, pattern="^(continue|abort)$"),
    repo: PlotRepository = Depends(get_repository),
):
    report = plot_service.import_plots(repo, payload.model_dump(), policy=policy)
    return ImportReportResponse.from_report(report)


@router.post("/import-file", response_model=ImportReportResponse, status_code=201)
def import_plots_file(
    payload: ImportFileRequest,
    policy: Optional[str] = Query(None, pattern="^(continue|abort)$"),
    repo: PlotRepository = Depends(get_repository),
):
    report = plot_service.import_plots_file(repo, payload.file_path, policy=policy)
    return ImportReportResponse.from_report(report)
