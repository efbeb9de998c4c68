# landplots/main.py

import logging

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from landplots.config import settings
from landplots.db_init import init_db
from landplots.errors import (
    DecodeError,
    DuplicateKeyError,
    LandPlotError,
    MissingFieldError,
    NotFoundError,
    StorageError,
    ValidationError,
    error_kind,
)
from landplots.logging_config import init_logging
from landplots.routers import plots

logger = logging.getLogger(__name__)

# checked in order; subclasses first
ERROR_STATUS = (
    (MissingFieldError, 400),
    (DecodeError, 400),
    (ValidationError, 422),
    (NotFoundError, 404),
    (DuplicateKeyError, 409),
    (StorageError, 503),
)


def status_for(exc: LandPlotError) -> int:
    for error_type, status in ERROR_STATUS:
        if isinstance(exc, error_type):
            return status
    return 500


app = FastAPI(title="Land Plots API")


@app.on_event("startup")
def startup_event():
    init_logging(settings.log_level)
    init_db()


@app.exception_handler(LandPlotError)
def land_plot_error_handler(request: Request, exc: LandPlotError):
    status = status_for(exc)
    if status >= 500:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc.message)
    return JSONResponse(
        status_code=status,
        content={"error": error_kind(exc), "detail": exc.message},
    )


app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=False,
    allow_methods=["GET", "POST", "PATCH", "DELETE", "OPTIONS"],
    allow_headers=["*"],
)

app.include_router(plots.router)


@app.get("/")
def root():
    return {"status": "ok"}
