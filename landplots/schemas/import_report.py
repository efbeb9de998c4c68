from typing import Any, List, Optional

from pydantic import BaseModel


class FeatureCollectionRequest(BaseModel):
    type: str = "FeatureCollection"
    features: List[Any]


class ImportFileRequest(BaseModel):
    file_path: str


class ImportResultOut(BaseModel):
    index: int
    status: str
    plot_id: Optional[int] = None
    name: Optional[str] = None
    error_kind: Optional[str] = None
    message: Optional[str] = None


class ImportReportResponse(BaseModel):
    policy: str
    total: int
    created: int
    failed: int
    skipped: int
    results: List[ImportResultOut]

    @classmethod
    def from_report(cls, report) -> "ImportReportResponse":
        return cls(
            policy=report.policy.value,
            total=report.total,
            created=report.created,
            failed=report.failed,
            skipped=report.skipped,
            results=[
                ImportResultOut(
                    index=r.index,
                    status=r.status.value,
                    plot_id=r.plot_id,
                    name=r.name,
                    error_kind=r.error_kind,
                    message=r.message,
                )
                for r in report.results
            ],
        )
