from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import BaseModel


class PlotResponse(BaseModel):
    id: int
    name: str
    owner: str
    properties: Optional[Dict[str, Any]] = None
    geometry: List[List[float]]
    area: float
    perimeter: float
    side_lengths: List[float]
    created_at: datetime
    updated_at: datetime


class PlotDeleted(BaseModel):
    id: int
    deleted: bool = True
