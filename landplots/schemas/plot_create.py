from typing import Any, Dict, List, Optional, Union

from pydantic import BaseModel

# [[lon, lat], ...], a GeoJSON Polygon object, or a WKT POLYGON string
ExchangeGeometry = Union[List[Any], Dict[str, Any], str]


class PlotCreateRequest(BaseModel):
    # required fields are checked by the service so they surface as MissingField
    name: Optional[str] = None
    owner: Optional[str] = None
    geometry: Optional[ExchangeGeometry] = None
    properties: Optional[Dict[str, Any]] = None


class PlotUpdateRequest(BaseModel):
    name: Optional[str] = None
    owner: Optional[str] = None
    geometry: Optional[ExchangeGeometry] = None
    properties: Optional[Dict[str, Any]] = None
