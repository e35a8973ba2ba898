from typing import Optional, Dict, Any, Union
from pydantic import BaseModel, Field


class StreamRequest(BaseModel):
    config: Optional[Dict[str, Any]] = Field(default=None, description="Plugin configuration, e.g. {\"jitter\": 10}")
    params: Dict[str, Any] = Field(..., description="Open parameters, e.g. {\"start\": 1, \"maxEvents\": 1000}")
    batch_size: int = Field(default=64, ge=1, le=10_000)


class ExtractRequestBody(BaseModel):
    field: Union[int, str] = Field(..., description="Field name or numeric field id")
    arg: Optional[str] = None
    payload: str


class ExtractResponse(BaseModel):
    field: str
    value: Union[int, str]


class HealthResponse(BaseModel):
    status: str = "healthy"
    version: str = "0.1.0"
    plugins_available: int = 0
