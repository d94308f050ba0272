"""
Request and response schemas for case assignment endpoints.
"""
from typing import List, Optional

from pydantic import AliasChoices, BaseModel, Field

from watukobu.models.enums import SpkStatus
from watukobu.schemas.asset import AssetResponse


class AssignRequest(BaseModel):
    """Request schema for bulk-assigning cases to one collector."""

    asset_ids: List[str] = Field(
        default_factory=list,
        validation_alias=AliasChoices("asset_ids", "assetIds"),
        description="Assets to assign",
    )
    collector_id: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices("collector_id", "collectorId"),
        description="Target collector; omitted means the recommended collector",
    )


class AssignmentResult(BaseModel):
    assigned_count: int
    collector_id: str
    collector_name: str


class AssignResponse(BaseModel):
    success: bool = True
    message: str
    data: AssignmentResult


class CollectorWorkload(BaseModel):
    """Current load of one collector."""

    collector_id: str
    name: str
    employee_id: Optional[str] = None
    area: Optional[str] = None
    case_count: int
    total_arrears: float
    capacity: int
    load_percent: float
    load_level: str = Field(..., description="normal, busy or overloaded")
    recommended: bool = False


class WorkloadListResponse(BaseModel):
    success: bool = True
    data: List[CollectorWorkload]


class RecommendationResponse(BaseModel):
    success: bool = True
    data: Optional[CollectorWorkload] = None


class QueueStats(BaseModel):
    unassigned_count: int
    unassigned_value: float
    priority_count: int


class AssignmentQueue(BaseModel):
    assets: List[AssetResponse]
    stats: QueueStats
    branches: List[str]


class AssignmentQueueResponse(BaseModel):
    success: bool = True
    data: AssignmentQueue


class QueueFilter(BaseModel):
    branch: Optional[str] = None
    spk_status: Optional[SpkStatus] = None
    min_arrears: Optional[float] = None
