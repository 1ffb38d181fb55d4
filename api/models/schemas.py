"""Pydantic data models used by the FastAPI layer.

Item payloads from the upstream collections are free-form, so reads return
plain dictionaries; these schemas cover the request bodies and the planning
and classification responses.
"""

from __future__ import annotations

from datetime import date, datetime
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field

from core.domains import DomainName


class HealthResponse(BaseModel):
    status: str
    timestamp: datetime


class ItemCreateRequest(BaseModel):
    title: str = Field(..., min_length=1)
    properties: Dict[str, Any] = Field(default_factory=dict)


class ItemUpdateRequest(BaseModel):
    title: Optional[str] = None
    properties: Dict[str, Any] = Field(default_factory=dict)


class SeriesCreateRequest(BaseModel):
    title: str = Field(..., min_length=1)
    properties: Dict[str, Any] = Field(
        default_factory=dict, description="e.g. start_date and what_days_of_the_week"
    )


class DateUpdate(BaseModel):
    id: str
    date: date


class BatchUpdateRequest(BaseModel):
    updates: List[DateUpdate]


class CascadeRequest(BaseModel):
    item_id: str = Field(..., min_length=1, description="Item being moved by hand")
    new_date: date


class WriteFailureOut(BaseModel):
    id: str
    error: str


class WriteResponse(BaseModel):
    success: bool
    succeeded: int
    failed: int
    partial: bool = False
    failures: List[WriteFailureOut] = Field(default_factory=list)


class AssignmentOut(BaseModel):
    id: str
    title: str = ""
    date: date


class ScheduleResponse(WriteResponse):
    domain: DomainName
    series_title: str
    assignments: List[AssignmentOut] = Field(default_factory=list)


class SeriesOut(BaseModel):
    id: Optional[str] = None
    title: str
    start_date: date
    weekdays: List[int]


class ClassificationOptions(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    series: List[str] = Field(default_factory=list)
    themes: List[str] = Field(default_factory=list)
    audiences: List[str] = Field(default_factory=list)
    seasons: List[str] = Field(default_factory=list)
    lesson_types: List[str] = Field(default_factory=list, alias="lessonTypes")
    hashtags: List[str] = Field(default_factory=list)


class SermonAnalysisRequest(BaseModel):
    title: str
    content: str = ""
    options: ClassificationOptions = Field(default_factory=ClassificationOptions)


class SermonClassification(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    series: Optional[str] = None
    theme: Optional[str] = None
    audience: Optional[str] = None
    season: Optional[str] = None
    lesson_type: Optional[str] = Field(None, alias="lessonType")
    key_takeaway: str = Field("", alias="keyTakeaway")
    hashtags: str = ""


__all__ = [
    "AssignmentOut",
    "BatchUpdateRequest",
    "CascadeRequest",
    "ClassificationOptions",
    "DateUpdate",
    "HealthResponse",
    "ItemCreateRequest",
    "ItemUpdateRequest",
    "ScheduleResponse",
    "SeriesCreateRequest",
    "SeriesOut",
    "SermonAnalysisRequest",
    "SermonClassification",
    "WriteFailureOut",
    "WriteResponse",
]
