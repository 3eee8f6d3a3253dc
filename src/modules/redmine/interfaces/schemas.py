"""Redmine API schemas."""

from pydantic import BaseModel, Field

from src.modules.redmine.domain.models import (
    TimeEntry,
    TimeEntryInput,
    TimeEntrySummary,
)


class TimeEntryListResponse(BaseModel):
    """Time entries in a date range, with totals."""

    entries: list[TimeEntry]
    summary: TimeEntrySummary


class BulkTimeEntryRequest(BaseModel):
    """Bulk create time entries."""

    entries: list[TimeEntryInput] = Field(
        ..., min_length=1, description="至少一条工时记录"
    )


class BulkFailureResponse(BaseModel):
    index: int = Field(..., description="请求中的位置")
    code: str
    message: str
    messages: list[str] = Field(default_factory=list)


class BulkTimeEntryResponse(BaseModel):
    """Bulk create result."""

    created: list[TimeEntry]
    failed: list[BulkFailureResponse]
    total_hours: float


class ConnectionTestResponse(BaseModel):
    ok: bool = True
    redmine_user_id: str
    login: str
