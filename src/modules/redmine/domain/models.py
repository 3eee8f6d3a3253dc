"""Redmine value objects."""

from datetime import date

from pydantic import BaseModel, ConfigDict, Field


class RedmineModel(BaseModel):
    model_config = ConfigDict(extra="ignore")


class NamedRef(RedmineModel):
    id: int
    name: str = ""


class RedmineAccount(RedmineModel):
    id: int
    login: str = ""
    firstname: str = ""
    lastname: str = ""
    mail: str | None = None


class Project(RedmineModel):
    id: int
    name: str
    identifier: str = ""
    description: str | None = None
    parent: NamedRef | None = None


class Activity(RedmineModel):
    id: int
    name: str
    is_default: bool = False
    active: bool = True


class Issue(RedmineModel):
    id: int
    subject: str
    project: NamedRef
    tracker: NamedRef | None = None
    status: NamedRef | None = None
    updated_on: str | None = None


class TimeEntry(RedmineModel):
    id: int
    project: NamedRef
    activity: NamedRef
    issue: NamedRef | None = None
    user: NamedRef | None = None
    spent_on: date
    hours: float
    comments: str = ""


class TimeEntryInput(RedmineModel):
    """A time entry to be written to Redmine."""

    project_id: int = Field(..., ge=1, description="项目ID")
    activity_id: int = Field(..., ge=1, description="活动类型ID")
    issue_id: int | None = Field(None, ge=1, description="关联问题ID")
    spent_on: str = Field(
        ..., pattern=r"^\d{4}-\d{2}-\d{2}$", description="日期 YYYY-MM-DD"
    )
    hours: float = Field(..., ge=0, le=24, description="工时")
    comments: str | None = Field(None, max_length=1024, description="备注")

    def to_payload(self) -> dict:
        body: dict = {
            "project_id": self.project_id,
            "spent_on": self.spent_on,
            "hours": self.hours,
            "activity_id": self.activity_id,
            "comments": self.comments or "",
        }
        if self.issue_id is not None:
            body["issue_id"] = self.issue_id
        return {"time_entry": body}


class TimeEntrySummary(RedmineModel):
    """Aggregated hours over a set of time entries."""

    total_hours: float = 0.0
    by_project: dict[int, float] = Field(default_factory=dict)
    by_activity: dict[int, float] = Field(default_factory=dict)
    by_date: dict[str, float] = Field(default_factory=dict)

    @classmethod
    def from_entries(cls, entries: list[TimeEntry]) -> "TimeEntrySummary":
        summary = cls()
        for entry in entries:
            summary.total_hours += entry.hours
            summary.by_project[entry.project.id] = (
                summary.by_project.get(entry.project.id, 0.0) + entry.hours
            )
            summary.by_activity[entry.activity.id] = (
                summary.by_activity.get(entry.activity.id, 0.0) + entry.hours
            )
            day = entry.spent_on.isoformat()
            summary.by_date[day] = summary.by_date.get(day, 0.0) + entry.hours
        return summary
