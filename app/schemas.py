import uuid
from datetime import UTC, datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, computed_field, field_validator
from pydantic.alias_generators import to_camel

from app.models.task import TaskPriority, TaskStatus
from app.utils.task_presentation import (
    format_due_date,
    get_priority_category,
    get_status_category,
    get_status_icon,
)
from app.utils.task_presentation import is_overdue as task_is_overdue

# Request models accept both snake_case and the camelCase keys sent by the web client
REQUEST_MODEL_CONFIG = ConfigDict(alias_generator=to_camel, populate_by_name=True)


def _as_utc(v: Any) -> Any:
    # Naive values are already UTC (SQLite drops the offset on the way back)
    if isinstance(v, datetime):
        return v.replace(tzinfo=UTC) if v.tzinfo is None else v.astimezone(UTC)
    return v


def _strip(v: Any) -> Any:
    return v.strip() if isinstance(v, str) else v


def _blank_to_none(v: Any) -> Any:
    # Web clients send "" for a cleared date input
    return None if isinstance(v, str) and not v.strip() else v


# --- Identity sync ---
class UserSyncRequest(BaseModel):
    firebase_uid: str = Field(
        ...,
        min_length=1,
        max_length=128,
        description="Stable subject identifier issued by the identity provider",
    )
    email: str = Field(..., min_length=3, max_length=255, description="Account email")
    name: str | None = Field(None, max_length=255, description="Display name")
    profile_pic: str | None = Field(
        None, max_length=2048, description="Profile picture URL"
    )

    model_config = REQUEST_MODEL_CONFIG

    @field_validator("firebase_uid", "email", mode="before")
    @classmethod
    def strip_required(cls, v: Any) -> Any:
        return _strip(v)

    @field_validator("email")
    @classmethod
    def check_email_shape(cls, v: str) -> str:
        local, _, domain = v.partition("@")
        if not local or not domain or " " in v:
            raise ValueError("email must look like name@domain")
        return v


class UserInfo(BaseModel):
    id: uuid.UUID = Field(..., description="User unique identifier")
    firebase_uid: str = Field(..., description="Identity provider subject identifier")
    email: str
    name: str | None = None
    profile_pic: str | None = None
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)

    @field_validator("created_at", "updated_at", mode="after")
    @classmethod
    def ensure_utc(cls, v: datetime) -> datetime:
        return _as_utc(v)


class UserSyncResponse(BaseModel):
    user: UserInfo
    access_token: str = Field(..., description="JWT access token for task endpoints")
    token_type: str = Field(default="bearer", description="Token type")


class MessageResponse(BaseModel):
    message: str = Field(..., description="Response message")


class ErrorResponse(BaseModel):
    error: str = Field(..., description="Machine-readable error kind")
    detail: str = Field(..., description="Human-readable explanation")


# --- Task-related API models ---
class TaskCreate(BaseModel):
    title: str = Field(..., max_length=255, description="Task title")
    description: str | None = Field(None, description="Optional description")
    priority: TaskPriority = Field(default=TaskPriority.MEDIUM)
    due_date: datetime | None = Field(None, description="Optional deadline")
    tags: list[str] = Field(default_factory=list)
    is_recurring: bool = False
    recurring_pattern: str | None = Field(None, max_length=100)

    model_config = REQUEST_MODEL_CONFIG

    @field_validator("title", mode="before")
    @classmethod
    def strip_title(cls, v: Any) -> Any:
        return _strip(v)

    @field_validator("priority", mode="before")
    @classmethod
    def default_blank_priority(cls, v: Any) -> Any:
        return TaskPriority.MEDIUM if v in (None, "") else v

    @field_validator("due_date", mode="before")
    @classmethod
    def blank_due_date(cls, v: Any) -> Any:
        return _blank_to_none(v)

    @field_validator("tags", mode="before")
    @classmethod
    def default_null_tags(cls, v: Any) -> Any:
        return [] if v is None else v

    @field_validator("due_date", mode="after")
    @classmethod
    def ensure_utc(cls, v: datetime | None) -> datetime | None:
        return _as_utc(v)


class TaskUpdate(BaseModel):
    """Partial update: only the fields present in the request body are applied."""

    title: str | None = Field(None, max_length=255)
    description: str | None = None
    priority: TaskPriority | None = None
    status: TaskStatus | None = None
    due_date: datetime | None = None
    tags: list[str] | None = None
    is_recurring: bool | None = None
    recurring_pattern: str | None = Field(None, max_length=100)

    model_config = ConfigDict(
        alias_generator=to_camel, populate_by_name=True, extra="forbid"
    )

    @field_validator("title", mode="before")
    @classmethod
    def strip_title(cls, v: Any) -> Any:
        return _strip(v)

    @field_validator("due_date", mode="before")
    @classmethod
    def blank_due_date(cls, v: Any) -> Any:
        return _blank_to_none(v)

    @field_validator("due_date", mode="after")
    @classmethod
    def ensure_utc(cls, v: datetime | None) -> datetime | None:
        return _as_utc(v)


class TaskResponse(BaseModel):
    id: uuid.UUID
    owner_id: uuid.UUID
    title: str
    description: str | None = None
    priority: TaskPriority
    status: TaskStatus
    due_date: datetime | None = None
    tags: list[str] = Field(default_factory=list)
    is_recurring: bool = False
    recurring_pattern: str | None = None
    completed_at: datetime | None = None
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)

    @field_validator("due_date", "completed_at", "created_at", "updated_at", mode="after")
    @classmethod
    def ensure_utc(cls, v: datetime | None) -> datetime | None:
        return _as_utc(v)

    # Display fields, computed against the current time on serialization
    @computed_field
    @property
    def is_overdue(self) -> bool:
        return task_is_overdue(self)

    @computed_field
    @property
    def due_label(self) -> str:
        return format_due_date(self.due_date)

    @computed_field
    @property
    def priority_category(self) -> str:
        return get_priority_category(self.priority)

    @computed_field
    @property
    def status_category(self) -> str:
        return get_status_category(self.status)

    @computed_field
    @property
    def status_icon(self) -> str:
        return get_status_icon(self.status)


class TaskStatsResponse(BaseModel):
    total: int = 0
    pending: int = 0
    in_progress: int = 0
    completed: int = 0
    cancelled: int = 0
    overdue: int = 0
