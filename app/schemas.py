from datetime import date, datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Optional, Union
from pydantic import BaseModel, ConfigDict, Field, field_serializer, field_validator


class Priority(str, Enum):
    LOW = "Low"
    MEDIUM = "Medium"
    HIGH = "High"


class Status(str, Enum):
    PENDING = "Pending"
    COMPLETED = "Completed"


class ErrorKind(str, Enum):
    NOT_FOUND = "not_found"
    INVALID_ID = "invalid_id"
    VALIDATION_FAILED = "validation_failed"
    OPERATION_FAILED = "operation_failed"


def to_millis(value: datetime) -> datetime:
    """Normalize a timestamp to UTC with millisecond precision."""
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    value = value.astimezone(timezone.utc)
    return value.replace(microsecond=value.microsecond - value.microsecond % 1000)


def format_timestamp(value: datetime) -> str:
    # Same shape as a browser's Date.toISOString(); zero milliseconds are omitted
    value = to_millis(value)
    text = value.strftime("%Y-%m-%dT%H:%M:%S")
    if value.microsecond:
        text += ".%03d" % (value.microsecond // 1000)
    return text + "Z"


def _blank_to_none(value: Any) -> Any:
    if isinstance(value, str) and not value.strip():
        return None
    return value


def _required_title(value: Any) -> Any:
    if value is None or (isinstance(value, str) and not value.strip()):
        raise ValueError("Task title is required")
    return value.strip() if isinstance(value, str) else value


class TaskBase(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    title: str = Field(min_length=1, max_length=255)
    description: str = ""
    priority: Priority = Priority.MEDIUM
    due_date: Optional[date] = Field(default=None, alias="dueDate")
    status: Status = Status.PENDING

    @field_validator("description", mode="before")
    @classmethod
    def _none_description(cls, value):
        return "" if value is None else value

    @field_validator("due_date", mode="before")
    @classmethod
    def _blank_due_date(cls, value):
        return _blank_to_none(value)


class TaskCreate(TaskBase):
    @field_validator("title", mode="before")
    @classmethod
    def _check_title(cls, value):
        return _required_title(value)

    @field_validator("description", mode="after")
    @classmethod
    def _strip_description(cls, value: str) -> str:
        return value.strip()


class TaskPatch(BaseModel):
    """Fields a client may change on an existing task; anything else is rejected."""
    model_config = ConfigDict(populate_by_name=True, extra="forbid")

    title: Optional[str] = Field(default=None, max_length=255)
    description: Optional[str] = None
    priority: Optional[Priority] = None
    due_date: Optional[date] = Field(default=None, alias="dueDate")
    status: Optional[Status] = None

    @field_validator("title", mode="before")
    @classmethod
    def _check_title(cls, value):
        return _required_title(value)

    @field_validator("description", mode="before")
    @classmethod
    def _none_description(cls, value):
        if value is None:
            return ""
        return value.strip() if isinstance(value, str) else value

    @field_validator("due_date", mode="before")
    @classmethod
    def _blank_due_date(cls, value):
        return _blank_to_none(value)

    @field_validator("priority", "status", mode="after")
    @classmethod
    def _not_null(cls, value, info):
        if value is None:
            raise ValueError(f"{info.field_name} cannot be null")
        return value

    def changes(self) -> Dict[str, Any]:
        return self.model_dump(exclude_unset=True)


class Task(TaskBase):
    id: int = Field(ge=1)
    created_at: datetime = Field(alias="createdAt")
    updated_at: datetime = Field(alias="updatedAt")

    @field_validator("created_at", "updated_at", mode="after")
    @classmethod
    def _normalize_timestamp(cls, value: datetime) -> datetime:
        return to_millis(value)

    @field_serializer("created_at", "updated_at", when_used="json")
    def _serialize_timestamp(self, value: datetime) -> str:
        return format_timestamp(value)


class TaskStats(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    total: int = 0
    pending: int = 0
    completed: int = 0
    high_priority: int = Field(default=0, alias="highPriority")


class ApiResponse(BaseModel):
    success: bool
    data: Optional[Union[Task, List[Task], TaskStats]] = None
    message: str
    error: Optional[ErrorKind] = None

    def to_payload(self) -> Dict[str, Any]:
        payload = self.model_dump(mode="json", by_alias=True)
        for key in ("data", "error"):
            if payload[key] is None:
                del payload[key]
        return payload
