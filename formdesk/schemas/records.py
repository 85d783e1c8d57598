"""Pydantic schemas for forms, submissions and employees read from the datastore."""

from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class RecordModel(BaseModel):
    """Base for datastore records: camelCase aliases, read-only."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        frozen=True,
        extra="ignore",
    )


class TimeRestrictions(RecordModel):
    """When a form may be filled in. allowed_days uses 0=Sunday .. 6=Saturday."""

    start_time: str | None = None
    end_time: str | None = None
    allowed_days: list[int] = Field(default_factory=list)


class FormField(RecordModel):
    id: str
    label: str | None = None
    type: str = "text"
    required: bool = False


class Form(RecordModel):
    id: str
    title: str = ""
    description: str = ""
    created_by: str | None = None
    created_at: datetime
    fields: list[FormField] = Field(default_factory=list)
    assigned_to: list[str] = Field(default_factory=list)
    time_restrictions: TimeRestrictions | None = None


class FileAttachment(RecordModel):
    id: str | None = None
    name: str
    type: str = ""
    size: int = 0
    download_url: str | None = None


class FormEntry(RecordModel):
    """A submitted response to a form."""

    id: str
    form_id: str
    user_id: str
    submitted_at: datetime
    answers: dict[str, Any] = Field(default_factory=dict)
    file_attachments: list[FileAttachment] = Field(default_factory=list)


class Employee(RecordModel):
    """Employee record. created_at is missing on records imported before it was tracked."""

    id: str
    name: str | None = None
    email: str | None = None
    created_at: datetime | None = None
    is_approved: bool | None = None
