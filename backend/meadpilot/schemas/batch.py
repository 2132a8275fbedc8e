import hashlib
import json
from datetime import datetime
from typing import Any
from uuid import uuid4

from pydantic import Field, field_validator

from meadpilot.core.timestamps import coerce_datetime
from meadpilot.schemas.recipe import DocumentModel, RecipeRecord


def new_log_entry_id() -> str:
    return uuid4().hex


def legacy_log_entry_id(index: int, entry: dict[str, Any]) -> str:
    """Stable id for a stored reading written without one, derived from its position and content."""
    fingerprint = json.dumps([index, str(entry.get("date")), str(entry.get("sg"))])
    return hashlib.sha1(fingerprint.encode("utf-8")).hexdigest()[:32]


class LogEntry(DocumentModel):
    id: str = Field(default_factory=new_log_entry_id)
    date: datetime
    sg: str
    note: str = ""

    @field_validator("date", mode="before")
    @classmethod
    def _parse_date(cls, value: Any) -> datetime:
        return coerce_datetime(value)

    @field_validator("sg", mode="before")
    @classmethod
    def _stringify_sg(cls, value: Any) -> str:
        if isinstance(value, (int, float)) and not isinstance(value, bool):
            return f"{value:.3f}"
        return str(value)


class BatchRecord(RecipeRecord):
    start_date: datetime | None = None
    status: str = "brewing"
    logs: list[LogEntry] = Field(default_factory=list)
    original_recipe_id: str | None = None

    @field_validator("logs", mode="before")
    @classmethod
    def _identify_legacy_entries(cls, value: Any) -> Any:
        if not isinstance(value, list):
            return value
        return [
            {**entry, "id": legacy_log_entry_id(index, entry)}
            if isinstance(entry, dict) and not entry.get("id")
            else entry
            for index, entry in enumerate(value)
        ]

    @field_validator("start_date", mode="before")
    @classmethod
    def _parse_start_date(cls, value: Any) -> datetime | None:
        if value is None:
            return None
        return coerce_datetime(value)
